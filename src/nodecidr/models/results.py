"""Result types for node reconciliation."""

from dataclasses import dataclass
from enum import Enum


class ReconcileOutcome(str, Enum):
    """What a successful reconcile did."""

    SKIPPED = "skipped"  # podCIDR already set
    UPDATED = "updated"  # podCIDR resolved and patched


@dataclass(frozen=True)
class ReconcileResult:
    """
    Outcome of one node reconciliation.

    Attributes:
        node_name: Node that was reconciled
        outcome: Whether the node was skipped or patched
        pod_cidr: The node's pod CIDR after reconciliation
    """

    node_name: str
    outcome: ReconcileOutcome
    pod_cidr: str

    @property
    def changed(self) -> bool:
        """True if the node was patched."""
        return self.outcome == ReconcileOutcome.UPDATED
