"""Reconcile one node's pod CIDR."""

import structlog

from ..core.resolver import NodeCIDRResolver
from ..kube.nodes import NodeStore
from ..models.results import ReconcileOutcome, ReconcileResult
from ..observability.logger import LogContext
from ..observability.metrics import FailureSink
from ..utils.exceptions import NodeCIDRError

logger = structlog.get_logger(__name__)


class NodeReconciler:
    """
    Fill in spec.podCIDR for nodes that have none.

    A node that already has a pod CIDR is never resolved or patched, which
    is what keeps repeated events from overwriting it. Two concurrent
    reconciles of the same empty node both compute the same CIDR, so the
    second patch is a no-op in effect.
    """

    def __init__(
        self,
        resolver: NodeCIDRResolver,
        nodes: NodeStore,
        failures: FailureSink,
        resolve_timeout: float | None = None,
    ) -> None:
        """
        Initialize reconciler.

        Args:
            resolver: Hostname to CIDR resolver
            nodes: Node reader/writer
            failures: Sink charged with every failure
            resolve_timeout: Deadline for each resolution in seconds
        """
        self.resolver = resolver
        self.nodes = nodes
        self.failures = failures
        self.resolve_timeout = resolve_timeout

    async def reconcile(self, node_name: str) -> ReconcileResult:
        """
        Ensure node_name has a pod CIDR.

        Args:
            node_name: Node to reconcile

        Returns:
            ReconcileResult (SKIPPED if already set, UPDATED if patched)

        Raises:
            ResolutionError: The CIDR could not be resolved
            NodeUpdateError: The node could not be read or patched
        """
        with LogContext(node=node_name):
            logger.info("Reconciling node")
            try:
                current = await self.nodes.get_pod_cidr(node_name)
                if current:
                    logger.debug("PodCIDR already set", pod_cidr=current)
                    return ReconcileResult(node_name, ReconcileOutcome.SKIPPED, current)

                logger.info("No PodCIDR set, getting from NetBox")
                cidr = await self.resolver.resolve(node_name, timeout=self.resolve_timeout)
                await self.nodes.set_pod_cidr(node_name, cidr)
            except NodeCIDRError as e:
                bucket = self.failures.record_failure(e)
                logger.error(
                    "Reconcile failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    bucket=bucket.value,
                )
                raise

            logger.info("PodCIDR set", pod_cidr=cidr)
            return ReconcileResult(node_name, ReconcileOutcome.UPDATED, cidr)
