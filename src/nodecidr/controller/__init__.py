"""Node reconciliation and scheduling."""

from .manager import NodeController, is_retriable
from .reconciler import NodeReconciler

__all__ = ["NodeController", "NodeReconciler", "is_retriable"]
