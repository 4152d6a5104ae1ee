"""Kubernetes access."""

from .nodes import Kr8sNodeStore, NodeSource, NodeStore

__all__ = ["Kr8sNodeStore", "NodeSource", "NodeStore"]
