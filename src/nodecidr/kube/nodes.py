"""Kubernetes node access."""

from collections.abc import AsyncIterator
from typing import Protocol

import httpx
import kr8s
import structlog
from kr8s.asyncio.objects import Node

from ..utils.exceptions import NodeUpdateError

logger = structlog.get_logger(__name__)

# Watch event types that can leave a node without a pod CIDR
_RECONCILE_EVENTS = frozenset({"ADDED", "MODIFIED"})

_KUBE_ERRORS = (
    kr8s.NotFoundError,
    kr8s.ServerError,
    kr8s.APITimeoutError,
    httpx.HTTPError,
)


class NodeStore(Protocol):
    """Read and write a node's pod CIDR."""

    async def get_pod_cidr(self, node_name: str) -> str:
        """Return spec.podCIDR, or "" if unset."""

    async def set_pod_cidr(self, node_name: str, pod_cidr: str) -> None:
        """Persist spec.podCIDR."""


class NodeSource(Protocol):
    """Where reconcile triggers come from."""

    async def list_node_names(self) -> list[str]:
        """Names of all nodes."""

    def watch_node_names(self) -> AsyncIterator[str]:
        """Names of nodes as they are added or modified."""


class Kr8sNodeStore:
    """
    NodeStore backed by the Kubernetes API through kr8s.

    Also provides the node listing and watch used as reconcile triggers.
    """

    def __init__(self, context: str | None = None) -> None:
        """
        Initialize node store.

        Args:
            context: kubeconfig context (None for the current context or in-cluster config)
        """
        self.context = context
        self._api: kr8s.asyncio.Api | None = None  # Lazy-loaded

    async def api(self) -> kr8s.asyncio.Api:
        """Get the kr8s API client, connecting on first use."""
        if self._api is None:
            logger.info("Connecting to Kubernetes", context=self.context or "<default>")
            self._api = await kr8s.asyncio.api(context=self.context)
        return self._api

    async def _get_node(self, node_name: str) -> Node:
        api = await self.api()
        try:
            return await Node.get(node_name, api=api)
        except _KUBE_ERRORS as e:
            logger.error("Could not get node", node=node_name, error=str(e))
            raise NodeUpdateError(node_name, "get", e) from e

    async def get_pod_cidr(self, node_name: str) -> str:
        node = await self._get_node(node_name)
        return node.spec.get("podCIDR") or ""

    async def set_pod_cidr(self, node_name: str, pod_cidr: str) -> None:
        node = await self._get_node(node_name)
        try:
            await node.patch({"spec": {"podCIDR": pod_cidr}})
        except _KUBE_ERRORS as e:
            logger.error("Error updating node", node=node_name, error=str(e))
            raise NodeUpdateError(node_name, "patch", e) from e

    async def list_node_names(self) -> list[str]:
        """Names of all nodes in the cluster."""
        api = await self.api()
        try:
            return [node.name async for node in api.get("nodes")]
        except _KUBE_ERRORS as e:
            raise NodeUpdateError("*", "list", e) from e

    async def watch_node_names(self) -> AsyncIterator[str]:
        """Yield the name of every node that is added or modified."""
        api = await self.api()
        try:
            async for event, node in api.watch("nodes"):
                if event in _RECONCILE_EVENTS:
                    yield node.name
        except _KUBE_ERRORS as e:
            raise NodeUpdateError("*", "watch", e) from e
