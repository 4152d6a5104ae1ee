"""Node controller - watch, queue and reconcile.

Triggers:
--------
- Node watch: every ADDED/MODIFIED event enqueues the node's name
- Resync: every resync_interval seconds all nodes are enqueued

Queue:
-----
A name is queued at most once and reconciled by at most one worker at a
time. An event for a node that is being reconciled marks it dirty; the
worker requeues it once the current reconcile finishes.

Retries:
-------
Workers retry a failed reconcile with exponential backoff (tenacity) only
when another attempt may succeed: NetBox unreachable, deadline hit,
nothing found yet, or the Kubernetes call failed. Ambiguous or malformed
NetBox data is not retried here; the next event or resync picks it up.
"""

import asyncio

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..config import ReconcileConfig
from ..constants import WATCH_RECONNECT_DELAY
from ..kube.nodes import NodeSource
from ..models.results import ReconcileResult
from ..observability.metrics import MetricsCollector
from ..utils.exceptions import (
    CardinalityError,
    NodeCIDRError,
    NodeUpdateError,
    RegistryUnavailable,
    ResolutionCancelled,
)
from .reconciler import NodeReconciler

logger = structlog.get_logger(__name__)


def is_retriable(exc: BaseException) -> bool:
    """Check if a failed reconcile is worth retrying right away."""
    if isinstance(exc, CardinalityError):
        return exc.empty
    return isinstance(exc, RegistryUnavailable | ResolutionCancelled | NodeUpdateError)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Reconcile failed, retrying",
        attempt=retry_state.attempt_number,
        wait=round(retry_state.next_action.sleep, 2) if retry_state.next_action else None,
        error=str(exc),
    )


class NodeController:
    """
    Drive NodeReconciler from node events.

    Features:
    - De-duplicated work queue
    - Fixed pool of worker tasks
    - Exponential backoff on retriable failures
    - Watch reconnects and periodic resync
    """

    def __init__(
        self,
        reconciler: NodeReconciler,
        source: NodeSource,
        config: ReconcileConfig,
        collector: MetricsCollector,
    ) -> None:
        """
        Initialize controller.

        Args:
            reconciler: Per-node reconcile logic
            source: Node listing and watch
            config: Worker, resync and retry settings
            collector: Metrics collector
        """
        self.reconciler = reconciler
        self.source = source
        self.config = config
        self.collector = collector

        self.queue: asyncio.Queue[str] = asyncio.Queue()
        self._pending: set[str] = set()
        self._active: set[str] = set()
        self._dirty: set[str] = set()
        self.running = False

    def enqueue(self, node_name: str) -> bool:
        """
        Queue node_name unless it is already waiting or being reconciled.

        A name that is being reconciled is requeued when its worker finishes.

        Returns:
            True if the name was added to the queue
        """
        if node_name in self._pending:
            return False
        if node_name in self._active:
            self._dirty.add(node_name)
            return False
        self._pending.add(node_name)
        self.queue.put_nowait(node_name)
        return True

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_exception(is_retriable),
            stop=stop_after_attempt(self.config.retry_attempts),
            wait=wait_exponential(
                multiplier=self.config.retry_min_wait,
                min=self.config.retry_min_wait,
                max=self.config.retry_max_wait,
            ),
            before_sleep=_log_retry,
            reraise=True,
        )

    async def process(self, node_name: str) -> ReconcileResult | None:
        """
        Reconcile one node, retrying retriable failures.

        Returns:
            The reconcile result, or None if the node could not be reconciled
        """
        try:
            async for attempt in self._retrying():
                with attempt:
                    result = await self.reconciler.reconcile(node_name)
        except NodeCIDRError as e:
            self.collector.count_reconcile("failed")
            logger.warning(
                "Giving up on node until next event",
                node=node_name,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

        self.collector.count_reconcile(result.outcome.value)
        return result

    async def worker(self, index: int) -> None:
        """Process queued nodes until cancelled."""
        logger.debug("Worker started", worker=index)
        while True:
            node_name = await self.queue.get()
            self._pending.discard(node_name)
            self._active.add(node_name)
            try:
                await self.process(node_name)
            except Exception:
                logger.exception("Unexpected error reconciling node", node=node_name)
            finally:
                self._active.discard(node_name)
                self.queue.task_done()
            if node_name in self._dirty:
                self._dirty.discard(node_name)
                self.enqueue(node_name)

    async def watch(self) -> None:
        """Enqueue nodes from the watch stream, reconnecting on failure."""
        while True:
            try:
                async for node_name in self.source.watch_node_names():
                    self.enqueue(node_name)
                logger.info("Node watch ended, reconnecting")
            except Exception as e:
                error = e if isinstance(e, NodeUpdateError) else NodeUpdateError("*", "watch", e)
                self.collector.record_failure(error)
                logger.error(
                    "Error in watch loop, reconnecting",
                    error=str(e),
                    error_type=type(e).__name__,
                    delay=WATCH_RECONNECT_DELAY,
                )
            await asyncio.sleep(WATCH_RECONNECT_DELAY)

    async def resync_once(self) -> int:
        """
        Enqueue every node once.

        Returns:
            Number of names newly queued
        """
        try:
            names = await self.source.list_node_names()
        except NodeUpdateError as e:
            self.collector.record_failure(e)
            logger.error("Unable to list nodes", error=str(e))
            return 0
        queued = sum(1 for name in names if self.enqueue(name))
        logger.debug("Resync", nodes=len(names), queued=queued)
        return queued

    async def resync(self) -> None:
        """Periodically enqueue every node."""
        while True:
            await self.resync_once()
            await asyncio.sleep(self.config.resync_interval)

    async def run(self) -> None:
        """Run watch, resync and workers until cancelled."""
        logger.info("Starting node controller", workers=self.config.workers)
        tasks = [
            asyncio.create_task(self.watch(), name="watch"),
            asyncio.create_task(self.resync(), name="resync"),
        ]
        tasks.extend(
            asyncio.create_task(self.worker(i), name=f"worker-{i}")
            for i in range(self.config.workers)
        )
        self.running = True
        try:
            await asyncio.gather(*tasks)
        finally:
            self.running = False
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Node controller stopped", metrics=self.collector.get_summary())
