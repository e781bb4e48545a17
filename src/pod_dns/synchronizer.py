"""Background refresh of the pod directory from the kubelet."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Protocol

from .directory import PodDirectory
from .kubelet import KubeletError
from .records import user_pod_records


class PodSource(Protocol):
    def get_pods(self) -> Awaitable[list[dict[str, Any]]]: ...


class DirectorySynchronizer:
    """Periodically replaces the directory with the kubelet's user pods.

    A failed fetch leaves the previous snapshot in place; the next cycle
    retries after the regular interval.

    Args:
        source: Object providing ``await source.get_pods()``.
        directory: Directory to refresh.
        interval: Seconds to sleep between cycles.
        tie_break: ``"snapshot"`` keeps kubelet order for duplicate names,
            ``"pod_name"`` sorts records by pod name first.
        logger: Logger to use instead of the module logger.
    """

    def __init__(
        self,
        source: PodSource,
        directory: PodDirectory,
        interval: float = 10,
        tie_break: str = "snapshot",
        logger: logging.Logger | None = None,
    ) -> None:
        self.source = source
        self.directory = directory
        self.interval = interval
        self.tie_break = tie_break
        self.logger = logger or logging.getLogger(__name__)
        self._task: asyncio.Task[None] | None = None

    async def sync_once(self) -> bool:
        """Run one fetch-transform-replace cycle.

        Returns:
            bool: True if the directory was replaced.
        """
        try:
            pods = await self.source.get_pods()
        except KubeletError as exc:
            self.logger.warning("getting pods info failed: %s", exc)
            return False

        records = user_pod_records(pods)
        if self.tie_break == "pod_name":
            records.sort(key=lambda rec: rec.pod_name)
        self.directory.replace(records)
        self.logger.info("directory updated: %d records from %d pods", len(records), len(pods))
        return True

    async def run(self) -> None:
        """Run refresh cycles until cancelled.

        Unexpected errors in a cycle are logged and the loop carries on with
        the next one.
        """
        while True:
            try:
                await self.sync_once()
            except Exception:
                self.logger.exception("directory refresh cycle failed")
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task[None]:
        """Start the refresh loop on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="directory-synchronizer")
            self.logger.info("synchronizer started, interval %ss", self.interval)
        return self._task

    async def stop(self) -> None:
        """Cancel the refresh loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self.logger.info("synchronizer stopped")

    @property
    def running(self) -> bool:
        """True while the refresh loop task is alive."""
        return self._task is not None and not self._task.done()
