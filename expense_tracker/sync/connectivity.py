"""
Connectivity Monitor

Maintains the boolean "online" signal for the remote record service.

Triggers:
1. A fixed-interval probe loop (start()/stop())
2. Platform connectivity notifications (notify_network_change())
3. Transport errors observed by other components (record_failure())

DESIGN DECISION: Coming online is immediate (one successful probe);
going offline needs `offline_after_failures` consecutive failures, so a
single dropped probe does not flap the signal and re-trigger a push.
No backoff is applied - the probe interval is fixed.

Listeners are called only on transitions, in registration order.
"""

import asyncio
import contextlib
from typing import Awaitable, Callable, Optional

import structlog


logger = structlog.get_logger(__name__)

ProbeFn = Callable[[], Awaitable[bool]]
ConnectivityListener = Callable[[bool], Awaitable[None]]


class ConnectivityMonitor:
    """
    Debounced reachability signal.

    Args:
        probe: Async callable returning True when the service answered
        interval_seconds: Delay between probes in the background loop
        offline_after_failures: Consecutive failures before dropping offline
    """

    def __init__(
        self,
        probe: ProbeFn,
        interval_seconds: float = 5.0,
        offline_after_failures: int = 2,
    ):
        if offline_after_failures < 1:
            raise ValueError("offline_after_failures must be at least 1")
        self._probe = probe
        self._interval = interval_seconds
        self._offline_after = offline_after_failures
        self._online = False
        self._consecutive_failures = 0
        self._listeners: list[ConnectivityListener] = []
        self._task: Optional[asyncio.Task] = None

    @property
    def is_online(self) -> bool:
        return self._online

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def add_listener(self, listener: ConnectivityListener) -> None:
        """Call `listener(online)` on every transition."""
        self._listeners.append(listener)

    def add_online_listener(self, listener: Callable[[], Awaitable[object]]) -> None:
        """Call `listener()` on every offline -> online transition."""
        async def _on_transition(online: bool) -> None:
            if online:
                await listener()

        self._listeners.append(_on_transition)

    async def _notify(self, online: bool) -> None:
        for listener in list(self._listeners):
            try:
                await listener(online)
            except Exception:
                # A failing listener must not stop the probe loop
                logger.exception("connectivity_listener_failed", online=online)

    async def _set_online(self, online: bool) -> None:
        if online == self._online:
            return
        self._online = online
        logger.info("connectivity_changed", online=online)
        await self._notify(online)

    async def record_success(self) -> None:
        """The service answered."""
        self._consecutive_failures = 0
        await self._set_online(True)

    async def record_failure(self) -> None:
        """The service could not be reached."""
        self._consecutive_failures += 1
        if self._online and self._consecutive_failures < self._offline_after:
            logger.info(
                "connectivity_failure_debounced",
                consecutive_failures=self._consecutive_failures,
                threshold=self._offline_after,
            )
            return
        await self._set_online(False)

    async def probe_once(self) -> bool:
        """
        Probe the service once and update the signal.

        Returns the (possibly unchanged) online signal.
        """
        try:
            reachable = await self._probe()
        except Exception as e:
            logger.warning("probe_error", error=str(e))
            reachable = False

        if reachable:
            await self.record_success()
        else:
            await self.record_failure()
        return self._online

    async def notify_network_change(self) -> bool:
        """Platform reported a connectivity change: probe right away."""
        logger.debug("network_change_notified")
        return await self.probe_once()

    async def _run(self) -> None:
        while True:
            await self.probe_once()
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        """Start the probe loop on the running event loop."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Cancel the probe loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
