"""Network reachability tracking.

``ConnectivityMonitor`` holds the current online/offline state and notifies
subscribers on each offline -> online edge only. ``ConnectivityProbe`` is
one way to feed it: an HTTP HEAD against a well-known endpoint.
"""

from collections.abc import Awaitable, Callable

import httpx
import structlog

from trip_tracker.config import settings

logger = structlog.get_logger()

OnlineCallback = Callable[[], Awaitable[None]]


class ConnectivityMonitor:
    """Edge-triggered reachability state."""

    def __init__(self, initial_state: bool = False):
        self._online = initial_state
        self._callbacks: list[OnlineCallback] = []

    def current_state(self) -> bool:
        return self._online

    def on_became_online(self, callback: OnlineCallback) -> Callable[[], None]:
        """Register a callback for offline -> online transitions.

        Returns a function that unsubscribes the callback.
        """
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    async def report(self, reachable: bool) -> bool:
        """
        Record a reachability observation.

        Returns True when this report was an offline -> online transition
        (and subscribers were notified).
        """
        was_online = self._online
        self._online = reachable

        if reachable == was_online:
            return False

        if not reachable:
            logger.warning("Connectivity lost")
            return False

        logger.info("Connectivity restored", subscribers=len(self._callbacks))
        for callback in list(self._callbacks):
            try:
                await callback()
            except Exception as e:
                logger.error("Became-online callback failed", error=str(e))
        return True


class ConnectivityProbe:
    """Checks reachability with a HEAD request to a known endpoint."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url or settings.connectivity_probe_url
        self._timeout = timeout or settings.connectivity_probe_timeout_seconds
        self._transport = transport

    async def check(self) -> bool:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.head(self.url)
        except httpx.HTTPError as e:
            logger.debug("Connectivity probe failed", url=self.url, error=str(e))
            return False
        return response.status_code < 500
