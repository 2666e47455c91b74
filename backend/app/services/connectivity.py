"""Online/offline state with change listeners.

State is set explicitly with ``set_online`` or by ``probe``, which issues a
GET against a health URL. Listeners are called with the new state only when
it actually changes.
"""

import logging
from typing import Callable, Optional

import httpx

logger = logging.getLogger(__name__)

Listener = Callable[[bool], None]


class ConnectivityMonitor:
    def __init__(self, online: bool = True, probe_url: Optional[str] = None, timeout: float = 5.0):
        self._online = online
        self._listeners: list[Listener] = []
        self.probe_url = probe_url
        self.timeout = timeout

    @property
    def is_online(self) -> bool:
        return self._online

    @property
    def listeners(self) -> list[Listener]:
        return list(self._listeners)

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def set_online(self, online: bool) -> None:
        if online == self._online:
            return
        self._online = online
        logger.info("Connectivity changed: %s", "online" if online else "offline")
        for listener in list(self._listeners):
            listener(online)

    async def probe(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> bool:
        if not self.probe_url:
            return self._online
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=transport) as client:
                response = await client.get(self.probe_url)
            online = response.status_code < 500
        except httpx.RequestError as exc:
            logger.warning("Connectivity probe to %s failed: %s", self.probe_url, exc)
            online = False
        self.set_online(online)
        return online
