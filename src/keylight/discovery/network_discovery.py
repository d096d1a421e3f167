"""
mDNS browsing for Key Light announcements
"""

import asyncio
import logging
from typing import Callable, Optional, Set

from zeroconf import IPVersion, ServiceStateChange, Zeroconf
from zeroconf.asyncio import AsyncServiceBrowser, AsyncServiceInfo, AsyncZeroconf

from ..const import SERVICE_TYPE, RESOLVE_TIMEOUT_MS
from .models import ServiceAnnouncement

logger = logging.getLogger(__name__)

AnnouncementCallback = Callable[[ServiceAnnouncement], None]

class MdnsAnnouncementBrowser:
    """Browses one DNS-SD service type and reports every resolved announcement.

    ``start()`` opens the multicast listener; ``stop()`` releases it and is
    safe to call more than once. The callback runs on the event loop.
    """

    def __init__(self, service_type: str = SERVICE_TYPE, resolve_timeout_ms: int = RESOLVE_TIMEOUT_MS):
        self.service_type = service_type
        self.resolve_timeout_ms = resolve_timeout_ms
        self._zeroconf: Optional[AsyncZeroconf] = None
        self._browser: Optional[AsyncServiceBrowser] = None
        self._callback: Optional[AnnouncementCallback] = None
        self._pending: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._browser is not None

    async def start(self, callback: AnnouncementCallback) -> None:
        """Open the multicast listener"""
        if self.running:
            return

        self._callback = callback
        self._zeroconf = AsyncZeroconf(ip_version=IPVersion.V4Only)
        self._browser = AsyncServiceBrowser(
            self._zeroconf.zeroconf,
            self.service_type,
            handlers=[self._on_service_state_change]
        )
        logger.info(f"mDNS browser started for {self.service_type}")

    async def stop(self) -> None:
        """Tear down the listener and drop any pending resolutions"""
        self._callback = None

        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        self._pending.clear()

        if self._browser:
            await self._browser.async_cancel()
            self._browser = None

        if self._zeroconf:
            await self._zeroconf.async_close()
            self._zeroconf = None
            logger.info(f"mDNS browser stopped for {self.service_type}")

    def _on_service_state_change(self, zeroconf: Zeroconf, service_type: str, name: str,
                                 state_change: ServiceStateChange) -> None:
        """Called by zeroconf when a service is added, updated or removed"""
        if state_change is not ServiceStateChange.Added:
            logger.debug(f"Ignoring {state_change.name} for {name}")
            return

        task = asyncio.ensure_future(self._resolve(zeroconf, service_type, name))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _resolve(self, zeroconf: Zeroconf, service_type: str, name: str) -> None:
        """Resolve address and port for an announced service"""
        info = AsyncServiceInfo(service_type, name)
        if not await info.async_request(zeroconf, self.resolve_timeout_ms):
            logger.debug(f"Could not resolve {name} within {self.resolve_timeout_ms}ms")
            return

        addresses = info.parsed_addresses(IPVersion.V4Only)
        announcement = ServiceAnnouncement(
            name=name,
            address=addresses[0] if addresses else None,
            port=info.port
        )
        logger.debug(f"Resolved {name}: {announcement.address}:{announcement.port}")

        # Browser may have been stopped while resolving
        if self._callback:
            self._callback(announcement)
