"""
Main discovery manager for Key Lights
Resolves endpoints from a static address list or from mDNS announcements
"""

import asyncio
import logging
import time
from typing import Callable, Dict, Optional

from ..config_loader import parse_device_count, parse_static_ips
from ..const import (
    DEFAULT_PORT,
    DISCOVERY_TIMEOUT,
    PARTIAL_ACCEPT,
    PARTIAL_FAIL,
    RESOLVE_TIMEOUT_MS,
    SERVICE_TYPE,
)
from ..exceptions import NoDevicesFound, PartialDiscovery
from .models import DeviceEndpoint, DiscoveryResult, ServiceAnnouncement
from .network_discovery import MdnsAnnouncementBrowser
from .registry import DeviceRegistry

logger = logging.getLogger(__name__)

class KeyLightDiscovery:
    """Discovery service for Elgato Key Lights"""

    def __init__(self, config: Dict, registry: DeviceRegistry,
                 browser_factory: Optional[Callable[..., MdnsAnnouncementBrowser]] = None):
        lights = config.get('lights', {})
        discovery = config.get('discovery', {})

        self.registry = registry
        self.static_ips = lights.get('ips') or ''
        self.device_count = lights.get('count', '1')
        self.port = lights.get('port', DEFAULT_PORT)
        self.service_type = discovery.get('service_type', SERVICE_TYPE)
        self.discovery_timeout = discovery.get('timeout_seconds', DISCOVERY_TIMEOUT)
        self.resolve_timeout_ms = discovery.get('resolve_timeout_ms', RESOLVE_TIMEOUT_MS)
        self.partial_policy = discovery.get('partial_policy', PARTIAL_ACCEPT)
        self.browser_factory = browser_factory or MdnsAnnouncementBrowser

        # Only one discovery may write the registry at a time
        self._lock = asyncio.Lock()

    async def discover(self) -> DiscoveryResult:
        """
        Populate the registry using the configured strategy.
        A static address list, when present, bypasses mDNS entirely.
        """
        async with self._lock:
            if self.static_ips.strip():
                return self.discover_static(self.static_ips)
            return await self.discover_mdns(parse_device_count(self.device_count))

    def discover_static(self, static_ips: str) -> DiscoveryResult:
        """Build endpoints from a comma-separated address list (no network activity)"""
        start_time = time.time()
        ips = parse_static_ips(static_ips)
        logger.info(f"Using static IPs: {', '.join(ips)}")

        endpoints = [DeviceEndpoint(host=ip, port=self.port) for ip in ips]
        self.registry.replace(endpoints)

        return DiscoveryResult(
            endpoints=endpoints,
            method="static",
            duration_seconds=time.time() - start_time,
            target_count=len(endpoints),
            complete=True
        )

    async def discover_mdns(self, target_count: int) -> DiscoveryResult:
        """
        Listen for mDNS announcements until target_count Key Lights are found
        or the discovery timeout elapses. The browser is torn down on every exit path.
        """
        if target_count < 1:
            raise ValueError(f"Target device count must be at least 1, got {target_count}")

        logger.info(f"[SEARCH] Discovering {target_count} Key Light(s) via mDNS ({self.service_type})...")
        start_time = time.time()
        self.registry.replace()

        loop = asyncio.get_running_loop()
        reached = loop.create_future()

        def on_announcement(announcement: ServiceAnnouncement) -> None:
            if reached.done():
                return
            if not announcement.address or not announcement.port:
                logger.debug(f"Skipping announcement without address/port: {announcement.name}")
                return

            endpoint = DeviceEndpoint(host=announcement.address, port=announcement.port)
            found = self.registry.append(endpoint)
            logger.info(f"[OK] Found Key Light {announcement.name} at {endpoint} ({found}/{target_count})")

            if found == target_count:
                reached.set_result(True)

        browser = self.browser_factory(self.service_type, self.resolve_timeout_ms)
        try:
            await browser.start(on_announcement)
            await asyncio.wait_for(reached, timeout=self.discovery_timeout)
            complete = True
        except asyncio.TimeoutError:
            complete = False
            self._handle_timeout(target_count)
        finally:
            await browser.stop()

        endpoints = list(self.registry.snapshot())
        duration = time.time() - start_time
        logger.info(f"[PASS] mDNS discovery finished: {len(endpoints)}/{target_count} Key Lights in {duration:.1f}s")

        return DiscoveryResult(
            endpoints=endpoints,
            method="mdns",
            duration_seconds=duration,
            target_count=target_count,
            complete=complete
        )

    def _handle_timeout(self, target_count: int) -> None:
        """Apply the timeout policy once the discovery window has elapsed"""
        found = len(self.registry)

        if found == 0:
            logger.error(f"No Key Lights discovered within {self.discovery_timeout}s")
            raise NoDevicesFound(self.discovery_timeout)

        if self.partial_policy == PARTIAL_FAIL:
            logger.error(f"Only {found} of {target_count} Key Lights discovered within {self.discovery_timeout}s")
            raise PartialDiscovery(found, target_count, self.discovery_timeout)

        logger.warning(
            f"Only {found} of {target_count} Key Lights discovered within "
            f"{self.discovery_timeout}s - continuing with partial results"
        )
