"""Test doubles: an in-process fake Key Light and a scripted mDNS browser."""

from __future__ import annotations

import asyncio
import socket

from aiohttp import web

from keylight.discovery.models import DeviceEndpoint, ServiceAnnouncement


class FakeKeyLight:
    """Minimal Elgato Key Light REST server with server-side merge on PUT."""

    def __init__(self, on: bool = True, brightness: int = 50, temperature: int = 200) -> None:
        self.light = {"on": 1 if on else 0, "brightness": brightness, "temperature": temperature}
        self.requests: list[tuple[str, dict | None]] = []
        self.get_status = 200
        self.put_status = 200
        self.endpoint: DeviceEndpoint | None = None

        self.app = web.Application()
        self.app.router.add_get("/elgato/lights", self._get)
        self.app.router.add_put("/elgato/lights", self._put)

    def _body(self) -> dict:
        return {"numberOfLights": 1, "lights": [dict(self.light)]}

    async def _get(self, request: web.Request) -> web.Response:
        self.requests.append(("GET", None))
        if self.get_status != 200:
            return web.Response(status=self.get_status, text="unavailable")
        return web.json_response(self._body())

    async def _put(self, request: web.Request) -> web.Response:
        body = await request.json()
        self.requests.append(("PUT", body))
        if self.put_status != 200:
            return web.Response(status=self.put_status, text="rejected")
        self.light.update(body["lights"][0])
        return web.json_response(self._body())


class ScriptedBrowser:
    """Stands in for MdnsAnnouncementBrowser and replays announcements on a timer.

    The callback is kept after stop() so tests can prove that late
    announcements are ignored by discovery.
    """

    def __init__(
        self, announcements: list[ServiceAnnouncement], delay: float = 0.01
    ) -> None:
        self.announcements = announcements
        self.delay = delay
        self.callback = None
        self.service_type: str | None = None
        self.started = False
        self.stopped = False

    def factory(self, service_type: str, resolve_timeout_ms: int) -> ScriptedBrowser:
        self.service_type = service_type
        return self

    async def start(self, callback) -> None:
        self.callback = callback
        self.started = True
        loop = asyncio.get_running_loop()
        for index, announcement in enumerate(self.announcements, start=1):
            loop.call_later(self.delay * index, callback, announcement)

    async def stop(self) -> None:
        self.stopped = True

    def announce(self, announcement: ServiceAnnouncement) -> None:
        self.callback(announcement)


def announcement(host: str, port: int = 9123, name: str | None = None) -> ServiceAnnouncement:
    return ServiceAnnouncement(
        name=name or f"Elgato Key Light {host}._elg._tcp.local.", address=host, port=port
    )


def unused_port() -> int:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


def discovery_config(
    ips: str = "", count: str = "2", timeout: float = 0.2, policy: str = "accept"
) -> dict:
    return {
        "lights": {"ips": ips, "count": count, "port": 9123},
        "discovery": {"timeout_seconds": timeout, "partial_policy": policy},
    }


