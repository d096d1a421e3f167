"""
REST client for a single Elgato Key Light
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from ..const import (
    COLD_TEMPERATURE,
    CONNECT_TIMEOUT,
    LIGHTS_PATH,
    MAX_BRIGHTNESS,
    MIN_BRIGHTNESS,
    REQUEST_TIMEOUT,
    WARM_TEMPERATURE,
)
from ..discovery.models import DeviceEndpoint
from ..exceptions import DeviceUnreachable
from .models import DeviceState

logger = logging.getLogger(__name__)

class KeyLightClient:
    """Performs the two REST primitives against a Key Light: fetch state and push a partial update.

    No retries: a failed request raises DeviceUnreachable straight away.
    The client owns its aiohttp session unless one is passed in. An owned
    session speaks plain HTTP, keeps at most two connections per light and
    gives up on a silent light after connect_timeout seconds.
    """

    def __init__(self, session: Optional[aiohttp.ClientSession] = None,
                 request_timeout: float = REQUEST_TIMEOUT, connect_timeout: float = CONNECT_TIMEOUT):
        self.request_timeout = request_timeout
        self.connect_timeout = min(connect_timeout, request_timeout)
        self._own_session = session is None
        self._session = session

    async def __aenter__(self) -> "KeyLightClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            # One request per connection
            connector = aiohttp.TCPConnector(limit_per_host=2, force_close=True)
            timeout = aiohttp.ClientTimeout(total=self.request_timeout, sock_connect=self.connect_timeout)
            logger.debug(f"Opening Key Light session (timeout={self.request_timeout}s, connect={self.connect_timeout}s)")
            self._session = aiohttp.ClientSession(connector=connector, timeout=timeout)
            self._own_session = True
        return self._session

    async def close(self):
        if self._own_session and self._session and not self._session.closed:
            await self._session.close()

    @staticmethod
    def lights_url(endpoint: DeviceEndpoint) -> str:
        return f"{endpoint.base_url}{LIGHTS_PATH}"

    async def fetch_state(self, endpoint: DeviceEndpoint) -> DeviceState:
        """Read the current state of the first light reported by the device"""
        url = self.lights_url(endpoint)
        logger.debug(f"GET {url}")
        try:
            async with self._get_session().get(url) as response:
                if not 200 <= response.status < 300:
                    raise DeviceUnreachable(endpoint, url, f"HTTP {response.status}")
                body = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DeviceUnreachable(endpoint, url, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise DeviceUnreachable(endpoint, url, f"Invalid JSON: {e}") from e

        try:
            return DeviceState.from_payload(body['lights'][0])
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise DeviceUnreachable(endpoint, url, f"Malformed response: {e!r}") from e

    async def push_state(self, endpoint: DeviceEndpoint, on: Optional[bool] = None,
                         brightness: Optional[int] = None, temperature: Optional[int] = None) -> bool:
        """Send only the supplied fields; the device keeps the others unchanged"""
        light = self._build_update(on, brightness, temperature)
        payload = {"lights": [light]}
        url = self.lights_url(endpoint)
        logger.debug(f"PUT {url} Payload={payload}")
        try:
            async with self._get_session().put(url, json=payload) as response:
                if 200 <= response.status < 300:
                    return True
                txt = await response.text()
                raise DeviceUnreachable(endpoint, url, f"HTTP {response.status}: {txt[:200]}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DeviceUnreachable(endpoint, url, str(e) or type(e).__name__) from e

    @staticmethod
    def _build_update(on: Optional[bool], brightness: Optional[int],
                      temperature: Optional[int]) -> Dict[str, Any]:
        """Validate the partial update and convert it to wire format"""
        light: Dict[str, Any] = {}
        if on is not None:
            light["on"] = 1 if on else 0
        if brightness is not None:
            if not MIN_BRIGHTNESS <= brightness <= MAX_BRIGHTNESS:
                raise ValueError(f"brightness {brightness} outside [{MIN_BRIGHTNESS}, {MAX_BRIGHTNESS}]")
            light["brightness"] = int(brightness)
        if temperature is not None:
            if not COLD_TEMPERATURE <= temperature <= WARM_TEMPERATURE:
                raise ValueError(f"temperature {temperature} outside [{COLD_TEMPERATURE}, {WARM_TEMPERATURE}]")
            light["temperature"] = int(temperature)
        if not light:
            raise ValueError("push_state needs at least one of on, brightness, temperature")
        return light
