"""Shared fixtures: in-process fake Key Lights and an HTTP client."""

from __future__ import annotations

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer

from helpers import FakeKeyLight, unused_port
from keylight.control.client import KeyLightClient
from keylight.discovery.models import DeviceEndpoint


async def _serve(light: FakeKeyLight):
    async with TestServer(light.app) as server:
        light.endpoint = DeviceEndpoint(server.host, server.port)
        yield light


@pytest_asyncio.fixture
async def key_light():
    async for light in _serve(FakeKeyLight()):
        yield light


@pytest_asyncio.fixture
async def second_key_light():
    async for light in _serve(FakeKeyLight(on=False, brightness=20, temperature=300)):
        yield light


@pytest_asyncio.fixture
async def client():
    async with KeyLightClient(request_timeout=2) as keylight_client:
        yield keylight_client


@pytest.fixture
def dead_endpoint() -> DeviceEndpoint:
    return DeviceEndpoint("127.0.0.1", unused_port())
