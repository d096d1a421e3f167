"""
Key Light Server - session object owning registry, discovery, client and controller
"""

import logging
from typing import Any, Dict, Optional
import uvicorn

from ..config_loader import load_config, prepare_config, setup_logging
from ..discovery.manager import KeyLightDiscovery
from ..discovery.models import DiscoveryResult
from ..discovery.registry import DeviceRegistry
from ..control.client import KeyLightClient
from ..control.operations import KeyLightController
from ..api.main_api import KeyLightAPI

logger = logging.getLogger(__name__)

class KeyLightServer:
    """One discovery/control session. Every session gets its own registry."""

    def __init__(self, config_path: str = "config/config.yaml", config: Optional[Dict] = None):
        if config is None:
            config = load_config(config_path)
            setup_logging(config)
        else:
            # Injected configs get the same validation and defaults as files
            config = prepare_config(config)
        self.config = config

        self.registry = DeviceRegistry()
        self.discovery = KeyLightDiscovery(self.config, self.registry)
        self.client = KeyLightClient(
            request_timeout=self.config['http']['request_timeout'],
            connect_timeout=self.config['http']['connect_timeout']
        )
        self.controller = KeyLightController(self.registry, self.client)
        self.api = KeyLightAPI(self.discovery, self.controller, self.config)

        self._server: Optional[uvicorn.Server] = None

    async def discover(self) -> DiscoveryResult:
        return await self.discovery.discover()

    async def run_operation(self, operation: str) -> Any:
        """Discover Key Lights, then apply one control operation to all of them"""
        await self.discover()
        return await self.controller.run(operation)

    async def start(self):
        """Discover once, then serve the HTTP API until stopped"""
        logger.info("Starting Key Light Control Server...")
        try:
            result = await self.discover()
            logger.info(f"Initial discovery: {len(result.endpoints)} Key Light(s) via {result.method}")
        except Exception as e:
            # Lights may come online later; the API can re-run discovery
            logger.warning(f"Initial discovery failed: {e}")

        await self._start_api_server()

    async def stop(self):
        """Stop the API server and release HTTP resources"""
        logger.info("Stopping server...")
        if self._server:
            self._server.should_exit = True
        await self.client.close()
        logger.info("Server stopped")

    async def _start_api_server(self):
        """Start the FastAPI server"""
        config = uvicorn.Config(
            self.api.app,
            host=self.config['api']['host'],
            port=self.config['api']['port'],
            log_level="info",
            access_log=False  # We handle our own logging
        )

        self._server = uvicorn.Server(config)

        logger.info(f"Starting API server on {self.config['api']['host']}:{self.config['api']['port']}")
        logger.info(f"API documentation: http://localhost:{self.config['api']['port']}/docs")

        await self._server.serve()
