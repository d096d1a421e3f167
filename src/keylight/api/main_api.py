"""
Main FastAPI application setup
Local HTTP API for Key Light discovery and control
"""

from fastapi import FastAPI
from typing import Dict
import logging

from .light_routes import create_light_routes
from .system_routes import create_system_routes

logger = logging.getLogger(__name__)


class KeyLightAPI:
    """Local HTTP API for Key Light discovery and control"""

    def __init__(self, discovery, controller, config: Dict):
        self.discovery = discovery
        self.controller = controller
        self.config = config
        self.app = FastAPI(
            title="Key Light Control Server",
            description="Local API for discovering and controlling Elgato Key Lights",
            version="1.0.0"
        )
        self._setup_routes()

    def _setup_routes(self):
        """Setup FastAPI routes using modular approach"""
        system_router = create_system_routes(self.config, self.discovery.registry)
        light_router = create_light_routes(self.discovery, self.controller)

        self.app.include_router(system_router)
        self.app.include_router(light_router)
