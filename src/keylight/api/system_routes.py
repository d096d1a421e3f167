"""
System health API routes
"""

from fastapi import APIRouter
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

def create_system_routes(config, registry):
    """Create system monitoring routes"""
    router = APIRouter(prefix="/api/system", tags=["system"])

    @router.get("/health")
    async def system_health():
        """System health check"""
        return {
            "status": "healthy" if len(registry) else "no_lights",
            "lights_registered": len(registry),
            "timestamp": datetime.now(timezone.utc)
        }

    @router.get("/config")
    async def get_config():
        """Discovery settings in effect"""
        lights = config.get('lights', {})
        discovery = config.get('discovery', {})
        return {
            "strategy": "static" if (lights.get('ips') or '').strip() else "mdns",
            "count": lights.get('count'),
            "port": lights.get('port'),
            "service_type": discovery.get('service_type'),
            "timeout_seconds": discovery.get('timeout_seconds'),
            "partial_policy": discovery.get('partial_policy')
        }

    return router
