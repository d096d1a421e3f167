"""
API module for Key Light control and monitoring
"""

from .main_api import KeyLightAPI
from .light_routes import create_light_routes
from .system_routes import create_system_routes

__all__ = ['KeyLightAPI', 'create_light_routes', 'create_system_routes']
