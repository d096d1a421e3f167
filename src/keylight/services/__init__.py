"""
Service orchestration for the Key Light Control Server
"""

from .keylight_server import KeyLightServer

__all__ = ['KeyLightServer']
