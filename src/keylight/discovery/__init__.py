"""
Discovery module for Key Light endpoint resolution
"""

from .manager import KeyLightDiscovery
from .models import DeviceEndpoint, DiscoveryResult, ServiceAnnouncement
from .network_discovery import MdnsAnnouncementBrowser
from .registry import DeviceRegistry

__all__ = ['KeyLightDiscovery', 'DeviceEndpoint', 'DiscoveryResult', 'ServiceAnnouncement',
           'MdnsAnnouncementBrowser', 'DeviceRegistry']
