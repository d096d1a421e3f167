"""
Key Light Control Server

Discovers Elgato Key Lights on the local network and adjusts their power,
brightness and color temperature through the lights' REST API.
"""

from .control import KeyLightClient, KeyLightController, DeviceState, clamp
from .discovery import DeviceEndpoint, DeviceRegistry, KeyLightDiscovery
from .exceptions import (
    DeviceUnreachable,
    KeyLightError,
    NoDevicesFound,
    OperationFailed,
    PartialDiscovery,
)

__all__ = [
    'KeyLightClient',
    'KeyLightController',
    'DeviceState',
    'clamp',
    'DeviceEndpoint',
    'DeviceRegistry',
    'KeyLightDiscovery',
    'KeyLightError',
    'NoDevicesFound',
    'PartialDiscovery',
    'DeviceUnreachable',
    'OperationFailed',
]
