"""
Control module for Key Light state changes
"""

from .client import KeyLightClient
from .models import DeviceOutcome, DevicePhase, DeviceState, clamp
from .operations import OPERATIONS, KeyLightController

__all__ = ['KeyLightClient', 'KeyLightController', 'OPERATIONS', 'DeviceOutcome', 'DevicePhase',
           'DeviceState', 'clamp']
