"""
Control data structures: device state, per-device outcome and clamping
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..discovery.models import DeviceEndpoint


def clamp(value, low, high):
    """Constrain value to the closed range [low, high]"""
    return max(low, min(value, high))


def mireds_to_kelvin(mireds: int) -> int:
    return round(1_000_000 / mireds)


class DevicePhase(Enum):
    """Read-modify-write progress for one Key Light"""
    PENDING = "pending"
    FETCHING = "fetching"
    FETCHED = "fetched"
    PUSHING = "pushing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class DeviceState:
    """Snapshot of a Key Light's mutable attributes"""
    on: bool
    brightness: int
    temperature: int  # mireds

    @classmethod
    def from_payload(cls, light: Dict[str, Any]) -> "DeviceState":
        """Build from one element of the device's ``lights`` array"""
        return cls(
            on=bool(light['on']),
            brightness=int(light['brightness']),
            temperature=int(light['temperature'])
        )

    @property
    def kelvin(self) -> int:
        return mireds_to_kelvin(self.temperature)


@dataclass
class DeviceOutcome:
    """Result of one operation against one Key Light"""
    endpoint: DeviceEndpoint
    success: bool
    phase: DevicePhase
    value: Any = None
    error: Optional[str] = None
    failed_phase: Optional[str] = None  # "fetch" or "push" when success is False
