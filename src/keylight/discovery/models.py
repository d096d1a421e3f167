"""
Discovery data structures and models
"""

from typing import List, Optional
from dataclasses import dataclass

from ..const import DEFAULT_PORT

@dataclass(frozen=True)
class DeviceEndpoint:
    """Network address of a single Key Light"""
    host: str
    port: int = DEFAULT_PORT

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"

@dataclass(frozen=True)
class ServiceAnnouncement:
    """One mDNS announcement as seen by the browser"""
    name: str
    address: Optional[str]
    port: Optional[int]

@dataclass
class DiscoveryResult:
    """Results from a discovery call"""
    endpoints: List[DeviceEndpoint]
    method: str  # "static", "mdns"
    duration_seconds: float
    target_count: int
    complete: bool
