"""
In-memory registry of discovered Key Light endpoints
"""

import logging
from typing import Iterable, Iterator, Tuple

from .models import DeviceEndpoint

logger = logging.getLogger(__name__)

class DeviceRegistry:
    """Ordered list of endpoints, replaced wholesale by every discovery call.

    Discovery is the only writer. Readers should take a ``snapshot()`` so a
    discovery running in the background cannot change what they iterate.
    """

    def __init__(self, endpoints: Iterable[DeviceEndpoint] = ()):
        self._endpoints = list(endpoints)

    def replace(self, endpoints: Iterable[DeviceEndpoint] = ()) -> None:
        """Discard current contents and install a new endpoint list"""
        self._endpoints = list(endpoints)
        logger.debug(f"Registry replaced: {len(self._endpoints)} endpoints")

    def append(self, endpoint: DeviceEndpoint) -> int:
        """Add one endpoint and return the new registry size"""
        self._endpoints.append(endpoint)
        return len(self._endpoints)

    def snapshot(self) -> Tuple[DeviceEndpoint, ...]:
        return tuple(self._endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)

    def __iter__(self) -> Iterator[DeviceEndpoint]:
        return iter(self.snapshot())

    def __contains__(self, endpoint) -> bool:
        return endpoint in self._endpoints

    def __repr__(self) -> str:
        return f"DeviceRegistry({', '.join(str(e) for e in self._endpoints)})"
