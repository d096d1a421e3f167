"""
Control operations applied to every registered Key Light
Each operation is a read-modify-write cycle: fetch state, compute one new value, push it
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from ..const import (
    BRIGHTNESS_STEP,
    COLD_TEMPERATURE,
    MAX_BRIGHTNESS,
    MIN_BRIGHTNESS,
    TEMPERATURE_STEP,
    WARM_TEMPERATURE,
)
from ..discovery.models import DeviceEndpoint
from ..discovery.registry import DeviceRegistry
from ..exceptions import DeviceUnreachable, OperationFailed
from .client import KeyLightClient
from .models import DeviceOutcome, DevicePhase, DeviceState, clamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Adjustment:
    """One named state transition: which field it changes and how"""
    name: str
    verb: str
    compute: Callable[[DeviceState], Tuple[str, Any]]


def _toggle(state: DeviceState) -> Tuple[str, Any]:
    return "on", not state.on

def _brightness(delta: int) -> Callable[[DeviceState], Tuple[str, Any]]:
    def compute(state: DeviceState) -> Tuple[str, Any]:
        return "brightness", clamp(state.brightness + delta, MIN_BRIGHTNESS, MAX_BRIGHTNESS)
    return compute

def _temperature(delta: float) -> Callable[[DeviceState], Tuple[str, Any]]:
    def compute(state: DeviceState) -> Tuple[str, Any]:
        # Device only accepts whole mireds
        return "temperature", clamp(round(state.temperature + delta), COLD_TEMPERATURE, WARM_TEMPERATURE)
    return compute


OPERATIONS: Dict[str, Adjustment] = {
    "toggle": Adjustment("toggle", "toggling", _toggle),
    "increase_brightness": Adjustment("increase_brightness", "increasing brightness for", _brightness(BRIGHTNESS_STEP)),
    "decrease_brightness": Adjustment("decrease_brightness", "decreasing brightness for", _brightness(-BRIGHTNESS_STEP)),
    "increase_temperature": Adjustment("increase_temperature", "increasing temperature for", _temperature(TEMPERATURE_STEP)),
    "decrease_temperature": Adjustment("decrease_temperature", "decreasing temperature for", _temperature(-TEMPERATURE_STEP)),
}


class KeyLightController:
    """Runs control operations over the Key Lights currently in the registry.

    The five named operations walk a registry snapshot in order, one device
    at a time, and abort with OperationFailed on the first device that
    fails; they return the value computed for the last device.
    ``apply_to_each`` runs an operation on every device independently and
    reports a per-device outcome instead.

    Read-modify-write cycles on the same endpoint are serialized so
    concurrent operations cannot lose updates. A lock lives only while some
    cycle holds or waits on it, so endpoints dropped by rediscovery do not
    accumulate.
    """

    def __init__(self, registry: DeviceRegistry, client: KeyLightClient):
        self.registry = registry
        self.client = client
        self._locks: "weakref.WeakValueDictionary[DeviceEndpoint, asyncio.Lock]" = weakref.WeakValueDictionary()

    async def toggle(self) -> Optional[bool]:
        return await self.run("toggle")

    async def increase_brightness(self) -> Optional[int]:
        return await self.run("increase_brightness")

    async def decrease_brightness(self) -> Optional[int]:
        return await self.run("decrease_brightness")

    async def increase_temperature(self) -> Optional[int]:
        return await self.run("increase_temperature")

    async def decrease_temperature(self) -> Optional[int]:
        return await self.run("decrease_temperature")

    async def run(self, operation: str) -> Any:
        """Apply an operation sequentially, aborting on the first failure"""
        adjustment = self._get_adjustment(operation)
        endpoints = self.registry.snapshot()
        if not endpoints:
            logger.warning(f"{operation}: no Key Lights registered")

        value = None
        for endpoint in endpoints:
            value = await self._apply(endpoint, adjustment)
        return value

    async def apply_to_each(self, operation: str) -> Dict[DeviceEndpoint, DeviceOutcome]:
        """Apply an operation to every Key Light concurrently and report each outcome.

        An endpoint registered more than once is updated once.
        """
        adjustment = self._get_adjustment(operation)
        endpoints = list(dict.fromkeys(self.registry.snapshot()))

        async def do_one(endpoint: DeviceEndpoint) -> DeviceOutcome:
            try:
                value = await self._apply(endpoint, adjustment)
            except OperationFailed as e:
                return DeviceOutcome(endpoint, False, DevicePhase.FAILED, error=str(e), failed_phase=e.phase)
            except Exception as e:
                logger.exception(f"{operation} failed unexpectedly for {endpoint}")
                return DeviceOutcome(endpoint, False, DevicePhase.FAILED, error=str(e) or type(e).__name__)
            return DeviceOutcome(endpoint, True, DevicePhase.DONE, value=value)

        outcomes = await asyncio.gather(*(do_one(endpoint) for endpoint in endpoints))
        failed = sum(1 for o in outcomes if not o.success)
        if failed:
            logger.warning(f"{operation}: {failed}/{len(outcomes)} Key Lights failed")
        return {o.endpoint: o for o in outcomes}

    async def fetch_states(self) -> Dict[DeviceEndpoint, DeviceOutcome]:
        """Read current state from every registered Key Light"""
        endpoints = list(dict.fromkeys(self.registry.snapshot()))

        async def do_one(endpoint: DeviceEndpoint) -> DeviceOutcome:
            try:
                state = await self.client.fetch_state(endpoint)
            except DeviceUnreachable as e:
                return DeviceOutcome(endpoint, False, DevicePhase.FAILED, error=str(e), failed_phase="fetch")
            return DeviceOutcome(endpoint, True, DevicePhase.FETCHED, value=state)

        outcomes = await asyncio.gather(*(do_one(endpoint) for endpoint in endpoints))
        return {o.endpoint: o for o in outcomes}

    def _get_adjustment(self, operation: str) -> Adjustment:
        try:
            return OPERATIONS[operation]
        except KeyError:
            raise ValueError(f"Unsupported operation: {operation}")

    def _lock_for(self, endpoint: DeviceEndpoint) -> asyncio.Lock:
        lock = self._locks.get(endpoint)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[endpoint] = lock
        return lock

    async def _apply(self, endpoint: DeviceEndpoint, adjustment: Adjustment) -> Any:
        """Fetch, compute and push one field for one Key Light"""
        phase = DevicePhase.PENDING
        # Holding the reference keeps the weakly-mapped lock alive for this cycle
        lock = self._lock_for(endpoint)
        async with lock:
            try:
                phase = DevicePhase.FETCHING
                state = await self.client.fetch_state(endpoint)
                phase = DevicePhase.FETCHED

                field, value = adjustment.compute(state)

                phase = DevicePhase.PUSHING
                await self.client.push_state(endpoint, **{field: value})
                phase = DevicePhase.DONE
            except DeviceUnreachable as e:
                failed_in = "fetch" if phase is DevicePhase.FETCHING else "push"
                logger.error(f"{adjustment.name} failed for {endpoint} during {failed_in}: {e.reason}")
                raise OperationFailed(endpoint, adjustment.name, failed_in, adjustment.verb, e) from e

        logger.info(f"{adjustment.name}: {endpoint} {field} -> {value}")
        return value
