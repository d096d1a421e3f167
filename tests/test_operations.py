"""Tests for control operations over the device registry."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from keylight.const import COLD_TEMPERATURE, TEMPERATURE_STEP, WARM_TEMPERATURE
from keylight.control.models import DevicePhase, DeviceState, clamp
from keylight.control.operations import KeyLightController
from keylight.discovery.models import DeviceEndpoint
from keylight.discovery.registry import DeviceRegistry
from keylight.exceptions import DeviceUnreachable, OperationFailed

FIRST = DeviceEndpoint("10.0.0.5", 9123)
SECOND = DeviceEndpoint("10.0.0.6", 9123)


def mock_client(state: DeviceState) -> MagicMock:
    client = MagicMock()
    client.fetch_state = AsyncMock(return_value=state)
    client.push_state = AsyncMock(return_value=True)
    return client


def controller_for(state: DeviceState, *endpoints: DeviceEndpoint):
    client = mock_client(state)
    return KeyLightController(DeviceRegistry(endpoints or [FIRST]), client), client


class TestClamp:
    """Tests for the clamp helper."""

    def test_within_range_unchanged(self) -> None:
        assert clamp(50, 0, 100) == 50

    def test_saturates_at_both_ends(self) -> None:
        assert clamp(103, 0, 100) == 100
        assert clamp(-2, 0, 100) == 0

    def test_temperature_step_is_one_twentieth_of_domain(self) -> None:
        assert TEMPERATURE_STEP == pytest.approx(10.05)


class TestBrightness:
    """Tests for brightness adjustments."""

    @pytest.mark.asyncio
    async def test_increase_clamps_at_maximum(self) -> None:
        controller, client = controller_for(DeviceState(True, 98, 200))

        assert await controller.increase_brightness() == 100
        client.push_state.assert_awaited_once_with(FIRST, brightness=100)

    @pytest.mark.asyncio
    async def test_decrease_clamps_at_minimum(self) -> None:
        controller, client = controller_for(DeviceState(True, 3, 200))

        assert await controller.decrease_brightness() == 0
        client.push_state.assert_awaited_once_with(FIRST, brightness=0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("start", [0, 1, 4, 5, 50, 95, 96, 99, 100])
    async def test_result_always_in_domain(self, start: int) -> None:
        controller, _ = controller_for(DeviceState(True, start, 200))

        assert 0 <= await controller.increase_brightness() <= 100
        assert 0 <= await controller.decrease_brightness() <= 100

    @pytest.mark.asyncio
    async def test_step_is_five(self) -> None:
        controller, _ = controller_for(DeviceState(True, 40, 200))

        assert await controller.increase_brightness() == 45
        assert await controller.decrease_brightness() == 35


class TestTemperature:
    """Tests for color temperature adjustments."""

    @pytest.mark.asyncio
    async def test_increase_clamps_at_warm_bound(self) -> None:
        controller, client = controller_for(DeviceState(True, 50, 340))

        assert await controller.increase_temperature() == WARM_TEMPERATURE
        client.push_state.assert_awaited_once_with(FIRST, temperature=344)

    @pytest.mark.asyncio
    async def test_decrease_clamps_at_cold_bound(self) -> None:
        controller, _ = controller_for(DeviceState(True, 50, 146))

        assert await controller.decrease_temperature() == COLD_TEMPERATURE

    @pytest.mark.asyncio
    async def test_step_rounds_to_whole_mireds(self) -> None:
        controller, _ = controller_for(DeviceState(True, 50, 143))

        assert await controller.increase_temperature() == 153

    @pytest.mark.asyncio
    @pytest.mark.parametrize("start", [143, 150, 200, 300, 334, 340, 344])
    async def test_result_always_in_domain(self, start: int) -> None:
        controller, _ = controller_for(DeviceState(True, 50, start))

        assert 143 <= await controller.increase_temperature() <= 344
        assert 143 <= await controller.decrease_temperature() <= 344


class TestToggle:
    """Tests for toggle."""

    @pytest.mark.asyncio
    async def test_toggle_inverts_power(self) -> None:
        controller, client = controller_for(DeviceState(True, 50, 200))

        assert await controller.toggle() is False
        client.push_state.assert_awaited_once_with(FIRST, on=False)

    @pytest.mark.asyncio
    async def test_toggle_twice_restores_power(self, key_light, client) -> None:
        controller = KeyLightController(DeviceRegistry([key_light.endpoint]), client)
        original = (await client.fetch_state(key_light.endpoint)).on

        await controller.toggle()
        await controller.toggle()

        assert (await client.fetch_state(key_light.endpoint)).on == original


class TestSequentialRun:
    """Tests for abort-on-first-failure, last-value semantics."""

    @pytest.mark.asyncio
    async def test_empty_registry_returns_none(self) -> None:
        controller = KeyLightController(DeviceRegistry(), mock_client(DeviceState(True, 50, 200)))

        assert await controller.toggle() is None

    @pytest.mark.asyncio
    async def test_returns_value_for_last_endpoint(
        self, key_light, second_key_light, client
    ) -> None:
        registry = DeviceRegistry([key_light.endpoint, second_key_light.endpoint])
        controller = KeyLightController(registry, client)

        assert await controller.increase_brightness() == 25
        assert key_light.light["brightness"] == 55
        assert second_key_light.light["brightness"] == 25

    @pytest.mark.asyncio
    async def test_first_fetch_failure_aborts_before_second_endpoint(self) -> None:
        client = mock_client(DeviceState(True, 50, 200))
        client.fetch_state.side_effect = [
            DeviceUnreachable(FIRST, "http://10.0.0.5:9123/elgato/lights", "timeout"),
            DeviceState(True, 50, 200),
        ]
        controller = KeyLightController(DeviceRegistry([FIRST, SECOND]), client)

        with pytest.raises(OperationFailed) as exc_info:
            await controller.toggle()

        assert exc_info.value.endpoint == FIRST
        assert exc_info.value.phase == "fetch"
        assert str(exc_info.value) == "Failed toggling Key Light at 10.0.0.5:9123 (fetch failed)"
        client.fetch_state.assert_awaited_once_with(FIRST)
        client.push_state.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unreachable_device_leaves_later_devices_untouched(
        self, dead_endpoint, key_light, client
    ) -> None:
        controller = KeyLightController(DeviceRegistry([dead_endpoint, key_light.endpoint]), client)

        with pytest.raises(OperationFailed):
            await controller.increase_brightness()

        assert key_light.requests == []

    @pytest.mark.asyncio
    async def test_push_failure_reports_push_phase(self) -> None:
        client = mock_client(DeviceState(True, 50, 200))
        client.push_state.side_effect = DeviceUnreachable(FIRST, "url", "HTTP 500")
        controller = KeyLightController(DeviceRegistry([FIRST]), client)

        with pytest.raises(OperationFailed) as exc_info:
            await controller.decrease_temperature()

        assert exc_info.value.phase == "push"
        assert exc_info.value.operation == "decrease_temperature"
        assert isinstance(exc_info.value.cause, DeviceUnreachable)

    @pytest.mark.asyncio
    async def test_iterates_snapshot_taken_at_start(self) -> None:
        registry = DeviceRegistry([FIRST, SECOND])
        client = mock_client(DeviceState(True, 50, 200))

        async def fetch(endpoint):
            # Simulates a discovery replacing the registry mid-operation
            registry.replace()
            return DeviceState(True, 50, 200)

        client.fetch_state.side_effect = fetch
        controller = KeyLightController(registry, client)

        await controller.toggle()

        assert client.fetch_state.await_count == 2

    @pytest.mark.asyncio
    async def test_unknown_operation_raises_value_error(self) -> None:
        controller, _ = controller_for(DeviceState(True, 50, 200))

        with pytest.raises(ValueError, match="Unsupported operation"):
            await controller.run("strobe")


class TestApplyToEach:
    """Tests for per-device outcome reporting."""

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_other_devices(
        self, dead_endpoint, key_light, client
    ) -> None:
        controller = KeyLightController(DeviceRegistry([dead_endpoint, key_light.endpoint]), client)

        outcomes = await controller.apply_to_each("toggle")

        assert outcomes[dead_endpoint].success is False
        assert outcomes[dead_endpoint].phase is DevicePhase.FAILED
        assert outcomes[dead_endpoint].failed_phase == "fetch"
        assert "toggling" in outcomes[dead_endpoint].error
        assert outcomes[key_light.endpoint].success is True
        assert outcomes[key_light.endpoint].phase is DevicePhase.DONE
        assert outcomes[key_light.endpoint].value is False
        assert key_light.light["on"] == 0

    @pytest.mark.asyncio
    async def test_concurrent_operations_on_same_device_do_not_lose_updates(
        self, key_light, client
    ) -> None:
        controller = KeyLightController(DeviceRegistry([key_light.endpoint]), client)

        await asyncio.gather(*(controller.increase_brightness() for _ in range(4)))

        assert key_light.light["brightness"] == 70

    @pytest.mark.asyncio
    async def test_outcome_records_which_phase_failed(self) -> None:
        client = mock_client(DeviceState(True, 50, 200))

        async def fetch(endpoint):
            if endpoint == FIRST:
                raise DeviceUnreachable(FIRST, "url", "timeout")
            return DeviceState(True, 50, 200)

        client.fetch_state.side_effect = fetch
        client.push_state.side_effect = DeviceUnreachable(SECOND, "url", "HTTP 500")
        controller = KeyLightController(DeviceRegistry([FIRST, SECOND]), client)

        outcomes = await controller.apply_to_each("increase_brightness")

        assert outcomes[FIRST].failed_phase == "fetch"
        assert outcomes[SECOND].failed_phase == "push"
        assert outcomes[FIRST].phase is outcomes[SECOND].phase is DevicePhase.FAILED

    @pytest.mark.asyncio
    async def test_duplicate_endpoint_updated_once(self) -> None:
        controller, client = controller_for(DeviceState(True, 50, 200), FIRST, FIRST)

        outcomes = await controller.apply_to_each("toggle")

        assert list(outcomes) == [FIRST]
        client.push_state.assert_awaited_once_with(FIRST, on=False)

    @pytest.mark.asyncio
    async def test_unexpected_error_is_reported_per_device(self) -> None:
        client = mock_client(DeviceState(True, 50, 200))

        async def fetch(endpoint):
            if endpoint == FIRST:
                raise RuntimeError("decoder crashed")
            return DeviceState(True, 50, 200)

        client.fetch_state.side_effect = fetch
        controller = KeyLightController(DeviceRegistry([FIRST, SECOND]), client)

        outcomes = await controller.apply_to_each("toggle")

        assert outcomes[FIRST].success is False
        assert outcomes[FIRST].error == "decoder crashed"
        assert outcomes[SECOND].success is True
        client.push_state.assert_awaited_once_with(SECOND, on=False)


class TestEndpointLocks:
    """Tests for the per-endpoint lock map."""

    @pytest.mark.asyncio
    async def test_locks_released_after_rediscovery(self) -> None:
        registry = DeviceRegistry()
        controller = KeyLightController(registry, mock_client(DeviceState(True, 50, 200)))

        for i in range(50):
            registry.replace([DeviceEndpoint(f"10.0.1.{i}")])
            await controller.toggle()
            await controller.apply_to_each("toggle")

        assert len(controller._locks) == 0

    @pytest.mark.asyncio
    async def test_waiting_cycles_share_one_lock(self) -> None:
        controller, _ = controller_for(DeviceState(True, 50, 200))
        lock = controller._lock_for(FIRST)

        async with lock:
            task = asyncio.create_task(controller.toggle())
            await asyncio.sleep(0)

            assert controller._lock_for(FIRST) is lock
            assert not task.done()

        await task


class TestFetchStates:
    """Tests for reading every registered device."""

    @pytest.mark.asyncio
    async def test_reports_state_and_failures(self, dead_endpoint, key_light, client) -> None:
        controller = KeyLightController(DeviceRegistry([key_light.endpoint, dead_endpoint]), client)

        outcomes = await controller.fetch_states()

        assert outcomes[key_light.endpoint].value == DeviceState(True, 50, 200)
        assert outcomes[dead_endpoint].success is False
