"""
Key Light control API routes
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Any, List, Optional
import logging

from ..control.operations import OPERATIONS
from ..exceptions import NoDevicesFound, OperationFailed, PartialDiscovery

logger = logging.getLogger(__name__)

# Response models
class EndpointResponse(BaseModel):
    host: str
    port: int

class DiscoveryResponse(BaseModel):
    method: str
    complete: bool
    target_count: int
    duration_seconds: float
    lights: List[EndpointResponse]

class LightStateResponse(BaseModel):
    host: str
    port: int
    status: str
    on: Optional[bool] = None
    brightness: Optional[int] = None
    temperature: Optional[int] = None
    kelvin: Optional[int] = None
    error: Optional[str] = None

class OperationResponse(BaseModel):
    operation: str
    value: Any = None

class OutcomeResponse(BaseModel):
    host: str
    port: int
    status: str
    value: Any = None
    error: Optional[str] = None
    failed_phase: Optional[str] = None


def _check_operation(operation: str) -> None:
    if operation not in OPERATIONS:
        raise HTTPException(status_code=404, detail=f"Unknown operation: {operation}")


def create_light_routes(discovery, controller):
    """Create Key Light discovery and control routes"""
    router = APIRouter(prefix="/api", tags=["lights"])
    registry = discovery.registry

    @router.get("/lights", response_model=List[EndpointResponse])
    async def list_lights():
        """List Key Lights currently in the registry"""
        return [EndpointResponse(host=e.host, port=e.port) for e in registry.snapshot()]

    @router.post("/lights/discover", response_model=DiscoveryResponse)
    async def discover_lights():
        """Re-run discovery and replace the registry"""
        try:
            result = await discovery.discover()
        except NoDevicesFound as e:
            raise HTTPException(status_code=404, detail=str(e))
        except PartialDiscovery as e:
            raise HTTPException(status_code=504, detail=str(e))

        return DiscoveryResponse(
            method=result.method,
            complete=result.complete,
            target_count=result.target_count,
            duration_seconds=result.duration_seconds,
            lights=[EndpointResponse(host=e.host, port=e.port) for e in result.endpoints]
        )

    @router.get("/lights/state", response_model=List[LightStateResponse])
    async def get_light_states():
        """Current state of every registered Key Light"""
        outcomes = await controller.fetch_states()
        responses = []
        for endpoint, outcome in outcomes.items():
            if outcome.success:
                state = outcome.value
                responses.append(LightStateResponse(
                    host=endpoint.host,
                    port=endpoint.port,
                    status="success",
                    on=state.on,
                    brightness=state.brightness,
                    temperature=state.temperature,
                    kelvin=state.kelvin
                ))
            else:
                responses.append(LightStateResponse(
                    host=endpoint.host,
                    port=endpoint.port,
                    status="failed",
                    error=outcome.error
                ))
        return responses

    @router.post("/lights/{operation}", response_model=OperationResponse)
    async def run_operation(operation: str):
        """Apply an operation to all Key Lights, stopping at the first failure"""
        _check_operation(operation)
        if not len(registry):
            raise HTTPException(status_code=409, detail="No Key Lights registered - run discovery first")

        try:
            value = await controller.run(operation)
        except OperationFailed as e:
            raise HTTPException(status_code=502, detail=str(e))

        return OperationResponse(operation=operation, value=value)

    @router.post("/lights/{operation}/each", response_model=List[OutcomeResponse])
    async def run_operation_each(operation: str):
        """Apply an operation to every Key Light and report each result"""
        _check_operation(operation)
        outcomes = await controller.apply_to_each(operation)
        return [OutcomeResponse(
            host=endpoint.host,
            port=endpoint.port,
            status="success" if outcome.success else "failed",
            value=outcome.value,
            error=outcome.error,
            failed_phase=outcome.failed_phase
        ) for endpoint, outcome in outcomes.items()]

    return router
