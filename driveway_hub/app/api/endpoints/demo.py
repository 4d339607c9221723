"""
Demo simulation endpoints.

Scripted playback for presentations; does not touch bookings or Tesla.
"""

from fastapi import APIRouter, Depends

from driveway_hub.app.schemas.demo import DemoStateResponse
from driveway_hub.app.core.dependencies import get_current_user
from driveway_hub.app.simulation.driver import DemoSimulation, get_demo_simulation

router = APIRouter(prefix="/demo", tags=["Demo"])


@router.post("/start", response_model=DemoStateResponse)
async def start_demo(
    current_user: dict = Depends(get_current_user),
    simulation: DemoSimulation = Depends(get_demo_simulation),
):
    """Start (or restart from scratch) the demo timeline."""
    await simulation.start()
    return simulation.snapshot()


@router.post("/stop", response_model=DemoStateResponse)
async def stop_demo(
    current_user: dict = Depends(get_current_user),
    simulation: DemoSimulation = Depends(get_demo_simulation),
):
    await simulation.stop()
    return simulation.snapshot()


@router.get("/state", response_model=DemoStateResponse)
async def demo_state(
    current_user: dict = Depends(get_current_user),
    simulation: DemoSimulation = Depends(get_demo_simulation),
):
    return simulation.snapshot()
