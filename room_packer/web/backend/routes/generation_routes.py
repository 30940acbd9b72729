"""
Routes for room generation.
"""

import logging
import threading
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from room_packer.config import config_loader
from room_packer.core.placement_sink import RecordingSink
from room_packer.core.room_generator import RoomGenerator
from room_packer.models.room_config import RoomConfig
from room_packer.utils.metrics import LayoutMetrics
from room_packer.visualization.export import grid_state_to_dict

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/rooms", tags=["Room Generation"])

# One generator per named room from data/rooms; each run holds the room's
# lock so two requests never regenerate the same grid at once. Inline
# documents get a throwaway generator and are never cached.
_generators: Dict[str, Tuple[RoomGenerator, RecordingSink, threading.Lock]] = {}
_registry_lock = threading.Lock()


# Models
class GenerateRequest(BaseModel):
    room_name: Optional[str] = Field(
        None, description="Name of a room configuration in data/rooms"
    )
    config: Optional[Dict[str, Any]] = Field(
        None, description="Inline room document (overrides room_name)"
    )
    seed: Optional[int] = Field(None, description="Override the configured seed")
    include_grid: bool = Field(True, description="Include the cell-state grid")
    include_placements: bool = Field(True, description="Include every placement")


# Helper functions
def success_response(message: str, **kwargs) -> Dict[str, Any]:
    """Create a standardized success response."""
    return {"success": True, "message": message, **kwargs}


def _load_request_config(request: GenerateRequest) -> RoomConfig:
    if request.config is not None:
        try:
            return config_loader.room_config_from_dict(request.config)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise HTTPException(status_code=422, detail=f"Invalid room document: {e}")

    if request.room_name:
        config = config_loader.get_room_config(request.room_name)
        if config is None:
            raise HTTPException(
                status_code=404, detail=f"Room configuration not found: {request.room_name}"
            )
        return config

    raise HTTPException(status_code=400, detail="Provide either room_name or config")


def _new_generator(config: RoomConfig) -> Tuple[RoomGenerator, RecordingSink, threading.Lock]:
    sink = RecordingSink()
    return RoomGenerator(config, sink=sink), sink, threading.Lock()


def _get_generator(
    room_name: str, config: RoomConfig
) -> Tuple[RoomGenerator, RecordingSink, threading.Lock]:
    """Cached generator for a named room, keyed by its file name"""
    with _registry_lock:
        entry = _generators.get(room_name)
        if entry is None:
            entry = _new_generator(config)
            _generators[room_name] = entry
        return entry


def reset_generators():
    """Forget every cached generator"""
    with _registry_lock:
        _generators.clear()


@router.get("")
def list_rooms() -> Dict[str, Any]:
    """List the room configurations available on disk."""
    return success_response("Rooms listed", rooms=config_loader.list_rooms())


@router.post("/generate")
def generate_room(request: GenerateRequest) -> Dict[str, Any]:
    """
    Regenerate a room and return its report, placements and grid.
    Missing configuration is reported in the body, not as an HTTP error.
    """
    config = _load_request_config(request)
    if request.config is not None:
        generator, sink, lock = _new_generator(config)
    else:
        generator, sink, lock = _get_generator(request.room_name, config)

    with lock:
        generator.update_config(config)
        report = generator.trigger_regeneration(seed=request.seed)
        placements = list(sink.instances)
        grid_state = generator.describe_grid_state()

    logger.info(f"Room '{config.name}' regenerated (completed={report.completed})")

    response = success_response(
        "Room generated" if report.completed else "Generation aborted",
        report=report.to_dict(),
    )
    response["success"] = report.completed

    if report.completed:
        response["metrics"] = LayoutMetrics(grid_state, placements).evaluate_all()
        if request.include_placements:
            response["placements"] = [p.to_dict() for p in placements]
    if request.include_grid:
        response["grid"] = grid_state_to_dict(grid_state)

    return response


@router.get("/{room_name}/grid")
def get_grid_state(room_name: str) -> Dict[str, Any]:
    """Return the grid of the last run for a room."""
    with _registry_lock:
        entry = _generators.get(room_name)

    if entry is None:
        raise HTTPException(status_code=404, detail=f"Room has not been generated: {room_name}")

    generator, _, lock = entry
    with lock:
        grid_state = generator.describe_grid_state()

    return success_response("Grid state", grid=grid_state_to_dict(grid_state))
