"""
Configuration loader for room_packer.
This module loads room and floor style documents from data files and
provides a clean API for accessing them throughout the project.
"""

import os
import json
import glob
import logging
from typing import Dict, List, Any, Optional

from room_packer.models.room_config import FloorStyle, RoomConfig

logger = logging.getLogger(__name__)

# Move up two directories from this file to get to project root
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def get_data_dir() -> str:
    """Data directory, overridable with ROOM_PACKER_DATA_DIR"""
    return os.environ.get("ROOM_PACKER_DATA_DIR", os.path.join(BASE_DIR, "data"))


def get_rooms_dir() -> str:
    return os.path.join(get_data_dir(), "rooms")


def get_styles_dir() -> str:
    return os.path.join(get_data_dir(), "styles")


def _load_json_file(filepath: str, default: Any = None) -> Any:
    """
    Load a JSON file with error handling.

    Args:
        filepath: Path to the JSON file
        default: Default value to return if file doesn't exist or has errors

    Returns:
        Loaded JSON data or default value
    """
    if not os.path.exists(filepath):
        logger.warning(f"Configuration file not found: {filepath}")
        return default

    try:
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error loading configuration file {filepath}: {e}")
        return default


def list_configs(directory: str) -> List[str]:
    """Names (without .json) of every document in a directory"""
    files = glob.glob(os.path.join(directory, "*.json"))
    return sorted(os.path.splitext(os.path.basename(f))[0] for f in files)


def list_rooms() -> List[str]:
    return list_configs(get_rooms_dir())


def list_styles() -> List[str]:
    return list_configs(get_styles_dir())


def get_floor_style(name: str) -> Optional[FloorStyle]:
    """
    Get a floor style by name.

    Args:
        name: Name of the style document (without .json)

    Returns:
        FloorStyle, or None if the document is missing or invalid
    """
    data = _load_json_file(os.path.join(get_styles_dir(), f"{name}.json"))
    if not data:
        return None

    data.setdefault("name", name)
    try:
        return FloorStyle.from_dict(data)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.error(f"Invalid floor style '{name}': {e}")
        return None


def room_config_from_dict(data: Dict[str, Any]) -> RoomConfig:
    """
    Build a RoomConfig, resolving a floor style given by name from the
    styles directory.

    Raises:
        AttributeError, KeyError, TypeError, ValueError: If the document is malformed
    """
    return RoomConfig.from_dict(data, style_lookup=get_floor_style)


def get_room_config(name: str = "default") -> Optional[RoomConfig]:
    """
    Get a room configuration by name.

    Args:
        name: Name of the room document (without .json)

    Returns:
        RoomConfig, or None if the document is missing or invalid
    """
    data = _load_json_file(os.path.join(get_rooms_dir(), f"{name}.json"))
    if not data:
        return None

    data.setdefault("name", name)
    try:
        return room_config_from_dict(data)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.error(f"Invalid room configuration '{name}': {e}")
        return None


def save_room_config(config: RoomConfig, name: Optional[str] = None) -> str:
    """
    Write a room configuration to the rooms directory.

    Returns:
        Path of the written file
    """
    rooms_dir = get_rooms_dir()
    os.makedirs(rooms_dir, exist_ok=True)

    filepath = os.path.join(rooms_dir, f"{name or config.name}.json")
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)

    logger.info(f"Room configuration saved to: {filepath}")
    return filepath
