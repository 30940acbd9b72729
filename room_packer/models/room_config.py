"""
Room and floor style configuration models.
A room configuration carries everything one generation run reads: grid
size, seed, the floor style with its pools, and designer overrides.
"""

from typing import Dict, Any, List, Optional, Tuple, Callable, Union

from room_packer.models.placeable import PlaceableDescriptor, pool_from_list

DEFAULT_CELL_SIZE = 100.0
DEFAULT_SEED = 1337

Cell = Tuple[int, int]


class FloorStyle:
    """
    Swappable set of pools used to fill a room's floor.
    """

    def __init__(
        self,
        name: str,
        tile_pool: Optional[List[PlaceableDescriptor]] = None,
        edge_pool: Optional[List[PlaceableDescriptor]] = None,
        filler: Optional[PlaceableDescriptor] = None,
        clutter_pool: Optional[List[PlaceableDescriptor]] = None,
        clutter_chance: float = 0.0,
    ):
        """
        Initialize a floor style.

        Args:
            name: Style name
            tile_pool: Main pool for floor and interior pieces
            edge_pool: Pool used on perimeter cells when non-empty
            filler: 1x1 piece used to fill any cell left empty
            clutter_pool: Small details scattered on top of placed floor
            clutter_chance: Probability (0.0 to 1.0) of clutter per cell
        """
        if not 0.0 <= clutter_chance <= 1.0:
            raise ValueError(f"Clutter chance must be in [0, 1], got {clutter_chance}")

        self.name = name
        self.tile_pool = list(tile_pool or [])
        self.edge_pool = list(edge_pool or [])
        self.filler = filler
        self.clutter_pool = list(clutter_pool or [])
        self.clutter_chance = float(clutter_chance)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "tile_pool": [d.to_dict() for d in self.tile_pool],
            "edge_pool": [d.to_dict() for d in self.edge_pool],
            "filler": self.filler.to_dict() if self.filler else None,
            "clutter_pool": [d.to_dict() for d in self.clutter_pool],
            "clutter_chance": self.clutter_chance,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FloorStyle":
        filler = data.get("filler")
        return cls(
            name=data.get("name", "unnamed"),
            tile_pool=pool_from_list(data.get("tile_pool")),
            edge_pool=pool_from_list(data.get("edge_pool")),
            filler=PlaceableDescriptor.from_dict(filler) if filler else None,
            clutter_pool=pool_from_list(data.get("clutter_pool")),
            clutter_chance=data.get("clutter_chance", 0.0),
        )

    def __repr__(self) -> str:
        return (
            f"FloorStyle(name={self.name}, tiles={len(self.tile_pool)}, "
            f"edge={len(self.edge_pool)}, clutter={len(self.clutter_pool)})"
        )


class RoomConfig:
    """
    Inputs for generating a single room.
    """

    def __init__(
        self,
        width: Optional[int],
        height: Optional[int],
        floor_style: Optional[FloorStyle] = None,
        seed: int = DEFAULT_SEED,
        cell_size: float = DEFAULT_CELL_SIZE,
        origin: Tuple[float, float, float] = (0.0, 0.0, 0.0),
        forced_placements: Optional[Dict[Cell, PlaceableDescriptor]] = None,
        reserved_cells: Optional[List[Cell]] = None,
        assets: Optional[List[str]] = None,
        name: Optional[str] = None,
    ):
        """
        Initialize a room configuration.

        Args:
            width, height: Grid size in cells. None means not configured.
            floor_style: Pools and filler. None means not configured.
            seed: Seed for the random stream
            cell_size: World units per cell edge
            origin: World position of the grid's (0, 0) corner
            forced_placements: Designer-pinned pieces keyed by origin cell
            reserved_cells: Cells kept out of automatic packing
            assets: Optional catalog of resolvable asset ids
            name: Room name used for logging and exports
        """
        self.name = name or "room"
        self.width = width
        self.height = height
        self.floor_style = floor_style
        self.seed = int(seed)
        self.cell_size = float(cell_size)
        self.origin = tuple(float(v) for v in origin)
        self.forced_placements = dict(forced_placements or {})
        self.reserved_cells = [tuple(c) for c in (reserved_cells or [])]
        self.assets = list(assets) if assets is not None else None

    @property
    def grid_size(self) -> Optional[Tuple[int, int]]:
        if self.width is None or self.height is None:
            return None
        return (self.width, self.height)

    def missing_fields(self) -> List[str]:
        """Names of required settings that are not configured"""
        missing = []
        if not self.width or not self.height or self.width <= 0 or self.height <= 0:
            missing.append("grid dimensions")
        if self.floor_style is None:
            missing.append("floor style")
        elif self.floor_style.filler is None:
            missing.append("filler placeable")
        return missing

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation"""
        return {
            "name": self.name,
            "seed": self.seed,
            "grid": {
                "width": self.width,
                "height": self.height,
                "cell_size": self.cell_size,
                "origin": list(self.origin),
            },
            "floor_style": self.floor_style.to_dict() if self.floor_style else None,
            "forced_placements": [
                {"cell": [x, y], "placeable": descriptor.to_dict()}
                for (x, y), descriptor in sorted(
                    self.forced_placements.items(), key=lambda item: (item[0][1], item[0][0])
                )
            ],
            "reserved_cells": [list(c) for c in self.reserved_cells],
            "assets": self.assets,
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        style_lookup: Optional[Callable[[str], Optional[FloorStyle]]] = None,
    ) -> "RoomConfig":
        """
        Create a RoomConfig from dictionary representation.

        Args:
            data: Room document
            style_lookup: Resolves a floor style given by name. When the
                document names a style and no lookup is given, or the
                lookup finds nothing, the style is left unconfigured.
        """
        # Null sections count as absent
        grid = data.get("grid") or {}

        style_data: Union[str, Dict[str, Any], None] = data.get("floor_style")
        if isinstance(style_data, str):
            floor_style = style_lookup(style_data) if style_lookup else None
        elif style_data:
            floor_style = FloorStyle.from_dict(style_data)
        else:
            floor_style = None

        forced = {}
        for entry in data.get("forced_placements") or []:
            x, y = entry["cell"]
            forced[(int(x), int(y))] = PlaceableDescriptor.from_dict(entry["placeable"])

        return cls(
            width=grid.get("width"),
            height=grid.get("height"),
            floor_style=floor_style,
            seed=data.get("seed", DEFAULT_SEED),
            cell_size=grid.get("cell_size", DEFAULT_CELL_SIZE),
            origin=tuple(grid.get("origin", (0.0, 0.0, 0.0))),
            forced_placements=forced,
            reserved_cells=[(int(x), int(y)) for x, y in data.get("reserved_cells") or []],
            assets=data.get("assets"),
            name=data.get("name"),
        )

    def __repr__(self) -> str:
        return (
            f"RoomConfig(name={self.name}, grid={self.width}x{self.height}, "
            f"seed={self.seed}, style={self.floor_style.name if self.floor_style else None})"
        )
