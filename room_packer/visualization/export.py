import json
import os
from typing import Any, Dict, List

import numpy as np

from room_packer.core.diagnostics import GenerationReport
from room_packer.models.placeable import PlacedInstance


def grid_state_to_dict(grid_state: Dict[str, Any]) -> Dict[str, Any]:
    """Make a describe_grid_state() result JSON-serializable"""
    data = dict(grid_state)
    cells = data.get("cells")
    if isinstance(cells, np.ndarray):
        data["cells"] = cells.tolist()
    return data


def export_to_json(
    report: GenerationReport,
    placements: List[PlacedInstance],
    grid_state: Dict[str, Any],
    filename: str,
):
    """
    Export a generated room to JSON format.

    Args:
        report: Run report
        placements: Instances recorded during the run
        grid_state: Output of RoomGenerator.describe_grid_state()
        filename: Output JSON filename
    """
    room_dict = {
        "report": report.to_dict(),
        "grid": grid_state_to_dict(grid_state),
        "placements": [p.to_dict() for p in placements],
    }

    with open(filename, "w") as f:
        json.dump(room_dict, f, indent=2)


def export_metrics_to_json(metrics: Dict[str, Any], filepath: str) -> None:
    """
    Export layout metrics to a JSON file.

    Args:
        metrics: Dictionary of metrics
        filepath: Path to save the JSON file
    """
    output_dir = os.path.dirname(filepath)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    with open(filepath, "w") as f:
        json.dump(metrics, f, indent=2)


def export_to_csv(placements: List[PlacedInstance], filename: str):
    """
    Export the placements to CSV format.

    Args:
        placements: Instances recorded during the run
        filename: Output CSV filename
    """
    columns = [
        "order",
        "descriptor_id",
        "source",
        "layer",
        "x",
        "y",
        "footprint_x",
        "footprint_y",
        "rotation",
        "world_x",
        "world_y",
        "world_z",
    ]

    with open(filename, "w") as f:
        # Write header
        f.write(",".join(columns) + "\n")

        # Write data rows
        for order, instance in enumerate(placements):
            wx, wy, wz = instance.transform.location
            row = [
                order,
                instance.descriptor_id,
                instance.source.value,
                instance.layer,
                instance.origin[0],
                instance.origin[1],
                instance.footprint[0],
                instance.footprint[1],
                instance.rotation,
                wx,
                wy,
                wz,
            ]
            f.write(",".join(str(v) for v in row) + "\n")
