# python main.py --room-config default --visualize
# python main.py --room-config treasury --seed 7 --export-formats json,csv,png
"""
Main application for room_packer.
Loads a room configuration, regenerates the room grid and saves the
placements, metrics and debug renders.
"""

import os
import sys
import argparse
import logging
from datetime import datetime

sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from room_packer.core.placement_sink import RecordingSink
from room_packer.core.room_generator import RoomGenerator
from room_packer.utils.metrics import LayoutMetrics
from room_packer.visualization.export import (
    export_to_json,
    export_to_csv,
    export_metrics_to_json,
)
from room_packer.config import config_loader


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description="room_packer - Room Grid Generator")

    parser.add_argument(
        "--room-config",
        type=str,
        default="default",
        help="Room configuration name (without .json extension)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override the room's configured seed",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="output",
        help="Output directory for generated files",
    )
    parser.add_argument(
        "--export-formats",
        type=str,
        default="json,csv",
        help="Comma-separated list of export formats (json,csv,png)",
    )
    parser.add_argument(
        "--visualize",
        action="store_true",
        help="Show the debug grid render (requires matplotlib)",
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Directory holding rooms/ and styles/ configuration",
    )

    return parser.parse_args(argv)


def save_outputs(report, sink, grid_state, metrics, args) -> str:
    """Save exports into a timestamped folder and return its path"""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = os.path.join(args.output, f"{report.room}_{report.seed}_{timestamp}")
    os.makedirs(output_dir, exist_ok=True)

    formats = [f.strip().lower() for f in args.export_formats.split(",") if f.strip()]

    if "json" in formats:
        export_to_json(report, sink.instances, grid_state, os.path.join(output_dir, "room.json"))
    if "csv" in formats:
        export_to_csv(sink.instances, os.path.join(output_dir, "placements.csv"))
    if "png" in formats:
        from room_packer.visualization.renderer import GridRenderer

        GridRenderer(grid_state, sink.instances).save_render(output_dir, prefix=report.room)

    export_metrics_to_json(metrics, os.path.join(output_dir, "metrics.json"))

    return output_dir


def visualize_room(grid_state, placements):
    """Show the debug grid render"""
    import matplotlib.pyplot as plt
    from room_packer.visualization.renderer import GridRenderer

    renderer = GridRenderer(grid_state, placements)
    renderer.render_grid(show_labels=True)
    plt.show()


def main(argv=None) -> int:
    """Main entry point for the application"""
    logging.basicConfig(level=logging.INFO)

    print("room_packer - Room Grid Generator")
    print("=================================")

    args = parse_arguments(argv)

    if args.data_dir:
        os.environ["ROOM_PACKER_DATA_DIR"] = os.path.abspath(args.data_dir)

    print(f"Using room config: {args.room_config}")
    config = config_loader.get_room_config(args.room_config)
    if config is None:
        print(f"Error: Room configuration '{args.room_config}' could not be loaded")
        return 1

    sink = RecordingSink()
    generator = RoomGenerator(config, sink=sink)
    report = generator.trigger_regeneration(seed=args.seed)

    if not report.completed:
        print("Generation aborted:")
        for diagnostic in report.warnings():
            print(f"  - {diagnostic.message}")
        return 1

    grid_state = generator.describe_grid_state()
    metrics = LayoutMetrics(grid_state, sink.instances).evaluate_all()

    print(f"\nRoom '{report.room}' generated with seed {report.seed}")
    print(f"  Grid: {grid_state['width']}x{grid_state['height']}")
    for source, count in report.placements.items():
        print(f"  {source.title()} placements: {count}")
    print(f"  Deferred random placements: {report.deferred}")
    print(f"  Coverage: {metrics['coverage_ratio']:.1%}")

    warnings = report.warnings()
    if warnings:
        print(f"\n{len(warnings)} warning(s):")
        for diagnostic in warnings:
            print(f"  - {diagnostic.message}")

    if args.visualize:
        visualize_room(grid_state, sink.instances)

    output_dir = save_outputs(report, sink, grid_state, metrics, args)
    print(f"\nOutputs saved to: {output_dir}")
    print("\nDone!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
