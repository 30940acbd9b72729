import os
from typing import Any, Dict, List, Optional

import matplotlib.colors as mcolors
import matplotlib.pyplot as plt
import numpy as np

from room_packer.core.occupancy_grid import CellState
from room_packer.models.placeable import PlacedInstance


class StyleConfig:
    """Configuration for visualization styles."""

    # Debug colors per cell state
    CELL_STATE_COLORS = {
        CellState.EMPTY: "#1f4fd1",  # Blue
        CellState.OCCUPIED: "#d12f1f",  # Red
        CellState.RESERVED: "#8a8a8a",  # Gray
    }

    # Placement colors per source pass
    SOURCE_COLORS = {
        "forced": "#2c7fb8",
        "random": "#7fcdbb",
        "filler": "#f7fcb9",
        "clutter": "#8c510a",
        "default": "#efefef",
    }

    SOURCE_ALPHAS = {
        "forced": 0.9,
        "random": 0.7,
        "filler": 0.5,
        "clutter": 0.9,
        "default": 0.5,
    }

    @classmethod
    def brighten_color(cls, color_str: str) -> str:
        """
        Brighten a color for highlighting.

        Args:
            color_str: Color to brighten

        Returns:
            str: Brightened color
        """
        rgb = mcolors.to_rgb(color_str)
        brightened = [min(1.0, c * 1.5) for c in rgb]
        return mcolors.rgb2hex(brightened)


class GridRenderer:
    """
    2D debug renderer for a generated room grid.

    Draws the cell grid, a box per cell colored by state, and optionally
    the placed footprints on top.
    """

    def __init__(
        self,
        grid_state: Dict[str, Any],
        placements: Optional[List[PlacedInstance]] = None,
    ):
        """
        Initialize the renderer.

        Args:
            grid_state: Output of RoomGenerator.describe_grid_state()
            placements: Instances recorded during the run
        """
        if grid_state.get("cells") is None:
            raise ValueError("Grid state has no cells; generate the room first")

        self.grid_state = grid_state
        self.cells = np.asarray(grid_state["cells"])
        self.width = grid_state["width"]
        self.height = grid_state["height"]
        self.placements = placements or []

        self.state_colors = dict(StyleConfig.CELL_STATE_COLORS)
        self.source_colors = dict(StyleConfig.SOURCE_COLORS)
        self.source_alphas = dict(StyleConfig.SOURCE_ALPHAS)

    def render_grid(
        self,
        ax=None,
        fig=None,
        show_states: bool = True,
        show_placements: bool = True,
        show_labels: bool = False,
        highlight_assets: List[str] = None,
    ):
        """
        Render the grid in cell units.

        Args:
            ax: Optional matplotlib axis
            fig: Optional matplotlib figure
            show_states: Draw a box per cell colored by its state
            show_placements: Draw the placed footprints
            show_labels: Label each placement with its asset id
            highlight_assets: Asset ids to draw brighter

        Returns:
            fig, ax: The matplotlib figure and axis
        """
        if fig is None or ax is None:
            fig, ax = plt.subplots(figsize=(10, 10 * self.height / max(self.width, 1)))

        self._setup_axes(ax)

        if show_states:
            self._draw_cell_states(ax)

        if show_placements:
            for instance in self.placements:
                highlighted = highlight_assets is not None and instance.descriptor_id in highlight_assets
                self._draw_instance(ax, instance, show_labels, highlighted)

        self._draw_grid_lines(ax)
        ax.set_aspect("equal")

        return fig, ax

    def _setup_axes(self, ax):
        """Set up the axes with proper labels and limits."""
        ax.set_xlabel("X (cells)")
        ax.set_ylabel("Y (cells)")

        title = f"Room '{self.grid_state.get('room', 'room')}'"
        if self.grid_state.get("seed") is not None:
            title += f" - seed {self.grid_state['seed']}"
        ax.set_title(title)

        ax.set_xlim(0, self.width)
        ax.set_ylim(0, self.height)

    def _draw_grid_lines(self, ax):
        """Draw the cell grid."""
        for x in range(self.width + 1):
            ax.axvline(x=x, color="green", linewidth=0.8, alpha=0.6)

        for y in range(self.height + 1):
            ax.axhline(y=y, color="green", linewidth=0.8, alpha=0.6)

    def _draw_cell_states(self, ax):
        """Draw a small box per cell, colored by its state."""
        inset = 0.1
        for y in range(self.height):
            for x in range(self.width):
                state = CellState(int(self.cells[y, x]))
                rect = plt.Rectangle(
                    (x + inset, y + inset),
                    1 - 2 * inset,
                    1 - 2 * inset,
                    facecolor="none",
                    edgecolor=self.state_colors[state],
                    linewidth=1.5,
                )
                ax.add_patch(rect)

    def _draw_instance(
        self, ax, instance: PlacedInstance, show_labels: bool, highlighted: bool
    ):
        """Draw one placed footprint."""
        x, y = instance.origin
        fx, fy = instance.footprint
        source = instance.source.value

        face_color = self.source_colors.get(source, self.source_colors["default"])
        alpha = self.source_alphas.get(source, self.source_alphas["default"])
        if highlighted:
            face_color = StyleConfig.brighten_color(face_color)

        if instance.layer == "clutter":
            # Clutter sits on top of a floor cell; draw it as a marker
            ax.plot(x + 0.5, y + 0.5, marker="x", color=face_color, alpha=alpha)
            return

        rect = plt.Rectangle(
            (x, y),
            fx,
            fy,
            facecolor=face_color,
            alpha=alpha,
            edgecolor="black",
            linewidth=2.0 if highlighted else 0.8,
        )
        ax.add_patch(rect)

        if show_labels:
            ax.text(
                x + fx / 2.0,
                y + fy / 2.0,
                f"{instance.descriptor_id}\n{instance.rotation}°",
                horizontalalignment="center",
                verticalalignment="center",
                fontsize=6,
            )

    def create_source_legend(self, ax=None, fig=None):
        """Create a legend for placement sources."""
        if fig is None or ax is None:
            fig, ax = plt.subplots(figsize=(6, 3))

        handles = []
        labels = []
        for source, color in self.source_colors.items():
            if source == "default":
                continue
            patch = plt.Rectangle(
                (0, 0),
                1,
                1,
                facecolor=color,
                alpha=self.source_alphas.get(source, 0.5),
                edgecolor="black",
                linewidth=0.5,
            )
            handles.append(patch)
            labels.append(source.title())

        ax.legend(handles, labels, loc="center")
        ax.axis("off")

        return fig, ax

    def save_render(self, output_dir: str = "renders", prefix: str = "room", **kwargs) -> str:
        """
        Save the grid render to disk.

        Args:
            output_dir: Directory to save renders in
            prefix: Filename prefix
            **kwargs: Passed to render_grid

        Returns:
            str: Path of the saved image
        """
        os.makedirs(output_dir, exist_ok=True)

        fig, _ = self.render_grid(**kwargs)
        filename = os.path.join(output_dir, f"{prefix}_grid.png")
        fig.savefig(filename, dpi=150, bbox_inches="tight")
        plt.close(fig)

        return filename
