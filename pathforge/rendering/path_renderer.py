"""
Path rendering module.
Draws a plan view and a side elevation of a generated path so a result can
be inspected without a running world.
"""
import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import matplotlib.pyplot as plt
from matplotlib.patches import Polygon as MatplotlibPolygon, Patch
from matplotlib.lines import Line2D
import numpy as np
import shapely
from shapely.geometry import LineString
from typing import Optional
import base64
import io
import logging

from ..core.path_data import FULL, SLAB, STAIRS, CLEAR
from ..core.path_generator import GenerationResult
from ..modules.footprint import lane_outline
from ..modules.terrain import Terrain

logger = logging.getLogger(__name__)


SHAPE_COLORS = {
    FULL: '#7F7F7F',
    SLAB: '#B8A77A',
    STAIRS: '#C0504D',
    CLEAR: '#9BC2E6',
}


class PathRenderer:
    """
    Handles visualization of generation results.
    """

    def __init__(self):
        self.figure = None
        self.plan_ax = None
        self.side_ax = None

    def render(
        self,
        result: GenerationResult,
        terrain: Optional[Terrain] = None,
        save_path: Optional[str] = None,
        show_legend: bool = True,
        dpi: int = 150
    ) -> str:
        """
        Render a result as a plan view above a side elevation.

        Args:
            result: Generation result to draw
            terrain: Optional terrain; its surface is drawn under the path
            save_path: Optional path to save the image
            show_legend: Whether to show the legend
            dpi: Image resolution

        Returns:
            Base64 encoded PNG string
        """
        self.figure, (self.plan_ax, self.side_ax) = plt.subplots(
            2, 1, figsize=(12, 12), dpi=dpi, gridspec_kw={'height_ratios': [2, 1]}
        )

        self._render_plan(result)
        self._render_elevation(result, terrain)
        self._configure_appearance(result, show_legend)

        if save_path:
            plt.savefig(save_path, dpi=dpi, bbox_inches='tight', facecolor='white')
            logger.info(f"Path preview saved to {save_path}")

        buffer = io.BytesIO()
        plt.savefig(buffer, format='png', dpi=dpi, bbox_inches='tight', facecolor='white')
        buffer.seek(0)
        image_base64 = base64.b64encode(buffer.getvalue()).decode('utf-8')
        buffer.close()

        plt.close(self.figure)
        return image_base64

    def _render_plan(self, result: GenerationResult):
        """Top-down view: lane outline, blocks by shape, then the centreline."""
        width = result.metadata.get('settings', {}).get('width', 1)
        outline = lane_outline(result.sampled_path, width)
        if not outline.is_empty:
            polygons = outline.geoms if hasattr(outline, 'geoms') else [outline]
            for polygon in polygons:
                self.plan_ax.add_patch(MatplotlibPolygon(
                    list(polygon.exterior.coords),
                    facecolor='#D9D9D9',
                    edgecolor='#555555',
                    alpha=0.4,
                    zorder=1
                ))

        for shape, positions in result.blocks.positions_by_shape().items():
            coords = np.array(positions)
            # Block (x, z) cells are drawn at their centres
            self.plan_ax.scatter(
                coords[:, 0] + 0.5, coords[:, 2] + 0.5,
                s=12,
                marker='s',
                color=SHAPE_COLORS.get(shape, '#000000'),
                alpha=0.8,
                zorder=3
            )

        if len(result.sampled_path) > 1:
            xz = np.array(result.sampled_path.xz())
            self.plan_ax.plot(
                xz[:, 0], xz[:, 1],
                color='#1F4E79',
                linewidth=1.5,
                zorder=5
            )

    def _render_elevation(self, result: GenerationResult, terrain: Optional[Terrain]):
        """Side view: height against horizontal distance along the path."""
        path = result.sampled_path
        if len(path) < 2:
            return

        xz = np.array(path.xz())
        steps = np.linalg.norm(np.diff(xz, axis=0), axis=1)
        distance = np.concatenate([[0.0], np.cumsum(steps)])

        if terrain is not None:
            ground = [terrain.height_at(int(np.floor(x)), int(np.floor(z))) for x, z in xz]
            self.side_ax.fill_between(distance, min(ground) - 5, ground, color='#8DB360', alpha=0.5, zorder=1)

        if result.blocks and distance[-1] > 0:
            centreline = LineString(xz)
            for shape, positions in result.blocks.positions_by_shape().items():
                coords = np.array(positions)
                cells = shapely.points(coords[:, 0] + 0.5, coords[:, 2] + 0.5)
                along = shapely.line_locate_point(centreline, cells)
                self.side_ax.scatter(
                    along, coords[:, 1] + 0.5,
                    s=6,
                    marker='s',
                    color=SHAPE_COLORS.get(shape, '#000000'),
                    alpha=0.6,
                    zorder=3
                )

        self.side_ax.plot(distance, path.array[:, 1], color='#1F4E79', linewidth=1.5, zorder=5)

    def _configure_appearance(self, result: GenerationResult, show_legend: bool):
        """Configure axes, titles and legend."""
        self.plan_ax.set_aspect('equal')
        self.plan_ax.autoscale_view()
        self.plan_ax.invert_yaxis()  # north (negative Z) at the top
        self.plan_ax.set_xlabel('X')
        self.plan_ax.set_ylabel('Z')

        title = f"{result.structure}: {len(result.blocks):,} blocks"
        if result.reason:
            title += f" ({result.reason})"
        self.plan_ax.set_title(title, fontsize=16, fontweight='bold')

        self.side_ax.set_xlabel('Distance along path')
        self.side_ax.set_ylabel('Y')
        self.side_ax.grid(True, alpha=0.3)

        if show_legend:
            self._add_legend(result)

    def _add_legend(self, result: GenerationResult):
        """Add legend to the plan view."""
        present = result.blocks.positions_by_shape()
        elements = [
            Patch(facecolor=color, alpha=0.8, label=shape.title())
            for shape, color in SHAPE_COLORS.items()
            if shape in present
        ]
        elements.append(Line2D([0], [0], color='#1F4E79', linewidth=2, label='Centreline'))
        self.plan_ax.legend(handles=elements, loc='upper right', framealpha=0.9)
