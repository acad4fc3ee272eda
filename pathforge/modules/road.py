"""
Road generation module.
Expands a sampled path into a walkable lane with slope-adaptive surface
blocks and optional terrain cut/fill.
"""
import logging
from typing import List, Optional, Set

from ..core.path_data import BlockMap, BlockState, Position, TOP, BOTTOM
from ..config.settings import RoadConfig
from .curves import get_tangent, get_perpendicular
from .footprint import lane_offsets, block_column, round_half_up
from .materials import NONE_MATERIAL, facing_from_vector, opposite_facing, find_slab_variant, find_stair_variant
from .terrain import Terrain

logger = logging.getLogger(__name__)


# Per-sample elevation change thresholds
STAIR_SLOPE = 0.4
SLAB_MIN_SLOPE = 0.2
SLAB_MAX_SLOPE = 0.6


class SurfacePathGenerator:
    """
    Generates a road surface along a sampled path.
    """

    def __init__(self):
        self._missing_variants: Set[str] = set()
        self.warnings: List[str] = []

    def generate(self, path, config: RoadConfig, terrain: Optional[Terrain] = None) -> BlockMap:
        """
        Generate the road block map.

        Args:
            path: Sampled path to follow
            config: Road settings (already validated)
            terrain: Terrain to adapt to; without one no cut/fill is done

        Returns:
            BlockMap of surface, fill and clearance blocks
        """
        blocks = BlockMap(*self._height_bounds(terrain))
        self._missing_variants = set()
        self.warnings = []
        if len(path) == 0:
            return blocks

        offsets = lane_offsets(config.width)
        last_lane = len(offsets) - 1
        surface_positions: Set[Position] = set()

        for i in range(len(path)):
            point = path[i]
            tangent = get_tangent(path, i)
            perp = get_perpendicular(tangent)

            base_y = round_half_up(point[1])
            slope = float(point[1] - path[i - 1][1]) if i > 0 else 0.0

            stair_facing = None
            if config.use_stairs and abs(slope) >= STAIR_SLOPE:
                stair_facing = self._stair_facing(tangent, slope > 0)

            for lane, offset in enumerate(offsets):
                bx, bz = block_column(point, perp, offset)
                is_border = lane == 0 or lane == last_lane
                is_center = offset == 0

                if is_border and config.border != NONE_MATERIAL:
                    material = config.border
                elif is_center and config.centerline != NONE_MATERIAL:
                    material = config.centerline
                else:
                    material = config.material

                state = self._surface_state(material, slope, stair_facing, config, is_border)
                surface = (bx, base_y, bz)
                blocks.put(surface, state)
                surface_positions.add(surface)

                if config.terrain_adapt and terrain is not None:
                    self._adapt_column(blocks, terrain, bx, base_y, bz, config, surface_positions)

        if self._missing_variants:
            message = f"No slab/stair variant for {sorted(self._missing_variants)}, used full blocks"
            self.warnings.append(message)
            logger.warning(message)
        logger.info(f"Generated {len(blocks)} road blocks from {len(path)} samples (width {config.width})")
        return blocks

    def _height_bounds(self, terrain: Optional[Terrain]):
        if terrain is None:
            return None, None
        return terrain.min_height, terrain.max_height

    def _surface_state(self, material: str, slope: float, stair_facing: Optional[str],
                       config: RoadConfig, is_border: bool) -> BlockState:
        """Pick a stair, slab or full block for the local slope."""
        abs_slope = abs(slope)

        # Border lanes never turn into stairs
        if config.use_stairs and stair_facing is not None and not is_border:
            stair_material = find_stair_variant(material)
            if stair_material:
                return BlockState.stairs(stair_material, stair_facing, TOP if slope < 0 else BOTTOM)
            self._missing_variants.add(material)

        if config.use_slabs and SLAB_MIN_SLOPE <= abs_slope < SLAB_MAX_SLOPE:
            slab_material = find_slab_variant(material)
            if slab_material:
                return BlockState.slab(slab_material, BOTTOM if slope > 0 else TOP)
            self._missing_variants.add(material)

        return BlockState.of(material)

    def _stair_facing(self, tangent, ascending: bool) -> str:
        """Stairs rise toward the direction of travel when climbing, away from it when descending."""
        facing = facing_from_vector(tangent[0], tangent[2])
        return facing if ascending else opposite_facing(facing)

    def _adapt_column(self, blocks: BlockMap, terrain: Terrain, x: int, base_y: int, z: int,
                      config: RoadConfig, surface_positions: Set[Position]):
        """Fill air/liquid under the surface down to ground and clear headroom above it."""
        for dy in range(1, config.fill_below + 1):
            y = base_y - dy
            if terrain.is_solid(x, y, z):
                break
            blocks.put((x, y, z), BlockState.full(config.fill_material))

        for dy in range(1, config.clearance + 1):
            y = base_y + dy
            # Never clear a surface block this road already laid
            if (x, y, z) in surface_positions:
                continue
            if not terrain.is_air(x, y, z):
                blocks.put((x, y, z), BlockState.air())
