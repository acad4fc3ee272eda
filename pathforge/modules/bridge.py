"""
Bridge generation module.
Builds an elevated deck along a sampled path with railings, ground-seeking
support pillars and entry/exit ramps.
"""
import logging
import math
from typing import List, Optional

import numpy as np

from ..core.path_data import BlockMap, BlockState, BOTTOM
from ..config.settings import BridgeConfig
from .curves import DEFAULT_TANGENT, get_tangent, get_perpendicular
from .footprint import lane_offsets, pillar_offsets, block_column, disc_offsets, round_half_up
from .materials import facing_from_vector, find_stair_variant
from .terrain import Terrain

logger = logging.getLogger(__name__)


DEFAULT_RAMP_SCAN_DEPTH = 40

# Absorbs float drift when sample spacing divides the support spacing exactly
_SPACING_EPSILON = 1e-9


def support_stations(path, spacing: float) -> List[int]:
    """
    Sample indices that get a support pillar.

    The first sample always does; after that a pillar is due whenever the
    distance travelled since the last one reaches ``spacing``. The
    accumulator is decremented rather than reset so stations do not drift.
    """
    if len(path) == 0:
        return []

    stations = [0]
    travelled = 0.0
    for i in range(1, len(path)):
        travelled += float(np.linalg.norm(path[i] - path[i - 1]))
        if travelled + _SPACING_EPSILON >= spacing:
            stations.append(i)
            travelled -= spacing
    return stations


class ElevatedPathGenerator:
    """
    Generates a bridge deck with optional railings, support pillars and ramps.
    """

    def __init__(self, ramp_scan_depth: int = DEFAULT_RAMP_SCAN_DEPTH):
        self.ramp_scan_depth = ramp_scan_depth
        self.warnings: List[str] = []

    def generate(self, path, config: BridgeConfig, terrain: Optional[Terrain] = None) -> BlockMap:
        """
        Generate the bridge block map.

        Deck, railings, pillars and ramps are laid in that order and every
        write keeps the first block placed at a position, so pillars and
        ramps never replace the deck.

        Args:
            path: Sampled path to follow
            config: Bridge settings (already validated)
            terrain: Terrain used to find the ground; without one pillars
                run to ``support_max_depth`` and ramps are skipped

        Returns:
            BlockMap of the bridge
        """
        if terrain is None:
            blocks = BlockMap()
        else:
            blocks = BlockMap(terrain.min_height, terrain.max_height)
        self.warnings = []
        if len(path) == 0:
            return blocks

        offsets = lane_offsets(config.width)
        frames = []
        for i in range(len(path)):
            tangent = get_tangent(path, i)
            frames.append((path[i], tangent, get_perpendicular(tangent), self.deck_height(path[i], config)))

        deck_state = BlockState.of(config.deck_material)
        for point, _, perp, deck_y in frames:
            for offset in offsets:
                bx, bz = block_column(point, perp, offset)
                blocks.put_if_absent((bx, deck_y, bz), deck_state)
        deck_count = len(blocks)

        if config.railings:
            rail_state = BlockState.of(config.railing_material)
            for point, _, perp, deck_y in frames:
                for offset in {offsets[0], offsets[-1]}:
                    bx, bz = block_column(point, perp, offset)
                    blocks.put_if_absent((bx, deck_y + 1, bz), rail_state)

        stations = []
        if config.supports:
            stations = support_stations(path, config.support_spacing)
            for index in stations:
                point, _, perp, deck_y = frames[index]
                self._place_pillars(blocks, point, perp, deck_y, config, terrain)

        ramps = 0
        if config.ramps and terrain is not None and len(path) >= 2:
            ramps += self._place_ramp(blocks, frames[0], True, offsets, config, terrain)
            ramps += self._place_ramp(blocks, frames[-1], False, offsets, config, terrain)

        logger.info(f"Generated {len(blocks)} bridge blocks: {deck_count} deck, "
                    f"{len(stations)} support stations, {ramps} ramps")
        return blocks

    def deck_height(self, point, config: BridgeConfig) -> int:
        """Deck elevation at a sample; 'auto' and 'fixed' both follow the curve."""
        return round_half_up(point[1])

    def _place_pillars(self, blocks: BlockMap, point, perp, deck_y: int,
                       config: BridgeConfig, terrain: Optional[Terrain]):
        """Place disc-section pillars from just under the deck down to the ground."""
        disc = disc_offsets(config.support_width)
        max_depth = config.support_max_depth
        state = BlockState.of(config.support_material)

        for offset in pillar_offsets(config.width):
            cx, cz = block_column(point, perp, offset)

            ground_y = None
            if terrain is not None:
                ground_y = terrain.find_ground(cx, cz, deck_y - 1, max_depth - 1)
            lowest = ground_y if ground_y is not None else deck_y - max_depth
            if terrain is not None:
                lowest = max(lowest, terrain.min_height)

            for y in range(deck_y - 1, lowest - 1, -1):
                for dx, dz in disc:
                    blocks.put_if_absent((cx + dx, y, cz + dz), state)

            logger.debug(f"Pillar at ({cx}, {cz}) from y={deck_y - 1} down to y={lowest}")

    def _place_ramp(self, blocks: BlockMap, frame, at_start: bool, offsets: List[float],
                    config: BridgeConfig, terrain: Terrain) -> int:
        """
        Build a staircase from one end of the deck down to the ground.

        Returns:
            1 if a ramp was placed, 0 if the end already sits on the ground
            or no ground was found within the scan depth
        """
        point, tangent, perp, deck_y = frame
        bx, bz = int(math.floor(point[0])), int(math.floor(point[2]))

        ground_y = terrain.find_ground(bx, bz, deck_y, self.ramp_scan_depth)
        if ground_y is None:
            return 0
        height_diff = deck_y - ground_y
        if height_diff <= 0:
            return 0

        # Ramps leave the bridge horizontally, one block out per block down
        direction = np.array([tangent[0], 0.0, tangent[2]])
        length = float(np.linalg.norm(direction))
        direction = direction / length if length > 1e-9 else DEFAULT_TANGENT.copy()
        if at_start:
            direction = -direction

        facing = facing_from_vector(direction[0], direction[2])
        stair_material = find_stair_variant(config.ramp_material)
        if stair_material:
            state = BlockState.stairs(stair_material, facing, BOTTOM)
        else:
            message = f"No stair variant for {config.ramp_material}, ramp uses {config.deck_material}"
            if message not in self.warnings:
                self.warnings.append(message)
            logger.warning(message)
            state = BlockState.of(config.deck_material)

        for step in range(1, height_diff + 1):
            ramp_y = deck_y - step
            step_point = point + direction * step
            for offset in offsets:
                rx, rz = block_column(step_point, perp, offset)
                blocks.put_if_absent((rx, ramp_y, rz), state)

        logger.debug(f"Ramp of {height_diff} steps facing {facing} at {'start' if at_start else 'end'}")
        return 1
