"""
Lane footprint helpers.
Lateral offsets and block columns shared by the structure generators,
plus shapely-based outlines and output-size estimates for callers that
need to pre-check a request before generating it.
"""
import math
from typing import List, Tuple

import numpy as np
from shapely.geometry import LineString, Polygon

from ..core.path_data import SampledPath


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def lane_offsets(width: int) -> List[float]:
    """
    Lateral offsets of each lane column, symmetric around the curve.

    Odd widths give integer offsets including 0 (the centreline); even
    widths give half-integer offsets and no 0 column.
    """
    half = (width - 1) / 2
    return [w - half for w in range(width)]


def pillar_offsets(width: int) -> List[float]:
    """Pillar centres: one under the middle, or one unit in from each edge on wide decks."""
    offsets = lane_offsets(width)
    if width >= 7:
        return [offsets[1], offsets[-2]]
    return [0.0]


def block_column(point, perp, offset: float) -> Tuple[int, int]:
    """Horizontal block coordinates of a point pushed ``offset`` along ``perp``."""
    return (int(math.floor(point[0] + perp[0] * offset)),
            int(math.floor(point[2] + perp[2] * offset)))


def disc_offsets(radius: int) -> List[Tuple[int, int]]:
    """(dx, dz) cells of a horizontal disc used as a pillar cross-section."""
    r = max(1, radius)
    r_sq = (r - 0.5) * (r - 0.5)
    return [
        (dx, dz)
        for dx in range(-(r - 1), r)
        for dz in range(-(r - 1), r)
        if dx * dx + dz * dz <= r_sq
    ]


def lane_outline(path: SampledPath, width: int) -> Polygon:
    """Top-down outline of a lane of ``width`` blocks following the path."""
    coords = []
    for xz in path.xz():
        if not coords or coords[-1] != xz:
            coords.append(xz)
    if len(coords) < 2:
        return Polygon()
    return LineString(coords).buffer(width / 2, cap_style='flat')


def downsample(path: SampledPath, max_points: int) -> SampledPath:
    """Evenly thin a path to at most ``max_points`` samples."""
    if len(path) <= max_points or max_points <= 0:
        return path
    step = len(path) / max_points
    indices = np.floor(np.arange(0, len(path), step)).astype(int)[:max_points]
    return SampledPath(path.array[indices])


def estimate_block_count(path: SampledPath, mode: str, config) -> int:
    """
    Rough upper bound on the number of blocks a generator would emit.

    Args:
        path: Sampled path the generator would walk
        mode: 'road', 'bridge' or 'curve'
        config: The mode's settings record

    Returns:
        Estimated block count (0 for curve previews)
    """
    if mode == 'curve' or path.is_empty:
        return 0

    area = lane_outline(path, config.width).area
    if area == 0:
        area = config.width

    if mode == 'road':
        per_column = 1
        if config.terrain_adapt:
            per_column += config.fill_below + config.clearance
        return int(math.ceil(area * per_column))

    horizontal = path.length
    estimate = area
    if config.railings:
        estimate += 2 * horizontal
    if config.supports:
        stations = 1 + int(horizontal // config.support_spacing)
        pillars = len(pillar_offsets(config.width))
        estimate += stations * pillars * len(disc_offsets(config.support_width)) * config.support_max_depth
    return int(math.ceil(estimate))
