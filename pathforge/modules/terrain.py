"""
Terrain module.
Narrow read-only view of the world that generators query for ground and
free space, plus synthetic terrains (flat, heightmap, Perlin noise) used to
exercise generators without a running world.
"""
import logging
import math
import random
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from noise import pnoise2
from shapely.geometry import LineString, Point

from .materials import AIR, LIQUIDS

logger = logging.getLogger(__name__)


class Terrain(ABC):
    """
    Read-only terrain capability.

    Subclasses implement ``height_at`` and ``_base_block``; explicit per-block overrides set
    with ``set_block`` take precedence so tests can carve caves, ponds or
    obstacles into any terrain.
    """

    def __init__(self, min_height: int = -64, max_height: int = 320):
        self.min_height = min_height
        self.max_height = max_height
        self._overrides: Dict[Tuple[int, int, int], str] = {}

    def set_block(self, x: int, y: int, z: int, material: str):
        self._overrides[(int(x), int(y), int(z))] = material.upper()

    @abstractmethod
    def height_at(self, x: int, z: int) -> int:
        """Y of the highest solid block in the column."""

    @abstractmethod
    def _base_block(self, x: int, y: int, z: int) -> str:
        """Block name at a position inside the world height range."""

    def block_at(self, x: int, y: int, z: int) -> str:
        key = (int(x), int(y), int(z))
        if key in self._overrides:
            return self._overrides[key]
        if y < self.min_height or y >= self.max_height:
            return AIR
        return self._base_block(*key)

    def is_air(self, x: int, y: int, z: int) -> bool:
        return self.block_at(x, y, z) == AIR

    def is_liquid(self, x: int, y: int, z: int) -> bool:
        return self.block_at(x, y, z) in LIQUIDS

    def is_solid(self, x: int, y: int, z: int) -> bool:
        """Anything that is neither air nor liquid counts as ground."""
        block = self.block_at(x, y, z)
        return block != AIR and block not in LIQUIDS

    def find_ground(self, x: int, z: int, start_y: int, max_depth: int) -> Optional[int]:
        """
        Scan down from ``start_y`` (inclusive) for the first solid block.

        Returns:
            The ground Y, or None if nothing solid lies within ``max_depth``
            blocks or above the world floor
        """
        for dy in range(max_depth + 1):
            y = start_y - dy
            if y < self.min_height:
                return None
            if self.is_solid(x, y, z):
                return y
        return None


class FlatTerrain(Terrain):
    """Flat world: solid up to ``surface_y`` inclusive, air above."""

    def __init__(self, surface_y: int = 63, surface_material: str = 'GRASS_BLOCK',
                 fill_material: str = 'DIRT', min_height: int = -64, max_height: int = 320):
        super().__init__(min_height, max_height)
        self.surface_y = surface_y
        self.surface_material = surface_material
        self.fill_material = fill_material

    def height_at(self, x: int, z: int) -> int:
        return self.surface_y

    def _base_block(self, x: int, y: int, z: int) -> str:
        if y == self.surface_y:
            return self.surface_material
        if y < self.surface_y:
            return self.fill_material
        return AIR


class HeightmapTerrain(Terrain):
    """
    Terrain backed by a 2-D integer heightmap indexed ``[z, x]``.
    Columns below ``water_level`` are flooded; coordinates outside the map
    use the nearest edge column.
    """

    def __init__(self, heightmap: np.ndarray, origin: Tuple[int, int] = (0, 0),
                 water_level: Optional[int] = None, min_height: int = -64, max_height: int = 320):
        super().__init__(min_height, max_height)
        self.heightmap = np.asarray(heightmap).astype(int)
        self.origin = origin
        self.water_level = water_level

    @property
    def depth(self) -> int:
        return self.heightmap.shape[0]

    @property
    def width(self) -> int:
        return self.heightmap.shape[1]

    def _index(self, x: int, z: int) -> Tuple[int, int]:
        grid_x = min(max(int(x) - self.origin[0], 0), self.width - 1)
        grid_z = min(max(int(z) - self.origin[1], 0), self.depth - 1)
        return grid_z, grid_x

    def height_at(self, x: int, z: int) -> int:
        return int(self.heightmap[self._index(x, z)])

    def _base_block(self, x: int, y: int, z: int) -> str:
        height = self.height_at(x, z)
        if y == height:
            return 'GRASS_BLOCK' if self.water_level is None or height >= self.water_level else 'SAND'
        if y < height:
            return 'STONE' if y < height - 3 else 'DIRT'
        if self.water_level is not None and y <= self.water_level:
            return 'WATER'
        return AIR


class TerrainGenerator:
    """
    Generates synthetic terrains for demos and tests.
    """

    def generate_heightmap(self, width: int = 128, depth: int = 128, base_height: int = 64,
                           amplitude: float = 24.0, scale: float = 0.02, seed: Optional[int] = None,
                           origin: Tuple[int, int] = (0, 0), water_level: Optional[int] = None) -> HeightmapTerrain:
        """
        Generate rolling terrain from layered Perlin noise.

        Args:
            width: Number of columns along X
            depth: Number of columns along Z
            base_height: Mean surface elevation
            amplitude: Maximum deviation from base_height
            scale: Noise frequency per block
            seed: Noise seed for reproducibility
            origin: World (x, z) of heightmap cell [0, 0]
            water_level: Flood level, or None for a dry world

        Returns:
            HeightmapTerrain with the generated surface
        """
        if seed is None:
            seed = random.randint(0, 10000)
        # pnoise2 only varies by an integer base offset
        base = seed % 1024

        heightmap = np.zeros((depth, width))
        for z in range(depth):
            for x in range(width):
                nx = x * scale
                nz = z * scale
                # Large features first, finer detail layered on top
                e = (1.0 * pnoise2(nx, nz, octaves=4, persistence=0.5, lacunarity=2.0, base=base) +
                     0.5 * pnoise2(2 * nx, 2 * nz, octaves=4, persistence=0.5, lacunarity=2.0, base=base) +
                     0.25 * pnoise2(4 * nx, 4 * nz, octaves=4, persistence=0.5, lacunarity=2.0, base=base))
                e /= (1 + 0.5 + 0.25)
                heightmap[z, x] = base_height + e * amplitude

        heightmap = np.rint(heightmap).astype(int)
        logger.info(f"Generated {width}x{depth} heightmap (seed {seed}), "
                    f"elevation {heightmap.min()}..{heightmap.max()}")
        return HeightmapTerrain(heightmap, origin=origin, water_level=water_level)

    def generate_valley(self, width: int = 96, depth: int = 48, rim_height: int = 80,
                        floor_height: int = 60, origin: Tuple[int, int] = (0, 0),
                        water_level: Optional[int] = None) -> HeightmapTerrain:
        """
        Generate a V-shaped valley running along Z, lowest at the centre
        column; handy for bridges.
        """
        heightmap = np.zeros((depth, width))
        half = (width - 1) / 2
        for x in range(width):
            t = abs(x - half) / half if half else 0.0
            heightmap[:, x] = floor_height + (rim_height - floor_height) * t
        return HeightmapTerrain(np.rint(heightmap).astype(int), origin=origin, water_level=water_level)

    def carve_river(self, terrain: HeightmapTerrain, points: Sequence[Tuple[float, float]],
                    width: float, depth: int = 4) -> HeightmapTerrain:
        """
        Lower the terrain along a winding (x, z) polyline and flood it.

        Args:
            terrain: Terrain to carve; a new terrain is returned
            points: River centreline in world (x, z)
            width: River width in blocks
            depth: How far below the lowest bank the river bed sits

        Returns:
            New HeightmapTerrain with the channel carved and water_level set
        """
        river = LineString(points)
        heightmap = terrain.heightmap.copy()
        min_x, min_z, max_x, max_z = river.buffer(width / 2).bounds

        banks: List[int] = []
        for z in range(max(0, int(min_z) - terrain.origin[1]), min(terrain.depth, int(max_z) - terrain.origin[1] + 1)):
            for x in range(max(0, int(min_x) - terrain.origin[0]), min(terrain.width, int(max_x) - terrain.origin[0] + 1)):
                world_point = Point(x + terrain.origin[0], z + terrain.origin[1])
                if river.distance(world_point) <= width / 2:
                    banks.append(int(heightmap[z, x]))

        if not banks:
            return terrain

        bed = min(banks) - depth
        for z in range(terrain.depth):
            for x in range(terrain.width):
                world_point = Point(x + terrain.origin[0], z + terrain.origin[1])
                distance = river.distance(world_point)
                if distance <= width / 2:
                    # Round-bottomed channel
                    falloff = 1 - (distance / (width / 2))**2
                    heightmap[z, x] = min(heightmap[z, x], int(math.floor(bed + depth * (1 - falloff))))

        logger.info(f"Carved river of width {width} ({len(banks)} columns), bed at y={bed}")
        return HeightmapTerrain(heightmap, origin=terrain.origin, water_level=min(banks) - 1,
                                min_height=terrain.min_height, max_height=terrain.max_height)
