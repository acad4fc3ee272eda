#!/usr/bin/env python3
"""
Tests for synthetic terrain, the material catalogue and footprint helpers.
"""

import sys

import numpy as np
import pytest

from pathforge.core.path_data import BlockMap, BlockState, SampledPath
from pathforge.modules.footprint import downsample, estimate_block_count, lane_outline, round_half_up
from pathforge.modules.materials import (
    AIR, find_slab_variant, find_stair_variant, facing_from_vector, opposite_facing, is_known_material
)
from pathforge.modules.terrain import FlatTerrain, HeightmapTerrain, Terrain, TerrainGenerator
from pathforge.config.settings import RoadConfig, BridgeConfig


def test_flat_terrain():
    print("Testing flat terrain...")

    terrain = FlatTerrain(surface_y=63)
    assert terrain.is_solid(0, 63, 0)
    assert terrain.is_air(0, 64, 0)
    assert terrain.block_at(0, 63, 0) == 'GRASS_BLOCK'
    assert terrain.block_at(0, 400, 0) == AIR
    assert terrain.find_ground(5, 5, 80, 40) == 63
    assert terrain.find_ground(5, 5, 80, 17) == 63
    assert terrain.find_ground(5, 5, 80, 16) is None

    # Overrides carve into any terrain
    terrain.set_block(5, 63, 5, 'water')
    assert terrain.is_liquid(5, 63, 5)
    assert not terrain.is_solid(5, 63, 5)
    assert terrain.find_ground(5, 5, 80, 40) == 62

    print("✅ Flat terrain test passed")


def test_terrain_is_abstract():
    with pytest.raises(TypeError):
        Terrain()

    class HalfTerrain(Terrain):
        def height_at(self, x, z):
            return 0

    with pytest.raises(TypeError):
        HalfTerrain()


def test_heightmap_terrain():
    print("Testing heightmap terrain...")

    heightmap = np.array([[60, 61, 62],
                          [63, 64, 65]])
    terrain = HeightmapTerrain(heightmap, origin=(10, 20), water_level=62)

    assert terrain.height_at(10, 20) == 60
    assert terrain.height_at(12, 21) == 65
    # Outside the map the nearest edge column is used
    assert terrain.height_at(-100, 100) == 63
    assert terrain.block_at(10, 61, 20) == 'WATER'
    assert terrain.block_at(10, 60, 20) == 'SAND'
    assert terrain.block_at(11, 64, 21) == 'GRASS_BLOCK'
    assert terrain.find_ground(10, 20, 70, 20) == 60

    print("✅ Heightmap terrain test passed")


def test_generated_heightmap_is_reproducible():
    generator = TerrainGenerator()
    first = generator.generate_heightmap(width=32, depth=16, base_height=64, amplitude=10, seed=3)
    second = generator.generate_heightmap(width=32, depth=16, base_height=64, amplitude=10, seed=3)

    assert first.heightmap.shape == (16, 32)
    assert np.array_equal(first.heightmap, second.heightmap)
    assert np.abs(first.heightmap - 64).max() <= 10


def test_valley_and_river():
    print("Testing valley and river...")

    generator = TerrainGenerator()
    valley = generator.generate_valley(width=41, depth=10, rim_height=80, floor_height=60)
    assert valley.height_at(20, 5) == 60
    assert valley.height_at(0, 5) == 80

    river = generator.carve_river(valley, [(20, -5), (20, 15)], width=4, depth=3)
    assert river.height_at(20, 5) < 60
    assert river.water_level is not None
    assert river.is_liquid(20, river.water_level, 5)
    assert valley.height_at(20, 5) == 60

    print("✅ Valley and river test passed")


def test_material_variants():
    print("Testing material variants...")

    assert find_slab_variant('STONE_BRICKS') == 'STONE_BRICK_SLAB'
    assert find_stair_variant('stone_bricks') == 'STONE_BRICK_STAIRS'
    assert find_stair_variant('OAK_PLANKS') == 'OAK_STAIRS'
    assert find_slab_variant('BRICKS') == 'BRICK_SLAB'
    assert find_slab_variant('QUARTZ_BLOCK') == 'QUARTZ_SLAB'
    assert find_stair_variant('STONE_BRICK_SLAB') == 'STONE_BRICK_STAIRS'
    assert find_stair_variant('STONE_BRICK_STAIRS') == 'STONE_BRICK_STAIRS'
    assert find_stair_variant('SMOOTH_STONE') is None
    assert find_slab_variant('GRASS_BLOCK') is None
    assert is_known_material('deepslate_tile_wall')
    assert not is_known_material('unobtainium')

    print("✅ Material variant test passed")


def test_facings():
    assert facing_from_vector(1, 0) == 'east'
    assert facing_from_vector(-1, 0.5) == 'west'
    assert facing_from_vector(0.2, 1) == 'south'
    assert facing_from_vector(0, -1) == 'north'
    # Diagonals resolve to the Z axis
    assert facing_from_vector(1, 1) == 'south'
    assert opposite_facing('east') == 'west'
    assert opposite_facing('north') == 'south'


def test_block_map_write_policies():
    print("Testing block map...")

    blocks = BlockMap(min_height=0, max_height=256)
    stone = BlockState.full('STONE')
    glass = BlockState.full('GLASS')

    assert blocks.put((1, 10, 1), stone)
    assert not blocks.put_if_absent((1, 10, 1), glass)
    assert blocks[(1, 10, 1)] == stone
    assert blocks.put((1, 10, 1), glass)
    assert blocks[(1, 10, 1)] == glass

    assert not blocks.put((1, -1, 1), stone)
    assert not blocks.put((1, 256, 1), stone)
    assert blocks.clipped == 2
    assert len(blocks) == 1

    assert BlockState.stairs('OAK_STAIRS', 'east', 'top').to_string() == 'oak_stairs[facing=east,half=top]'
    assert BlockState.slab('OAK_SLAB', 'top').to_string() == 'oak_slab[type=top]'
    assert BlockState.air().is_air

    stats = blocks.get_statistics()
    assert stats['blocks'] == 1
    assert stats['bounds'] == ((1, 10, 1), (1, 10, 1))
    assert [change.position for change in blocks.changes()] == [(1, 10, 1)]

    print("✅ Block map test passed")


def test_footprint_helpers():
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2
    assert round_half_up(63.49) == 63

    path = SampledPath([(x, 64, 0) for x in range(11)])
    outline = lane_outline(path, 4)
    assert abs(outline.area - 40.0) < 1e-6
    assert lane_outline(SampledPath([(0, 64, 0), (0, 70, 0)]), 4).is_empty

    thinned = downsample(path, 5)
    assert len(thinned) == 5
    assert tuple(thinned[0]) == (0.0, 64.0, 0.0)
    assert downsample(path, 100) is path

    road = RoadConfig(width=4, terrain_adapt=False)
    assert abs(estimate_block_count(path, 'road', road) - 40) <= 1
    assert estimate_block_count(path, 'bridge', BridgeConfig()) > estimate_block_count(
        path, 'bridge', BridgeConfig(supports=False)
    )
    assert estimate_block_count(path, 'curve', road) == 0


def main():
    """Run all tests"""
    print("🧪 Testing terrain and helpers")
    print("=" * 50)

    try:
        test_flat_terrain()
        test_terrain_is_abstract()
        test_heightmap_terrain()
        test_generated_heightmap_is_reproducible()
        test_valley_and_river()
        test_material_variants()
        test_facings()
        test_block_map_write_policies()
        test_footprint_helpers()

        print("\n🎉 All terrain tests passed!")

    except Exception as e:
        print(f"\n❌ Test failed: {e}")
        import traceback
        traceback.print_exc()
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
