#!/usr/bin/env python3
"""
Tests for the generation orchestrator, previews, limit checks and rendering.
"""

import sys
import os
import base64
import tempfile

import pytest

from pathforge.config.settings import PathSettings, EngineLimits
from pathforge.core.path_data import ControlPoint
from pathforge.core.path_generator import PathGenerator, PathGeneratorFactory, generate_path
from pathforge.core.session import PathSession, PathSnapshot
from pathforge.modules.terrain import FlatTerrain, TerrainGenerator
from pathforge.rendering.path_renderer import PathRenderer


STRAIGHT = [(0, 64, 0.5), (20, 64, 0.5)]


def snapshot_of(points, mode='road', settings=None, world='world'):
    settings = settings or PathSettings(mode=mode)
    control_points = tuple(ControlPoint(world, *p) for p in points)
    return PathSnapshot(version=1, points=control_points, settings=settings)


def test_basic_generation():
    """Road and bridge results from a configured generator"""
    print("Testing basic generation...")

    session = PathSession('alex')
    for p in STRAIGHT:
        session.add_position(ControlPoint('world', *p))

    generator = PathGeneratorFactory.create_generator(session.settings)
    result = generator.generate(session.snapshot(), FlatTerrain(surface_y=63))

    assert result.structure == 'Road'
    assert len(result.blocks) == 21 * 5
    assert result.snapshot_version == session.version
    assert result.metadata['control_points'] == 2
    assert result.metadata['settings']['width'] == 5

    session.set_mode('bridge')
    result = generator.generate(session.snapshot(), FlatTerrain(surface_y=54))
    assert result.structure == 'Bridge'
    assert not result.is_empty

    stats = result.get_statistics()
    assert stats['structure'] == 'Bridge'
    assert stats['blocks'] == len(result.blocks)
    assert stats['shape_breakdown']['stairs'] > 0

    print("✅ Basic generation test passed")


def test_empty_results_carry_a_reason():
    """Nothing-to-do inputs return empty results instead of raising"""
    print("Testing empty results...")

    for mode in ('road', 'bridge', 'curve'):
        assert generate_path([], mode=mode).reason.startswith("Not enough points")
        assert generate_path([(0, 64, 0)], mode=mode).is_empty

    result = generate_path([(0, 64, 0), (0, 64, 0)])
    assert result.is_empty
    assert result.reason == "Path has zero length."

    points = [ControlPoint('world', 0, 64, 0), ControlPoint('nether', 10, 64, 0)]
    result = generate_path(points)
    assert result.is_empty
    assert 'same world' in result.reason

    print("✅ Empty results test passed")


def test_curve_mode_is_preview_only():
    result = generate_path(STRAIGHT, mode='curve')
    assert result.is_empty
    assert len(result.sampled_path) == 41
    assert result.reason == "Curve mode is preview-only."


def test_generate_path_overrides():
    result = generate_path(STRAIGHT, mode='road', width=3, border='none')
    assert len(result.blocks) == 21 * 3
    assert result.metadata['settings']['border'] == 'none'


def test_fallback_warnings_are_reported():
    result = generate_path([(0, 64, 0.5), (10, 74, 0.5)], material='DIRT_PATH', border='none')
    assert len(result.warnings) == 1
    assert 'DIRT_PATH' in result.warnings[0]
    assert result.get_statistics()['warnings'] == 1


def test_roads_and_bridges_always_use_catmull_rom():
    """Only the curve preview follows the configured algorithm"""
    points = [(0, 70, 0), (10, 72, 10), (20, 70, 0), (30, 71, 12)]
    bezier = PathSettings().with_setting('algorithm', 'bezier', mode='curve')
    generator = PathGeneratorFactory.create_generator(bezier)

    curve_path = generator.sample(snapshot_of(points, settings=PathSettings(mode='curve', curve=bezier.curve)))
    # Catmull-Rom passes through the middle control point, the Bezier does not
    assert ((curve_path.array - (10, 72, 10)) ** 2).sum(axis=1).min() > 0.25

    for mode in ('road', 'bridge'):
        configured = generator.sample(snapshot_of(points, settings=PathSettings(mode=mode, curve=bezier.curve)))
        default = generator.sample(snapshot_of(points, settings=PathSettings(mode=mode)))
        assert ((configured.array - (10, 72, 10)) ** 2).sum(axis=1).min() < 1e-12
        assert len(configured) == len(default)
        assert (configured.array == default.array).all()

    result = generate_path(points, mode='road', settings=bezier)
    assert len(result.blocks) == len(generate_path(points, mode='road').blocks)


def test_generator_without_modules():
    with pytest.raises(ValueError):
        PathGenerator().generate(snapshot_of(STRAIGHT))


def test_preview_downsampling():
    print("Testing previews...")

    settings = PathSettings(limits=EngineLimits(max_preview_points=10))
    generator = PathGeneratorFactory.create_generator(settings)
    preview = generator.preview(snapshot_of(STRAIGHT, settings=settings))

    assert preview.downsampled
    assert len(preview.sampled_path) == 10
    assert abs(preview.outline.area - 100.0) < 1e-6

    preview = generator.preview(snapshot_of(STRAIGHT, mode='curve'))
    assert not preview.downsampled
    assert len(preview.sampled_path) == 41
    assert abs(preview.outline.area - 20.0) < 1e-6

    preview = generator.preview(snapshot_of(STRAIGHT[:1]))
    assert preview.sampled_path.is_empty
    assert preview.outline.is_empty

    print("✅ Preview test passed")


def test_check_limits():
    print("Testing limit checks...")

    generator = PathGeneratorFactory.create_generator()
    assert generator.check_limits(snapshot_of(STRAIGHT)) == []

    settings = PathSettings(limits=EngineLimits(max_points=2, max_path_length=10, max_blocks=50))
    points = STRAIGHT + [(20, 64, 10)]
    problems = generator.check_limits(snapshot_of(points, settings=settings))

    assert len(problems) == 3
    assert problems[0].startswith("Too many points (3)")
    assert problems[1].startswith("Path too long (30 blocks)")
    assert "blocks (max: 50)" in problems[2]

    # Curve previews place nothing
    curve = PathSettings(mode='curve', limits=EngineLimits(max_blocks=1))
    assert generator.check_limits(snapshot_of(STRAIGHT, settings=curve)) == []

    print("✅ Limit check test passed")


def test_factory_presets():
    generator = PathGeneratorFactory.create_from_preset('stone_viaduct')
    assert generator.settings.bridge.width == 7
    assert generator.curve_sampler is not None
    assert generator.road_generator is not None
    assert generator.bridge_generator is not None


def test_rendering():
    """Results render to a base64 PNG"""
    print("Testing rendering...")

    terrain = TerrainGenerator().generate_heightmap(width=40, depth=20, base_height=60,
                                                     amplitude=4, seed=7, origin=(-10, -10))
    result = generate_path([(0, 70, 0.5), (10, 72, 5), (20, 70, 0.5)], mode='bridge', terrain=terrain)

    renderer = PathRenderer()
    image = renderer.render(result, terrain=terrain, dpi=50)
    assert base64.b64decode(image).startswith(b'\x89PNG')

    with tempfile.NamedTemporaryFile(suffix='.png', delete=False) as f:
        renderer.render(result, save_path=f.name, show_legend=False, dpi=50)
        assert os.path.getsize(f.name) > 0
        os.unlink(f.name)

    # Empty and preview-only results still render
    assert renderer.render(generate_path(STRAIGHT, mode='curve'), dpi=50)
    assert renderer.render(generate_path([]), dpi=50)

    print("✅ Rendering test passed")


def main():
    """Run all tests"""
    print("🧪 Testing path generation")
    print("=" * 50)

    try:
        test_basic_generation()
        test_empty_results_carry_a_reason()
        test_curve_mode_is_preview_only()
        test_generate_path_overrides()
        test_fallback_warnings_are_reported()
        test_roads_and_bridges_always_use_catmull_rom()
        test_generator_without_modules()
        test_preview_downsampling()
        test_check_limits()
        test_factory_presets()
        test_rendering()

        print("\n🎉 All path generation tests passed!")

    except Exception as e:
        print(f"\n❌ Test failed: {e}")
        import traceback
        traceback.print_exc()
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
