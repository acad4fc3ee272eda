"""
Main path generator orchestrator.
Takes an immutable session snapshot, samples the curve and runs the
structure generator for the active mode.
"""
import logging
from datetime import datetime
from typing import Dict, Any, List, Optional, Sequence
from dataclasses import dataclass, field, replace

from shapely.geometry import Polygon

from ..config.settings import PathSettings, create_default_settings
from .path_data import BlockMap, ControlPoint, SampledPath
from .session import PathSnapshot

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Output of one generation request."""
    structure: str
    blocks: BlockMap
    sampled_path: SampledPath
    snapshot_version: int = 0
    reason: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return len(self.blocks) == 0

    def get_statistics(self) -> Dict[str, Any]:
        stats = self.blocks.get_statistics()
        stats.update({
            'structure': self.structure,
            'samples': len(self.sampled_path),
            'path_length': self.sampled_path.length,
            'snapshot_version': self.snapshot_version,
            'warnings': len(self.warnings),
        })
        return stats


@dataclass
class PathPreview:
    """Lightweight outline for a preview renderer."""
    sampled_path: SampledPath
    outline: Polygon
    downsampled: bool = False


class PathGenerator:
    """
    Main orchestrator for path generation.
    Coordinates the curve sampler and the structure generators.
    """

    def __init__(self, settings: Optional[PathSettings] = None):
        self.settings = settings or create_default_settings()

        # Initialize modules (will be set by dependency injection)
        self.curve_sampler = None
        self.road_generator = None
        self.bridge_generator = None

    def set_curve_sampler(self, curve_sampler):
        """Set the curve sampling module."""
        self.curve_sampler = curve_sampler

    def set_road_generator(self, road_generator):
        """Set the road generation module."""
        self.road_generator = road_generator

    def set_bridge_generator(self, bridge_generator):
        """Set the bridge generation module."""
        self.bridge_generator = bridge_generator

    def sample(self, snapshot: PathSnapshot) -> SampledPath:
        """
        Sample the snapshot's control points for its mode.

        Roads and bridges always use Catmull-Rom; only the curve preview
        uses the configured algorithm.
        """
        if not self.curve_sampler:
            raise ValueError("Curve sampler not set")

        settings = snapshot.settings
        mode_config = settings.for_mode()
        algorithm = settings.curve.algorithm if snapshot.mode == 'curve' else 'catmullrom'
        return self.curve_sampler.sample(snapshot.points, mode_config.resolution, algorithm)

    def _input_problem(self, snapshot: PathSnapshot) -> Optional[str]:
        if snapshot.point_count < 2:
            return "Not enough points. Select at least 2 positions."
        if not snapshot.all_same_world():
            return "All positions must be in the same world."
        return None

    def generate(self, snapshot: PathSnapshot, terrain=None) -> GenerationResult:
        """
        Generate the block map for a snapshot.

        Args:
            snapshot: Immutable session snapshot
            terrain: Terrain capability for ground and clearance checks

        Returns:
            GenerationResult; empty (with a reason) when there is nothing to do
        """
        start_time = datetime.now()
        mode = snapshot.mode
        structure = mode.capitalize()

        problem = self._input_problem(snapshot)
        if problem:
            logger.info(f"Skipping {structure} generation: {problem}")
            return GenerationResult(structure, BlockMap(), SampledPath(), snapshot.version, reason=problem)

        sampled_path = self.sample(snapshot)
        if sampled_path.is_empty:
            reason = "Path has zero length."
            logger.info(f"Skipping {structure} generation: {reason}")
            return GenerationResult(structure, BlockMap(), sampled_path, snapshot.version, reason=reason)

        if mode == 'curve':
            reason = "Curve mode is preview-only."
            return GenerationResult(structure, BlockMap(), sampled_path, snapshot.version, reason=reason)

        if mode == 'road':
            if not self.road_generator:
                raise ValueError("Road generator not set")
            structure_generator = self.road_generator
        else:
            if not self.bridge_generator:
                raise ValueError("Bridge generator not set")
            structure_generator = self.bridge_generator
        blocks = structure_generator.generate(sampled_path, snapshot.settings.for_mode(), terrain)

        generation_time = (datetime.now() - start_time).total_seconds()
        result = GenerationResult(
            structure=structure,
            blocks=blocks,
            sampled_path=sampled_path,
            snapshot_version=snapshot.version,
            reason=None if blocks else "No blocks to place.",
            warnings=list(structure_generator.warnings),
            metadata={
                'generation_time_seconds': generation_time,
                'settings': snapshot.settings.for_mode().to_dict(),
                'control_points': snapshot.point_count,
            },
        )
        logger.info(f"{structure} generation completed in {generation_time:.3f} seconds "
                    f"({len(blocks)} blocks, {len(sampled_path)} samples)")
        return result

    def preview(self, snapshot: PathSnapshot) -> PathPreview:
        """Sampled path (downsampled for display) plus the lane outline."""
        from ..modules.footprint import downsample, lane_outline

        if self._input_problem(snapshot):
            return PathPreview(SampledPath(), Polygon())

        sampled_path = self.sample(snapshot)
        limit = snapshot.settings.limits.max_preview_points
        shown = downsample(sampled_path, limit)
        downsampled = len(shown) < len(sampled_path)
        if downsampled:
            logger.warning(f"Preview downsampled for performance ({limit} point limit)")

        width = 1 if snapshot.mode == 'curve' else snapshot.settings.for_mode().width
        return PathPreview(shown, lane_outline(sampled_path, width), downsampled)

    def check_limits(self, snapshot: PathSnapshot) -> List[str]:
        """
        Check a snapshot against the configured ceilings before generating.

        Returns:
            Human-readable problems; empty if the request is within limits
        """
        from ..modules.footprint import estimate_block_count

        limits = snapshot.settings.limits
        problems = []

        if snapshot.point_count > limits.max_points:
            problems.append(f"Too many points ({snapshot.point_count}). Maximum allowed: {limits.max_points}.")

        path_length = snapshot.total_path_length
        if path_length > limits.max_path_length:
            problems.append(f"Path too long ({path_length:,.0f} blocks). "
                            f"Maximum allowed: {limits.max_path_length:,.0f}.")

        if snapshot.mode != 'curve' and not self._input_problem(snapshot):
            estimate = estimate_block_count(self.sample(snapshot), snapshot.mode, snapshot.settings.for_mode())
            if limits.max_blocks > 0 and estimate > limits.max_blocks:
                problems.append(f"Operation would place about {estimate:,} blocks (max: {limits.max_blocks:,}).")

        return problems


class PathGeneratorFactory:
    """
    Factory class for creating configured path generators.
    Handles dependency injection of the generation modules.
    """

    @staticmethod
    def create_generator(settings: Optional[PathSettings] = None) -> PathGenerator:
        """
        Create a fully configured path generator with all modules.

        Args:
            settings: Settings supplying the engine limits

        Returns:
            PathGenerator: Configured generator ready to use
        """
        generator = PathGenerator(settings)

        from ..modules.curves import CurveSampler
        from ..modules.road import SurfacePathGenerator
        from ..modules.bridge import ElevatedPathGenerator

        generator.set_curve_sampler(CurveSampler())
        generator.set_road_generator(SurfacePathGenerator())
        generator.set_bridge_generator(ElevatedPathGenerator(generator.settings.limits.ramp_scan_depth))

        return generator

    @staticmethod
    def create_from_preset(preset_name: str, **overrides) -> PathGenerator:
        """Create a generator from a settings preset."""
        from ..config.settings import create_preset_settings
        return PathGeneratorFactory.create_generator(create_preset_settings(preset_name, **overrides))


# Convenience function for easy usage
def generate_path(points: Sequence, mode: str = 'road', terrain=None, world: str = 'world',
                  settings: Optional[PathSettings] = None, **overrides) -> GenerationResult:
    """
    Generate a structure straight from a list of points.

    Args:
        points: ControlPoints or (x, y, z) tuples
        mode: 'road', 'bridge' or 'curve'
        terrain: Optional terrain capability
        world: World id used for bare tuples
        settings: Settings to use; defaults are used otherwise
        **overrides: Settings for the chosen mode, e.g. width=7

    Returns:
        GenerationResult
    """
    settings = replace(settings or create_default_settings(), mode=mode)
    for key, value in overrides.items():
        settings = settings.with_setting(key, value)
    control_points = tuple(
        p if isinstance(p, ControlPoint) else ControlPoint(world, *p) for p in points
    )
    snapshot = PathSnapshot(version=0, points=control_points, settings=settings)
    generator = PathGeneratorFactory.create_generator(settings)
    return generator.generate(snapshot, terrain)
