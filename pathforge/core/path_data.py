"""
Core data structures for the path geometry engine.
Defines control points, sampled paths, block descriptors and the
position -> block map that generators hand off for placement.
"""
import math
from typing import List, Dict, Any, Optional, Tuple, Iterator
from dataclasses import dataclass

import numpy as np

from ..modules.materials import AIR, is_slab, is_stairs


Position = Tuple[int, int, int]

# Shapes a block descriptor can take
FULL = 'full'
SLAB = 'slab'
STAIRS = 'stairs'
CLEAR = 'air'

TOP = 'top'
BOTTOM = 'bottom'


@dataclass(frozen=True)
class ControlPoint:
    """An operator-selected 3-D anchor in a world."""
    world: str
    x: float
    y: float
    z: float

    @property
    def vector(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    def distance(self, other: 'ControlPoint') -> float:
        return math.sqrt((self.x - other.x)**2 + (self.y - other.y)**2 + (self.z - other.z)**2)

    def block_position(self) -> Position:
        return (math.floor(self.x), math.floor(self.y), math.floor(self.z))


class SampledPath:
    """
    Dense, fully materialized point sequence approximating a curve.
    Backed by an (N, 3) float array so generators get random access to
    neighbours when computing tangents.
    """

    def __init__(self, points=None):
        if points is None or len(points) == 0:
            self._points = np.zeros((0, 3), dtype=float)
        else:
            self._points = np.asarray(points, dtype=float).reshape(-1, 3)

    def __len__(self) -> int:
        return len(self._points)

    def __getitem__(self, index: int) -> np.ndarray:
        return self._points[index]

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self._points)

    def __bool__(self) -> bool:
        return len(self._points) > 0

    @property
    def array(self) -> np.ndarray:
        return self._points

    @property
    def points(self) -> List[Tuple[float, float, float]]:
        return [tuple(float(c) for c in p) for p in self._points]

    @property
    def is_empty(self) -> bool:
        return len(self._points) == 0

    def segment_lengths(self) -> np.ndarray:
        """Distances between consecutive samples."""
        if len(self._points) < 2:
            return np.zeros(0)
        return np.linalg.norm(np.diff(self._points, axis=0), axis=1)

    @property
    def length(self) -> float:
        """Total 3-D polyline length."""
        return float(self.segment_lengths().sum())

    def max_spacing(self) -> float:
        lengths = self.segment_lengths()
        return float(lengths.max()) if len(lengths) else 0.0

    def tangent(self, index: int) -> np.ndarray:
        from ..modules.curves import get_tangent
        return get_tangent(self, index)

    def perpendicular(self, index: int) -> np.ndarray:
        from ..modules.curves import get_perpendicular
        return get_perpendicular(self.tangent(index))

    def xz(self) -> List[Tuple[float, float]]:
        """Horizontal projection of the samples."""
        return [(float(p[0]), float(p[2])) for p in self._points]


@dataclass(frozen=True)
class BlockState:
    """Surface descriptor for a single block write."""
    material: str
    shape: str = FULL
    facing: Optional[str] = None
    half: Optional[str] = None

    @classmethod
    def full(cls, material: str) -> 'BlockState':
        return cls(material=material)

    @classmethod
    def slab(cls, material: str, half: str = BOTTOM) -> 'BlockState':
        return cls(material=material, shape=SLAB, half=half)

    @classmethod
    def stairs(cls, material: str, facing: str, half: str = BOTTOM) -> 'BlockState':
        return cls(material=material, shape=STAIRS, facing=facing, half=half)

    @classmethod
    def air(cls) -> 'BlockState':
        return cls(material=AIR, shape=CLEAR)

    @classmethod
    def of(cls, material: str) -> 'BlockState':
        """Descriptor for a material placed with its default state."""
        if is_slab(material):
            return cls.slab(material, BOTTOM)
        if is_stairs(material):
            return cls.stairs(material, 'north', BOTTOM)
        return cls.full(material)

    @property
    def is_air(self) -> bool:
        return self.shape == CLEAR

    def to_string(self) -> str:
        """Block-state string, e.g. ``stone_brick_stairs[facing=east,half=bottom]``."""
        name = self.material.lower()
        props = []
        if self.facing:
            props.append(f"facing={self.facing}")
        if self.shape == SLAB:
            props.append(f"type={self.half}")
        elif self.half:
            props.append(f"half={self.half}")
        return f"{name}[{','.join(props)}]" if props else name


@dataclass(frozen=True)
class BlockChange:
    """Atomic output unit: a target position and what to place there."""
    position: Position
    state: BlockState


class BlockMap:
    """
    Insertion-ordered position -> BlockState mapping.
    Writes outside the vertical world bounds are dropped, never raised.
    """

    def __init__(self, min_height: Optional[int] = None, max_height: Optional[int] = None):
        self.min_height = min_height
        self.max_height = max_height
        self._blocks: Dict[Position, BlockState] = {}
        self.clipped = 0

    def __len__(self) -> int:
        return len(self._blocks)

    def __contains__(self, position) -> bool:
        return tuple(position) in self._blocks

    def __getitem__(self, position) -> BlockState:
        return self._blocks[tuple(position)]

    def __iter__(self):
        return iter(self._blocks)

    def __bool__(self) -> bool:
        return bool(self._blocks)

    def get(self, position, default=None) -> Optional[BlockState]:
        return self._blocks.get(tuple(position), default)

    def in_bounds(self, y: int) -> bool:
        if self.min_height is not None and y < self.min_height:
            return False
        if self.max_height is not None and y >= self.max_height:
            return False
        return True

    def put(self, position: Position, state: BlockState) -> bool:
        """Write a block, replacing whatever is there (last writer wins)."""
        position = (int(position[0]), int(position[1]), int(position[2]))
        if not self.in_bounds(position[1]):
            self.clipped += 1
            return False
        self._blocks[position] = state
        return True

    def put_if_absent(self, position: Position, state: BlockState) -> bool:
        """Write a block only if nothing was written there yet (first writer wins)."""
        position = (int(position[0]), int(position[1]), int(position[2]))
        if position in self._blocks:
            return False
        return self.put(position, state)

    def items(self):
        return self._blocks.items()

    def changes(self) -> Iterator[BlockChange]:
        for position, state in self._blocks.items():
            yield BlockChange(position, state)

    def positions_by_shape(self) -> Dict[str, List[Position]]:
        grouped: Dict[str, List[Position]] = {}
        for position, state in self._blocks.items():
            grouped.setdefault(state.shape, []).append(position)
        return grouped

    def positions_with_material(self, material: str) -> List[Position]:
        return [pos for pos, state in self._blocks.items() if state.material == material]

    def bounds(self) -> Optional[Tuple[Position, Position]]:
        """Inclusive (min, max) corners of all written positions."""
        if not self._blocks:
            return None
        coords = np.array(list(self._blocks.keys()))
        low = coords.min(axis=0)
        high = coords.max(axis=0)
        return (tuple(int(c) for c in low), tuple(int(c) for c in high))

    def get_statistics(self) -> Dict[str, Any]:
        """Counts per shape and per material."""
        shape_counts: Dict[str, int] = {}
        material_counts: Dict[str, int] = {}
        for state in self._blocks.values():
            shape_counts[state.shape] = shape_counts.get(state.shape, 0) + 1
            material_counts[state.material] = material_counts.get(state.material, 0) + 1
        return {
            'blocks': len(self._blocks),
            'shape_breakdown': shape_counts,
            'material_breakdown': material_counts,
            'clipped': self.clipped,
            'bounds': self.bounds(),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert the block map to a dictionary for hand-off."""
        return {
            'min_height': self.min_height,
            'max_height': self.max_height,
            'blocks': [
                {
                    'position': list(position),
                    'material': state.material,
                    'shape': state.shape,
                    'facing': state.facing,
                    'half': state.half,
                } for position, state in self._blocks.items()
            ],
        }
