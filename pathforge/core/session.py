"""
Operator session state.
Holds the live, mutable control points and settings for one operator and
hands out immutable, versioned snapshots for generation.
"""
import logging
from typing import List, Optional, Tuple, Any
from dataclasses import dataclass, replace

from ..config.settings import PathSettings, MODES, SettingsError, create_default_settings
from .path_data import ControlPoint

logger = logging.getLogger(__name__)


class PathLimitError(ValueError):
    """Raised when a session operation would exceed a configured ceiling."""


@dataclass(frozen=True)
class PathSnapshot:
    """Immutable view of a session taken at one version."""
    version: int
    points: Tuple[ControlPoint, ...]
    settings: PathSettings

    @property
    def mode(self) -> str:
        return self.settings.mode

    @property
    def point_count(self) -> int:
        return len(self.points)

    @property
    def total_path_length(self) -> float:
        return sum(self.points[i].distance(self.points[i - 1]) for i in range(1, len(self.points)))

    def all_same_world(self) -> bool:
        return len({p.world for p in self.points}) <= 1


class PathSession:
    """
    Mutable per-operator session: ordered control points, active mode and
    settings. Every mutation bumps ``version``.
    """

    def __init__(self, owner: str, settings: Optional[PathSettings] = None):
        self.owner = owner
        self.settings = settings or create_default_settings()
        self.version = 0
        self._positions: List[ControlPoint] = []

    def _touch(self):
        self.version += 1

    # Positions

    @property
    def positions(self) -> Tuple[ControlPoint, ...]:
        return tuple(self._positions)

    @property
    def position_count(self) -> int:
        return len(self._positions)

    def set_pos1(self, point: ControlPoint):
        """Start a new path at ``point``, dropping all other positions."""
        self._positions = [point]
        self._touch()

    def add_position(self, point: ControlPoint) -> int:
        """
        Append a control point to the path.

        A point equal to the current last point is ignored.

        Returns:
            The number of points in the path

        Raises:
            PathLimitError: If the path already holds ``max_points`` points
        """
        if self._positions and self._positions[-1] == point:
            logger.debug(f"Ignoring duplicate control point {point} for {self.owner}")
            return len(self._positions)

        max_points = self.settings.limits.max_points
        if len(self._positions) >= max_points:
            raise PathLimitError(f"Maximum points reached ({max_points})")

        self._positions.append(point)
        self._touch()
        return len(self._positions)

    def remove_last_position(self) -> Optional[ControlPoint]:
        if not self._positions:
            return None
        removed = self._positions.pop()
        self._touch()
        return removed

    def clear_positions(self):
        self._positions = []
        self._touch()

    def total_path_length(self) -> float:
        """Sum of straight-line distances between consecutive control points."""
        return sum(self._positions[i].distance(self._positions[i - 1]) for i in range(1, len(self._positions)))

    def all_same_world(self) -> bool:
        return len({p.world for p in self._positions}) <= 1

    # Mode and settings

    @property
    def mode(self) -> str:
        return self.settings.mode

    def set_mode(self, mode: str):
        if mode not in MODES:
            raise SettingsError('mode', mode, ' or '.join(MODES))
        self.settings = replace(self.settings, mode=mode)
        self._touch()

    def set_setting(self, key: str, raw: Any) -> Any:
        """
        Parse and store a setting for the active mode.

        Returns:
            The parsed value

        Raises:
            SettingsError: If the key or value is rejected
        """
        self.settings = self.settings.with_setting(key, raw)
        self._touch()
        value = self.settings.for_mode().to_dict()[key.strip().lower().replace('_', '-')]
        logger.info(f"{self.owner}: {self.mode} {key} set to {value}")
        return value

    def snapshot(self) -> PathSnapshot:
        """Take an immutable copy for generation."""
        return PathSnapshot(version=self.version, points=tuple(self._positions), settings=self.settings)
