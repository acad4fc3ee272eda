"""
Curve sampling module.
Turns ordered control points into a dense sampled path using linear,
Catmull-Rom or composite quadratic Bezier interpolation, and provides the
tangent/perpendicular frame used to widen a path into a lane.
"""
import logging
import math
from typing import List, Sequence

import numpy as np

from ..core.path_data import SampledPath

logger = logging.getLogger(__name__)


CATMULL_ROM = 'catmullrom'
BEZIER = 'bezier'

DEFAULT_TANGENT = np.array([1.0, 0.0, 0.0])

# Squared length under which a tangent is considered degenerate
_MIN_TANGENT_SQ = 1e-4
_DUPLICATE_EPSILON = 1e-9


def _as_vectors(points: Sequence) -> List[np.ndarray]:
    """Accept ControlPoints, tuples or arrays and drop consecutive duplicates."""
    vectors = []
    for point in points:
        vector = point.vector if hasattr(point, 'vector') else np.asarray(point, dtype=float)
        if vectors and np.linalg.norm(vector - vectors[-1]) <= _DUPLICATE_EPSILON:
            continue
        vectors.append(vector)
    return vectors


def _steps(distance: float, resolution: float) -> int:
    return max(1, int(math.ceil(distance / resolution)))


class CurveSampler:
    """
    Samples a smooth curve through control points at a given resolution.
    Stateless; the same input always yields the same output.
    """

    def sample(self, points: Sequence, resolution: float, algorithm: str = CATMULL_ROM) -> SampledPath:
        """
        Sample a curve through the control points.

        Args:
            points: Ordered control points (ControlPoint or (x, y, z))
            resolution: Target distance in blocks between samples
            algorithm: 'catmullrom' or 'bezier'

        Returns:
            SampledPath, empty if fewer than two distinct points were given
        """
        vectors = _as_vectors(points)
        if len(vectors) < 2:
            return SampledPath()

        if len(vectors) == 2:
            samples = self._sample_linear(vectors[0], vectors[1], resolution)
        elif (algorithm or '').lower() == BEZIER:
            samples = self._sample_bezier(vectors, resolution)
        else:
            samples = self._sample_catmull_rom(vectors, resolution)

        path = SampledPath(samples)
        logger.debug(f"Sampled {len(path)} points from {len(vectors)} control points ({algorithm})")
        return path

    def _sample_linear(self, a: np.ndarray, b: np.ndarray, resolution: float) -> np.ndarray:
        steps = _steps(float(np.linalg.norm(b - a)), resolution)
        t = np.arange(steps + 1) / steps
        samples = a + np.outer(t, b - a)
        # Pin both ends so the path terminates exactly on the control points
        samples[0] = a
        samples[-1] = b
        return samples

    def _sample_catmull_rom(self, points: List[np.ndarray], resolution: float) -> np.ndarray:
        n = len(points)
        chunks = []

        for i in range(n - 1):
            p0 = self._control_point(points, i - 1)
            p1 = points[i]
            p2 = points[i + 1]
            p3 = self._control_point(points, i + 2)

            steps = _steps(float(np.linalg.norm(p2 - p1)), resolution)
            t = np.arange(steps) / steps
            chunks.append(catmull_rom(p0, p1, p2, p3, t))

        chunks.append(points[-1].reshape(1, 3))
        return np.vstack(chunks)

    def _control_point(self, points: List[np.ndarray], index: int) -> np.ndarray:
        """Control point at index, linearly extrapolated past either end."""
        if index < 0:
            return points[0] - (points[1] - points[0])
        if index >= len(points):
            return points[-1] + (points[-1] - points[-2])
        return points[index]

    def _sample_bezier(self, points: List[np.ndarray], resolution: float) -> np.ndarray:
        n = len(points)

        if n == 3:
            p0, p1, p2 = points
            steps = _steps(float(np.linalg.norm(p1 - p0) + np.linalg.norm(p2 - p1)), resolution)
            t = np.arange(steps + 1) / steps
            return quadratic_bezier(p0, p1, p2, t)

        # Chain of quadratics: interior control points are the off-curve
        # handles, midpoints between them are the on-curve joins
        chunks = []
        for i in range(n - 2):
            p0 = points[0] if i == 0 else (points[i] + points[i + 1]) / 2
            p1 = points[i + 1]
            p2 = points[n - 1] if i == n - 3 else (points[i + 1] + points[i + 2]) / 2

            steps = _steps(float(np.linalg.norm(p1 - p0) + np.linalg.norm(p2 - p1)), resolution)
            start = 0 if i == 0 else 1
            t = np.arange(start, steps + 1) / steps
            chunks.append(quadratic_bezier(p0, p1, p2, t))

        return np.vstack(chunks)


def catmull_rom(p0, p1, p2, p3, t) -> np.ndarray:
    """Evaluate the uniform Catmull-Rom segment between p1 and p2 at parameters t."""
    t = np.atleast_1d(np.asarray(t, dtype=float))[:, None]
    t2 = t * t
    t3 = t2 * t
    return 0.5 * (
        (2 * p1)
        + (-p0 + p2) * t
        + (2 * p0 - 5 * p1 + 4 * p2 - p3) * t2
        + (-p0 + 3 * p1 - 3 * p2 + p3) * t3
    )


def quadratic_bezier(p0, p1, p2, t) -> np.ndarray:
    """Evaluate a quadratic Bezier at parameters t."""
    t = np.atleast_1d(np.asarray(t, dtype=float))[:, None]
    u = 1 - t
    return u * u * p0 + 2 * u * t * p1 + t * t * p2


def get_tangent(path, index: int) -> np.ndarray:
    """
    Normalized forward direction at a sample.
    Uses the samples either side of ``index`` (the nearest edge pair at the
    ends) and falls back to +X when they coincide.
    """
    n = len(path)
    if n < 2:
        return DEFAULT_TANGENT.copy()

    if index <= 0:
        before, after = path[0], path[1]
    elif index >= n - 1:
        before, after = path[n - 2], path[n - 1]
    else:
        before, after = path[index - 1], path[index + 1]

    tangent = np.asarray(after, dtype=float) - np.asarray(before, dtype=float)
    length_sq = float(np.dot(tangent, tangent))
    if length_sq < _MIN_TANGENT_SQ:
        return DEFAULT_TANGENT.copy()
    return tangent / math.sqrt(length_sq)


def get_perpendicular(tangent) -> np.ndarray:
    """Horizontal right-hand normal of a tangent: (x, y, z) -> (z, 0, -x)."""
    perp = np.array([tangent[2], 0.0, -tangent[0]], dtype=float)
    length = float(np.linalg.norm(perp))
    if length < 1e-9:
        # Vertical tangent, no horizontal component to rotate
        return get_perpendicular(DEFAULT_TANGENT)
    return perp / length


def sample_curve(points: Sequence, resolution: float, algorithm: str = CATMULL_ROM) -> SampledPath:
    """Convenience wrapper around CurveSampler.sample."""
    return CurveSampler().sample(points, resolution, algorithm)
