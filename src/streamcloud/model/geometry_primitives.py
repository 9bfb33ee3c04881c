"""
Geometric Primitives for the Layout Simulation.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Tuple, TYPE_CHECKING
import numpy as np
import math

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass(frozen=True)
class Vector:
    """
    A vector in 2D space representing a position, a velocity or a force.

    Forces are usually built from polar form (magnitude + bearing angle) and
    summed in cartesian form.
    """
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_polar(cls, magnitude: float, angle: float) -> Vector:
        """Build a vector from a magnitude and an angle in radians."""
        return cls(magnitude * math.cos(angle), magnitude * math.sin(angle))

    @classmethod
    def from_array(cls, arr: npt.NDArray[np.float64]) -> Vector:
        return cls(float(arr[0]), float(arr[1]))

    def __add__(self, other: Vector) -> Vector:
        return Vector(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector) -> Vector:
        return Vector(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vector:
        return Vector(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __neg__(self) -> Vector:
        return Vector(-self.x, -self.y)

    @property
    def magnitude(self) -> float:
        return math.hypot(self.x, self.y)

    @property
    def angle(self) -> float:
        """Direction of the vector in radians, measured from the +X axis."""
        return math.atan2(self.y, self.x)

    def with_magnitude(self, magnitude: float) -> Vector:
        """Same direction, new length. A zero vector stays zero."""
        mag = self.magnitude
        if mag == 0.0: return Vector(0.0, 0.0)
        return self * (magnitude / mag)

    def clamp_magnitude(self, limit: float) -> Vector:
        if self.magnitude > limit:
            return self.with_magnitude(limit)
        return self

    def distance_to(self, other: Vector) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def bearing_to(self, other: Vector) -> float:
        """
        Angle in radians from this point towards another.
        Raises ValueError for coincident points, where the bearing is undefined.
        """
        if self == other:
            raise ValueError("Bearing between coincident points is undefined.")
        return math.atan2(other.y - self.y, other.x - self.x)

    def to_array(self) -> npt.NDArray[np.float64]:
        return np.array([self.x, self.y], dtype=np.float64)

    def to_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned bounding box of a set of points."""
    min_x: float = 0.0
    min_y: float = 0.0
    max_x: float = 0.0
    max_y: float = 0.0

    @classmethod
    def from_points(cls, points: Iterable[Vector]) -> Bounds:
        xs, ys = [], []
        for p in points:
            xs.append(p.x)
            ys.append(p.y)
        if not xs:
            return cls()
        return cls(min(xs), min(ys), max(xs), max(ys))

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Vector:
        return Vector(self.min_x + self.width / 2.0, self.min_y + self.height / 2.0)

    @property
    def is_degenerate(self) -> bool:
        return max(self.width, self.height) <= 0.0

    def fit_scale(self, viewport_width: float, viewport_height: float) -> float:
        """
        Scale factor that fits the box into a viewport.
        Returns 1.0 for an empty or single-point box.
        """
        if self.is_degenerate:
            return 1.0
        return min(viewport_width, viewport_height) / max(self.width, self.height)
