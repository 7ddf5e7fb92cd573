#!/usr/bin/env python3
"""
Vector Math Module for Battle Keys

2D vector operations for battle space:
- Vector2D arithmetic (add, subtract, scale, dot, cross)
- Magnitude, normalization, rotation about a pivot
- Angle normalisation to (-pi, pi] and signed angle differences
- Linear interpolation between points

Battle space is a dimensionless Cartesian plane. The home ship sits at the
origin and the visible window is a square of side 2.0 bsu around it.
"""

from __future__ import annotations
import math
from dataclasses import dataclass


# =============================================================================
# VECTOR2D CLASS
# =============================================================================

@dataclass
class Vector2D:
    """
    2D vector for positions, velocities and directions in battle space.

    X grows to the right and Y grows upward. All lengths are in bsu,
    velocities in bsu/s.
    """
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vector2D) -> Vector2D:
        """Vector addition."""
        return Vector2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2D) -> Vector2D:
        """Vector subtraction."""
        return Vector2D(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vector2D:
        """Scalar multiplication."""
        return Vector2D(self.x * scalar, self.y * scalar)

    def __rmul__(self, scalar: float) -> Vector2D:
        """Right scalar multiplication."""
        return self.__mul__(scalar)

    def __truediv__(self, scalar: float) -> Vector2D:
        """Scalar division."""
        if scalar == 0:
            raise ValueError("Cannot divide vector by zero")
        return Vector2D(self.x / scalar, self.y / scalar)

    def __neg__(self) -> Vector2D:
        """Negation."""
        return Vector2D(-self.x, -self.y)

    def __eq__(self, other: object) -> bool:
        """Equality check with tolerance."""
        if not isinstance(other, Vector2D):
            return False
        eps = 1e-10
        return abs(self.x - other.x) < eps and abs(self.y - other.y) < eps

    def dot(self, other: Vector2D) -> float:
        """Dot product."""
        return self.x * other.x + self.y * other.y

    def cross(self, other: Vector2D) -> float:
        """Z component of the 3D cross product of the two vectors."""
        return cross_z(self.x, self.y, other.x, other.y)

    @property
    def magnitude(self) -> float:
        """Vector magnitude (length)."""
        return math.hypot(self.x, self.y)

    def normalized(self) -> Vector2D:
        """Return unit vector in same direction, or zero for a zero vector."""
        mag = self.magnitude
        if mag == 0:
            return Vector2D(0.0, 0.0)
        return self / mag

    def distance_to(self, other: Vector2D) -> float:
        """Distance to another point."""
        return (self - other).magnitude

    def angle(self) -> float:
        """Heading of the vector in radians, measured from +X."""
        return math.atan2(self.y, self.x)

    def rotate(self, angle_rad: float) -> Vector2D:
        """Rotate counter-clockwise about the origin."""
        cos_a = math.cos(angle_rad)
        sin_a = math.sin(angle_rad)
        return Vector2D(
            self.x * cos_a - self.y * sin_a,
            self.x * sin_a + self.y * cos_a,
        )

    def rotate_about(self, angle_rad: float, pivot: Vector2D) -> Vector2D:
        """Rotate counter-clockwise about a pivot point."""
        return (self - pivot).rotate(angle_rad) + pivot

    def is_finite(self) -> bool:
        """True when neither component is NaN or infinite."""
        return math.isfinite(self.x) and math.isfinite(self.y)

    def copy(self) -> Vector2D:
        return Vector2D(self.x, self.y)

    def to_tuple(self) -> tuple[float, float]:
        """Convert to tuple."""
        return (self.x, self.y)

    @classmethod
    def from_angle(cls, angle_rad: float, length: float = 1.0) -> Vector2D:
        """Vector of the given length pointing along angle_rad."""
        return cls(length * math.cos(angle_rad), length * math.sin(angle_rad))

    @classmethod
    def zero(cls) -> Vector2D:
        """Zero vector."""
        return cls(0.0, 0.0)

    def __repr__(self) -> str:
        return f"Vector2D({self.x:.6g}, {self.y:.6g})"


# =============================================================================
# SCALAR HELPERS
# =============================================================================

def cross_z(x1: float, y1: float, x2: float, y2: float) -> float:
    """Z component of the cross product of (x1, y1) and (x2, y2)."""
    return x1 * y2 - x2 * y1


def normalize_angle(angle_rad: float) -> float:
    """
    Normalise an angle to the interval (-pi, pi].

    Args:
        angle_rad: Any finite angle in radians.

    Returns:
        Equivalent angle in (-pi, pi].
    """
    angle = math.fmod(angle_rad, 2 * math.pi)
    if angle > math.pi:
        angle -= 2 * math.pi
    elif angle <= -math.pi:
        angle += 2 * math.pi
    return angle


def delta_angle(target_rad: float, current_rad: float) -> float:
    """Signed shortest turn from current_rad to target_rad, in (-pi, pi]."""
    return normalize_angle(target_rad - current_rad)


def interpolate(start: Vector2D, end: Vector2D, frac: float) -> Vector2D:
    """Point at fraction frac of the way from start to end."""
    return Vector2D(
        start.x + (end.x - start.x) * frac,
        start.y + (end.y - start.y) * frac,
    )
