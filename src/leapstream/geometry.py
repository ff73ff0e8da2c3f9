"""Vector and rotation-matrix value types used by tracking entities.

Both types are immutable. Arithmetic goes through numpy so the values can be
handed straight to numerical code via ``to_array()``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class Vector3:
    """A 3-component vector (millimetres for positions, mm/s for velocities)."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> Vector3:
        x, y, z = values
        return cls(float(x), float(y), float(z))

    @classmethod
    def from_array(cls, arr: np.ndarray) -> Vector3:
        return cls(float(arr[0]), float(arr[1]), float(arr[2]))

    @classmethod
    def zero(cls) -> Vector3:
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def invalid(cls) -> Vector3:
        return cls(math.nan, math.nan, math.nan)

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def to_list(self) -> list[float]:
        return [self.x, self.y, self.z]

    def __add__(self, other: Vector3) -> Vector3:
        return Vector3.from_array(self.to_array() + other.to_array())

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3.from_array(self.to_array() - other.to_array())

    def __mul__(self, scalar: float) -> Vector3:
        return Vector3.from_array(self.to_array() * scalar)

    def __neg__(self) -> Vector3:
        return Vector3(-self.x, -self.y, -self.z)

    def dot(self, other: Vector3) -> float:
        return float(np.dot(self.to_array(), other.to_array()))

    def cross(self, other: Vector3) -> Vector3:
        return Vector3.from_array(np.cross(self.to_array(), other.to_array()))

    @property
    def magnitude(self) -> float:
        return float(np.linalg.norm(self.to_array()))

    def normalized(self) -> Vector3:
        """Unit vector in the same direction, or the zero vector."""
        mag = self.magnitude
        if mag <= 0 or not math.isfinite(mag):
            return Vector3.zero()
        return self * (1.0 / mag)

    def is_valid(self) -> bool:
        return bool(np.all(np.isfinite(self.to_array())))


@dataclass(frozen=True)
class Matrix:
    """Rotation (three basis vectors) plus an origin translation.

    ``transform_direction(v)`` is ``x_basis * v.x + y_basis * v.y + z_basis * v.z``,
    i.e. the bases are the columns of the 3x3 rotation.
    """
    x_basis: Vector3 = field(default_factory=lambda: Vector3(1.0, 0.0, 0.0))
    y_basis: Vector3 = field(default_factory=lambda: Vector3(0.0, 1.0, 0.0))
    z_basis: Vector3 = field(default_factory=lambda: Vector3(0.0, 0.0, 1.0))
    origin: Vector3 = field(default_factory=Vector3.zero)

    @classmethod
    def identity(cls) -> Matrix:
        return cls()

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]]) -> Matrix:
        """Build from the 3x3 nested array the device sends (one basis per row)."""
        if len(rows) != 3:
            raise ValueError(f"expected 3 rows, got {len(rows)}")
        return cls(
            Vector3.from_sequence(rows[0]),
            Vector3.from_sequence(rows[1]),
            Vector3.from_sequence(rows[2]),
        )

    @classmethod
    def from_array(cls, rotation: np.ndarray, origin: Vector3 | None = None) -> Matrix:
        return cls(
            Vector3.from_array(rotation[:, 0]),
            Vector3.from_array(rotation[:, 1]),
            Vector3.from_array(rotation[:, 2]),
            origin or Vector3.zero(),
        )

    @classmethod
    def rotation(cls, axis: Vector3, angle_radians: float) -> Matrix:
        """Rotation of ``angle_radians`` about ``axis`` (Rodrigues' formula)."""
        a = axis.normalized().to_array()
        k = np.array([
            [0.0, -a[2], a[1]],
            [a[2], 0.0, -a[0]],
            [-a[1], a[0], 0.0],
        ])
        rot = np.eye(3) + math.sin(angle_radians) * k + (1 - math.cos(angle_radians)) * (k @ k)
        return cls.from_array(rot)

    def to_array(self) -> np.ndarray:
        """3x3 rotation with the bases as columns."""
        return np.column_stack([
            self.x_basis.to_array(),
            self.y_basis.to_array(),
            self.z_basis.to_array(),
        ])

    def to_rows(self) -> list[list[float]]:
        return [self.x_basis.to_list(), self.y_basis.to_list(), self.z_basis.to_list()]

    def transform_direction(self, v: Vector3) -> Vector3:
        return Vector3.from_array(self.to_array() @ v.to_array())

    def transform_point(self, v: Vector3) -> Vector3:
        return self.transform_direction(v) + self.origin

    def multiply(self, other: Matrix) -> Matrix:
        return Matrix(
            self.transform_direction(other.x_basis),
            self.transform_direction(other.y_basis),
            self.transform_direction(other.z_basis),
            self.transform_point(other.origin),
        )

    def __matmul__(self, other: Matrix) -> Matrix:
        return self.multiply(other)

    def rigid_inverse(self) -> Matrix:
        inv = self.to_array().T
        origin = Vector3.from_array(inv @ (-self.origin.to_array()))
        return Matrix.from_array(inv, origin)

    @property
    def trace(self) -> float:
        return self.x_basis.x + self.y_basis.y + self.z_basis.z
