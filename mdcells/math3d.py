"""Small 3D vector and 4x4 matrix types used by the simulation and the viewer."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Union


def to_radian(degrees: float) -> float:
    """Convert degrees to radians."""
    return degrees * math.pi / 180.0


def to_degree(radians: float) -> float:
    """Convert radians to degrees."""
    return radians * 180.0 / math.pi


@dataclass(frozen=True, slots=True)
class Vector3i:
    """Integer 3-component vector (process grid sizes and coordinates)."""

    x: int = 0
    y: int = 0
    z: int = 0

    def __iter__(self) -> Iterator[int]:
        yield self.x
        yield self.y
        yield self.z

    def __mul__(self, other: Vector3i) -> Vector3i:
        if not isinstance(other, Vector3i):
            return NotImplemented
        return Vector3i(self.x * other.x, self.y * other.y, self.z * other.z)

    def scale(self, s: float) -> Vector3i:
        """Multiply every component by ``s`` truncated to an integer."""
        k = int(s)
        return self * Vector3i(k, k, k)


_Operand = Union["Vector3f", Vector3i, float, int]


@dataclass(frozen=True, slots=True)
class Vector3f:
    """Floating-point 3-component vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def zero(cls) -> Vector3f:
        return cls(0.0, 0.0, 0.0)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    @staticmethod
    def _components(other: _Operand) -> tuple[float, float, float]:
        if isinstance(other, (Vector3f, Vector3i)):
            return other.x, other.y, other.z
        if isinstance(other, (int, float)):
            return other, other, other
        raise TypeError(f"unsupported operand: {type(other).__name__}")

    def cross(self, other: Vector3f) -> Vector3f:
        return Vector3f(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def normalized(self) -> Vector3f:
        """Return the unit vector; a zero vector raises ZeroDivisionError."""
        length = self.length()
        return Vector3f(self.x / length, self.y / length, self.z / length)

    def dot(self, other: Vector3f) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def length_sq(self) -> float:
        return self.dot(self)

    def length(self) -> float:
        return math.sqrt(self.length_sq())

    def component_sum(self) -> float:
        return self.x + self.y + self.z

    def distance(self, other: Vector3f) -> float:
        return math.sqrt(
            (other.x - self.x) ** 2 + (other.y - self.y) ** 2 + (other.z - self.z) ** 2
        )

    def scale(self, s: float) -> Vector3f:
        return Vector3f(self.x * s, self.y * s, self.z * s)

    def __add__(self, other: Vector3f) -> Vector3f:
        if not isinstance(other, Vector3f):
            return NotImplemented
        return Vector3f(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3f) -> Vector3f:
        if not isinstance(other, Vector3f):
            return NotImplemented
        return Vector3f(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, other: _Operand) -> Vector3f:
        """Component-wise product with a vector, or scaling by a number."""
        try:
            ox, oy, oz = self._components(other)
        except TypeError:
            return NotImplemented
        return Vector3f(self.x * ox, self.y * oy, self.z * oz)

    def __rmul__(self, other: float) -> Vector3f:
        if not isinstance(other, (int, float)):
            return NotImplemented
        return self.scale(other)

    def __truediv__(self, other: _Operand) -> Vector3f:
        """Component-wise division by a vector (float or int) or a number."""
        try:
            ox, oy, oz = self._components(other)
        except TypeError:
            return NotImplemented
        return Vector3f(self.x / ox, self.y / oy, self.z / oz)

    def __neg__(self) -> Vector3f:
        return Vector3f(-self.x, -self.y, -self.z)

    def __str__(self) -> str:
        return f"{self.x:.2f}, {self.y:.2f}, {self.z:.2f}"


def vector_normalize(v: Vector3f) -> Vector3f:
    """Return ``v`` scaled to unit length, or ``v`` unchanged if it has zero length."""
    length = v.length()
    if length > 0.0:
        return v.scale(1.0 / length)
    return v


Rows = tuple[
    tuple[float, float, float, float],
    tuple[float, float, float, float],
    tuple[float, float, float, float],
    tuple[float, float, float, float],
]


@dataclass(frozen=True, slots=True)
class Matrix4f:
    """Row-major 4x4 matrix."""

    rows: Rows

    def __getitem__(self, index: int) -> tuple[float, float, float, float]:
        return self.rows[index]

    @classmethod
    def identity(cls) -> Matrix4f:
        return cls.scaling(1.0, 1.0, 1.0)

    @classmethod
    def scaling(cls, sx: float, sy: float, sz: float) -> Matrix4f:
        return cls(
            (
                (sx, 0.0, 0.0, 0.0),
                (0.0, sy, 0.0, 0.0),
                (0.0, 0.0, sz, 0.0),
                (0.0, 0.0, 0.0, 1.0),
            )
        )

    @classmethod
    def rotation(cls, rx: float, ry: float, rz: float) -> Matrix4f:
        """Rotation by angles in degrees, composed as Rz @ Ry @ Rx."""
        x, y, z = to_radian(rx), to_radian(ry), to_radian(rz)
        mx = cls(
            (
                (1.0, 0.0, 0.0, 0.0),
                (0.0, math.cos(x), -math.sin(x), 0.0),
                (0.0, math.sin(x), math.cos(x), 0.0),
                (0.0, 0.0, 0.0, 1.0),
            )
        )
        my = cls(
            (
                (math.cos(y), 0.0, -math.sin(y), 0.0),
                (0.0, 1.0, 0.0, 0.0),
                (math.sin(y), 0.0, math.cos(y), 0.0),
                (0.0, 0.0, 0.0, 1.0),
            )
        )
        mz = cls(
            (
                (math.cos(z), -math.sin(z), 0.0, 0.0),
                (math.sin(z), math.cos(z), 0.0, 0.0),
                (0.0, 0.0, 1.0, 0.0),
                (0.0, 0.0, 0.0, 1.0),
            )
        )
        return mz @ my @ mx

    @classmethod
    def translation(cls, x: float, y: float, z: float) -> Matrix4f:
        return cls(
            (
                (1.0, 0.0, 0.0, x),
                (0.0, 1.0, 0.0, y),
                (0.0, 0.0, 1.0, z),
                (0.0, 0.0, 0.0, 1.0),
            )
        )

    @classmethod
    def camera(cls, target: Vector3f, up: Vector3f) -> Matrix4f:
        """View rotation looking along ``target`` with ``up`` as the up direction."""
        n = target.normalized()
        u = up.normalized().cross(n)
        v = n.cross(u)
        return cls(
            (
                (u.x, u.y, u.z, 0.0),
                (v.x, v.y, v.z, 0.0),
                (n.x, n.y, n.z, 0.0),
                (0.0, 0.0, 0.0, 1.0),
            )
        )

    @classmethod
    def perspective(
        cls, fov: float, width: float, height: float, z_near: float, z_far: float
    ) -> Matrix4f:
        """Perspective projection with a vertical field of view in degrees."""
        ar = width / height
        z_range = z_near - z_far
        tan_half_fov = math.tan(to_radian(fov / 2.0))
        return cls(
            (
                (1.0 / (tan_half_fov * ar), 0.0, 0.0, 0.0),
                (0.0, 1.0 / tan_half_fov, 0.0, 0.0),
                (0.0, 0.0, (-z_near - z_far) / z_range, 2.0 * z_far * z_near / z_range),
                (0.0, 0.0, 1.0, 0.0),
            )
        )

    def __matmul__(self, other: Matrix4f) -> Matrix4f:
        if not isinstance(other, Matrix4f):
            return NotImplemented
        columns = list(zip(*other.rows))
        return Matrix4f(
            tuple(
                tuple(sum(a * b for a, b in zip(row, col)) for col in columns)
                for row in self.rows
            )
        )

    def flat(self) -> list[float]:
        """All 16 entries in row-major order."""
        return [value for row in self.rows for value in row]