"""Three-component vectors and 3x3 matrices over the (east, north, up) axes."""

import typing

import attrs
import numpy as np

from eddies.types import AXES, Axis

__all__ = ["Vector", "Matrix", "ZERO", "to_vector"]


@attrs.frozen(slots=True)
class Vector:
    """
    Immutable vector with components along the east, north and up axes.

    Supports `+`, `-`, scalar `*` and `/`, `dot`, `sum` and component access by axis.
    Division by zero yields IEEE inf/NaN components instead of raising.
    """

    east: float = attrs.field(converter=float)
    north: float = attrs.field(converter=float)
    up: float = attrs.field(converter=float)

    @classmethod
    def create(cls, func: typing.Callable[[Axis], float]) -> "Vector":
        """
        Build a vector by evaluating `func` once per axis, in east, north, up order.

        :param func: Function returning the component for a given axis.
        :return: The new vector.
        """
        return cls(func(Axis.EAST), func(Axis.NORTH), func(Axis.UP))

    def value(self, axis: Axis) -> float:
        """Return the component along `axis`."""
        if axis is Axis.EAST:
            return self.east
        if axis is Axis.NORTH:
            return self.north
        return self.up

    __getitem__ = value

    def __iter__(self) -> typing.Iterator[float]:
        yield self.east
        yield self.north
        yield self.up

    def __add__(self, other: "Vector") -> "Vector":
        return Vector(self.east + other.east, self.north + other.north, self.up + other.up)

    def __sub__(self, other: "Vector") -> "Vector":
        return Vector(self.east - other.east, self.north - other.north, self.up - other.up)

    def __neg__(self) -> "Vector":
        return Vector(-self.east, -self.north, -self.up)

    def __mul__(self, scalar: float) -> "Vector":
        return Vector(self.east * scalar, self.north * scalar, self.up * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> "Vector":
        with np.errstate(divide="ignore", invalid="ignore"):
            components = np.divide(
                np.array([self.east, self.north, self.up], dtype=np.float64), scalar
            )
        return Vector(*components)

    def dot(self, other: "Vector") -> float:
        """Dot product with `other`."""
        return self.east * other.east + self.north * other.north + self.up * other.up

    def sum(self) -> float:
        """Sum of the components."""
        return self.east + self.north + self.up

    def norm(self) -> float:
        """Euclidean length."""
        return float(np.sqrt(self.dot(self)))

    def is_finite(self) -> bool:
        """Whether every component is finite."""
        return bool(np.all(np.isfinite((self.east, self.north, self.up))))

    def to_array(self) -> np.ndarray:
        return np.array([self.east, self.north, self.up], dtype=np.float64)


ZERO = Vector(0.0, 0.0, 0.0)
"""The zero vector."""


@attrs.frozen(slots=True)
class Matrix:
    """
    Immutable 3x3 matrix made of one row per axis.

    `matrix @ vector` (or `matrix.times(vector)`) is the per-row dot product.
    """

    east: Vector
    north: Vector
    up: Vector

    @classmethod
    def create(cls, func: typing.Callable[[Axis], Vector]) -> "Matrix":
        """
        Build a matrix by evaluating `func` once per axis to produce each row.

        :param func: Function returning the row for a given axis.
        :return: The new matrix.
        """
        return cls(func(Axis.EAST), func(Axis.NORTH), func(Axis.UP))

    def row(self, axis: Axis) -> Vector:
        """Return the row for `axis`."""
        if axis is Axis.EAST:
            return self.east
        if axis is Axis.NORTH:
            return self.north
        return self.up

    def times(self, vector: Vector) -> Vector:
        """Matrix-vector product."""
        return Vector.create(lambda axis: self.row(axis).dot(vector))

    __matmul__ = times

    def to_array(self) -> np.ndarray:
        return np.array([self.row(axis).to_array() for axis in AXES])


def to_vector(value: typing.Union[Vector, typing.Sequence[float], float]) -> Vector:
    """
    Coerce a scalar (same value on every axis), an (east, north, up) sequence or
    a `Vector` into a `Vector`.
    """
    if isinstance(value, Vector):
        return value
    if isinstance(value, (int, float)):
        return Vector(value, value, value)
    return Vector(*value)
