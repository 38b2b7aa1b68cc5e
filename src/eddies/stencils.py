"""
Cell-type aware finite-difference stencils.

Every spatial derivative used by the stepper goes through `derivative`, which
takes the three collinear cells (low, center, high) around a cell along one axis,
rewrites boundary and obstacle cells into equivalent fluid-valued cells, and then
applies a three-point or two-point formula.

Rewrite rules, applied to the (low, center, high) types:

| Pattern                       | Action                                               |
|-------------------------------|------------------------------------------------------|
| (FLUID, FLUID, FLUID)         | three-point formula                                  |
| (FLUID, FLUID, UNKNOWN)       | two-point formula on (low, center)                   |
| (ANY, OBSTACLE, ANY)          | `TopologyError`                                      |
| (UNKNOWN, FLUID, FLUID)       | swap ends, mirroring the UNKNOWN cell through center |
| (ANY, FLUID, OBSTACLE)        | replace high with its fluid-valued image             |
| (OBSTACLE, FLUID, ANY)        | replace low with its fluid-valued image              |
| anything else                 | `TopologyError`                                      |
"""

import typing

import attrs
import numba
import numpy as np

from eddies.cells import Cell
from eddies.constants import c
from eddies.errors import ComputationError, TopologyError
from eddies.types import AXES, Axis, CellType, DerivativeOrder
from eddies.utils import validate
from eddies.vectors import ZERO, Matrix, Vector

__all__ = [
    "CellFunction",
    "CellTriplet",
    "StencilEvaluator",
    "obstacle_to_value",
    "transform",
    "derivative",
    "three_point_first_derivative",
    "two_point_first_derivative",
    "three_point_second_derivative",
]

FLUID = CellType.FLUID
OBSTACLE = CellType.OBSTACLE
UNKNOWN = CellType.UNKNOWN

CellFunction = typing.Callable[[Cell], float]
"""A scalar quantity read from a cell, e.g. its pressure."""


@numba.njit(cache=True, error_model="numpy")
def three_point_first_derivative(
    fa: float, fb: float, fc: float, h1: float, h2: float
) -> float:
    """
    First derivative at the middle of three collinear points, for non-uniform spacing.

    f'(b) ≈ ((h2² - h1²)·fb + h1²·fc - h2²·fa) / (h1²·h2 + h1·h2²)

    :param fa: Value at the low point.
    :param fb: Value at the center point.
    :param fc: Value at the high point.
    :param h1: Signed spacing center - low.
    :param h2: Signed spacing high - center.
    :return: The first derivative estimate.
    """
    h1_squared = h1 * h1
    h2_squared = h2 * h2
    return ((h2_squared - h1_squared) * fb + h1_squared * fc - h2_squared * fa) / (
        h1_squared * h2 + h1 * h2_squared
    )


@numba.njit(cache=True, error_model="numpy")
def two_point_first_derivative(fa: float, fb: float, xa: float, xb: float) -> float:
    """
    Secant slope between two points.

    :param fa: Value at the first point.
    :param fb: Value at the second point.
    :param xa: Coordinate of the first point.
    :param xb: Coordinate of the second point.
    :return: (fb - fa) / (xb - xa)
    """
    return (fb - fa) / (xb - xa)


@numba.njit(cache=True, error_model="numpy")
def three_point_second_derivative(
    fa: float, fb: float, fc: float, h1: float, h2: float
) -> float:
    """
    Second derivative at the middle of three collinear points, for non-uniform spacing.

    f''(b) ≈ 2·(h1·fc - (h1 + h2)·fb + h2·fa) / (h1·h2·(h1 + h2))

    Reduces to (fc + fa - 2·fb) / h² when h1 = h2 = h.

    :param fa: Value at the low point.
    :param fb: Value at the center point.
    :param fc: Value at the high point.
    :param h1: Signed spacing center - low.
    :param h2: Signed spacing high - center.
    :return: The second derivative estimate.
    """
    return 2.0 * (h1 * fc - (h1 + h2) * fb + h2 * fa) / (h1 * h2 * (h1 + h2))


@attrs.frozen(slots=True)
class CellTriplet:
    """Three collinear cells around `center` along one axis."""

    low: Cell
    center: Cell
    high: Cell

    @classmethod
    def around(cls, cell: Cell, axis: Axis) -> "CellTriplet":
        """Build the triplet of `cell` and its immediate neighbours along `axis`."""
        return cls(cell.neighbour(axis, -1), cell, cell.neighbour(axis, 1))

    @property
    def types(self) -> typing.Tuple[CellType, CellType, CellType]:
        return (self.low.type, self.center.type, self.high.type)

    @property
    def positions(self) -> typing.Tuple[Vector, Vector, Vector]:
        return (self.low.position, self.center.position, self.high.position)

    def __iter__(self) -> typing.Iterator[Cell]:
        yield self.low
        yield self.center
        yield self.high


def _default_gravity() -> Vector:
    return Vector(0.0, 0.0, -c.GRAVITATIONAL_ACCELERATION)


def obstacle_to_value(
    obstacle: Cell, wrt: Cell, gravity: typing.Optional[Vector] = None
) -> Cell:
    """
    Replace an obstacle cell by a fluid-valued image for stencil purposes.

    The image keeps the obstacle's position, has zero velocity (no-slip wall) and
    a pressure extrapolated from `wrt` under hydrostatic equilibrium:

    p = p_wrt + (x_obstacle - x_wrt) · (ρ_wrt·g)

    :param obstacle: The obstacle cell.
    :param wrt: The fluid cell the pressure is extrapolated from.
    :param gravity: Gravitational acceleration vector. Defaults to (0, 0, -g).
    :return: A fluid view of `obstacle`.
    """
    if gravity is None:
        gravity = _default_gravity()
    pressure = wrt.pressure + (obstacle.position - wrt.position).dot(
        gravity * wrt.density
    )
    return obstacle.with_type(FLUID).with_velocity(ZERO).with_pressure(pressure)


def _unhandled(triplet: CellTriplet, axis: typing.Optional[Axis], message: str):
    return TopologyError(
        message, axis=axis, positions=triplet.positions, types=triplet.types
    )


def transform(
    triplet: CellTriplet,
    axis: typing.Optional[Axis] = None,
    gravity: typing.Optional[Vector] = None,
) -> CellTriplet:
    """
    Rewrite a triplet until it is (FLUID, FLUID, FLUID) or (FLUID, FLUID, UNKNOWN).

    :param triplet: The (low, center, high) cells.
    :param axis: Axis of the triplet. Only used for error reporting.
    :param gravity: Gravitational acceleration used for obstacle images.
    :return: The rewritten triplet. Already usable triplets are returned as-is.
    :raises TopologyError: If the center is not fluid, or the combination has no rule.
    """
    low, center, high = triplet.types
    if center is OBSTACLE:
        raise _unhandled(triplet, axis, "Cannot derive at an obstacle cell")
    if center is not FLUID:
        raise _unhandled(triplet, axis, f"Cannot derive at a {center.value} cell")

    if low is FLUID and high in (FLUID, UNKNOWN):
        return triplet
    if low is UNKNOWN and high is FLUID:
        mirrored = triplet.low.with_position(
            triplet.center.position * 2.0 - triplet.high.position
        )
        return transform(
            CellTriplet(triplet.high, triplet.center, mirrored), axis, gravity
        )
    if high is OBSTACLE:
        image = obstacle_to_value(triplet.high, triplet.center, gravity)
        return transform(CellTriplet(triplet.low, triplet.center, image), axis, gravity)
    if low is OBSTACLE:
        image = obstacle_to_value(triplet.low, triplet.center, gravity)
        return transform(CellTriplet(image, triplet.center, triplet.high), axis, gravity)
    raise _unhandled(triplet, axis, "Unhandled cell type combination")


def derivative(
    cell: Cell,
    axis: Axis,
    func: CellFunction,
    order: DerivativeOrder = DerivativeOrder.FIRST,
    gravity: typing.Optional[Vector] = None,
) -> float:
    """
    Derivative of `func` along `axis` at `cell`.

    When only two points are usable (the far end is UNKNOWN), the first
    derivative is the secant slope between low and center, and the second
    derivative is 0.

    :param cell: The cell to derive at. Must be fluid.
    :param axis: Axis to derive along.
    :param func: Scalar quantity to differentiate.
    :param order: First or second derivative.
    :param gravity: Gravitational acceleration used for obstacle images.
    :return: The derivative.
    :raises TopologyError: If no stencil can be built around `cell`.
    :raises ComputationError: If the result is not finite.
    """
    order = DerivativeOrder(order)
    triplet = transform(CellTriplet.around(cell, axis), axis, gravity)
    low, center, high = triplet
    xa = low.position.value(axis)
    xb = center.position.value(axis)

    if high.type is FLUID:
        xc = high.position.value(axis)
        fa = validate(func(low), "stencil value")
        fb = validate(func(center), "stencil value")
        fc = validate(func(high), "stencil value")
        if order == DerivativeOrder.FIRST:
            result = three_point_first_derivative(fa, fb, fc, xb - xa, xc - xb)
        else:
            result = three_point_second_derivative(fa, fb, fc, xb - xa, xc - xb)
    elif order == DerivativeOrder.FIRST:
        fa = validate(func(low), "stencil value")
        fb = validate(func(center), "stencil value")
        result = two_point_first_derivative(fa, fb, xa, xb)
    else:
        result = 0.0

    if not np.isfinite(result):
        raise ComputationError(
            f"Invalid {order.name.lower()} derivative along {axis.value} at "
            f"{tuple(cell.address)}: {result}",
            value=result,
        )
    return float(result)


def _pressure(cell: Cell) -> float:
    return cell.pressure


def _velocity_component(axis: Axis) -> CellFunction:
    return lambda cell: cell.velocity.value(axis)


@attrs.frozen(slots=True)
class StencilEvaluator:
    """
    Derivatives of cell fields, all funnelled through `derivative`.

    ```python
    stencil = StencilEvaluator(gravity=Vector(0, 0, -9.80665))
    stencil.pressure_gradient(cell)
    stencil.velocity_jacobian(cell) @ cell.velocity
    ```
    """

    gravity: Vector = attrs.field(factory=_default_gravity)
    """Gravitational acceleration used for obstacle images."""

    def derivative(
        self,
        cell: Cell,
        axis: Axis,
        func: CellFunction,
        order: DerivativeOrder = DerivativeOrder.FIRST,
    ) -> float:
        return derivative(cell, axis, func, order, self.gravity)

    def gradient(self, cell: Cell, func: CellFunction) -> Vector:
        """First derivatives of `func` along each axis."""
        return Vector.create(lambda axis: self.derivative(cell, axis, func))

    def laplacian(self, cell: Cell, func: CellFunction) -> float:
        """Sum of the second derivatives of `func` along each axis."""
        return sum(
            self.derivative(cell, axis, func, DerivativeOrder.SECOND) for axis in AXES
        )

    def pressure_gradient(self, cell: Cell) -> Vector:
        return self.gradient(cell, _pressure)

    def pressure_laplacian(self, cell: Cell) -> float:
        return self.laplacian(cell, _pressure)

    def velocity_gradient(self, cell: Cell, axis: Axis) -> Vector:
        """Derivative of the velocity vector along `axis`."""
        return Vector.create(
            lambda component: self.derivative(
                cell, axis, _velocity_component(component)
            )
        )

    def velocity_jacobian(self, cell: Cell) -> Matrix:
        """Matrix whose row for each axis is `velocity_gradient` along that axis."""
        return Matrix.create(lambda axis: self.velocity_gradient(cell, axis))

    def velocity_laplacian(self, cell: Cell) -> Vector:
        """Laplacian of each velocity component."""
        return Vector.create(
            lambda component: self.laplacian(cell, _velocity_component(component))
        )
