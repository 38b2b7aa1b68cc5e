"""Summary statistics over the materialised cells of a mesh."""

import logging
import typing

import attrs
import numpy as np

from eddies.cells import Cell
from eddies.mesh import Mesh, SteppedCellData

logger = logging.getLogger(__name__)

__all__ = [
    "FieldStatistics",
    "field_statistics",
    "pressure_statistics",
    "speed_statistics",
    "count_pressure_fallbacks",
]


@attrs.frozen
class FieldStatistics:
    """Statistics of a per-cell scalar over a set of cells."""

    count: int
    """Number of cells."""
    sum: float
    """Sum of values."""
    sum_of_squares: float
    """Sum of squared values."""
    minimum: float
    """Smallest value. NaN when there are no cells."""
    maximum: float
    """Largest value. NaN when there are no cells."""

    @classmethod
    def from_values(cls, values: typing.Iterable[float]) -> "FieldStatistics":
        array = np.fromiter(values, dtype=np.float64)
        if array.size == 0:
            return cls(count=0, sum=0.0, sum_of_squares=0.0, minimum=np.nan, maximum=np.nan)
        return cls(
            count=int(array.size),
            sum=float(array.sum()),
            sum_of_squares=float(np.square(array).sum()),
            minimum=float(array.min()),
            maximum=float(array.max()),
        )

    @property
    def mean(self) -> float:
        if self.count == 0:
            return np.nan
        return self.sum / self.count

    @property
    def variance(self) -> float:
        """Population variance."""
        if self.count == 0:
            return np.nan
        mean = self.mean
        return max(self.sum_of_squares / self.count - mean * mean, 0.0)

    @property
    def standard_deviation(self) -> float:
        return float(np.sqrt(self.variance))


def _fluid_cells(mesh: Mesh) -> typing.Iterator[Cell]:
    for cell in mesh.cells():
        if cell.is_fluid:
            yield cell


def field_statistics(
    mesh: Mesh, func: typing.Callable[[Cell], float]
) -> FieldStatistics:
    """
    Statistics of `func` over the fluid cells materialised so far.

    Reading velocity or pressure of a stepped cell evaluates its time advance.

    :param mesh: The mesh to summarise.
    :param func: Scalar read from each cell.
    :return: The statistics.
    """
    return FieldStatistics.from_values(func(cell) for cell in _fluid_cells(mesh))


def pressure_statistics(mesh: Mesh) -> FieldStatistics:
    """Pressure statistics (Pa) over the materialised fluid cells."""
    return field_statistics(mesh, lambda cell: cell.pressure)


def speed_statistics(mesh: Mesh) -> FieldStatistics:
    """Speed statistics (m/s) over the materialised fluid cells."""
    return field_statistics(mesh, lambda cell: cell.velocity.norm())


def count_pressure_fallbacks(mesh: Mesh) -> int:
    """
    Number of cells whose pressure solve was rejected in the last time step.

    Only cells whose time advance has already been evaluated are counted.
    Returns 0 for a mesh that has not been stepped.
    """
    count = 0
    for cell in mesh.cells():
        data = cell.data
        if (
            isinstance(data, SteppedCellData)
            and data.evaluated
            and not data.velocity_pressure.converged
        ):
            count += 1
    if count:
        logger.debug(
            f"{count} cells kept their prior pressure at step {mesh.step_count}"
        )
    return count
