import enum
import typing

from typing_extensions import TypeAlias


__all__ = [
    "Axis",
    "AXES",
    "CellType",
    "DerivativeOrder",
    "GridAddress",
    "ThreeDimensions",
]

T = typing.TypeVar("T")

ThreeDimensions: TypeAlias = typing.Tuple[int, int, int]
"""3D cell counts or indices"""


class Axis(enum.Enum):
    """
    Enum representing the spatial axes of the simulation.

    Positive directions are east, north and up respectively.
    """

    EAST = "east"
    NORTH = "north"
    UP = "up"


AXES: typing.Tuple[Axis, Axis, Axis] = (Axis.EAST, Axis.NORTH, Axis.UP)
"""All axes, in component order."""


class CellType(enum.Enum):
    """
    Enum representing the role of a cell in the simulated domain.

    A cell's type is fixed by its grid address and the mesh configuration,
    never by the simulation history.
    """

    FLUID = "fluid"
    """Inside the simulated domain, with meaningful velocity and pressure."""
    OBSTACLE = "obstacle"
    """Solid boundary, e.g. the sea floor or a wall."""
    UNKNOWN = "unknown"
    """Open or unspecified boundary, e.g. beyond the lateral extents."""
    AIR = "unknown"
    """Above the free surface. Alias of `UNKNOWN`."""


class DerivativeOrder(enum.IntEnum):
    """Order of a spatial derivative."""

    FIRST = 1
    SECOND = 2


class GridAddress(typing.NamedTuple):
    """
    Integer (east, north, up) index of a cell.

    Addresses outside the nominal domain are valid and resolve to boundary,
    obstacle or unknown cells.
    """

    east: int
    north: int
    up: int

    def index(self, axis: Axis) -> int:
        """Return the index along `axis`."""
        if axis is Axis.EAST:
            return self.east
        if axis is Axis.NORTH:
            return self.north
        return self.up

    def moved(self, axis: Axis, offset: int = 1) -> "GridAddress":
        """
        Return the address `offset` cells away along `axis`.

        :param axis: Axis to walk along.
        :param offset: Number of cells to walk. May be negative.
        :return: The neighbouring address.
        """
        if axis is Axis.EAST:
            return GridAddress(self.east + offset, self.north, self.up)
        if axis is Axis.NORTH:
            return GridAddress(self.east, self.north + offset, self.up)
        return GridAddress(self.east, self.north, self.up + offset)
