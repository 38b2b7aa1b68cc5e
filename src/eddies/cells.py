import typing

import attrs

from eddies.errors import ValidationError
from eddies.types import Axis, CellType, GridAddress
from eddies.vectors import ZERO, Vector

__all__ = [
    "CellData",
    "CellState",
    "CellOverrides",
    "Cell",
    "VelocityPressure",
    "NeighbourResolver",
    "CellFactory",
    "fixed_topology",
]


@typing.runtime_checkable
class CellData(typing.Protocol):
    """
    Protocol for the read-only physical state of a single grid point.
    """

    @property
    def type(self) -> CellType:
        """Role of the cell in the domain."""
        ...

    @property
    def position(self) -> Vector:
        """Position in physical space (m)."""
        ...

    @property
    def pressure(self) -> float:
        """Pressure (Pa)."""
        ...

    @property
    def velocity(self) -> Vector:
        """Velocity (m/s)."""
        ...

    @property
    def density(self) -> float:
        """Density (kg/m³)."""
        ...

    @property
    def viscosity(self) -> float:
        """Viscosity."""
        ...

    @property
    def is_boundary(self) -> bool:
        """Whether the state is externally fixed and exempt from time stepping."""
        ...


@attrs.frozen(slots=True)
class CellState:
    """
    Eagerly evaluated cell data.
    """

    type: CellType
    """Role of the cell in the domain."""
    position: Vector
    """Position in physical space (m)."""
    pressure: float
    """Pressure (Pa)."""
    velocity: Vector = ZERO
    """Velocity (m/s)."""
    density: float = 1025.0
    """Density (kg/m³)."""
    viscosity: float = 30.0
    """Viscosity."""
    is_boundary: bool = False
    """Whether the state is externally fixed and exempt from time stepping."""


@attrs.frozen(slots=True)
class VelocityPressure:
    """Result of advancing one cell by one time step."""

    velocity: Vector
    pressure: float
    converged: bool = True
    """False when the pressure solve was rejected and the prior pressure kept."""


NeighbourResolver = typing.Callable[[GridAddress], "Cell"]
"""Resolves a grid address to the cell at that address."""

CellFactory = typing.Callable[[GridAddress], CellData]
"""Produces the data of the cell at a grid address."""


@attrs.frozen(slots=True)
class CellOverrides:
    """Fields replaced on a cell view. `None` means "not overridden"."""

    type: typing.Optional[CellType] = None
    position: typing.Optional[Vector] = None
    pressure: typing.Optional[float] = None
    velocity: typing.Optional[Vector] = None


_NO_OVERRIDES = CellOverrides()


@attrs.frozen(slots=True, eq=False)
class Cell:
    """
    A cell of a mesh (or of any other topology that can resolve addresses).

    Field reads go to the overrides first and fall back to the underlying data.
    `with_*` methods return new views over the same data and the same neighbours,
    leaving this cell untouched, so trial states can be evaluated without
    touching the mesh.

    Cells compare by identity.
    """

    data: CellData
    """Underlying cell data."""
    address: GridAddress
    """Grid address of the cell."""
    resolver: NeighbourResolver = attrs.field(repr=False)
    """Resolves neighbouring addresses to cells."""
    overrides: CellOverrides = _NO_OVERRIDES
    """Fields replaced on this view."""

    @property
    def type(self) -> CellType:
        type_ = self.overrides.type
        return self.data.type if type_ is None else type_

    @property
    def position(self) -> Vector:
        position = self.overrides.position
        return self.data.position if position is None else position

    @property
    def pressure(self) -> float:
        pressure = self.overrides.pressure
        return self.data.pressure if pressure is None else pressure

    @property
    def velocity(self) -> Vector:
        velocity = self.overrides.velocity
        return self.data.velocity if velocity is None else velocity

    @property
    def density(self) -> float:
        return self.data.density

    @property
    def viscosity(self) -> float:
        return self.data.viscosity

    @property
    def is_boundary(self) -> bool:
        return self.data.is_boundary

    @property
    def is_fluid(self) -> bool:
        return self.type is CellType.FLUID

    def neighbour(self, axis: Axis, offset: int = 1) -> "Cell":
        """
        Return the cell `offset` steps away along `axis`.

        :param axis: Axis to walk along.
        :param offset: Number of cells to walk. Negative walks backwards.
        :return: The neighbouring cell, as resolved by this cell's resolver.
        """
        return self.resolver(self.address.moved(axis, offset))

    def _with(self, **changes: typing.Any) -> "Cell":
        return attrs.evolve(self, overrides=attrs.evolve(self.overrides, **changes))

    def with_pressure(self, pressure: float) -> "Cell":
        return self._with(pressure=pressure)

    def with_velocity(self, velocity: Vector) -> "Cell":
        return self._with(velocity=velocity)

    def with_position(self, position: Vector) -> "Cell":
        return self._with(position=position)

    def with_type(self, type_: CellType) -> "Cell":
        return self._with(type=type_)

    def state(self) -> VelocityPressure:
        """The current (velocity, pressure) pair."""
        return VelocityPressure(velocity=self.velocity, pressure=self.pressure)


def fixed_topology(
    cells: typing.Mapping[typing.Tuple[int, int, int], CellData],
) -> NeighbourResolver:
    """
    Build a resolver over a fixed set of cells.

    Useful for hand-built stencils where only a few cells around a centre exist.
    Resolved cells are cached, so repeated lookups return the same `Cell`.

    ```python
    resolve = fixed_topology({(0, 0, 0): centre, (0, 0, 1): above, ...})
    cell = resolve(GridAddress(0, 0, 0))
    ```

    :param cells: Cell data keyed by (east, north, up) address.
    :return: A resolver. It raises `ValidationError` for addresses not in `cells`.
    """
    data = {GridAddress(*address): value for address, value in cells.items()}
    resolved: typing.Dict[GridAddress, Cell] = {}

    def resolve(address: GridAddress) -> Cell:
        address = GridAddress(*address)
        cell = resolved.get(address)
        if cell is not None:
            return cell
        try:
            cell_data = data[address]
        except KeyError:
            raise ValidationError(f"No cell at address {tuple(address)}") from None
        return resolved.setdefault(address, Cell(cell_data, address, resolve))

    return resolve
