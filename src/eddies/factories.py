import logging
import typing

import attrs

from eddies.cells import CellState
from eddies.config import Config
from eddies.constants import Constants, pressure_at_depth
from eddies.errors import ValidationError
from eddies.mesh import Mesh
from eddies.stepper import Stepper
from eddies.types import CellType, GridAddress, ThreeDimensions
from eddies.vectors import ZERO, Vector, to_vector

logger = logging.getLogger(__name__)

__all__ = ["CellCreator", "build_mesh"]

TypeFunction = typing.Callable[[GridAddress], CellType]
PositionFunction = typing.Callable[[GridAddress], Vector]
VelocityFunction = typing.Callable[[GridAddress], Vector]
PressureFunction = typing.Callable[[GridAddress], float]
BoundaryFunction = typing.Callable[[GridAddress], bool]


def _validate_cell_counts(
    instance: typing.Any, attribute: attrs.Attribute, value: ThreeDimensions
) -> None:
    if len(value) != 3 or any(count < 1 for count in value):
        raise ValidationError(
            f"{attribute.name} must be three positive cell counts, got {value}"
        )


def _validate_cell_size(
    instance: typing.Any, attribute: attrs.Attribute, value: Vector
) -> None:
    if not value.is_finite() or any(size <= 0 for size in value):
        raise ValidationError(
            f"{attribute.name} must be positive along every axis, got {value}"
        )


def _positive(
    instance: typing.Any, attribute: attrs.Attribute, value: float
) -> None:
    if not value > 0:
        raise ValidationError(f"{attribute.name} must be positive, got {value}")


@attrs.frozen
class CellCreator:
    """
    Cell factory for a rectangular body of water.

    The nominal domain is the box `[0, cells_east) x [0, cells_north) x [0, cells_up)`,
    with `up = cells_up - 1` being the surface layer. Every per-address quantity can be
    replaced by a custom function; the defaults describe still water resting on a
    flat floor:

    - type: FLUID inside the box, OBSTACLE below it, UNKNOWN everywhere else.
    - position: `(east * dx, north * dy, (up - cells_up + 1) * dz)`, so the
      surface layer sits at height 0 and deeper layers have negative heights.
    - pressure: hydrostatic pressure at the cell's depth.
    - velocity: zero.
    - boundary: no cell is a boundary cell.

    ```python
    creator = CellCreator(cell_dimension=(10, 10, 1), boundary_function=lambda a: a.north == 9)
    mesh = Mesh(creator, cell_size=creator.cell_size)
    ```
    """

    cell_dimension: ThreeDimensions = attrs.field(
        converter=tuple, validator=_validate_cell_counts
    )
    """Number of cells along east, north and up."""
    cell_size: Vector = attrs.field(
        default=Vector(1.0, 1.0, 1.0),
        converter=to_vector,
        validator=_validate_cell_size,
    )
    """Cell spacing along east, north and up (m)."""
    constants: Constants = attrs.field(factory=Constants, repr=False)
    """Physical constants for the default density, viscosity and pressure."""
    density: float = attrs.field(
        default=attrs.Factory(
            lambda self: self.constants.SEAWATER_DENSITY, takes_self=True
        ),
        validator=_positive,
    )
    """Fluid density (kg/m³)."""
    viscosity: float = attrs.field(
        default=attrs.Factory(
            lambda self: self.constants.SEAWATER_VISCOSITY, takes_self=True
        ),
        validator=_positive,
    )
    """Fluid viscosity."""
    type_function: typing.Optional[TypeFunction] = None
    position_function: typing.Optional[PositionFunction] = None
    velocity_function: typing.Optional[VelocityFunction] = None
    pressure_function: typing.Optional[PressureFunction] = None
    boundary_function: typing.Optional[BoundaryFunction] = None

    def default_type(self, address: GridAddress) -> CellType:
        east, north, up = self.cell_dimension
        if address.up < 0:
            return CellType.OBSTACLE
        if address.up > up - 1:
            return CellType.AIR
        if not 0 <= address.east < east or not 0 <= address.north < north:
            return CellType.UNKNOWN
        return CellType.FLUID

    def default_position(self, address: GridAddress) -> Vector:
        dx, dy, dz = self.cell_size
        return Vector(
            address.east * dx,
            address.north * dy,
            (address.up - self.cell_dimension[2] + 1) * dz,
        )

    def default_pressure(self, address: GridAddress) -> float:
        depth = (self.cell_dimension[2] - address.up - 1) * self.cell_size.up
        return pressure_at_depth(depth, density=self.density, constants=self.constants)

    def __call__(self, address: GridAddress) -> CellState:
        address = GridAddress(*address)
        type_function = self.type_function or self.default_type
        position_function = self.position_function or self.default_position
        pressure_function = self.pressure_function or self.default_pressure
        return CellState(
            type=type_function(address),
            position=position_function(address),
            pressure=float(pressure_function(address)),
            velocity=(
                self.velocity_function(address) if self.velocity_function else ZERO
            ),
            density=self.density,
            viscosity=self.viscosity,
            is_boundary=(
                bool(self.boundary_function(address))
                if self.boundary_function
                else False
            ),
        )


def build_mesh(
    cells_east: int,
    cells_north: int,
    cells_up: int,
    cell_size: typing.Union[Vector, typing.Sequence[float], float] = 1.0,
    density: typing.Optional[float] = None,
    viscosity: typing.Optional[float] = None,
    type_function: typing.Optional[TypeFunction] = None,
    position_function: typing.Optional[PositionFunction] = None,
    velocity_function: typing.Optional[VelocityFunction] = None,
    pressure_function: typing.Optional[PressureFunction] = None,
    boundary_function: typing.Optional[BoundaryFunction] = None,
    config: typing.Optional[Config] = None,
) -> Mesh:
    """
    Build a mesh over a rectangular body of water.

    See `CellCreator` for the defaults of the per-address functions.

    :param cells_east: Number of cells along east.
    :param cells_north: Number of cells along north.
    :param cells_up: Number of cells along up.
    :param cell_size: Cell spacing (m), either one value for all axes or one per axis.
    :param density: Fluid density (kg/m³). Defaults to sea water.
    :param viscosity: Fluid viscosity. Defaults to sea water.
    :param type_function: Classifies each address as FLUID, OBSTACLE or UNKNOWN.
    :param position_function: Maps each address to its physical position.
    :param velocity_function: Initial velocity at each address.
    :param pressure_function: Initial pressure at each address.
    :param boundary_function: Marks addresses whose state is held fixed.
    :param config: Time stepping configuration. Its constants also set the initial
        hydrostatic pressures and the default fluid properties.
    :return: The initial mesh.
    """
    options: typing.Dict[str, typing.Any] = {}
    if density is not None:
        options["density"] = density
    if viscosity is not None:
        options["viscosity"] = viscosity
    if config is not None:
        options["constants"] = config.constants

    creator = CellCreator(
        cell_dimension=(cells_east, cells_north, cells_up),
        cell_size=cell_size,
        type_function=type_function,
        position_function=position_function,
        velocity_function=velocity_function,
        pressure_function=pressure_function,
        boundary_function=boundary_function,
        **options,
    )
    logger.debug(
        f"Building mesh of {cells_east}x{cells_north}x{cells_up} cells "
        f"with cell size {tuple(creator.cell_size)} m"
    )
    stepper = Stepper(config) if config is not None else Stepper()
    return Mesh(creator, cell_size=creator.cell_size, stepper=stepper)
