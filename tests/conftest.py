"""Pytest configuration and fixtures for the eddies test-suite."""

import typing

import pytest

from eddies import (
    CellState,
    CellType,
    GridAddress,
    Mesh,
    Stepper,
    Vector,
    build_mesh,
    fixed_topology,
    pressure_at_depth,
)

WHIRLPOOL_CELLS = 10


def whirlpool_type(address: GridAddress) -> CellType:
    """Floored bottom, obstacle sides and an open north edge."""
    last = WHIRLPOOL_CELLS - 1
    if address.up < 0:
        return CellType.OBSTACLE
    if address.up > 0:
        return CellType.UNKNOWN
    if address.east <= 0 or address.east >= last:
        if address.north == last:
            return CellType.UNKNOWN
        return CellType.OBSTACLE
    if address.north <= 0:
        return CellType.OBSTACLE
    if address.north > last:
        return CellType.UNKNOWN
    return CellType.FLUID


def whirlpool_velocity(address: GridAddress) -> Vector:
    if address.north == WHIRLPOOL_CELLS - 1:
        return Vector(1.0, 0.0, 0.0)
    return Vector(0.0, 0.0, 0.0)


@pytest.fixture
def still_water() -> Mesh:
    """Hydrostatic, resting 4x4x3 body of water with unit cells."""
    return build_mesh(cells_east=4, cells_north=4, cells_up=3)


@pytest.fixture
def shallow_water() -> Mesh:
    """Hydrostatic, resting single-layer body of water with anisotropic cells."""
    return build_mesh(cells_east=5, cells_north=3, cells_up=1, cell_size=(2.0, 0.5, 1.5))


@pytest.fixture
def whirlpool() -> Mesh:
    """10x10 single-layer basin whose north edge is driven east at 1 m/s."""
    return build_mesh(
        cells_east=WHIRLPOOL_CELLS,
        cells_north=WHIRLPOOL_CELLS,
        cells_up=1,
        cell_size=1.0,
        type_function=whirlpool_type,
        velocity_function=whirlpool_velocity,
        boundary_function=lambda address: address.north == WHIRLPOOL_CELLS - 1,
    )


@pytest.fixture
def stepper() -> Stepper:
    return Stepper()


def fluid(
    position: typing.Tuple[float, float, float],
    pressure: float = 101325.0,
    velocity: typing.Tuple[float, float, float] = (0.0, 0.0, 0.0),
) -> CellState:
    return CellState(
        type=CellType.FLUID,
        position=Vector(*position),
        pressure=pressure,
        velocity=Vector(*velocity),
    )


def obstacle(position: typing.Tuple[float, float, float]) -> CellState:
    return CellState(type=CellType.OBSTACLE, position=Vector(*position), pressure=0.0)


def unknown(position: typing.Tuple[float, float, float]) -> CellState:
    return CellState(type=CellType.UNKNOWN, position=Vector(*position), pressure=0.0)


@pytest.fixture
def water_column():
    """
    Resolver over a vertical column: obstacle floor at z=-1, fluid at z=0 and z=1,
    nothing above. Pressures are hydrostatic for a surface at z=1.
    """
    return fixed_topology(
        {
            (0, 0, -1): obstacle((0.0, 0.0, -1.0)),
            (0, 0, 0): fluid((0.0, 0.0, 0.0), pressure=pressure_at_depth(1.0)),
            (0, 0, 1): fluid((0.0, 0.0, 1.0), pressure=pressure_at_depth(0.0)),
            (0, 0, 2): unknown((0.0, 0.0, 2.0)),
        }
    )
