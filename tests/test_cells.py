import pytest

from conftest import fluid, obstacle

from eddies import (
    Axis,
    Cell,
    CellData,
    CellState,
    CellType,
    GridAddress,
    ValidationError,
    Vector,
    fixed_topology,
)


def test_air_is_an_alias_of_unknown():
    assert CellType.AIR is CellType.UNKNOWN


def test_grid_address_is_a_value_type():
    assert GridAddress(1, 2, 3) == GridAddress(1, 2, 3)
    assert hash(GridAddress(1, 2, 3)) == hash(GridAddress(1, 2, 3))
    assert GridAddress(1, 2, 3).moved(Axis.NORTH, -4) == GridAddress(1, -2, 3)
    assert GridAddress(1, 2, 3).index(Axis.UP) == 3


def test_cell_state_satisfies_cell_data_protocol():
    assert isinstance(fluid((0.0, 0.0, 0.0)), CellData)


def test_overrides_do_not_touch_the_original():
    resolve = fixed_topology({(0, 0, 0): fluid((1.0, 2.0, 3.0), pressure=5.0)})
    cell = resolve(GridAddress(0, 0, 0))

    view = cell.with_pressure(7.0).with_velocity(Vector(1, 0, 0))
    assert view.pressure == 7.0
    assert view.velocity == Vector(1, 0, 0)
    assert view.position == Vector(1, 2, 3)
    assert view.density == cell.density

    assert cell.pressure == 5.0
    assert cell.velocity == Vector(0, 0, 0)

    moved = view.with_position(Vector(9, 9, 9)).with_type(CellType.OBSTACLE)
    assert moved.position == Vector(9, 9, 9)
    assert moved.type is CellType.OBSTACLE
    assert moved.pressure == 7.0
    assert view.type is CellType.FLUID


def test_zero_valued_overrides_are_applied():
    resolve = fixed_topology({(0, 0, 0): fluid((0.0, 0.0, 0.0), pressure=5.0)})
    assert resolve(GridAddress(0, 0, 0)).with_pressure(0.0).pressure == 0.0


def test_neighbour_walks_along_axis():
    resolve = fixed_topology(
        {
            (0, 0, 0): fluid((0.0, 0.0, 0.0)),
            (2, 0, 0): fluid((2.0, 0.0, 0.0)),
            (0, -1, 0): obstacle((0.0, -1.0, 0.0)),
        }
    )
    cell = resolve((0, 0, 0))
    assert cell.neighbour(Axis.EAST, 2).position == Vector(2, 0, 0)
    assert cell.neighbour(Axis.NORTH, -1).type is CellType.OBSTACLE
    # Views keep the neighbours of the cell they were made from
    assert cell.with_pressure(1.0).neighbour(Axis.EAST, 2) is cell.neighbour(Axis.EAST, 2)


def test_fixed_topology_caches_and_rejects_missing_addresses():
    resolve = fixed_topology({(0, 0, 0): fluid((0.0, 0.0, 0.0))})
    assert resolve((0, 0, 0)) is resolve(GridAddress(0, 0, 0))
    with pytest.raises(ValidationError):
        resolve((1, 0, 0))


def test_state_returns_velocity_and_pressure():
    data = CellState(
        type=CellType.FLUID, position=Vector(0, 0, 0), pressure=3.0, velocity=Vector(1, 2, 3)
    )
    state = Cell(data, GridAddress(0, 0, 0), lambda address: None).state()
    assert state.velocity == Vector(1, 2, 3)
    assert state.pressure == 3.0
    assert state.converged
