"""Tests for the per-cell time advance."""

import pytest

from eddies import (
    CellType,
    Config,
    GridAddress,
    Stepper,
    Vector,
    build_mesh,
    fixed_topology,
)

from conftest import fluid, obstacle, unknown

VELOCITY_TOLERANCE = 1e-7
PRESSURE_TOLERANCE = 0.01


def assert_at_rest(stepper, cell, time_step):
    result = stepper.step(cell, time_step)
    for component in result.velocity:
        assert component == pytest.approx(0.0, abs=VELOCITY_TOLERANCE)
    assert result.pressure == pytest.approx(cell.pressure, abs=PRESSURE_TOLERANCE)
    assert result.converged


class TestStillWater:
    @pytest.mark.parametrize("time_step", [0.01, 1.0, 100.0])
    def test_every_cell_stays_at_rest(self, still_water, stepper, time_step):
        for address in still_water.addresses((4, 4, 3)):
            assert_at_rest(stepper, still_water.cell(address), time_step)

    def test_single_layer_with_anisotropic_cells(self, shallow_water, stepper):
        for address in shallow_water.addresses((5, 3, 1)):
            assert_at_rest(stepper, shallow_water.cell(address), 1.0)

    def test_corner_cells(self, still_water, stepper):
        for address in [(0, 0, 0), (3, 3, 2), (0, 3, 2), (3, 0, 0)]:
            assert_at_rest(stepper, still_water.cell(address), 10.0)

    def test_lighter_fluid(self, stepper):
        mesh = build_mesh(3, 3, 4, cell_size=2.0, density=998.0, viscosity=1.0)
        for address in mesh.addresses((3, 3, 4)):
            assert_at_rest(stepper, mesh.cell(address), 1.0)


class TestDrivenEdge:
    def test_boundary_cell_is_not_advanced(self, whirlpool, stepper):
        cell = whirlpool.cell((5, 9, 0))
        assert cell.is_boundary

        result = stepper.step(cell, 1.0)

        assert result.velocity == Vector(1.0, 0.0, 0.0)
        assert result.pressure == cell.pressure

    def test_driven_edge_accelerates_its_neighbour_east(self, whirlpool, stepper):
        result = stepper.step(whirlpool.cell((5, 8, 0)), 1.0)
        assert result.velocity.east > 0
        assert result.velocity.north == 0

    def test_neighbour_develops_north_velocity(self, whirlpool):
        mesh = whirlpool.step_multiple(1.0, 3)
        velocity = mesh.cell((5, 8, 0)).velocity
        assert velocity.north != 0
        assert velocity.is_finite()
        assert mesh.cell((5, 9, 0)).velocity == Vector(1.0, 0.0, 0.0)


class TestNonFluidCells:
    @pytest.mark.parametrize("address", [(0, 0, -1), (0, 0, 3), (-1, 2, 1)])
    def test_state_is_carried_over(self, still_water, stepper, address):
        cell = still_water.cell(address)
        assert cell.type is not CellType.FLUID
        assert stepper.step(cell, 1.0) == cell.state()


class TestPressureFallback:
    def test_non_convergence_keeps_prior_pressure(self, monkeypatch, whirlpool, stepper):
        monkeypatch.setattr("eddies.stepper.newton_solve", lambda *args, **kwargs: None)
        cell = whirlpool.cell((5, 8, 0))

        result = stepper.step(cell, 1.0)

        assert result.pressure == cell.pressure
        assert not result.converged
        assert result.velocity.east > 0

    def test_negative_root_keeps_prior_pressure(self, monkeypatch, whirlpool, stepper):
        monkeypatch.setattr("eddies.stepper.newton_solve", lambda *args, **kwargs: -5.0)
        cell = whirlpool.cell((5, 8, 0))

        result = stepper.step(cell, 1.0)

        assert result.pressure == cell.pressure
        assert not result.converged

    def test_solver_receives_configured_parameters(self, monkeypatch, whirlpool):
        received = {}

        def fake_solve(func, x0, step, precision, max_iterations):
            received.update(
                x0=x0, step=step, precision=precision, max_iterations=max_iterations
            )
            return x0 + 1.0

        monkeypatch.setattr("eddies.stepper.newton_solve", fake_solve)
        stepper = Stepper(
            Config(pressure_step=5.0, pressure_tolerance=0.5, pressure_max_iterations=3)
        )
        cell = whirlpool.cell(GridAddress(5, 8, 0))

        result = stepper.step(cell, 1.0)

        assert received == {
            "x0": cell.pressure,
            "step": 5.0,
            "precision": 0.5,
            "max_iterations": 3,
        }
        assert result.pressure == cell.pressure + 1.0
        assert result.converged


class TestContinuity:
    def test_residual_vanishes_for_hydrostatic_rest(self, still_water, stepper):
        cell = still_water.cell((1, 1, 1))
        residual = stepper.continuity(cell, Vector(0, 0, 0), cell.pressure)
        assert residual == pytest.approx(0.0, abs=1e-6)

    def test_wall_image_is_not_derived_through(self, stepper):
        # Only the east wall is present; its own neighbours are not
        resolve = fixed_topology(
            {
                (-1, 0, 0): fluid((-1.0, 0.0, 0.0)),
                (0, 0, 0): fluid((0.0, 0.0, 0.0), velocity=(1.0, 0.0, 0.0)),
                (1, 0, 0): obstacle((1.0, 0.0, 0.0)),
                (0, -1, 0): fluid((0.0, -1.0, 0.0)),
                (0, 1, 0): unknown((0.0, 1.0, 0.0)),
                (0, 0, -1): fluid((0.0, 0.0, -1.0)),
                (0, 0, 1): unknown((0.0, 0.0, 1.0)),
            }
        )
        cell = resolve(GridAddress(0, 0, 0))
        residual = stepper.continuity(cell, Vector(1.0, 0.0, 0.0), cell.pressure)
        assert residual == pytest.approx(0.0, abs=1e-9)

    def test_residual_decreases_with_pressure_in_the_interior(self, still_water, stepper):
        cell = still_water.cell((1, 1, 1))
        low = stepper.continuity(cell, Vector(0, 0, 0), cell.pressure - 10.0)
        high = stepper.continuity(cell, Vector(0, 0, 0), cell.pressure + 10.0)
        assert low > 0 > high


class TestConfig:
    @pytest.mark.parametrize(
        "options",
        [
            {"pressure_step": 0.0},
            {"pressure_tolerance": -1.0},
            {"pressure_max_iterations": 0},
            {"log_interval": 0},
        ],
    )
    def test_invalid_values_are_rejected(self, options):
        with pytest.raises(ValueError):
            Config(**options)

    def test_gravity_points_down(self):
        assert Config().gravity == Vector(0.0, 0.0, -9.80665)
