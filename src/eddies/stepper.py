"""Per-cell time advance of the incompressible Navier-Stokes equations."""

import logging
import typing

import attrs

from eddies.cells import Cell, VelocityPressure
from eddies.config import Config
from eddies.errors import ComputationError
from eddies.roots import newton_solve
from eddies.stencils import StencilEvaluator
from eddies.types import AXES, Axis, CellType
from eddies.vectors import ZERO, Vector

logger = logging.getLogger(__name__)

__all__ = ["Stepper"]


def _build_stencil(stepper: "Stepper") -> StencilEvaluator:
    return StencilEvaluator(gravity=stepper.config.gravity)


@attrs.frozen
class Stepper:
    """
    Advances a single cell by one time step.

    The velocity is advanced explicitly (advection, diffusion, pressure gradient
    and gravity), then the pressure is solved implicitly so that the discrete
    continuity constraint holds at the cell with the new velocity.

    The stepper holds no state between calls. It only reads the cell and its
    neighbours, so cells of the same snapshot can be stepped concurrently.

    ```python
    stepper = Stepper(Config(pressure_tolerance=1.0))
    result = stepper.step(mesh.cell((5, 5, 5)), time_step=0.1)
    result.velocity, result.pressure
    ```
    """

    config: Config = attrs.field(factory=Config)
    """Time stepping configuration."""
    stencil: StencilEvaluator = attrs.field(
        default=attrs.Factory(_build_stencil, takes_self=True), init=False, repr=False
    )

    def step(self, cell: Cell, time_step: float) -> VelocityPressure:
        """
        Advance `cell` by `time_step` seconds.

        Boundary cells and non-fluid cells keep their current state.

        :param cell: The cell to advance.
        :param time_step: Time step size in seconds.
        :return: The new (velocity, pressure).
        :raises TopologyError: If a stencil around the cell cannot be built.
        :raises ComputationError: If a derivative is not finite.
        """
        if cell.is_boundary or cell.type is not CellType.FLUID:
            return cell.state()

        velocity = self.velocity_after(cell, time_step)
        pressure = self.solve_pressure(cell, velocity)
        if pressure is None:
            return VelocityPressure(velocity, cell.pressure, converged=False)
        return VelocityPressure(velocity, pressure)

    def velocity_after(self, cell: Cell, time_step: float) -> Vector:
        """Explicit velocity after `time_step`."""
        return cell.velocity + self.acceleration(cell) * time_step

    def acceleration(self, cell: Cell) -> Vector:
        """
        Rate of change of velocity at `cell`.

        dv/dt = (μ·∇²v - ∇p) / ρ + g - J·v
        """
        stencil = self.stencil
        velocity_laplacian = stencil.velocity_laplacian(cell)
        pressure_gradient = stencil.pressure_gradient(cell)
        velocity_jacobian = stencil.velocity_jacobian(cell)
        stress_divergence = velocity_laplacian * cell.viscosity - pressure_gradient
        acceleration = (
            stress_divergence / cell.density
            + self.config.gravity
            - velocity_jacobian @ cell.velocity
        )
        if not acceleration.is_finite():
            raise ComputationError(
                f"Invalid acceleration at {tuple(cell.address)}: {acceleration}",
                value=acceleration,
            )
        return acceleration

    def continuity(self, cell: Cell, velocity: Vector, pressure: float) -> float:
        """
        Discrete continuity residual at `cell` for a trial pressure.

        The residual is evaluated on a view of `cell` whose velocity is `velocity`
        and whose pressure is `pressure`; neighbours are unchanged.

        :param cell: The cell being advanced.
        :param velocity: The explicitly advanced velocity of `cell`.
        :param pressure: Trial pressure.
        :return: ∇²p + Σ_axis v_axis · ∂/∂axis (∂v/∂axis · v)
        """
        trial = cell.with_velocity(velocity).with_pressure(pressure)
        stencil = self.stencil
        residual = stencil.pressure_laplacian(trial)
        for axis in AXES:
            component = velocity.value(axis)
            if component == 0.0:
                continue
            residual += component * stencil.derivative(
                trial, axis, self._gradient_dot(axis)
            )
        return residual

    def _gradient_dot(self, axis: Axis) -> typing.Callable[[Cell], float]:
        def gradient_dot(cell: Cell) -> float:
            # Resting cells, wall images included, contribute nothing
            if cell.velocity == ZERO:
                return 0.0
            return self.stencil.velocity_gradient(cell, axis).dot(cell.velocity)

        return gradient_dot

    def solve_pressure(self, cell: Cell, velocity: Vector) -> typing.Optional[float]:
        """
        Solve for the pressure that zeroes the continuity residual.

        Newton iteration starts from the cell's current pressure.

        :param cell: The cell being advanced.
        :param velocity: The explicitly advanced velocity of `cell`.
        :return: The new pressure, or None if the solve did not converge or
            converged to a negative pressure.
        """
        config = self.config
        pressure = newton_solve(
            lambda trial_pressure: self.continuity(cell, velocity, trial_pressure),
            cell.pressure,
            step=config.pressure_step,
            precision=config.pressure_tolerance,
            max_iterations=config.pressure_max_iterations,
        )
        if pressure is None:
            logger.debug(
                f"Pressure solve did not converge at {tuple(cell.address)} within "
                f"{config.pressure_max_iterations} iterations, keeping {cell.pressure:.4f} Pa"
            )
            return None
        if pressure < 0:
            logger.debug(
                f"Pressure solve at {tuple(cell.address)} converged to a negative "
                f"pressure ({pressure:.4f} Pa), keeping {cell.pressure:.4f} Pa"
            )
            return None
        return pressure
