import attrs

from eddies.constants import Constants
from eddies.vectors import Vector

__all__ = ["Config"]


@attrs.frozen
class Config:
    """Time stepping configuration and parameters."""

    pressure_step: float = attrs.field(default=100.0, validator=attrs.validators.gt(0))
    """Forward-difference spacing (Pa) used to estimate the derivative in the pressure solve."""
    pressure_tolerance: float = attrs.field(
        default=10.0, validator=attrs.validators.gt(0)
    )
    """The pressure solve is accepted once the continuity residual is within this bound."""
    pressure_max_iterations: int = attrs.field(
        default=15, validator=attrs.validators.ge(1)
    )
    """
    Maximum number of Newton updates per cell in the pressure solve.

    If the solve does not converge within this limit, the cell keeps its prior pressure.
    """
    log_interval: int = attrs.field(default=1, validator=attrs.validators.ge(1))
    """Interval (in time steps) at which multi-step runs log progress."""
    constants: Constants = attrs.field(factory=Constants)
    """Physical constants used in the simulation."""

    @property
    def gravity(self) -> Vector:
        """Gravitational acceleration vector, pointing down."""
        return Vector(0.0, 0.0, -self.constants.GRAVITATIONAL_ACCELERATION)
