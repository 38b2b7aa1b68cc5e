import typing

__all__ = [
    "EddiesError",
    "ValidationError",
    "TopologyError",
    "ComputationError",
]


class EddiesError(Exception):
    """Base class for all eddies-related errors."""

    pass


class ValidationError(EddiesError, ValueError):
    """Raised when input data or configuration fails validation checks."""

    pass


class TopologyError(EddiesError):
    """
    Raised when a stencil cannot be built around a cell.

    This signals a gap in the cell-type classification (a derivative centred on
    a non-fluid cell, or a neighbour combination with no rewrite rule), never a
    boundary condition that callers are expected to handle.
    """

    def __init__(
        self,
        message: str,
        *,
        axis: typing.Any = None,
        positions: typing.Sequence[typing.Any] = (),
        types: typing.Sequence[typing.Any] = (),
    ) -> None:
        self.axis = axis
        """The axis along which the stencil was requested."""
        self.positions = tuple(positions)
        """Positions of the (low, center, high) cells."""
        self.types = tuple(types)
        """Types of the (low, center, high) cells."""
        details = [message]
        if axis is not None:
            details.append(f"axis={axis}")
        if self.types:
            details.append(f"types={self.types}")
        if self.positions:
            details.append(f"positions={self.positions}")
        super().__init__(", ".join(details))


class ComputationError(EddiesError, ArithmeticError):
    """Raised when a numerical computation produces a non-finite value."""

    def __init__(self, message: str, value: typing.Any = None) -> None:
        self.value = value
        """The offending value."""
        super().__init__(message)
