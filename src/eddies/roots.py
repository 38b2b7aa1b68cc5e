import logging
import typing

from eddies.errors import ValidationError

logger = logging.getLogger(__name__)

__all__ = ["newton_solve"]


def _check_parameters(
    func: typing.Any, step: float, precision: float, max_iterations: int
) -> None:
    if func is None or not callable(func):
        raise ValidationError("`func` must be a callable")
    if not step > 0:
        raise ValidationError(f"`step` must be > 0, got {step}")
    if not precision > 0:
        raise ValidationError(f"`precision` must be > 0, got {precision}")
    if max_iterations < 1:
        raise ValidationError(
            f"`max_iterations` must be 1 or more, got {max_iterations}"
        )


def newton_solve(
    func: typing.Callable[[float], float],
    x0: float,
    step: float,
    precision: float,
    max_iterations: int,
) -> typing.Optional[float]:
    """
    Find a root of a scalar function with Newton's method.

    The derivative is estimated by the forward difference
    f'(x) ≈ (f(x + step) - f(x)) / step and the iterate updated with
    x ← x - f(x) / f'(x).

    :param func: The function whose root is sought.
    :param x0: Starting point.
    :param step: Forward-difference spacing. Must be > 0.
    :param precision: Accept `x` once |f(x)| <= precision. Must be > 0.
    :param max_iterations: Maximum number of Newton updates. Must be >= 1.
    :return: The root, or None if the estimated derivative vanished or the
        iteration budget ran out before reaching `precision`.
    :raises ValidationError: If any parameter is invalid.
    """
    _check_parameters(func, step, precision, max_iterations)
    x = x0
    fx = func(x)
    iteration = 1
    while abs(fx) > precision and iteration <= max_iterations:
        gradient = (func(x + step) - fx) / step
        if gradient == 0:
            logger.debug(f"Newton iteration stalled at x={x}: zero gradient")
            return None
        x = x - fx / gradient
        fx = func(x)
        iteration += 1

    if abs(fx) <= precision:
        return x
    return None
