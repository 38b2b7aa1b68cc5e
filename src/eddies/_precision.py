from contextlib import contextmanager
from contextvars import ContextVar

import numpy as np


__all__ = ["get_dtype", "with_precision"]

_grid_dtype: ContextVar[np.typing.DTypeLike] = ContextVar(
    "_grid_dtype", default=np.float64
)


def get_dtype() -> np.typing.DTypeLike:
    """Floating point type of the arrays built by `sample_grids`."""
    return _grid_dtype.get()


@contextmanager
def with_precision(dtype: np.typing.DTypeLike):
    """
    Sample grids in `dtype` within the context.

    ```python
    with with_precision(np.float32):
        grids = sample_grids(mesh, (10, 10, 1))
    ```
    """
    token = _grid_dtype.set(np.dtype(dtype).type)
    try:
        yield
    finally:
        _grid_dtype.reset(token)
