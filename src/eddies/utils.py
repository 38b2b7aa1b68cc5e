import threading
import typing

import numpy as np

from eddies.errors import ComputationError
from eddies.types import T

__all__ = ["Memoized", "validate"]


class Memoized(typing.Generic[T]):
    """
    Holder that computes a value at most once, on first access.

    Concurrent first readers are serialised on a lock and re-check before
    computing, so the supplier runs exactly once even under contention. Later
    readers take the lock-free path. If the supplier raises, nothing is stored
    and the next reader retries.

    ```python
    memo = Memoized(lambda: expensive())
    memo.get()  # computes
    memo.get()  # cached
    ```
    """

    __slots__ = ("_supplier", "_value", "_ready", "_lock")

    def __init__(self, supplier: typing.Callable[[], T]) -> None:
        self._supplier: typing.Optional[typing.Callable[[], T]] = supplier
        self._value: typing.Optional[T] = None
        self._ready = False
        self._lock = threading.Lock()

    @property
    def ready(self) -> bool:
        """Whether the value has been computed."""
        return self._ready

    def get(self) -> T:
        if not self._ready:
            with self._lock:
                if not self._ready:
                    supplier = typing.cast(typing.Callable[[], T], self._supplier)
                    self._value = supplier()
                    self._ready = True
                    # Drop the closure so earlier snapshots can be collected
                    self._supplier = None
        return typing.cast(T, self._value)

    def __repr__(self) -> str:
        if self._ready:
            return f"{type(self).__name__}({self._value!r})"
        return f"{type(self).__name__}(<pending>)"


def validate(value: float, what: str = "value") -> float:
    """
    Return `value` unchanged if it is finite.

    :param value: The number to check.
    :param what: Name of the quantity, used in the error message.
    :return: `value`
    :raises ComputationError: If `value` is NaN or infinite.
    """
    if not np.isfinite(value):
        raise ComputationError(f"Invalid {what}: {value}", value=value)
    return value
