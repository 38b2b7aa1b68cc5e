"""Physical constants used by the simulator"""

from contextvars import ContextVar
import typing

import attrs


__all__ = [
    "Constant",
    "Constants",
    "c",
    "ConstantsContext",
    "get_constant",
    "pressure_at_depth",
]


@attrs.frozen(slots=True)
class Constant:
    """
    A constant value with optional description and unit.
    """

    value: typing.Any
    """The actual value of the constant."""

    description: typing.Optional[str] = None
    """Optional description of what this constant represents."""

    unit: typing.Optional[str] = None
    """Optional unit of measurement for this constant."""

    def __str__(self) -> str:
        return f"{self.value}{self.unit or ''}"


DEFAULT_CONSTANTS: typing.Dict[str, typing.Union[typing.Any, Constant]] = {
    "GRAVITATIONAL_ACCELERATION": Constant(
        value=9.80665, description="Standard gravitational acceleration", unit="m/s²"
    ),
    "SEA_LEVEL_PRESSURE": Constant(
        value=101325.0, description="Atmospheric pressure at sea level", unit="Pa"
    ),
    "SEAWATER_DENSITY": Constant(
        value=1025.0, description="Mean density of sea water", unit="kg/m³"
    ),
    "SEAWATER_VISCOSITY": Constant(
        value=30.0,
        description="Effective (eddy) viscosity of sea water used by default",
        unit="Pa·s",
    ),
}


class Constants:
    """
    Physical constants used by the simulator.

    Constants are kept in an internal store and read with dot notation, which
    returns the raw value. Bracket access returns the `Constant` with its metadata.

    ```python
    constants = Constants()
    constants.GRAVITATIONAL_ACCELERATION  # 9.80665
    constants["SEA_LEVEL_PRESSURE"].unit  # "Pa"
    constants.SEAWATER_DENSITY = 1000.0
    ```
    """

    __slots__ = ("_store",)

    def __new__(cls, **overrides: typing.Any) -> "Constants":
        instance = super().__new__(cls)
        instance._store = {}
        return instance

    def __init__(self, **overrides: typing.Any) -> None:
        """
        Initialize the store with the defaults, then apply any overrides.

        :param overrides: Constant values (raw or `Constant`) keyed by name.
        """
        for name, value in {**DEFAULT_CONSTANTS, **overrides}.items():
            self[name] = value

    def __getattr__(self, name: str) -> typing.Any:
        if name.startswith("_"):
            return object.__getattribute__(self, name)

        try:
            constant = self._store[name]
        except KeyError:
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{name}'"
            ) from None
        return constant.value

    def __setattr__(self, name: str, value: typing.Union[typing.Any, Constant]) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
        else:
            self[name] = value

    def __getitem__(self, name: str) -> Constant:
        return self._store[name]

    def __setitem__(self, name: str, value: typing.Union[typing.Any, Constant]) -> None:
        if isinstance(value, Constant):
            self._store[name] = value
        else:
            # Keep metadata of a known constant when only its value changes
            existing = self._store.get(name)
            if existing is not None:
                self._store[name] = attrs.evolve(existing, value=value)
            else:
                self._store[name] = Constant(value=value)

    def __contains__(self, name: str) -> bool:
        return name in self._store

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(constants={len(self._store)})"

    def keys(self) -> typing.KeysView[str]:
        return self._store.keys()

    def items(self) -> typing.ItemsView[str, Constant]:
        return self._store.items()

    def get(self, name: str, default: typing.Any = None) -> typing.Any:
        """Get a constant's value with a default fallback.

        :param name: Name of the constant
        :param default: Default value if constant doesn't exist
        :return: Value of the constant or default
        """
        constant = self._store.get(name)
        if constant is None:
            return default
        return constant.value

    def get_constant(
        self, name: str, default: typing.Optional[Constant] = None
    ) -> typing.Optional[Constant]:
        """Get a `Constant` object with a default fallback."""
        return self._store.get(name, default)

    def __call__(self) -> "ConstantsContext":
        """
        Create a context manager that temporarily makes this instance the one
        read through the global proxy `eddies.c`.
        """
        return ConstantsContext(self)


_constants_context: ContextVar[Constants] = ContextVar(
    "constants_context", default=Constants()
)


class ConstantsContext:
    """
    Context manager for temporary global `Constants` overrides.
    """

    def __init__(self, constants: Constants) -> None:
        self._new_constants = constants
        self._token = None

    def __enter__(self) -> Constants:
        self._token = _constants_context.set(self._new_constants)
        return self._new_constants

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if self._token is not None:
            _constants_context.reset(self._token)


class _ConstantsProxy:
    """
    Proxy to the current context's `Constants` instance.
    """

    @property
    def _constants(self) -> Constants:
        return _constants_context.get()

    def __getattr__(self, name: str) -> typing.Any:
        return getattr(self._constants, name)

    def __getitem__(self, name: str) -> Constant:
        return self._constants[name]


c = _ConstantsProxy()
"""Global proxy to access physical constants."""


def get_constant(name: str) -> typing.Optional[Constant]:
    """Get a `Constant` object by name from the global constants.

    :param name: Name of the constant
    :return: `Constant` object or None if not found
    """
    return c._constants.get_constant(name)


def pressure_at_depth(
    depth: float,
    density: typing.Optional[float] = None,
    constants: typing.Optional[Constants] = None,
) -> float:
    """
    Hydrostatic pressure below the surface of a resting fluid column.

    p = p_sea_level + ρ·g·depth

    :param depth: Depth below the surface in metres.
    :param density: Fluid density in kg/m³. Defaults to sea water.
    :param constants: Constants to read from. Defaults to the global constants.
    :return: Pressure in Pa.
    """
    constants = constants if constants is not None else c._constants
    if density is None:
        density = constants.SEAWATER_DENSITY
    return (
        constants.SEA_LEVEL_PRESSURE
        + density * depth * constants.GRAVITATIONAL_ACCELERATION
    )
