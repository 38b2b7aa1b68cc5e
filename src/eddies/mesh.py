"""Lazily materialised, memoised cell meshes and their time evolution."""

from concurrent.futures import ThreadPoolExecutor
import functools
import itertools
import logging
import typing

import attrs
import numpy as np

from eddies.cells import Cell, CellFactory, VelocityPressure
from eddies.errors import ValidationError
from eddies.stepper import Stepper
from eddies.types import CellType, GridAddress, ThreeDimensions
from eddies.utils import Memoized
from eddies.vectors import Vector, to_vector

logger = logging.getLogger(__name__)

__all__ = ["Mesh", "SteppedCellData"]


class SteppedCellData:
    """
    Cell data of a stepped mesh.

    Static fields (type, position, density, viscosity, boundary flag) are
    copied from the cell of the previous snapshot. Velocity and pressure come
    from advancing that cell with the stepper, which happens once, on first
    read of either.
    """

    __slots__ = (
        "type",
        "position",
        "density",
        "viscosity",
        "is_boundary",
        "_result",
    )

    def __init__(self, previous: Cell, time_step: float, stepper: Stepper) -> None:
        self.type: CellType = previous.type
        self.position: Vector = previous.position
        self.density: float = previous.density
        self.viscosity: float = previous.viscosity
        self.is_boundary: bool = previous.is_boundary
        self._result: Memoized[VelocityPressure] = Memoized(
            functools.partial(stepper.step, previous, time_step)
        )

    @property
    def velocity_pressure(self) -> VelocityPressure:
        """Result of advancing the previous cell. Computed on first access."""
        return self._result.get()

    @property
    def evaluated(self) -> bool:
        """Whether the time advance has been computed."""
        return self._result.ready

    @property
    def velocity(self) -> Vector:
        return self._result.get().velocity

    @property
    def pressure(self) -> float:
        return self._result.get().pressure

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(type={self.type}, position={self.position}, "
            f"result={self._result!r})"
        )


@attrs.frozen(eq=False)
class Mesh:
    """
    An unbounded grid of cells, materialised on demand.

    Each address is materialised at most once per mesh: the first lookup calls
    `factory` and caches the resulting `Cell`, later lookups return the same
    instance. Lookups are safe from multiple threads.

    A mesh is never modified by time stepping. `step` returns a new mesh whose
    cells are advanced lazily from this one.

    ```python
    mesh = build_mesh(cells_east=10, cells_north=10, cells_up=10)
    later = mesh.step_multiple(time_step=0.1, steps=3)
    later.cell((5, 5, 5)).velocity
    ```
    """

    factory: CellFactory
    """Produces the data of the cell at an address."""
    cell_size: Vector = attrs.field(default=Vector(1.0, 1.0, 1.0), converter=to_vector)
    """Cell spacing along east, north and up (m)."""
    stepper: Stepper = attrs.field(factory=Stepper, repr=False)
    """Advances cells when the mesh is stepped."""
    time: float = 0.0
    """Simulated time of this snapshot (s)."""
    step_count: int = 0
    """Number of time steps taken to reach this snapshot."""
    _slots: typing.Dict[GridAddress, Memoized[Cell]] = attrs.field(
        factory=dict, init=False, repr=False
    )

    def cell(self, address: typing.Union[GridAddress, ThreeDimensions]) -> Cell:
        """
        Return the cell at `address`, materialising it on first access.

        Any integer address is valid. Addresses outside the nominal domain get
        whatever type the factory assigns them.

        :param address: (east, north, up) grid address.
        :return: The cell. Repeated calls with the same address return the same instance.
        """
        address = GridAddress(*address)
        slot = self._slots.get(address)
        if slot is None:
            # `setdefault` is atomic, so racing threads agree on one slot
            slot = self._slots.setdefault(
                address, Memoized(functools.partial(self._materialize, address))
            )
        return slot.get()

    def _materialize(self, address: GridAddress) -> Cell:
        return Cell(self.factory(address), address, self.cell)

    def cells(self) -> typing.Iterator[Cell]:
        """Iterate over the cells materialised so far, in no particular order."""
        for slot in tuple(self._slots.values()):
            if slot.ready:
                yield slot.get()

    @property
    def size(self) -> int:
        """Number of addresses looked up so far."""
        return len(self._slots)

    def __contains__(self, address: typing.Any) -> bool:
        try:
            slot = self._slots.get(GridAddress(*address))
        except TypeError:
            return False
        return slot is not None and slot.ready

    @staticmethod
    def addresses(shape: ThreeDimensions) -> typing.List[GridAddress]:
        """
        Enumerate the addresses of the box `[0, shape)` along each axis.

        :param shape: (cells_east, cells_north, cells_up)
        :return: Addresses in east-major order.
        """
        east, north, up = shape
        return [
            GridAddress(*indices)
            for indices in itertools.product(range(east), range(north), range(up))
        ]

    def realize(
        self,
        addresses: typing.Iterable[typing.Union[GridAddress, ThreeDimensions]],
        max_workers: typing.Optional[int] = None,
    ) -> typing.List[Cell]:
        """
        Materialise `addresses` and evaluate their velocity and pressure.

        For a stepped mesh this forces the time advance of each address. Work
        is spread over a thread pool; overlapping neighbour lookups are still
        computed once each.

        :param addresses: Addresses to evaluate.
        :param max_workers: Thread pool size. Defaults to the executor's default.
        :return: The cells, in the order of `addresses`.
        """
        addresses = [GridAddress(*address) for address in addresses]
        if not addresses:
            return []

        def _evaluate(address: GridAddress) -> Cell:
            cell = self.cell(address)
            cell.state()
            return cell

        logger.debug(
            f"Realizing {len(addresses)} cells at step {self.step_count} "
            f"(t={self.time:.4f} s)"
        )
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(_evaluate, addresses))

    def step(self, time_step: float) -> "Mesh":
        """
        Return the mesh one time step later.

        Nothing is computed up front. Each cell of the new mesh is advanced from
        this mesh the first time its velocity or pressure is read.

        :param time_step: Time step size in seconds.
        :return: The new mesh.
        """
        if not np.isfinite(time_step):
            raise ValidationError(f"Time step must be finite, got {time_step}")

        stepper = self.stepper
        previous = self.cell

        def factory(address: GridAddress) -> SteppedCellData:
            return SteppedCellData(previous(address), time_step, stepper)

        return Mesh(
            factory,
            cell_size=self.cell_size,
            stepper=stepper,
            time=self.time + time_step,
            step_count=self.step_count + 1,
        )

    def step_multiple(
        self,
        time_step: float,
        steps: int,
        shape: typing.Optional[ThreeDimensions] = None,
        max_workers: typing.Optional[int] = None,
    ) -> "Mesh":
        """
        Apply `step` `steps` times in sequence.

        Each snapshot depends on the whole previous one, so steps are never
        overlapped. If `shape` is given, every intermediate snapshot is
        realised over that box before the next step, which keeps lazy
        evaluation from recursing through all snapshots at once.

        :param time_step: Time step size in seconds.
        :param steps: Number of steps. Zero returns this mesh.
        :param shape: Optional box to realise after each step.
        :param max_workers: Thread pool size used for realisation.
        :return: The mesh `steps` time steps later.
        """
        if steps < 0:
            raise ValidationError(f"Number of steps must be non-negative, got {steps}")

        log_interval = self.stepper.config.log_interval
        mesh = self
        for index in range(1, steps + 1):
            mesh = mesh.step(time_step)
            if shape is not None:
                mesh.realize(mesh.addresses(shape), max_workers=max_workers)
            if index % log_interval == 0 or index == steps:
                logger.info(
                    f"Step {index}/{steps} complete (t={mesh.time:.4f} s, "
                    f"{mesh.size} cells materialised)"
                )
        return mesh
