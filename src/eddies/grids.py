import logging
import typing

import attrs
import numpy as np

from eddies._precision import get_dtype
from eddies.mesh import Mesh
from eddies.types import CellType, ThreeDimensions

logger = logging.getLogger(__name__)

__all__ = ["TYPE_CODES", "MeshGrids", "build_uniform_grid", "sample_grids"]

TYPE_CODES: typing.Dict[CellType, int] = {
    CellType.FLUID: 0,
    CellType.OBSTACLE: 1,
    CellType.UNKNOWN: 2,
}
"""Integer code stored in `MeshGrids.types` for each cell type."""


def build_uniform_grid(
    grid_shape: ThreeDimensions, value: float = 0.0
) -> np.ndarray:
    """
    Constructs a 3D grid filled with `value`, in the current precision.

    :param grid_shape: Number of cells along (east, north, up).
    :param value: Initial value to fill the grid with.
    :return: Numpy array representing the grid.
    """
    return np.full(grid_shape, fill_value=value, dtype=get_dtype(), order="C")


@attrs.frozen(eq=False)
class MeshGrids:
    """
    Fields of a mesh sampled on a regular box of addresses.

    Arrays are indexed `[east, north, up]`. Entries of non-fluid cells are NaN in
    every field except `types`.
    """

    types: np.ndarray
    """Cell type codes, see `TYPE_CODES`."""
    pressure: np.ndarray
    """Pressure (Pa)."""
    velocity_east: np.ndarray
    """East velocity component (m/s)."""
    velocity_north: np.ndarray
    """North velocity component (m/s)."""
    velocity_up: np.ndarray
    """Up velocity component (m/s)."""

    @property
    def shape(self) -> ThreeDimensions:
        return typing.cast(ThreeDimensions, self.types.shape)

    @property
    def fluid_mask(self) -> np.ndarray:
        return self.types == TYPE_CODES[CellType.FLUID]

    @property
    def speed(self) -> np.ndarray:
        """Velocity magnitude (m/s)."""
        return np.sqrt(
            self.velocity_east**2 + self.velocity_north**2 + self.velocity_up**2
        )


def sample_grids(
    mesh: Mesh,
    shape: ThreeDimensions,
    max_workers: typing.Optional[int] = None,
) -> MeshGrids:
    """
    Sample type, pressure and velocity of `mesh` over the box `[0, shape)`.

    Cells that are not materialised yet are materialised (and, for a stepped
    mesh, advanced) first.

    :param mesh: The mesh to sample.
    :param shape: Number of cells along (east, north, up).
    :param max_workers: Thread pool size used to realise the cells.
    :return: The sampled grids.
    """
    cells = mesh.realize(mesh.addresses(shape), max_workers=max_workers)

    types = np.full(shape, TYPE_CODES[CellType.UNKNOWN], dtype=np.int8)
    pressure = build_uniform_grid(shape, np.nan)
    velocity_east = build_uniform_grid(shape, np.nan)
    velocity_north = build_uniform_grid(shape, np.nan)
    velocity_up = build_uniform_grid(shape, np.nan)

    for cell in cells:
        index = tuple(cell.address)
        types[index] = TYPE_CODES[cell.type]
        if not cell.is_fluid:
            continue
        velocity = cell.velocity
        pressure[index] = cell.pressure
        velocity_east[index] = velocity.east
        velocity_north[index] = velocity.north
        velocity_up[index] = velocity.up

    logger.debug(f"Sampled {len(cells)} cells on a {shape} grid")
    return MeshGrids(
        types=types,
        pressure=pressure,
        velocity_east=velocity_east,
        velocity_north=velocity_north,
        velocity_up=velocity_up,
    )
