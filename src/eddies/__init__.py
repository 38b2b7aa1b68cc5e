"""
*EDDIES*

Lazily evaluated finite-difference simulation of incompressible viscous flow
on cell meshes.
"""

from ._precision import *  # noqa
from .errors import *  # noqa
from .constants import *  # noqa
from .types import *  # noqa
from .vectors import *  # noqa
from .roots import *  # noqa
from .utils import *  # noqa
from .cells import *  # noqa
from .stencils import *  # noqa
from .config import *  # noqa
from .stepper import *  # noqa
from .mesh import *  # noqa
from .factories import *  # noqa
from .grids import *  # noqa
from .analyses import *  # noqa
