from . import fock_state, operator, presets

from .fock_state import *
from .operator import *
from .presets import *

# All modules have an __all__ defined
__all__ = fock_state.__all__.copy()
__all__ += operator.__all__.copy()
__all__ += presets.__all__.copy()
