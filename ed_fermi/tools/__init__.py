from . import checks, manage_data, numba_functions, status

from .checks import *
from .manage_data import *
from .numba_functions import *
from .status import *

# All modules have an __all__ defined
__all__ = checks.__all__.copy()
__all__ += manage_data.__all__.copy()
__all__ += numba_functions.__all__.copy()
__all__ += status.__all__.copy()
