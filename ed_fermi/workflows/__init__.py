from . import thermal

from .thermal import *

# All modules have an __all__ defined
__all__ = thermal.__all__.copy()
