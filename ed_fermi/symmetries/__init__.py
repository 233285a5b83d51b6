from . import states_classification

from .states_classification import *

# All modules have an __all__ defined
__all__ = states_classification.__all__.copy()
