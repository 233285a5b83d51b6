from . import index_classification, hamiltonian, density_matrix

from .index_classification import *
from .hamiltonian import *
from .density_matrix import *

# All modules have an __all__ defined
__all__ = index_classification.__all__.copy()
__all__ += hamiltonian.__all__.copy()
__all__ += density_matrix.__all__.copy()
