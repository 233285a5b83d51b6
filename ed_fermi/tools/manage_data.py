"""Utilities for saving and loading the nested dictionaries holding computed data.

The computable objects of the library (Hamiltonian, DensityMatrix) write their
content in plain nested dictionaries: each level is a group, keys are group
names, leaves are scalars or NumPy arrays. This module stores such
dictionaries on disk with ``pickle`` and offers small helpers to navigate them.
"""

import pickle
from .checks import validate_parameters

__all__ = [
    "save_dictionary",
    "load_dictionary",
    "create_group",
    "open_group",
]


def save_dictionary(dictionary, filename):
    """Serialize a Python dictionary to a pickle file.

    Parameters
    ----------
    dictionary : dict
        Dictionary to save.
    filename : str
        Output file path (typically with ``.pkl`` extension).

    Returns
    -------
    None

    Raises
    ------
    TypeError
        If ``dictionary`` or ``filename`` has an invalid type.
    """
    # Validate type of parameters
    validate_parameters(dictionary=dictionary, filename=str(filename))
    with open(filename, "wb") as outp:  # Overwrites any existing file.
        pickle.dump(dictionary, outp, pickle.HIGHEST_PROTOCOL)


def load_dictionary(filename):
    """Load a dictionary from a pickle file.

    Parameters
    ----------
    filename : str
        Path to a pickle file created by :func:`save_dictionary` (or compatible).

    Returns
    -------
    dict
        Deserialized dictionary.

    Raises
    ------
    TypeError
        If ``filename`` has an invalid type.
    """
    # Validate type of parameters
    validate_parameters(filename=str(filename))
    with open(filename, "rb") as outp:
        return pickle.load(outp)


def create_group(parent, name):
    """Create (or replace) the child group ``name`` of ``parent`` and return it."""
    validate_parameters(dictionary=parent)
    parent[name] = {}
    return parent[name]


def open_group(parent, name):
    """Return the child group ``name`` of ``parent``.

    Raises
    ------
    KeyError
        If the group does not exist.
    """
    validate_parameters(dictionary=parent)
    if name not in parent:
        raise KeyError(f"Group {name} not found in the storage")
    group = parent[name]
    validate_parameters(dictionary=group)
    return group
