import numpy as np
from numba import njit, prange
import logging

logger = logging.getLogger(__name__)

__all__ = [
    "popcount",
    "count_bits",
    "count_bits_masked",
    "mode_occupations",
    "get_mode_mask",
]


@njit(cache=True)
def popcount(state):
    """
    Number of set bits of a single integer state (Kernighan's loop).

    Args:
        state (int): QuantumState, i.e. the bit pattern of a FockState.

    Returns:
        int: number of occupied modes.
    """
    count = 0
    while state:
        state &= state - 1
        count += 1
    return count


@njit(parallel=True, cache=True)
def count_bits(states):
    """
    Population count of every entry of an array of QuantumStates.

    Args:
        states (np.ndarray of int64): 1D array of QuantumStates.

    Returns:
        np.ndarray of int64: number of occupied modes of each state.
    """
    counts = np.zeros(states.shape[0], dtype=np.int64)
    for ii in prange(states.shape[0]):
        counts[ii] = popcount(states[ii])
    return counts


@njit(parallel=True, cache=True)
def count_bits_masked(states, mask):
    """
    Population count restricted to the modes selected by a bit mask.

    Args:
        states (np.ndarray of int64): 1D array of QuantumStates.
        mask (int): bit mask with the selected modes set.

    Returns:
        np.ndarray of int64: number of occupied selected modes of each state.
    """
    counts = np.zeros(states.shape[0], dtype=np.int64)
    for ii in prange(states.shape[0]):
        counts[ii] = popcount(states[ii] & mask)
    return counts


@njit(parallel=True, cache=True)
def mode_occupations(states, index):
    """
    Occupation (0 or 1) of the mode ``index`` for every state of the array.
    """
    occupations = np.zeros(states.shape[0], dtype=np.int64)
    for ii in prange(states.shape[0]):
        occupations[ii] = (states[ii] >> index) & 1
    return occupations


def get_mode_mask(indices):
    # Bit mask with the bits of the given modes set
    mask = 0
    for index in indices:
        mask |= 1 << int(index)
    return mask
