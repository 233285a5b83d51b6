"""
Closed-form shortcuts for the most common operators.

The diagonal presets (N, Sz, Nn, NN) evaluate their matrix elements directly
from the bit pattern of the FockState, and over whole arrays of QuantumStates
with the numba kernels of ``ed_fermi.tools``. They still expose the generic
``terms`` expansion, so they can be summed and multiplied with any Operator
and always agree with it.
"""

import numpy as np
from ed_fermi.tools import (
    count_bits_masked,
    mode_occupations,
    get_mode_mask,
    validate_parameters,
    WrongLabelError,
)
from .fock_state import FockState
from .operator import Operator, as_operator
import logging

logger = logging.getLogger(__name__)

__all__ = ["N", "Sz", "Nn", "NN"]


def _number_term(index, coeff=1.0):
    return (coeff, ((True, index), (False, index)))


class _DiagonalPreset:
    """Shared behaviour of the operators that are diagonal in the Fock basis."""

    def diagonal_element(self, ket: FockState):
        raise NotImplementedError

    def diagonal(self, states: np.ndarray, index_size: int) -> np.ndarray:
        raise NotImplementedError

    def act_right(self, ket: FockState) -> dict:
        value = self.diagonal_element(ket)
        return {ket: value} if value != 0 else {}

    def get_matrix_element(self, bra: FockState, ket: FockState = None):
        if ket is not None and bra != ket:
            return 0
        return self.diagonal_element(bra)

    def is_diagonal(self) -> bool:
        return True

    def to_operator(self) -> Operator:
        return Operator(self.terms)

    def max_index(self) -> int:
        return self.to_operator().max_index()

    def dagger(self):
        return self

    def __add__(self, other):
        return self.to_operator() + other

    def __radd__(self, other):
        return other + self.to_operator()

    def __sub__(self, other):
        return self.to_operator() - other

    def __rsub__(self, other):
        return as_operator(other) - self.to_operator()

    def __neg__(self):
        return -self.to_operator()

    def __mul__(self, other):
        return self.to_operator() * other

    def __rmul__(self, other):
        return other * self.to_operator()


class N(_DiagonalPreset):
    """
    Number operator. N(n_modes) counts the particles in the modes 0..n_modes-1,
    N(indices=[...]) only those in the given modes.
    """

    def __init__(self, n_modes: int = None, indices=None):
        if indices is None:
            validate_parameters(index_size=n_modes)
            indices = list(range(n_modes))
        validate_parameters(index_list=list(indices))
        self.indices = tuple(int(ii) for ii in indices)
        if len(set(self.indices)) != len(self.indices):
            raise WrongLabelError(f"Repeated indices in N: {self.indices}")
        self.n_modes = len(self.indices)
        self._mask = get_mode_mask(self.indices)

    @property
    def terms(self):
        return [_number_term(index) for index in self.indices]

    def diagonal_element(self, ket: FockState):
        return bin(ket.bits & self._mask).count("1")

    def diagonal(self, states, index_size):
        return count_bits_masked(np.asarray(states, dtype=np.int64), self._mask)

    def __repr__(self):
        return f"N({list(self.indices)})"


class Sz(_DiagonalPreset):
    """Sz = 0.5 * (sum_up n - sum_down n)."""

    def __init__(self, up_indices, down_indices):
        validate_parameters(index_list=list(up_indices))
        validate_parameters(index_list=list(down_indices))
        if len(up_indices) != len(down_indices):
            msg = (
                f"Sz requires as many spin up as spin down indices, "
                f"got {len(up_indices)} and {len(down_indices)}"
            )
            logger.error(msg)
            raise WrongLabelError(msg)
        self.up_indices = tuple(int(ii) for ii in up_indices)
        self.down_indices = tuple(int(ii) for ii in down_indices)
        self.n_modes = len(self.up_indices) + len(self.down_indices)

    @classmethod
    def from_mode_count(cls, n_modes: int):
        """The first half of the modes is spin down, the second half spin up."""
        validate_parameters(index_size=n_modes)
        if n_modes % 2 == 1:
            msg = f"Sz operator requires an even number of indices, got {n_modes}"
            logger.error(msg)
            raise WrongLabelError(msg)
        half = n_modes // 2
        return cls(list(range(half, n_modes)), list(range(half)))

    @property
    def terms(self):
        terms = []
        for up, down in zip(self.up_indices, self.down_indices):
            terms.append(_number_term(up, 0.5))
            terms.append(_number_term(down, -0.5))
        return terms

    def diagonal_element(self, ket: FockState):
        up_value = sum(ket.test(ii) for ii in self.up_indices)
        down_value = sum(ket.test(ii) for ii in self.down_indices)
        return 0.5 * (up_value - down_value)

    def diagonal(self, states, index_size):
        states = np.asarray(states, dtype=np.int64)
        values = np.zeros(len(states), dtype=float)
        for ii in self.up_indices:
            values += mode_occupations(states, ii)
        for ii in self.down_indices:
            values -= mode_occupations(states, ii)
        return 0.5 * values

    def __repr__(self):
        return f"Sz(up={list(self.up_indices)}, down={list(self.down_indices)})"


class Nn(_DiagonalPreset):
    """Occupation n_i = c^dagger_i c_i of a single mode."""

    def __init__(self, index: int):
        validate_parameters(index=index)
        self.index = int(index)

    @property
    def terms(self):
        return [_number_term(self.index)]

    def diagonal_element(self, ket: FockState):
        return int(ket.test(self.index))

    def diagonal(self, states, index_size):
        return mode_occupations(np.asarray(states, dtype=np.int64), self.index)

    def __repr__(self):
        return f"Nn({self.index})"


class NN(_DiagonalPreset):
    """Density-density operator n_i n_j (equal to n_i when i == j)."""

    def __init__(self, index1: int, index2: int):
        validate_parameters(index=index1)
        validate_parameters(index=index2)
        self.index1 = int(index1)
        self.index2 = int(index2)

    @property
    def terms(self):
        i, j = self.index1, self.index2
        return [(1.0, ((True, i), (False, i), (True, j), (False, j)))]

    def diagonal_element(self, ket: FockState):
        return int(ket.test(self.index1) and ket.test(self.index2))

    def diagonal(self, states, index_size):
        states = np.asarray(states, dtype=np.int64)
        return mode_occupations(states, self.index1) * mode_occupations(
            states, self.index2
        )

    def __repr__(self):
        return f"NN({self.index1}, {self.index2})"
