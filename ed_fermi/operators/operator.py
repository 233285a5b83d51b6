"""
Second-quantized operators acting on FockStates.

An operator is a sum of terms, each term being a coefficient times an ordered
product of elementary creation/annihilation operators:

    term = (coefficient, ((is_creation, index), (is_creation, index), ...))

The product is read as written, so the rightmost elementary operator is the
first one acting on a ket. Any object exposing ``terms``, ``act_right`` and
``get_matrix_element`` can be used where an operator is expected (see the
presets in ``ed_fermi.operators.presets``).
"""

import numpy as np
from numbers import Number
from .fock_state import FockState, apply_elementary
import logging

logger = logging.getLogger(__name__)

__all__ = ["Operator", "Cdag", "C", "as_operator"]


def _normalize_term(term):
    coeff, ops = term
    if not isinstance(coeff, Number):
        raise TypeError(f"term coefficient must be a NUMBER, not {type(coeff)}")
    elem_ops = []
    for is_creation, index in ops:
        if int(index) < 0:
            raise ValueError(f"mode index must be non negative, not {index}")
        elem_ops.append((bool(is_creation), int(index)))
    return coeff, tuple(elem_ops)


class Operator:
    def __init__(self, terms=()):
        """
        Args:
            terms (iterable): sequence of (coefficient, ((is_creation, index), ...))
        """
        self.terms = [_normalize_term(term) for term in terms]

    # ==========================================================================
    # ACTION ON FOCK STATES
    # ==========================================================================
    def act_right(self, ket: FockState) -> dict:
        """
        Apply the operator to a ket.

        Args:
            ket (FockState): the input state

        Returns:
            dict: FockState -> accumulated matrix element <result|O|ket>.
                States with a vanishing matrix element are dropped.
        """
        result = {}
        for coeff, ops in self.terms:
            state = ket
            sign = 1
            for is_creation, index in reversed(ops):
                action = apply_elementary(is_creation, index, state)
                if action is None:
                    break
                elem_sign, state = action
                sign *= elem_sign
            else:
                result[state] = result.get(state, 0) + sign * coeff
        return {state: value for state, value in result.items() if value != 0}

    def get_matrix_element(self, bra: FockState, ket: FockState = None):
        """
        Matrix element <bra|O|ket>. With a single argument it returns the
        diagonal element <bra|O|bra>.
        """
        if ket is None:
            ket = bra
        return self.act_right(ket).get(bra, 0)

    def diagonal(self, states: np.ndarray, index_size: int) -> np.ndarray:
        """
        Diagonal matrix elements over an array of QuantumStates.

        Args:
            states (np.ndarray of ints): QuantumStates
            index_size (int): number of modes of the FockStates

        Returns:
            np.ndarray: <q|O|q> for every q in states
        """
        values = [
            self.get_matrix_element(FockState(int(q), index_size)) for q in states
        ]
        return np.array(values) if len(values) else np.zeros(0)

    def is_diagonal(self) -> bool:
        """True if every term conserves the occupation of each mode."""
        for _, ops in self.terms:
            balance = {}
            for is_creation, index in ops:
                balance[index] = balance.get(index, 0) + (1 if is_creation else -1)
            if any(balance.values()):
                return False
        return True

    def max_index(self) -> int:
        indices = [index for _, ops in self.terms for _, index in ops]
        return max(indices) if indices else -1

    def commutes(self, other, states, index_size: int, threshold=1e-12) -> bool:
        """
        Check [self, other] = 0 on the given QuantumStates.

        Args:
            other: Operator or preset
            states (iterable of ints): QuantumStates used as kets
            index_size (int): number of modes of the FockStates
            threshold (float): tolerance on each matrix element of the commutator

        Returns:
            bool: True if every <bra|[self, other]|ket> vanishes
        """
        commutator = self * other - as_operator(other) * self
        for q in states:
            result = commutator.act_right(FockState(int(q), index_size))
            if any(abs(value) > threshold for value in result.values()):
                return False
        return True

    # ==========================================================================
    # ALGEBRA
    # ==========================================================================
    def dagger(self) -> "Operator":
        return Operator(
            (
                coeff.conjugate(),
                tuple((not is_creation, index) for is_creation, index in reversed(ops)),
            )
            for coeff, ops in self.terms
        )

    def __add__(self, other):
        if isinstance(other, Number) and other == 0:
            return Operator(self.terms)
        return Operator(self.terms + as_operator(other).terms)

    def __radd__(self, other):
        # Allows sum([op1, op2, ...])
        if isinstance(other, Number) and other == 0:
            return Operator(self.terms)
        return as_operator(other) + self

    def __neg__(self):
        return Operator((-coeff, ops) for coeff, ops in self.terms)

    def __sub__(self, other):
        return self + (-as_operator(other))

    def __rsub__(self, other):
        return as_operator(other) + (-self)

    def __mul__(self, other):
        if isinstance(other, Number):
            return Operator((other * coeff, ops) for coeff, ops in self.terms)
        other = as_operator(other)
        return Operator(
            (c1 * c2, ops1 + ops2)
            for c1, ops1 in self.terms
            for c2, ops2 in other.terms
        )

    def __rmul__(self, other):
        if isinstance(other, Number):
            return self * other
        return as_operator(other) * self

    def __len__(self):
        return len(self.terms)

    def __repr__(self):
        def elem(is_creation, index):
            return f"c^+_{index}" if is_creation else f"c_{index}"

        if not self.terms:
            return "Operator(0)"
        parts = [
            f"{coeff}*" + " ".join(elem(*op) for op in ops) for coeff, ops in self.terms
        ]
        return "Operator(" + " + ".join(parts) + ")"


def as_operator(obj) -> Operator:
    """Turn any object exposing ``terms`` into a generic Operator."""
    if isinstance(obj, Operator):
        return obj
    if hasattr(obj, "terms"):
        return Operator(obj.terms)
    raise TypeError(f"Cannot interpret {type(obj)} as an Operator")


def Cdag(index: int) -> Operator:
    """Creation operator c^dagger_index."""
    return Operator([(1.0, ((True, index),))])


def C(index: int) -> Operator:
    """Annihilation operator c_index."""
    return Operator([(1.0, ((False, index),))])
