from functools import total_ordering
from numbers import Integral
import logging

logger = logging.getLogger(__name__)

__all__ = ["FockState", "apply_elementary"]


@total_ordering
class FockState:
    """
    Occupation-number basis state over ``size`` fermionic modes.

    Bit ``i`` of ``bits`` is set when the mode (ParticleIndex) ``i`` is occupied.
    The integer ``bits`` is also the QuantumState of the FockState, i.e. its
    position in the canonical ordering of the Fock space.
    """

    __slots__ = ("bits", "size")

    def __init__(self, bits: int, size: int):
        if not isinstance(bits, Integral) or not isinstance(size, Integral):
            raise TypeError(f"bits and size must be INT, not {type(bits)}, {type(size)}")
        bits, size = int(bits), int(size)
        if size < 0 or bits < 0 or bits >> size:
            raise ValueError(f"bits={bits} do not fit in a FockState of {size} modes")
        object.__setattr__(self, "bits", bits)
        object.__setattr__(self, "size", size)

    @classmethod
    def from_occupations(cls, occupations):
        """
        Args:
            occupations (sequence of 0/1): the i-th entry is the occupation of mode i
        """
        bits = 0
        for index, occ in enumerate(occupations):
            if occ not in (0, 1):
                raise ValueError(f"occupations must be 0 or 1, not {occ}")
            if occ:
                bits |= 1 << index
        return cls(bits, len(occupations))

    def __setattr__(self, name, value):
        raise AttributeError("FockState is immutable")

    def test(self, index: int) -> bool:
        self._check_index(index)
        return bool((self.bits >> index) & 1)

    def count(self) -> int:
        return bin(self.bits).count("1")

    def count_below(self, index: int) -> int:
        # Occupied modes with a label smaller than index
        return bin(self.bits & ((1 << index) - 1)).count("1")

    def flip(self, index: int) -> "FockState":
        self._check_index(index)
        return FockState(self.bits ^ (1 << index), self.size)

    def occupations(self):
        return [(self.bits >> ii) & 1 for ii in range(self.size)]

    def _check_index(self, index):
        if not 0 <= index < self.size:
            raise IndexError(f"mode {index} out of range [0, {self.size})")

    def __eq__(self, other):
        if not isinstance(other, FockState):
            return NotImplemented
        return self.bits == other.bits and self.size == other.size

    def __lt__(self, other):
        if not isinstance(other, FockState):
            return NotImplemented
        return (self.size, self.bits) < (other.size, other.bits)

    def __hash__(self):
        return hash((self.size, self.bits))

    def __reduce__(self):
        return (FockState, (self.bits, self.size))

    def __int__(self):
        return self.bits

    def __repr__(self):
        occ = "".join(str(x) for x in self.occupations())
        return f"FockState({occ})"


def apply_elementary(is_creation: bool, index: int, state: FockState):
    """
    Apply c^dagger_index (is_creation=True) or c_index to a FockState.

    The fermionic sign is (-1)^(number of occupied modes with label < index).

    Returns:
        tuple(int, FockState) or None: (sign, resulting state), None when the
        action gives zero (creation on an occupied mode, annihilation on an
        empty one).
    """
    if state.test(index) == is_creation:
        return None
    sign = -1 if state.count_below(index) % 2 else 1
    return sign, state.flip(index)
