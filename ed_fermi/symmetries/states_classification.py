import numpy as np
from numbers import Integral
from ed_fermi.tools import (
    get_time,
    validate_parameters,
    ObjectStatus,
    require_status,
    WrongLabelError,
    IndexNotFoundError,
)
from ed_fermi.operators import FockState, N
import logging

logger = logging.getLogger(__name__)

__all__ = ["StatesClassification", "MAX_INDEX_SIZE"]

# QuantumStates are stored as int64 arrays
MAX_INDEX_SIZE = 62
# Quantum numbers are compared after rounding to this number of decimals
_LABEL_DECIMALS = 10


def _label_key(label):
    # Hashable, rounding-insensitive version of a quantum number tuple
    label = np.round(np.atleast_1d(np.asarray(label, dtype=float)), _LABEL_DECIMALS)
    return tuple((label + 0.0).tolist())


class StatesClassification:
    def __init__(self, index_size: int, quantum_numbers=None):
        """
        Partition of the Fock space of ``index_size`` modes into symmetry blocks.

        Args:
            index_size (int): number of modes (ParticleIndex range)

            quantum_numbers (list or callable, optional): the conserved labels.
                Either a list of operators diagonal in the Fock basis (e.g. the
                presets N, Sz) whose eigenvalues form the label tuple, or a
                callable FockState -> tuple of numbers. Defaults to [N(index_size)].
                A single operator is taken as a one element list.

        Blocks are numbered by ascending lexicographic order of their label tuple,
        states inside a block by ascending QuantumState. Both rules only depend on
        the labels, so BlockNumbers are reproducible from one run to the other.
        """
        validate_parameters(index_size=index_size)
        if index_size > MAX_INDEX_SIZE:
            raise ValueError(f"index_size must be <= {MAX_INDEX_SIZE}, not {index_size}")
        self.index_size = int(index_size)
        self.n_states = 1 << self.index_size
        if quantum_numbers is None:
            quantum_numbers = [N(self.index_size)]
        elif hasattr(quantum_numbers, "is_diagonal"):
            # A single operator
            quantum_numbers = [quantum_numbers]
        if callable(quantum_numbers) and not isinstance(quantum_numbers, (list, tuple)):
            self.label_function = quantum_numbers
            self.quantum_numbers = None
        else:
            self.label_function = None
            self.quantum_numbers = list(quantum_numbers)
            for op in self.quantum_numbers:
                if not op.is_diagonal():
                    raise WrongLabelError(f"Quantum number {op} is not diagonal")
                if op.max_index() >= self.index_size:
                    raise WrongLabelError(
                        f"Quantum number {op} acts on modes beyond {self.index_size}"
                    )
        self.status = ObjectStatus.CONSTRUCTED

    # ==========================================================================
    # CLASSIFICATION
    # ==========================================================================
    def _get_labels(self, states):
        if self.label_function is not None:
            labels = [
                np.atleast_1d(self.label_function(FockState(int(q), self.index_size)))
                for q in states
            ]
            labels = np.array(labels)
            if labels.ndim != 2:
                raise WrongLabelError("Quantum number labels must have the same length")
        elif len(self.quantum_numbers) == 0:
            labels = np.zeros((len(states), 0), dtype=float)
        else:
            labels = np.column_stack(
                [op.diagonal(states, self.index_size) for op in self.quantum_numbers]
            )
        if np.iscomplexobj(labels):
            if not np.allclose(labels.imag, 0, atol=1e-12):
                raise WrongLabelError("Quantum numbers must be real")
            labels = labels.real
        return np.round(labels.astype(float), _LABEL_DECIMALS) + 0.0

    @get_time
    def compute(self):
        if self.status >= ObjectStatus.COMPUTED:
            return
        logger.info(f"TOT DIM: {self.n_states}, 2^{self.index_size}")
        states = np.arange(self.n_states, dtype=np.int64)
        labels = self._get_labels(states)
        if labels.shape[1] == 0:
            unique_labels = np.zeros((1, 0), dtype=float)
            block_of_state = np.zeros(self.n_states, dtype=np.int64)
        else:
            unique_labels, block_of_state = np.unique(
                labels, axis=0, return_inverse=True
            )
            block_of_state = np.asarray(block_of_state, dtype=np.int64).reshape(-1)
        n_blocks = unique_labels.shape[0]
        block_sizes = np.bincount(block_of_state, minlength=n_blocks)
        offsets = np.zeros(n_blocks + 1, dtype=np.int64)
        offsets[1:] = np.cumsum(block_sizes)
        # QuantumStates grouped by block, ascending inside each block
        states_by_block = np.argsort(block_of_state, kind="stable").astype(np.int64)
        inner_states = np.empty(self.n_states, dtype=np.int64)
        inner_states[states_by_block] = (
            np.arange(self.n_states, dtype=np.int64)
            - offsets[block_of_state[states_by_block]]
        )
        # Freeze the lookup tables
        for array in (block_of_state, inner_states, states_by_block, offsets):
            array.setflags(write=False)
        self._block_of_state = block_of_state
        self._inner_states = inner_states
        self._states_by_block = states_by_block
        self._offsets = offsets
        self._labels = unique_labels
        self._label_to_block = {
            _label_key(label): block for block, label in enumerate(unique_labels)
        }
        logger.info(f"N BLOCKS: {n_blocks}, MAX BLOCK DIM: {block_sizes.max()}")
        self.status = ObjectStatus.COMPUTED

    # ==========================================================================
    # LOOKUPS
    # ==========================================================================
    def _check_state(self, state):
        require_status(self, ObjectStatus.COMPUTED, "query")
        if not isinstance(state, Integral) or not 0 <= state < self.n_states:
            raise IndexError(f"QuantumState {state} out of range [0, {self.n_states})")

    def _check_block(self, block):
        require_status(self, ObjectStatus.COMPUTED, "query")
        if not isinstance(block, Integral) or not 0 <= block < len(self._labels):
            raise IndexError(
                f"BlockNumber {block} out of range [0, {len(self._labels)})"
            )

    def number_of_blocks(self) -> int:
        require_status(self, ObjectStatus.COMPUTED, "query")
        return len(self._labels)

    def get_block_number(self, state: int) -> int:
        self._check_state(state)
        return int(self._block_of_state[state])

    def get_inner_state(self, state: int) -> int:
        self._check_state(state)
        return int(self._inner_states[state])

    def get_quantum_state(self, block: int, inner_state: int) -> int:
        self._check_block(block)
        size = self._offsets[block + 1] - self._offsets[block]
        if not isinstance(inner_state, Integral) or not 0 <= inner_state < size:
            raise IndexError(
                f"InnerQuantumState {inner_state} out of range [0, {size}) "
                f"in block {block}"
            )
        return int(self._states_by_block[self._offsets[block] + inner_state])

    def get_block_size(self, block: int) -> int:
        self._check_block(block)
        return int(self._offsets[block + 1] - self._offsets[block])

    def get_states(self, block: int) -> np.ndarray:
        """QuantumStates of a block, ordered by InnerQuantumState (read only)."""
        self._check_block(block)
        return self._states_by_block[self._offsets[block] : self._offsets[block + 1]]

    def get_fock_state(self, state: int) -> FockState:
        self._check_state(state)
        return FockState(int(state), self.index_size)

    def get_quantum_numbers(self, block: int) -> tuple:
        self._check_block(block)
        return tuple(self._labels[block].tolist())

    def find_block(self, quantum_numbers) -> int:
        """BlockNumber of the block labelled by the given quantum number tuple."""
        require_status(self, ObjectStatus.COMPUTED, "query")
        key = _label_key(quantum_numbers)
        if key not in self._label_to_block:
            raise IndexNotFoundError(f"No block with quantum numbers {key}")
        return self._label_to_block[key]
