import numpy as np
import pytest
from ed_fermi.operators import FockState, N, Sz, Cdag, C
from ed_fermi.symmetries import StatesClassification, MAX_INDEX_SIZE
from ed_fermi.tools import (
    ObjectStatus,
    StatusMismatchError,
    WrongLabelError,
    IndexNotFoundError,
)


class TestStatesClassification:
    def test_number_blocks(self, number_classification):
        S = number_classification
        assert S.number_of_blocks() == 3
        assert list(S.get_states(0)) == [0]
        assert list(S.get_states(1)) == [1, 2]
        assert list(S.get_states(2)) == [3]
        assert S.get_quantum_numbers(1) == (1.0,)
        assert S.find_block((2,)) == 2

    def test_bijection(self):
        S = StatesClassification(4, [N(4), Sz.from_mode_count(4)])
        S.compute()
        sizes = [S.get_block_size(b) for b in range(S.number_of_blocks())]
        assert sum(sizes) == 2**4
        for q in range(2**4):
            block = S.get_block_number(q)
            inner = S.get_inner_state(q)
            assert 0 <= inner < S.get_block_size(block)
            assert S.get_quantum_state(block, inner) == q
        for block in range(S.number_of_blocks()):
            for inner in range(S.get_block_size(block)):
                q = S.get_quantum_state(block, inner)
                assert (S.get_block_number(q), S.get_inner_state(q)) == (block, inner)

    def test_ordering(self):
        S = StatesClassification(2, [N(2), Sz([1], [0])])
        S.compute()
        labels = [S.get_quantum_numbers(b) for b in range(S.number_of_blocks())]
        # Lexicographic order of the labels
        assert labels == [(0.0, 0.0), (1.0, -0.5), (1.0, 0.5), (2.0, 0.0)]
        assert [list(S.get_states(b)) for b in range(4)] == [[0], [1], [2], [3]]

    def test_ascending_inside_blocks(self):
        S = StatesClassification(6, [N(6)])
        S.compute()
        for block in range(S.number_of_blocks()):
            states = S.get_states(block)
            assert np.all(np.diff(states) > 0)
            assert np.all([FockState(int(q), 6).count() == block for q in states])

    def test_callable_labels(self):
        S = StatesClassification(4, lambda state: (state.count() % 2,))
        S.compute()
        assert S.number_of_blocks() == 2
        assert S.get_block_size(0) == S.get_block_size(1) == 8

    def test_no_quantum_numbers(self):
        S = StatesClassification(3, [])
        S.compute()
        assert S.number_of_blocks() == 1
        assert S.get_block_size(0) == 8
        assert S.find_block(()) == 0

    def test_queries_before_compute(self):
        S = StatesClassification(2)
        assert S.status == ObjectStatus.CONSTRUCTED
        with pytest.raises(StatusMismatchError):
            S.get_block_number(0)
        with pytest.raises(StatusMismatchError):
            S.number_of_blocks()

    def test_compute_twice(self, number_classification):
        S = number_classification
        states = S.get_states(1)
        S.compute()
        assert S.status == ObjectStatus.COMPUTED
        assert S.get_states(1) is not None
        np.testing.assert_array_equal(S.get_states(1), states)

    def test_lookup_tables_are_read_only(self, number_classification):
        with pytest.raises(ValueError):
            number_classification.get_states(1)[0] = 5

    def test_out_of_range(self, number_classification):
        S = number_classification
        with pytest.raises(IndexError):
            S.get_block_number(4)
        with pytest.raises(IndexError):
            S.get_block_size(3)
        with pytest.raises(IndexError):
            S.get_quantum_state(1, 2)
        with pytest.raises(IndexNotFoundError):
            S.find_block((5,))

    def test_invalid_quantum_numbers(self):
        with pytest.raises(WrongLabelError):
            StatesClassification(2, [Cdag(0) * C(1)])
        with pytest.raises(WrongLabelError):
            StatesClassification(2, [N(3)])
        with pytest.raises(ValueError):
            StatesClassification(MAX_INDEX_SIZE + 1)

    def test_single_operator(self):
        S = StatesClassification(2, N(2))
        S.compute()
        assert S.number_of_blocks() == 3
        assert S.quantum_numbers[0].indices == (0, 1)
