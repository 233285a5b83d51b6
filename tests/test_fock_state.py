import pickle
import pytest
from ed_fermi.operators import FockState, apply_elementary


class TestFockState:
    def test_bits_and_occupations(self):
        state = FockState.from_occupations([1, 0, 1])
        assert state.bits == 5
        assert int(state) == 5
        assert state.occupations() == [1, 0, 1]
        assert state.test(0) and not state.test(1) and state.test(2)
        assert state.count() == 2
        assert repr(state) == "FockState(101)"

    def test_value_semantics(self):
        assert FockState(3, 4) == FockState(3, 4)
        assert FockState(3, 4) != FockState(3, 5)
        assert len({FockState(3, 4), FockState(3, 4), FockState(1, 4)}) == 2
        assert FockState(1, 4) < FockState(3, 4)
        assert pickle.loads(pickle.dumps(FockState(6, 3))) == FockState(6, 3)

    def test_immutable(self):
        state = FockState(1, 2)
        with pytest.raises(AttributeError):
            state.bits = 2
        flipped = state.flip(1)
        assert state.bits == 1
        assert flipped.bits == 3

    def test_invalid(self):
        with pytest.raises(ValueError):
            FockState(4, 2)
        with pytest.raises(ValueError):
            FockState(-1, 2)
        with pytest.raises(TypeError):
            FockState(1.0, 2)
        with pytest.raises(ValueError):
            FockState.from_occupations([0, 2])
        with pytest.raises(IndexError):
            FockState(0, 2).test(2)


class TestElementaryAction:
    def test_creation(self):
        sign, state = apply_elementary(True, 0, FockState(0, 2))
        assert (sign, state) == (1, FockState(1, 2))

    def test_sign_counts_lower_modes(self):
        # One occupied mode below index 1
        sign, state = apply_elementary(True, 1, FockState(1, 2))
        assert (sign, state) == (-1, FockState(3, 2))
        # No occupied mode below index 0
        sign, state = apply_elementary(False, 0, FockState(3, 2))
        assert (sign, state) == (1, FockState(2, 2))
        # Two occupied modes below index 2
        sign, state = apply_elementary(False, 2, FockState(7, 3))
        assert (sign, state) == (1, FockState(3, 3))

    def test_zero_results(self):
        assert apply_elementary(True, 0, FockState(1, 2)) is None
        assert apply_elementary(False, 1, FockState(1, 2)) is None
