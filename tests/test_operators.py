import numpy as np
import pytest
from ed_fermi.operators import (
    FockState,
    Operator,
    Cdag,
    C,
    N,
    Sz,
    Nn,
    NN,
    as_operator,
)
from ed_fermi.tools import WrongLabelError


class TestOperator:
    def test_creation_twice_is_zero(self):
        op = Cdag(0) * Cdag(0)
        assert op.act_right(FockState(0, 2)) == {}

    def test_annihilation_of_empty_mode(self):
        assert C(0).act_right(FockState(2, 2)) == {}
        assert C(1).get_matrix_element(FockState(0, 2), FockState(2, 2)) == 1.0

    def test_rightmost_acts_first(self):
        # c^+_0 c^+_1 |00> = +|11>, c^+_1 c^+_0 |00> = -|11>
        vacuum = FockState(0, 2)
        assert (Cdag(0) * Cdag(1)).act_right(vacuum) == {FockState(3, 2): 1.0}
        assert (Cdag(1) * Cdag(0)).act_right(vacuum) == {FockState(3, 2): -1.0}

    def test_anticommutation(self):
        anticommutator = Cdag(0) * Cdag(1) + Cdag(1) * Cdag(0)
        for q in range(4):
            assert anticommutator.act_right(FockState(q, 2)) == {}
        # {c_0, c^+_0} = 1
        identity = C(0) * Cdag(0) + Cdag(0) * C(0)
        for q in range(4):
            assert identity.act_right(FockState(q, 2)) == {FockState(q, 2): 1.0}

    def test_dagger(self):
        op = 2j * Cdag(0) * C(1)
        bra, ket = FockState(1, 2), FockState(2, 2)
        assert op.get_matrix_element(bra, ket) == 2j
        assert op.dagger().get_matrix_element(ket, bra) == -2j

    def test_diagonal_detection(self):
        assert (Cdag(0) * C(0) * Cdag(1) * C(1)).is_diagonal()
        assert not (Cdag(0) * C(1)).is_diagonal()
        assert not Cdag(0).is_diagonal()
        assert Operator().is_diagonal()

    def test_algebra(self):
        op = Cdag(0) * C(1)
        assert len(op + op) == 2
        assert len(sum([op, op, op])) == 3
        diff = op - op
        assert diff.act_right(FockState(2, 2)) == {}
        assert (-op).get_matrix_element(FockState(1, 2), FockState(2, 2)) == -1.0
        assert op.max_index() == 1

    def test_commutes(self):
        hop = Cdag(0) * C(1) + Cdag(1) * C(0)
        assert hop.commutes(N(2), range(4), 2)
        assert not hop.commutes(Nn(0), range(4), 2)

    def test_as_operator(self):
        assert isinstance(as_operator(N(2)), Operator)
        with pytest.raises(TypeError):
            as_operator(1.0)

    def test_invalid_terms(self):
        with pytest.raises(TypeError):
            Operator([("a", ((True, 0),))])
        with pytest.raises(ValueError):
            Operator([(1.0, ((True, -1),))])


class TestPresets:
    def test_number_matrix_elements(self):
        op = N(2)
        assert op.get_matrix_element(FockState.from_occupations([0, 0])) == 0
        assert op.get_matrix_element(FockState.from_occupations([1, 0])) == 1
        assert op.get_matrix_element(FockState.from_occupations([0, 1])) == 1
        assert op.get_matrix_element(FockState.from_occupations([1, 1])) == 2
        # Off-diagonal elements vanish
        assert op.get_matrix_element(FockState(1, 2), FockState(2, 2)) == 0
        assert op.act_right(FockState(0, 2)) == {}

    def test_presets_agree_with_terms(self):
        states = np.arange(16)
        presets = [N(4), N(indices=[1, 3]), Sz.from_mode_count(4), Nn(2), NN(0, 3)]
        for preset in presets:
            generic = Operator(preset.terms)
            np.testing.assert_allclose(
                preset.diagonal(states, 4), generic.diagonal(states, 4)
            )
            for q in range(16):
                ket = FockState(q, 4)
                assert preset.get_matrix_element(ket) == pytest.approx(
                    generic.get_matrix_element(ket)
                )

    def test_number_restricted(self):
        op = N(indices=[1, 2])
        assert op.get_matrix_element(FockState(0b0111, 4)) == 2
        with pytest.raises(WrongLabelError):
            N(indices=[1, 1])

    def test_sz(self):
        op = Sz.from_mode_count(4)
        assert op.up_indices == (2, 3)
        assert op.down_indices == (0, 1)
        assert op.get_matrix_element(FockState(0b0100, 4)) == 0.5
        assert op.get_matrix_element(FockState(0b0011, 4)) == -1.0
        assert op.get_matrix_element(FockState(0b0101, 4)) == 0.0

    def test_sz_construction_failures(self):
        with pytest.raises(WrongLabelError):
            Sz.from_mode_count(3)
        with pytest.raises(WrongLabelError):
            Sz([1], [0, 2])

    def test_preset_algebra(self):
        op = 2.0 * NN(0, 1) + N(2)
        assert isinstance(op, Operator)
        assert op.get_matrix_element(FockState(3, 2)) == 4.0
        nn = NN(0, 1)
        assert nn.dagger() is nn
        assert (N(2) - N(2)).act_right(FockState(3, 2)) == {}
