import json
import numpy as np
import pytest
from ed_fermi.modeling import IndexClassification, Hamiltonian, DensityMatrix
from ed_fermi.operators import FockState
from ed_fermi.symmetries import StatesClassification
from ed_fermi.tools import load_dictionary, WrongLabelError
from ed_fermi.workflows import (
    run_thermal,
    build_hamiltonian_operator,
    build_quantum_numbers,
)
from ed_fermi.workflows.thermal import main


@pytest.fixture
def hubbard_par():
    U = 1.0
    return {
        "lattice": {"sites": [{"label": "A", "n_orbitals": 1}]},
        "hamiltonian": {
            "terms": [
                {
                    "coeff": U,
                    "ops": [
                        ["+", "A", 0, 1],
                        ["-", "A", 0, 1],
                        ["+", "A", 0, 0],
                        ["-", "A", 0, 0],
                    ],
                }
            ]
        },
        "symmetries": {"quantum_numbers": ["N", "Sz"]},
        "thermal": {"beta": 1.0},
        "observables": {"double_occupancy": True},
        "n_workers": 1,
    }


class TestThermalWorkflow:
    def test_hubbard_atom(self, hubbard_par):
        res = run_thermal(hubbard_par)
        Z = 3 + np.exp(-1.0)
        assert res["n_blocks"] == 4
        assert res["ground_energy"] == pytest.approx(0.0)
        assert res["partition_function"] == pytest.approx(Z)
        assert res["energy"] == pytest.approx(np.exp(-1.0) / Z)
        assert res["occupancy"] == pytest.approx((2 + 2 * np.exp(-1.0)) / Z)
        assert res["free_energy"] == pytest.approx(-np.log(Z))
        assert res["entropy"] == pytest.approx(res["energy"] + np.log(Z))
        np.testing.assert_allclose(res["double_occupancy"]["A"], [np.exp(-1.0) / Z])
        assert res["total_time"] >= 0

    def test_output(self, hubbard_par, tmp_path):
        hubbard_par["output"] = str(tmp_path / "atom.pkl")
        res = run_thermal(hubbard_par)
        root = load_dictionary(hubbard_par["output"])
        assert root["DensityMatrix"]["beta"] == 1.0
        assert root["results"]["n_blocks"] == 4
        # The stored data can be loaded back
        IC = IndexClassification(hubbard_par["lattice"]["sites"])
        S = StatesClassification(2, build_quantum_numbers(IC, ["N", "Sz"]))
        S.compute()
        H = Hamiltonian(
            S, build_hamiltonian_operator(IC, hubbard_par["hamiltonian"]["terms"])
        )
        H.load(root)
        rho = DensityMatrix(S, H, 1.0)
        rho.load(root)
        assert rho.get_average_energy() == pytest.approx(res["energy"])

    def test_command_line(self, hubbard_par, tmp_path):
        params = tmp_path / "params.json"
        params.write_text(json.dumps(hubbard_par))
        output = tmp_path / "out.pkl"
        res = main(["-p", str(params), "-o", str(output)])
        assert output.exists()
        assert res["n_blocks"] == 4

    def test_hopping_terms(self):
        IC = IndexClassification([("A", 1, 1), ("B", 1, 1)])
        terms = [
            {"coeff": -1.0, "ops": [["+", "A", 0, 0], ["-", "B", 0, 0]]},
            {"coeff": [0.0, 2.0], "ops": [["+", "B", 0, 0], ["-", "A", 0, 0]]},
        ]
        op = build_hamiltonian_operator(IC, terms)
        assert op.get_matrix_element(FockState(1, 2), FockState(2, 2)) == -1.0
        assert op.get_matrix_element(FockState(2, 2), FockState(1, 2)) == 2j

    def test_unknown_names(self):
        IC = IndexClassification([("A", 1)])
        with pytest.raises(WrongLabelError):
            build_quantum_numbers(IC, ["Lz"])
        with pytest.raises(WrongLabelError):
            build_hamiltonian_operator(IC, [{"coeff": 1.0, "ops": [["*", "A", 0, 0]]}])
