"""
Shared fixtures: the Hubbard atom and the spinless hopping dimer.
"""

import pytest
import numpy as np
from ed_fermi.modeling import Hamiltonian, DensityMatrix
from ed_fermi.operators import Cdag, C, N, NN, Sz
from ed_fermi.symmetries import StatesClassification

# Hubbard atom: mode 0 is spin down, mode 1 spin up
U = 1.0


def hopping_operator(t=1.0):
    # -t (c^+_0 c_1 + c^+_1 c_0)
    return -t * (Cdag(0) * C(1) + Cdag(1) * C(0))


def compute_all(S, H_op, beta, n_workers=1):
    S.compute()
    H = Hamiltonian(S, H_op, n_workers=n_workers)
    H.prepare()
    H.compute()
    rho = DensityMatrix(S, H, beta, n_workers=n_workers)
    rho.prepare()
    rho.compute()
    return H, rho


@pytest.fixture
def build_thermal():
    """Classify, diagonalize and thermalize in one call"""
    return compute_all


@pytest.fixture
def hopping():
    """Hopping operator factory"""
    return hopping_operator


@pytest.fixture
def hubbard_op():
    """U n_up n_down"""
    return U * NN(1, 0)


@pytest.fixture
def number_classification():
    """Two modes classified by the particle number only"""
    S = StatesClassification(2, [N(2)])
    S.compute()
    return S


@pytest.fixture
def hubbard_atom(hubbard_op):
    """(S, H, rho) of the Hubbard atom at beta = 1, blocks labelled by (N, Sz)"""
    S = StatesClassification(2, [N(2), Sz([1], [0])])
    H, rho = compute_all(S, hubbard_op, beta=1.0)
    return S, H, rho


@pytest.fixture
def hopping_dimer():
    """(S, H, rho) of two spinless sites with t = 1 at beta = 0.7"""
    S = StatesClassification(2, [N(2)])
    H, rho = compute_all(S, hopping_operator(), beta=0.7)
    return S, H, rho


@pytest.fixture
def hubbard_weights():
    """Exact weights of the Hubbard atom at beta = 1, by QuantumState"""
    Z = 3 + np.exp(-1.0)
    return np.array([1 / Z, 1 / Z, 1 / Z, np.exp(-1.0) / Z])
