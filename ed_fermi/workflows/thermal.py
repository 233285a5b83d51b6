from time import perf_counter
import argparse
import json
import numpy as np
import logging
from ed_fermi.modeling import (
    IndexClassification,
    Hamiltonian,
    DensityMatrix,
    DOWN,
    UP,
)
from ed_fermi.operators import Operator, N, Sz, NN
from ed_fermi.symmetries import StatesClassification
from ed_fermi.tools import save_dictionary, WrongLabelError

logger = logging.getLogger(__name__)

__all__ = ["run_thermal", "build_hamiltonian_operator", "build_quantum_numbers"]

# Symbols of the elementary operators in the parameter file
_ELEMENTARY = {"+": True, "-": False}


def _get(d, path, default=None):
    cur = d
    for k in path:
        if not isinstance(cur, dict) or k not in cur:
            return default
        cur = cur[k]
    return cur


def build_hamiltonian_operator(IC: IndexClassification, terms) -> Operator:
    """
    Build the Hamiltonian from a list of terms of the parameter dictionary.

    Args:
        IC (IndexClassification): the indices of the lattice
        terms (list): each term is {"coeff": number, "ops": [[symbol, site,
            orbital, spin], ...]} where symbol is "+" (creation) or "-"
            (annihilation); ops are multiplied in the given order

    Returns:
        Operator: the Hamiltonian
    """
    op_terms = []
    for term in terms:
        coeff = term["coeff"]
        if isinstance(coeff, (list, tuple)):
            # [real, imag] since JSON has no complex numbers
            coeff = complex(*coeff)
        ops = []
        for symbol, site, orbital, spin in term["ops"]:
            if symbol not in _ELEMENTARY:
                raise WrongLabelError(f"Unknown operator symbol {symbol}")
            ops.append((_ELEMENTARY[symbol], IC.find_index(site, orbital, spin)))
        op_terms.append((coeff, tuple(ops)))
    return Operator(op_terms)


def build_quantum_numbers(IC: IndexClassification, names) -> list:
    quantum_numbers = []
    for name in names:
        if name == "N":
            quantum_numbers.append(N(IC.index_size))
        elif name == "Sz":
            quantum_numbers.append(Sz(IC.spin_indices(UP), IC.spin_indices(DOWN)))
        else:
            raise WrongLabelError(f"Unknown quantum number {name}: use N or Sz")
    return quantum_numbers


def run_thermal(par):
    start_time = perf_counter()
    n_workers = par.get("n_workers", 1)
    # Lattice and Hilbert space
    IC = IndexClassification(_get(par, ["lattice", "sites"], []))
    names = _get(par, ["symmetries", "quantum_numbers"], ["N"])
    S = StatesClassification(IC.index_size, build_quantum_numbers(IC, names))
    S.compute()
    # Hamiltonian
    H_op = build_hamiltonian_operator(IC, _get(par, ["hamiltonian", "terms"], []))
    tol = _get(par, ["hamiltonian", "hermiticity_tol"], 1e-12)
    H = Hamiltonian(S, H_op, n_workers=n_workers, hermiticity_tol=tol)
    H.prepare()
    H.compute()
    # Thermal state
    beta = _get(par, ["thermal", "beta"], 1.0)
    rho = DensityMatrix(S, H, beta, n_workers=n_workers)
    rho.prepare()
    rho.compute()
    # Measurements
    res = {}
    res["n_blocks"] = S.number_of_blocks()
    res["ground_energy"] = H.get_ground_energy()
    res["partition_function"] = rho.partition_function
    res["energy"] = rho.get_average_energy()
    res["occupancy"] = rho.get_average_occupancy()
    res["entropy"] = rho.get_entropy()
    res["free_energy"] = rho.get_free_energy() if rho.beta > 0 else None
    if _get(par, ["observables", "double_occupancy"], False):
        res["double_occupancy"] = {}
        for site in IC.sites:
            if site.n_spins != 2:
                continue
            values = np.zeros(site.n_orbitals, dtype=float)
            for orbital in range(site.n_orbitals):
                up = IC.find_index(site.label, orbital, UP)
                down = IC.find_index(site.label, orbital, DOWN)
                values[orbital] = rho.get_average(NN(up, down))
            res["double_occupancy"][site.label] = values
    logger.info(f"E0 {res['ground_energy']:.9f} <E> {res['energy']:.9f}")
    logger.info(f"<N> {res['occupancy']:.9f} ENTROPY {res['entropy']:.9f}")
    # Storage
    output = par.get("output", None)
    if output is not None:
        root = {}
        H.save(root)
        rho.save(root)
        root["results"] = res
        save_dictionary(root, output)
        logger.info(f"SAVED {output}")
    end_time = perf_counter()
    tot_time = end_time - start_time
    res["total_time"] = tot_time
    logger.info(f"TIME SIMS {tot_time:.5f}")
    return res


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Thermal state of a fermionic lattice model by exact diagonalization"
    )
    parser.add_argument("-p", "--params", required=True, help="JSON parameter file")
    parser.add_argument("-o", "--output", default=None, help="pickle output file")
    args = parser.parse_args(argv)
    with open(args.params, "r") as f:
        par = json.load(f)
    if args.output is not None:
        par["output"] = args.output
    return run_thermal(par)


if __name__ == "__main__":
    main()
