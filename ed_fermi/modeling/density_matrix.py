"""
Density matrix of the grand canonical ensemble.

In the eigenbasis of the Hamiltonian the density matrix exp(-beta H)/Z is
diagonal, so it is stored block by block as a vector of weights, one per
eigenstate. The Boltzmann factors are measured from the global ground energy
E0, exp(-beta (E_i - E0)), which keeps every factor in (0, 1] whatever the
energy scale of the problem.
"""

import numpy as np
from numbers import Real
from ed_fermi.operators import NN
from ed_fermi.symmetries import StatesClassification
from ed_fermi.tools import (
    validate_parameters,
    get_time,
    count_bits,
    count_bits_masked,
    get_mode_mask,
    create_group,
    open_group,
    ObjectStatus,
    require_status,
    StatusMismatchError,
    StructureMismatchError,
)
from .hamiltonian import Hamiltonian, HamiltonianPart, build_block_matrix, map_blocks
import logging

logger = logging.getLogger(__name__)

__all__ = ["DensityMatrix", "DensityMatrixPart"]


def check_stored_part(group: dict, block: int, size: int, eigenvalues=None):
    """
    Raise StructureMismatchError unless group stores the weights of a block.

    Args:
        group (dict): storage group of the part
        block (int): BlockNumber of the part
        size (int): size of the block
        eigenvalues (np.ndarray, optional): eigenvalues of the live HamiltonianPart;
            the stored energies must agree with them
    """
    for key in ("weights", "energies", "ground_energy"):
        if key not in group:
            raise StructureMismatchError(f"Block {block}: {key} not stored")
    for key in ("weights", "energies"):
        if np.shape(group[key]) != (size,):
            raise StructureMismatchError(
                f"Block {block}: stored {key} do not match the block size {size}"
            )
    if eigenvalues is not None and not np.allclose(group["energies"], eigenvalues):
        raise StructureMismatchError(
            f"Block {block}: stored energies come from another Hamiltonian"
        )


class DensityMatrixPart:
    def __init__(
        self,
        S: StatesClassification,
        hpart: HamiltonianPart,
        beta: float,
        ground_energy: float,
    ):
        """
        Weights of the eigenstates of one block.

        Args:
            S (StatesClassification): computed classification of the states
            hpart (HamiltonianPart): diagonalized block of the Hamiltonian
            beta (float): inverse temperature
            ground_energy (float): global ground energy, shared by all the parts
        """
        require_status(hpart, ObjectStatus.COMPUTED, "build a density matrix part on")
        self.S = S
        self.hpart = hpart
        self.block = hpart.block
        self.size = hpart.size
        self.beta = beta
        self.ground_energy = ground_energy
        self.energies = np.array(hpart.eigenvalues, dtype=float)
        self.weights = None
        self.status = ObjectStatus.PREPARED

    def compute_unnormalized(self) -> float:
        """
        Compute w_i = exp(-beta (E_i - E0)) and return their sum, the
        contribution of this block to the partition function.
        """
        if self.status >= ObjectStatus.COMPUTED:
            raise StatusMismatchError(f"Block {self.block} is already normalized")
        self.weights = np.exp(-self.beta * (self.energies - self.ground_energy))
        return float(np.sum(self.weights))

    def normalize(self, Z: float):
        if self.weights is None:
            raise StatusMismatchError(f"Block {self.block} has no weights to normalize")
        if self.status >= ObjectStatus.COMPUTED:
            raise StatusMismatchError(f"Block {self.block} is already normalized")
        self.weights /= Z
        self.status = ObjectStatus.COMPUTED

    def get_weight(self, inner_state: int) -> float:
        require_status(self, ObjectStatus.COMPUTED, "read weights of")
        if not 0 <= inner_state < self.size:
            raise IndexError(
                f"InnerQuantumState {inner_state} out of range [0, {self.size})"
            )
        return float(self.weights[inner_state])

    # ==========================================================================
    # THERMAL AVERAGES
    # ==========================================================================
    def _average_fock_diagonal(self, values):
        """
        sum_i w_i <i|O|i> for an operator O diagonal in the Fock basis, given its
        diagonal values on the basis states of the block.
        """
        probabilities = np.abs(self.hpart.eigenvectors) ** 2
        return float(self.weights @ (probabilities.T @ values))

    def get_average_energy(self) -> float:
        require_status(self, ObjectStatus.COMPUTED, "average on")
        return float(self.weights @ self.energies)

    def get_average_occupancy(self, indices=None) -> float:
        """Thermal average of the number of particles (in the given modes)."""
        require_status(self, ObjectStatus.COMPUTED, "average on")
        states = np.asarray(self.S.get_states(self.block), dtype=np.int64)
        if indices is None:
            occupations = count_bits(states)
        else:
            occupations = count_bits_masked(states, get_mode_mask(indices))
        return self._average_fock_diagonal(occupations)

    def get_average_double_occupancy(self, index1: int, index2: int) -> float:
        """Thermal average of n_index1 n_index2."""
        require_status(self, ObjectStatus.COMPUTED, "average on")
        states = np.asarray(self.S.get_states(self.block), dtype=np.int64)
        values = NN(index1, index2).diagonal(states, self.S.index_size)
        return self._average_fock_diagonal(values)

    def get_average(self, operator):
        """Contribution of this block to the thermal average of any operator."""
        require_status(self, ObjectStatus.COMPUTED, "average on")
        if operator.is_diagonal():
            states = np.asarray(self.S.get_states(self.block), dtype=np.int64)
            return self._average_fock_diagonal(
                operator.diagonal(states, self.S.index_size)
            )
        # Only the matrix elements inside the block contribute to <i|O|i>
        matrix = build_block_matrix(operator, self.S, self.block, strict=False)
        U = self.hpart.eigenvectors
        expvals = np.einsum("ki,kl,li->i", U.conj(), matrix, U)
        return complex(self.weights @ expvals)

    # ==========================================================================
    # STORAGE
    # ==========================================================================
    def save(self, group: dict):
        group["weights"] = self.weights
        group["energies"] = self.energies
        group["ground_energy"] = self.ground_energy

    def load(self, group: dict):
        check_stored_part(group, self.block, self.size)
        self.weights = np.array(group["weights"], dtype=float)
        self.energies = np.array(group["energies"], dtype=float)
        self.ground_energy = float(group["ground_energy"])
        self.status = ObjectStatus.COMPUTED


class DensityMatrix:
    def __init__(
        self,
        S: StatesClassification,
        H: Hamiltonian,
        beta: float,
        n_workers: int = 1,
    ):
        """
        Grand canonical density matrix exp(-beta H)/Z, one part per block.

        Args:
            S (StatesClassification): computed classification of the states
            H (Hamiltonian): the Hamiltonian, computed before prepare() is called
            beta (float): inverse temperature
            n_workers (int): number of threads used for the per-block work
        """
        validate_parameters(beta=beta, n_workers=n_workers)
        self.S = S
        self.H = H
        self.beta = float(beta)
        self.n_workers = n_workers
        self.parts = None
        self.ground_energy = None
        self.partition_function = None
        self.status = ObjectStatus.CONSTRUCTED

    def prepare(self):
        if self.status >= ObjectStatus.PREPARED:
            return
        # One ground energy for all the parts
        ground_energy = self.H.get_ground_energy()
        # One-to-one correspondence between parts of H and of the density matrix
        self.parts = tuple(
            DensityMatrixPart(self.S, self.H.get_part(block), self.beta, ground_energy)
            for block in range(self.S.number_of_blocks())
        )
        self.ground_energy = ground_energy
        self.status = ObjectStatus.PREPARED

    @get_time
    def compute(self):
        if self.status >= ObjectStatus.COMPUTED:
            return
        require_status(self, ObjectStatus.PREPARED, "compute")
        # First pass: unnormalized weights, the partial sums are reduced into Z
        partial_sums = map_blocks(
            DensityMatrixPart.compute_unnormalized, self.parts, self.n_workers
        )
        Z = float(np.sum(partial_sums))
        # Second pass, only once Z is complete
        map_blocks(lambda part: part.normalize(Z), self.parts, self.n_workers)
        self.partition_function = Z
        logger.info(f"BETA {self.beta} PARTITION FUNCTION (shifted by E0) {Z}")
        self.status = ObjectStatus.COMPUTED

    # ==========================================================================
    # QUERIES
    # ==========================================================================
    def get_weight(self, state: int) -> float:
        require_status(self, ObjectStatus.COMPUTED, "read weights of")
        block = self.S.get_block_number(state)
        inner_state = self.S.get_inner_state(state)
        return self.parts[block].get_weight(inner_state)

    def get_part(self, block: int) -> DensityMatrixPart:
        require_status(self, ObjectStatus.PREPARED, "read parts of")
        if not 0 <= block < len(self.parts):
            raise IndexError(f"BlockNumber {block} out of range [0, {len(self.parts)})")
        return self.parts[block]

    def get_part_by_quantum_numbers(self, quantum_numbers) -> DensityMatrixPart:
        return self.get_part(self.S.find_block(quantum_numbers))

    def get_average_energy(self) -> float:
        require_status(self, ObjectStatus.COMPUTED, "average on")
        return sum(part.get_average_energy() for part in self.parts)

    def get_average_occupancy(self, indices=None) -> float:
        require_status(self, ObjectStatus.COMPUTED, "average on")
        return sum(part.get_average_occupancy(indices) for part in self.parts)

    def get_average_double_occupancy(self, index1: int, index2: int) -> float:
        require_status(self, ObjectStatus.COMPUTED, "average on")
        return sum(
            part.get_average_double_occupancy(index1, index2) for part in self.parts
        )

    def get_average(self, operator):
        """Thermal average Tr(rho O) of any operator."""
        require_status(self, ObjectStatus.COMPUTED, "average on")
        value = sum(part.get_average(operator) for part in self.parts)
        if isinstance(value, complex) and abs(value.imag) < 1e-12:
            return value.real
        return value

    def get_free_energy(self) -> float:
        """F = -ln(Z_full)/beta = E0 - ln(Z)/beta."""
        require_status(self, ObjectStatus.COMPUTED, "get the free energy of")
        if self.beta == 0:
            raise ValueError("The free energy is not defined at beta = 0")
        return self.ground_energy - np.log(self.partition_function) / self.beta

    def get_entropy(self) -> float:
        """S = beta (<E> - F) = beta (<E> - E0) + ln(Z)."""
        require_status(self, ObjectStatus.COMPUTED, "get the entropy of")
        return float(
            self.beta * (self.get_average_energy() - self.ground_energy)
            + np.log(self.partition_function)
        )

    # ==========================================================================
    # STORAGE
    # ==========================================================================
    def save(self, root: dict):
        require_status(self, ObjectStatus.COMPUTED, "save")
        group = create_group(root, "DensityMatrix")
        # Save inverse temperature
        group["beta"] = self.beta
        group["partition_function"] = self.partition_function
        parts_group = create_group(group, "parts")
        for part in self.parts:
            part.save(create_group(parts_group, str(part.block)))

    def load(self, root: dict):
        group = open_group(root, "DensityMatrix")
        if group.get("beta") != self.beta:
            raise StructureMismatchError(
                f"Data in the storage is for another value of the temperature: "
                f"beta={group.get('beta')} instead of {self.beta}"
            )
        parts_group = open_group(group, "parts")
        n_blocks = self.S.number_of_blocks()
        if len(parts_group) != n_blocks:
            raise StructureMismatchError(
                f"Inconsistent number of stored parts: {len(parts_group)} "
                f"instead of {n_blocks}"
            )
        Z = group.get("partition_function")
        if not isinstance(Z, Real) or not np.isfinite(Z) or Z <= 0:
            raise StructureMismatchError(f"Invalid stored partition function {Z}")
        # The weights only make sense with the eigenvectors of the same Hamiltonian
        require_status(self.H, ObjectStatus.COMPUTED, "load a density matrix on")
        ground_energy = self.H.get_ground_energy()
        # Validate everything before touching any part
        for block in range(n_blocks):
            if str(block) not in parts_group:
                raise StructureMismatchError(f"Block {block} not stored")
            stored = parts_group[str(block)]
            check_stored_part(
                stored,
                block,
                self.S.get_block_size(block),
                self.H.get_part(block).eigenvalues,
            )
            if not np.isclose(stored["ground_energy"], ground_energy):
                raise StructureMismatchError(
                    f"Block {block}: stored ground energy {stored['ground_energy']} "
                    f"instead of {ground_energy}"
                )
        self.prepare()
        for part in self.parts:
            part.load(parts_group[str(part.block)])
        self.partition_function = float(Z)
        self.ground_energy = ground_energy
        self.status = ObjectStatus.COMPUTED
