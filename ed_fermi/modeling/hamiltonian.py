import numpy as np
from concurrent.futures import ThreadPoolExecutor
from scipy.linalg import eigh as array_eigh
from scipy.sparse import csc_matrix
from ed_fermi.operators import FockState
from ed_fermi.symmetries import StatesClassification
from ed_fermi.tools import (
    validate_parameters,
    check_hermitian,
    get_time,
    create_group,
    open_group,
    ObjectStatus,
    require_status,
    HermiticityError,
    QuantumNumberError,
    StructureMismatchError,
)
import logging

logger = logging.getLogger(__name__)

__all__ = ["Hamiltonian", "HamiltonianPart", "build_block_matrix", "map_blocks"]


def map_blocks(func, parts, n_workers=1):
    """
    Apply func to every part, in parallel threads when n_workers > 1.

    Blocks are independent: each call only touches its own part. Results are
    returned in block order and the first exception raised by a worker is
    propagated to the caller.
    """
    if n_workers == 1 or len(parts) < 2:
        return [func(part) for part in parts]
    with ThreadPoolExecutor(max_workers=n_workers) as pool:
        return list(pool.map(func, parts))


def build_block_matrix(operator, S: StatesClassification, block: int, strict=True):
    """
    Dense matrix of an operator restricted to one block of the Fock space,
    in the InnerQuantumState basis: M[i, j] = <inner_i|O|inner_j>.

    Args:
        operator: Operator (or preset) providing act_right
        S (StatesClassification): computed classification of the states
        block (int): BlockNumber
        strict (bool): if True, a matrix element towards another block raises
            QuantumNumberError, otherwise it is discarded

    Returns:
        np.ndarray: (block_size, block_size) float64 or complex128 matrix
    """
    states = S.get_states(block)
    size = len(states)
    row_list, col_list, value_list = [], [], []
    for col, state in enumerate(states):
        ket = FockState(int(state), S.index_size)
        for bra, value in operator.act_right(ket).items():
            bra_block = S.get_block_number(bra.bits)
            if bra_block != block:
                if strict:
                    raise QuantumNumberError(
                        f"Operator connects block {block} to block {bra_block} "
                        f"({ket} -> {bra}): the quantum numbers are not conserved"
                    )
                continue
            row_list.append(S.get_inner_state(bra.bits))
            col_list.append(col)
            value_list.append(value)
    values = np.array(value_list, dtype=np.complex128)
    if not np.any(values.imag):
        values = values.real
    # Duplicated entries are summed up by the sparse constructor
    return csc_matrix(
        (values, (np.array(row_list, dtype=int), np.array(col_list, dtype=int))),
        shape=(size, size),
        dtype=values.dtype,
    ).toarray()


class HamiltonianPart:
    def __init__(
        self, S: StatesClassification, operator, block: int, hermiticity_tol=1e-12
    ):
        """
        Hamiltonian restricted to a single block of the Fock space.

        Args:
            S (StatesClassification): computed classification of the states
            operator: the Hamiltonian as an Operator (or any object with act_right)
            block (int): BlockNumber of this part
            hermiticity_tol (float): tolerance of the Hermiticity check
        """
        self.S = S
        self.operator = operator
        self.block = int(block)
        self.size = S.get_block_size(block)
        self.quantum_numbers = S.get_quantum_numbers(block)
        self.hermiticity_tol = hermiticity_tol
        self.H = None
        self.eigenvalues = None
        self.eigenvectors = None
        self.status = ObjectStatus.CONSTRUCTED

    def prepare(self):
        if self.status >= ObjectStatus.PREPARED:
            return
        H = build_block_matrix(self.operator, self.S, self.block)
        try:
            check_hermitian(H, self.hermiticity_tol)
        except HermiticityError:
            logger.error(f"Block {self.block} {self.quantum_numbers} is not Hermitian")
            raise
        self.H = H
        self.status = ObjectStatus.PREPARED

    def compute(self):
        if self.status >= ObjectStatus.COMPUTED:
            return
        require_status(self, ObjectStatus.PREPARED, "diagonalize")
        # Ascending eigenvalues, eigenvectors as columns
        self.eigenvalues, self.eigenvectors = array_eigh(self.H)
        logger.debug(
            f"BLOCK {self.block} {self.quantum_numbers} DIM {self.size} "
            f"E_MIN {self.eigenvalues[0]}"
        )
        self.status = ObjectStatus.COMPUTED

    def get_eigenvalue(self, inner_state: int) -> float:
        require_status(self, ObjectStatus.COMPUTED, "read eigenvalues of")
        if not 0 <= inner_state < self.size:
            raise IndexError(
                f"InnerQuantumState {inner_state} out of range [0, {self.size})"
            )
        return float(self.eigenvalues[inner_state])

    def get_minimum_eigenvalue(self) -> float:
        require_status(self, ObjectStatus.COMPUTED, "read eigenvalues of")
        return float(self.eigenvalues[0])

    def save(self, group: dict):
        group["H"] = self.H
        group["eigenvalues"] = self.eigenvalues
        group["eigenvectors"] = self.eigenvectors

    def check_stored(self, group: dict):
        for key in ("H", "eigenvalues", "eigenvectors"):
            if key not in group or group[key] is None:
                raise StructureMismatchError(f"Block {self.block}: {key} not stored")
        if (
            np.shape(group["H"]) != (self.size, self.size)
            or np.shape(group["eigenvalues"]) != (self.size,)
            or np.shape(group["eigenvectors"]) != (self.size, self.size)
        ):
            raise StructureMismatchError(
                f"Block {self.block}: stored data do not match the block size {self.size}"
            )

    def load(self, group: dict):
        self.check_stored(group)
        self.H = np.array(group["H"])
        self.eigenvalues = np.array(group["eigenvalues"], dtype=float)
        self.eigenvectors = np.array(group["eigenvectors"])
        self.status = ObjectStatus.COMPUTED


class Hamiltonian:
    def __init__(
        self,
        S: StatesClassification,
        operator,
        n_workers: int = 1,
        hermiticity_tol: float = 1e-12,
    ):
        """
        Block-diagonal Hamiltonian: one HamiltonianPart per block of S.

        Args:
            S (StatesClassification): computed classification of the states
            operator: the Hamiltonian as an Operator; its terms must conserve
                the quantum numbers used by S
            n_workers (int): number of threads used to prepare/diagonalize blocks
            hermiticity_tol (float): tolerance of the Hermiticity check of each block
        """
        validate_parameters(n_workers=n_workers)
        require_status(S, ObjectStatus.COMPUTED, "build a Hamiltonian on")
        self.S = S
        self.operator = operator
        self.n_workers = n_workers
        self.parts = tuple(
            HamiltonianPart(S, operator, block, hermiticity_tol)
            for block in range(S.number_of_blocks())
        )
        self.ground_energy = None
        self.status = ObjectStatus.CONSTRUCTED

    @get_time
    def prepare(self):
        if self.status >= ObjectStatus.PREPARED:
            return
        logger.info(f"PREPARE HAMILTONIAN: {len(self.parts)} BLOCKS")
        map_blocks(HamiltonianPart.prepare, self.parts, self.n_workers)
        self.status = ObjectStatus.PREPARED

    @get_time
    def compute(self):
        if self.status >= ObjectStatus.COMPUTED:
            return
        require_status(self, ObjectStatus.PREPARED, "diagonalize")
        logger.info("DIAGONALIZE (dense) HAMILTONIAN BLOCKS")
        map_blocks(HamiltonianPart.compute, self.parts, self.n_workers)
        self._set_ground_energy()
        self.status = ObjectStatus.COMPUTED

    def _set_ground_energy(self):
        self.ground_energy = min(part.get_minimum_eigenvalue() for part in self.parts)
        logger.info(f"GROUND ENERGY: {round(self.ground_energy, 9)}")

    def get_part(self, block: int) -> HamiltonianPart:
        if not 0 <= block < len(self.parts):
            raise IndexError(f"BlockNumber {block} out of range [0, {len(self.parts)})")
        return self.parts[block]

    def get_ground_energy(self) -> float:
        require_status(self, ObjectStatus.COMPUTED, "get the ground energy of")
        return self.ground_energy

    def get_eigenvalues(self) -> np.ndarray:
        """All the eigenvalues of the Hamiltonian, sorted."""
        require_status(self, ObjectStatus.COMPUTED, "read eigenvalues of")
        return np.sort(np.concatenate([part.eigenvalues for part in self.parts]))

    def save(self, root: dict):
        require_status(self, ObjectStatus.COMPUTED, "save")
        group = create_group(root, "Hamiltonian")
        parts_group = create_group(group, "parts")
        for part in self.parts:
            part.save(create_group(parts_group, str(part.block)))

    def load(self, root: dict):
        group = open_group(root, "Hamiltonian")
        parts_group = open_group(group, "parts")
        if len(parts_group) != len(self.parts):
            raise StructureMismatchError(
                f"Inconsistent number of stored parts: {len(parts_group)} "
                f"instead of {len(self.parts)}"
            )
        # Validate everything before touching any part
        for part in self.parts:
            if str(part.block) not in parts_group:
                raise StructureMismatchError(f"Block {part.block} not stored")
            part.check_stored(parts_group[str(part.block)])
        for part in self.parts:
            part.load(parts_group[str(part.block)])
        self._set_ground_energy()
        self.status = ObjectStatus.COMPUTED
