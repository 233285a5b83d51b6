"""
This module provides utility functions for validating parameters and matrices
used across the exact diagonalization machinery.
"""

import numpy as np
from functools import wraps
from numbers import Integral, Real
from scipy.sparse import isspmatrix
from time import perf_counter
from .status import HermiticityError
import logging

logger = logging.getLogger(__name__)

__all__ = [
    "validate_parameters",
    "check_matrix",
    "check_hermitian",
    "get_time",
]


def get_time(func):
    """Times any function"""

    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = perf_counter()
        result = func(*args, **kwargs)
        end_time = perf_counter()
        tot_time = end_time - start_time
        logger.info(f"TIME {func.__name__} {round(tot_time, 5)}")
        return result

    return wrapper


def validate_parameters(
    index_size=None,
    index=None,
    index_list=None,
    beta=None,
    n_workers=None,
    site_label=None,
    dictionary=None,
    filename=None,
    array=None,
):
    """
    This is a function for type validation of parameters widely used in the library
    """
    # -----------------------------------------------------------------------------
    if index_size is not None and (
        not isinstance(index_size, Integral) or isinstance(index_size, bool)
    ):
        raise TypeError(f"index_size should be INT, not {type(index_size)}")
    if index_size is not None and index_size < 0:
        raise ValueError(f"index_size must be non negative, not {index_size}")
    if index is not None and (
        not isinstance(index, Integral) or isinstance(index, bool)
    ):
        raise TypeError(f"index should be a SCALAR INT, not {type(index)}")
    if index_list is not None and (
        not isinstance(index_list, (list, tuple))
        or not all(isinstance(x, Integral) for x in index_list)
    ):
        raise TypeError(f"index_list should be a LIST of INTs, not {index_list}")
    # -----------------------------------------------------------------------------
    if beta is not None:
        if not isinstance(beta, Real) or isinstance(beta, bool):
            raise TypeError(f"beta should be a SCALAR FLOAT, not {type(beta)}")
        if not np.isfinite(beta) or beta < 0:
            raise ValueError(f"beta must be finite and non negative, not {beta}")
    if n_workers is not None and (
        not isinstance(n_workers, Integral) or isinstance(n_workers, bool)
    ):
        raise TypeError(f"n_workers should be INT, not {type(n_workers)}")
    if n_workers is not None and n_workers < 1:
        raise ValueError(f"n_workers must be >= 1, not {n_workers}")
    # -----------------------------------------------------------------------------
    if site_label is not None and not isinstance(site_label, str):
        raise TypeError(f"site_label should be a STRING, not {type(site_label)}")
    if dictionary is not None and not isinstance(dictionary, dict):
        raise TypeError(f"dictionary should be a DICT, not {type(dictionary)}")
    if filename is not None and not isinstance(filename, str):
        raise TypeError(f"filename should be a STRING, not {type(filename)}")
    # -----------------------------------------------------------------------------
    if array is not None and not isinstance(array, np.ndarray):
        raise TypeError(f"array must be np.array, not {type(array)}")


def check_matrix(A, B):
    """
    Check the difference between two matrices A and B computing the Frobenius Norm

    Args:
        A (np.ndarray or scipy.sparse matrix): First matrix
        B (np.ndarray or scipy.sparse matrix): Second matrix

    Returns:
        float: the relative difference ratio

    Raises:
        ValueError: If the matrices have different shapes.
    """
    if A.shape != B.shape:
        raise ValueError(f"Shape mismatch between : A {A.shape} & B: {B.shape}")
    if isspmatrix(A):
        A = A.toarray()
    if isspmatrix(B):
        B = B.toarray()
    norma = np.linalg.norm(A - B)
    norma_max = max(np.linalg.norm(A + B), np.linalg.norm(A), np.linalg.norm(B))
    if norma_max == 0:
        return 0.0
    return norma / norma_max


def check_hermitian(A, threshold=1e-12):
    """
    Check if a (dense or sparse) matrix A is Hermitian.

    Args:
        A (np.ndarray or scipy.sparse matrix): The matrix to check for Hermiticity.
        threshold (float): tolerance on the relative norm of A - A^dagger

    Raises:
        HermiticityError: If A differs from its conjugate transpose.
    """
    if not isspmatrix(A):
        validate_parameters(array=A)
    A_dag = A.conj().T
    ratio = check_matrix(A, A_dag)
    if ratio > threshold:
        raise HermiticityError(f"Matrix is not Hermitian: RATIO {ratio}")
    logger.debug("HERMITICITY VALIDATED")
