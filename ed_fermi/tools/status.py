"""
Calculation progress of the computable objects and the errors raised when
they are used out of order or fed with inconsistent data.
"""

from enum import IntEnum

__all__ = [
    "ObjectStatus",
    "require_status",
    "StatusMismatchError",
    "StructureMismatchError",
    "WrongLabelError",
    "HermiticityError",
    "QuantumNumberError",
    "IndexNotFoundError",
]


class ObjectStatus(IntEnum):
    """Progress of a calculation. It only moves forward."""

    CONSTRUCTED = 0
    PREPARED = 1
    COMPUTED = 2


class StatusMismatchError(RuntimeError):
    """A method was called before the object reached the required status."""


class StructureMismatchError(ValueError):
    """Stored data do not match the block structure or the temperature of the run."""


class WrongLabelError(ValueError):
    """An object was constructed from inconsistent labels or indices."""


class HermiticityError(ValueError):
    """A Hamiltonian block is not Hermitian."""


class QuantumNumberError(ValueError):
    """An operator connects states belonging to different blocks."""


class IndexNotFoundError(KeyError):
    """Unknown site label, (site, orbital, spin) triple or particle index."""


def require_status(obj, status, action="use"):
    """
    Raise StatusMismatchError unless obj.status >= status.

    Args:
        obj: any object with a ``status`` attribute of type ObjectStatus
        status (ObjectStatus): minimal status required
        action (str): what the caller is trying to do, used in the message
    """
    if obj.status < status:
        raise StatusMismatchError(
            f"Cannot {action} {type(obj).__name__}: status is "
            f"{obj.status.name}, {status.name} is required."
        )
