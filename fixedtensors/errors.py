"""
Exceptions raised by `fixedtensors`.

Each failure mode has its own class, so callers can tell them apart.
They also derive from the builtin exception a NumPy user would expect
(`TypeError`, `ValueError`, `IndexError`), so generic handlers keep working.
"""

__all__ = ["TensorError", "UnsupportedShapeError", "ShapeMismatchError",
           "TensorIndexError", "NotSymmetricError"]


class TensorError(Exception):
    """Base class for all errors raised by this package."""


class UnsupportedShapeError(TensorError, TypeError):
    """
    Raised when specializing a tensor kind with an order or dimension it
    does not support. Since this happens when the parametrized class is
    created, no instance of such a shape can ever exist.
    """


class ShapeMismatchError(TensorError, ValueError):
    """
    Raised when the data supplied to a tensor constructor (or to an
    element-wise operation) does not have the expected number of components.
    """


class TensorIndexError(TensorError, IndexError):
    """Raised for a multi-index outside the declared shape."""


class NotSymmetricError(TensorError, ValueError):
    """
    Raised when dense data passed to a symmetric tensor constructor does not
    have the required symmetry and `symmetrize` was not requested.
    """
