# dcmatrix/errors.py
"""
Error taxonomy for dcmatrix.

Every failure raised by the library derives from MatrixError, and each kind
also derives from the builtin exception callers would naturally expect
(ValueError for shape problems, IndexError for bad coordinates).
"""


class MatrixError(Exception):
    """Base class for all dcmatrix errors."""


class InvalidDimensions(MatrixError, ValueError):
    """A dimension is negative, or a requested size is smaller than the source."""


class IndexOutOfRange(MatrixError, IndexError):
    """A row or column index falls outside [0, bound)."""


class DimensionMismatch(MatrixError, ValueError):
    """Operand shapes (or a supplied sequence length) are incompatible."""
