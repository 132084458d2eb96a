
# --- Purpose: Handles the in-memory representation of a dense matrix. ---

import logging
import numbers
from enum import Enum

import numpy as np

from . import backend
from .config import DEFAULT_MAX_WORKERS, DEFAULT_METHOD
from .errors import DimensionMismatch, IndexOutOfRange, InvalidDimensions
from .observability import get_profiler

logger = logging.getLogger(__name__)


def _common_dtype(dtype, values):
    try:
        return np.result_type(dtype, np.asarray(values).dtype)
    except (OverflowError, TypeError, ValueError):
        return np.dtype(object)


def _holds_exactly(values, dtype) -> bool:
    """True when every value survives a round trip through `dtype` unchanged."""
    try:
        with np.errstate(invalid='ignore', over='ignore'):
            restored = np.asarray(values, dtype=dtype).astype(object)
    except (OverflowError, TypeError, ValueError):
        return False
    original = np.asarray(values, dtype=object)
    # NaN never equals itself but still round-trips
    return bool(np.all((restored == original) | (restored != restored)))


class MultiplicationMethod(str, Enum):
    CANONICAL = "canonical"  # O(n^3)
    PLAIN_DC = "plain_dc"    # Plain divide-and-conquer: O(n^3)
    STRASSEN = "strassen"    # Strassen divide-and-conquer: O(n^lg7)


class Matrix:
    """
    A dense rows x columns matrix backed by a flat, row-major numpy array.

    The element type is whatever numpy infers from `initial_value` unless a
    dtype is given. Use dtype=object to keep exact Python numerics such as
    Fraction, Decimal or unbounded ints.

    Every matrix owns its storage. Arithmetic and multiplication return new
    matrices, and row/column getters return plain lists rather than views.
    """
    def __init__(self, rows, columns, initial_value=0, dtype=None):
        for name, value in (("rows", rows), ("columns", columns)):
            if not isinstance(value, numbers.Integral) or value < 0:
                raise InvalidDimensions(f"{name} must be a non-negative integer, got {value!r}.")

        self._rows = int(rows)
        self._columns = int(columns)
        self._grid = np.full(self._rows * self._columns, initial_value, dtype=dtype)

    @classmethod
    def from_numpy(cls, array, dtype=None) -> 'Matrix':
        """Builds a matrix from a copy of a 2-D array."""
        grid = np.array(array, dtype=dtype)
        if grid.ndim != 2:
            raise InvalidDimensions(f"Matrix data must be 2-dimensional, got {grid.ndim} dimensions.")

        obj = cls.__new__(cls)
        obj._rows, obj._columns = grid.shape
        obj._grid = grid.reshape(-1)
        return obj

    @classmethod
    def from_rows(cls, rows, dtype=None) -> 'Matrix':
        """Builds a matrix from a sequence of equal-length rows."""
        rows = [list(row) for row in rows]
        if not rows:
            return cls(0, 0, dtype=dtype)

        width = len(rows[0])
        for index, row in enumerate(rows):
            if len(row) != width:
                raise DimensionMismatch(f"Row {index} has {len(row)} items, expected {width}.")

        if width == 0:
            return cls(len(rows), 0, dtype=dtype)
        return cls.from_numpy(rows, dtype=dtype)

    # --- Shape ---

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def shape(self):
        return (self._rows, self._columns)

    @property
    def dtype(self):
        return self._grid.dtype

    @property
    def is_square(self) -> bool:
        return self._rows == self._columns

    @property
    def zero(self):
        """Additive identity of this matrix's element type."""
        return np.zeros(1, dtype=self.dtype)[0]

    # --- Getters/Setters ---

    def _check_row(self, row):
        if not isinstance(row, numbers.Integral) or not 0 <= row < self._rows:
            raise IndexOutOfRange(f"Row {row!r} out of range [0, {self._rows}).")

    def _check_column(self, column):
        if not isinstance(column, numbers.Integral) or not 0 <= column < self._columns:
            raise IndexOutOfRange(f"Column {column!r} out of range [0, {self._columns}).")

    def _prepare(self, values):
        """
        Converts `values` to the storage dtype, widening the storage first
        when the current dtype cannot hold them exactly. Nothing is written.
        """
        for value in values:
            if not isinstance(value, numbers.Number):
                raise TypeError(f"Matrix elements must be numeric, got {value!r}.")

        if self.dtype != object and not _holds_exactly(values, self.dtype):
            # Integers that overflow the current dtype need Python ints
            target = np.dtype(object)
            if not all(isinstance(value, numbers.Integral) for value in values):
                candidate = _common_dtype(self.dtype, values)
                if _holds_exactly(values, candidate) and _holds_exactly(self._grid, candidate):
                    target = candidate
            logger.debug(f"Widening storage from {self.dtype.name} to {target.name}")
            self._grid = self._grid.astype(target)

        return np.asarray(values, dtype=self.dtype)

    def get(self, row, column):
        self._check_row(row)
        self._check_column(column)
        return self._grid[row * self._columns + column]

    def set(self, row, column, value):
        self._check_row(row)
        self._check_column(column)
        self._grid[row * self._columns + column] = self._prepare([value])[0]

    def get_row(self, row) -> list:
        self._check_row(row)
        lower = row * self._columns
        return self._grid[lower:lower + self._columns].tolist()

    def set_row(self, row, values):
        self._check_row(row)
        if len(values) != self._columns:
            raise DimensionMismatch(
                f"Each row has {self._columns} items, you gave it {len(values)}."
            )
        # Convert first so a bad element cannot leave the row half written
        converted = self._prepare(values)
        lower = row * self._columns
        self._grid[lower:lower + self._columns] = converted

    def get_column(self, column) -> list:
        self._check_column(column)
        return self._grid[column::self._columns].tolist()

    def set_column(self, column, values):
        self._check_column(column)
        if len(values) != self._rows:
            raise DimensionMismatch(
                f"Each column has {self._rows} items, you gave it {len(values)}."
            )
        converted = self._prepare(values)
        self._grid[column::self._columns] = converted

    @staticmethod
    def _split_index(index):
        if not isinstance(index, tuple) or len(index) != 2:
            raise IndexOutOfRange(f"Matrix indices take the form m[row, column], got {index!r}.")
        return index

    def __getitem__(self, index):
        row, column = self._split_index(index)
        return self.get(row, column)

    def __setitem__(self, index, value):
        row, column = self._split_index(index)
        self.set(row, column, value)

    # --- Conversion ---

    def to_numpy(self) -> np.ndarray:
        """Returns a 2-D copy of the matrix data."""
        return self._grid.reshape(self._rows, self._columns).copy()

    def to_list(self) -> list:
        return self._grid.reshape(self._rows, self._columns).tolist()

    def astype(self, dtype) -> 'Matrix':
        """Returns a copy with elements converted to `dtype`."""
        return self._from_grid(self._rows, self._columns, self._grid.astype(dtype))

    # --- Arithmetic ---

    def _check_same_shape(self, other, operation):
        if self.shape != other.shape:
            raise DimensionMismatch(
                f"Matrices must be the same size to {operation}, got {self.shape} and {other.shape}."
            )

    def add(self, other: 'Matrix') -> 'Matrix':
        """Element-wise sum. Neither operand is modified."""
        self._check_same_shape(other, "add")
        return self._from_grid(self._rows, self._columns, self._grid + other._grid)

    def subtract(self, other: 'Matrix') -> 'Matrix':
        """Element-wise difference. Neither operand is modified."""
        self._check_same_shape(other, "subtract")
        return self._from_grid(self._rows, self._columns, self._grid - other._grid)

    def __add__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.subtract(other)

    def __matmul__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.multiply(other)

    @classmethod
    def _from_grid(cls, rows, columns, grid):
        # grid must be a freshly allocated flat array nobody else references
        obj = cls.__new__(cls)
        obj._rows = rows
        obj._columns = columns
        obj._grid = grid
        return obj

    # --- Padding ---

    def square_padded(self, size: int) -> 'Matrix':
        """
        Returns a size x size copy with this matrix in the top-left block
        and zeros everywhere else.
        """
        if size < self._rows or size < self._columns:
            raise InvalidDimensions(
                f"Cannot pad a {self._rows}x{self._columns} matrix to {size}x{size}."
            )
        padded = Matrix(size, size, dtype=self.dtype)
        padded._grid.reshape(size, size)[:self._rows, :self._columns] = \
            self._grid.reshape(self._rows, self._columns)
        return padded

    def cropped(self, rows: int, columns: int) -> 'Matrix':
        """Returns a copy of the top-left rows x columns block."""
        if not (0 <= rows <= self._rows and 0 <= columns <= self._columns):
            raise InvalidDimensions(
                f"Cannot crop a {self._rows}x{self._columns} matrix to {rows}x{columns}."
            )
        block = self._grid.reshape(self._rows, self._columns)[:rows, :columns].copy()
        return self._from_grid(rows, columns, block.reshape(-1))

    # --- Multiplication ---

    def multiply(self, other: 'Matrix', method=DEFAULT_METHOD, max_workers=DEFAULT_MAX_WORKERS) -> 'Matrix':
        """
        Multiply this m x n matrix by an n x p matrix.

        Args:
            other: Right-hand operand
            method: A MultiplicationMethod or its string value
            max_workers: Thread count for the top recursion level of the
                divide-and-conquer methods (None keeps it serial)
        """
        method = MultiplicationMethod(method)
        if self._columns != other.rows:
            raise DimensionMismatch(
                f"Multiply 2 matrices, one must have dimensions mxn, the other nxp; "
                f"got {self._rows}x{self._columns} and {other.rows}x{other.columns}."
            )

        with get_profiler().profile(f"multiply.{method.value}",
                                    left_shape=self.shape, right_shape=other.shape):
            if 0 in (self._rows, self._columns, other.columns):
                logger.debug(f"Degenerate product {self.shape} x {other.shape}, returning zeros")
                dtype = np.result_type(self.dtype, other.dtype)
                return Matrix(self._rows, other.columns, dtype=dtype)

            if method is MultiplicationMethod.CANONICAL:
                growth = self._columns
            else:
                # Pad both operands to a shared square power-of-two size
                max_dimension = max(self._rows, self._columns, other.rows, other.columns)
                padded_size = backend.next_power_of_two(max_dimension)
                growth = backend.recursive_growth(padded_size)

            left, right = self, other
            if backend.may_overflow(self, other, growth):
                logger.debug(f"Integer product of {self.shape} x {other.shape} may overflow, using Python ints")
                left, right = self.astype(object), other.astype(object)

            if method is MultiplicationMethod.CANONICAL:
                logger.debug(f"Canonical multiply {self.shape} x {other.shape}")
                return backend.brute_force_multiply(left, right)

            logger.debug(
                f"{method.value} multiply {self.shape} x {other.shape} padded to {padded_size}x{padded_size}"
            )

            padded_left = left.square_padded(padded_size)
            padded_right = right.square_padded(padded_size)

            if method is MultiplicationMethod.STRASSEN:
                padded_result = backend.strassen_multiply(padded_left, padded_right, max_workers)
            else:
                padded_result = backend.divide_conquer_multiply(padded_left, padded_right, max_workers)

            return padded_result.cropped(self._rows, other.columns)

    # --- Comparison and description ---

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self._grid, other._grid))

    __hash__ = None

    def __str__(self):
        lines = []
        for i in range(self._rows):
            lines.append(" ".join(str(value) for value in self.get_row(i)) + "\n")
        return "".join(lines)

    def __repr__(self):
        return f"Matrix(rows={self._rows}, columns={self._columns}, dtype={self.dtype.name})"
