
# --- Purpose: Contains the matrix multiplication kernels. ---

import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from .errors import DimensionMismatch, InvalidDimensions

logger = logging.getLogger(__name__)


def next_power_of_two(n: int) -> int:
    """Smallest power of two that is >= n, for n >= 1."""
    if n < 1:
        raise InvalidDimensions(f"next_power_of_two requires n >= 1, got {n}.")
    return 1 << (n - 1).bit_length()


def sum_product(left, right, zero=0):
    """Dot product of two equal-length sequences, seeded with `zero`."""
    if len(left) != len(right):
        raise DimensionMismatch(
            f"Sequences must be the same size, got {len(left)} and {len(right)}."
        )
    total = zero
    for a, b in zip(left, right):
        total = total + a * b
    return total


def recursive_growth(size: int) -> int:
    """
    Bound on |product entry| / (max|left| * max|right|) for the recursive
    methods on size x size operands. Quadrant sums double operand entries at
    each of the lg(size) levels, and combining up to four products quadruples
    the result at each level, giving size^4 overall.
    """
    return size ** 4


def _max_abs(matrix) -> int:
    grid = matrix.to_numpy()
    if grid.size == 0:
        return 0
    return max(abs(int(grid.max())), abs(int(grid.min())))


def may_overflow(left, right, growth: int) -> bool:
    """
    True when an integer product of `left` and `right` could leave the int64
    range, given that each result entry is at most
    max|left| * max|right| * growth. Non-integer dtypes never overflow here;
    booleans always need promotion since numpy's bool arithmetic is logical.
    """
    dtype = np.result_type(left.dtype, right.dtype)
    if dtype.kind == 'b':
        return True
    if dtype.kind not in 'iu':
        return False
    bound = _max_abs(left) * _max_abs(right) * growth
    return bound > np.iinfo(np.int64).max


def split_quadrants(matrix):
    """
    Splits an even-sized square matrix into its four quadrants:
    top-left, top-right, bottom-left, bottom-right.
    Each quadrant is a fresh copy that owns its own storage.
    """
    half = matrix.rows // 2
    grid = matrix.to_numpy()
    build = type(matrix).from_numpy
    return (
        build(grid[:half, :half]),
        build(grid[:half, half:]),
        build(grid[half:, :half]),
        build(grid[half:, half:]),
    )


def join_quadrants(top_left, top_right, bottom_left, bottom_right):
    """Assembles four equal-sized square blocks into one matrix."""
    grid = np.block([
        [top_left.to_numpy(), top_right.to_numpy()],
        [bottom_left.to_numpy(), bottom_right.to_numpy()],
    ])
    return type(top_left).from_numpy(grid)


def brute_force_multiply(left, right):
    """
    Multiply an m x n matrix by an n x p matrix with straight dot products.
    Time complexity is O(m * n * p). Works on any compatible shapes.
    """
    if left.columns != right.rows:
        raise DimensionMismatch(
            f"Cannot multiply {left.rows}x{left.columns} by {right.rows}x{right.columns}: "
            f"inner dimensions must match."
        )

    dtype = np.result_type(left.dtype, right.dtype)
    result = type(left)(left.rows, right.columns, dtype=dtype)
    zero = result.zero

    # Pull every column once; column access is strided over the row-major store
    columns = [right.get_column(j) for j in range(right.columns)]
    for i in range(left.rows):
        row = left.get_row(i)
        for j, column in enumerate(columns):
            result.set(i, j, sum_product(row, column, zero))

    return result


def _check_recursive_operands(left, right):
    if not (left.is_square and right.is_square and left.rows == right.rows):
        raise DimensionMismatch(
            f"Recursive multiplication needs two square matrices of the same size, "
            f"got {left.rows}x{left.columns} and {right.rows}x{right.columns}."
        )
    size = left.rows
    if size < 1 or size & (size - 1):
        raise InvalidDimensions(
            f"Recursive multiplication needs a power-of-two size, got {size}."
        )


def _scalar_product(left, right):
    dtype = np.result_type(left.dtype, right.dtype)
    return type(left)(1, 1, left.get(0, 0) * right.get(0, 0), dtype=dtype)


def _evaluate_products(kernel, operand_pairs, max_workers):
    """
    Runs `kernel` over every (left, right) pair and returns the products in order.
    With max_workers > 1 the pairs are submitted to a thread pool; every product
    is finished before this returns.
    """
    if not max_workers or max_workers <= 1:
        return [kernel(l, r) for l, r in operand_pairs]

    logger.debug(f"Evaluating {len(operand_pairs)} products on {max_workers} threads")
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(kernel, l, r) for l, r in operand_pairs]
        return [future.result() for future in futures]


def divide_conquer_multiply(left, right, max_workers=None):
    """
    Plain divide-and-conquer product of two n x n matrices, n a power of two.
    Eight half-size products per level, so the cost stays O(n^3).
    """
    _check_recursive_operands(left, right)

    if left.rows == 1:
        return _scalar_product(left, right)

    l11, l12, l21, l22 = split_quadrants(left)
    r11, r12, r21, r22 = split_quadrants(right)

    products = _evaluate_products(divide_conquer_multiply, [
        (l11, r11), (l12, r21),
        (l11, r12), (l12, r22),
        (l21, r11), (l22, r21),
        (l21, r12), (l22, r22),
    ], max_workers)

    p1 = products[0] + products[1]
    p2 = products[2] + products[3]
    p3 = products[4] + products[5]
    p4 = products[6] + products[7]

    return join_quadrants(p1, p2, p3, p4)


def strassen_multiply(left, right, max_workers=None):
    """
    Strassen's product of two n x n matrices, n a power of two.
    Seven half-size products per level: O(n^lg7).
    """
    _check_recursive_operands(left, right)

    if left.rows == 1:
        return _scalar_product(left, right)

    l11, l12, l21, l22 = split_quadrants(left)
    r11, r12, r21, r22 = split_quadrants(right)

    p1, p2, p3, p4, p5, p6, p7 = _evaluate_products(strassen_multiply, [
        (l11, r12 - r22),
        (l11 + l12, r22),
        (l21 + l22, r11),
        (l22, r21 - r11),
        (l11 + l22, r11 + r22),
        (l12 - l22, r21 + r22),
        (l11 - l21, r11 + r12),
    ], max_workers)

    c1 = p5 + p4 - p2 + p6
    c2 = p1 + p2
    c3 = p3 + p4
    c4 = p1 + p5 - p3 - p7

    return join_quadrants(c1, c2, c3, c4)
