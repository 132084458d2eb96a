"""
Unit tests for backend kernel operations.
Tests the correctness of the brute-force, divide-and-conquer and Strassen kernels
and their helpers against numpy as the reference.
"""

import unittest
import os
import sys

import numpy as np

# Add the parent directory to the path so we can import the dcmatrix module
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dcmatrix.core import Matrix
from dcmatrix import backend
from dcmatrix.errors import DimensionMismatch, InvalidDimensions


class TestHelpers(unittest.TestCase):
    """Test cases for the kernel helper functions."""

    def test_next_power_of_two_keeps_powers_of_two(self):
        """Test that powers of two map to themselves."""
        for n in [1, 2, 4, 8, 64, 1024, 2 ** 40]:
            with self.subTest(n=n):
                self.assertEqual(backend.next_power_of_two(n), n)

    def test_next_power_of_two_rounds_up(self):
        """Test that other values map to the next larger power of two."""
        cases = {3: 4, 5: 8, 6: 8, 7: 8, 9: 16, 100: 128, 1025: 2048, 2 ** 40 + 1: 2 ** 41}
        for n, expected in cases.items():
            with self.subTest(n=n):
                self.assertEqual(backend.next_power_of_two(n), expected)

    def test_next_power_of_two_rejects_non_positive(self):
        """Test that n < 1 is rejected."""
        for n in [0, -3]:
            with self.subTest(n=n):
                with self.assertRaises(InvalidDimensions):
                    backend.next_power_of_two(n)

    def test_sum_product(self):
        """Test the dot product helper."""
        self.assertEqual(backend.sum_product([1, 2, 3], [4, 5, 6]), 32)
        self.assertEqual(backend.sum_product([], []), 0)

    def test_sum_product_length_mismatch(self):
        """Test that sequences of different length are rejected."""
        with self.assertRaises(DimensionMismatch):
            backend.sum_product([1, 2], [1, 2, 3])

    def test_split_and_join_quadrants(self):
        """Test that quadrants come back in top-left, top-right, bottom-left, bottom-right order."""
        matrix = Matrix.from_numpy(np.arange(16).reshape(4, 4))
        q11, q12, q21, q22 = backend.split_quadrants(matrix)

        self.assertEqual(q11.to_list(), [[0, 1], [4, 5]])
        self.assertEqual(q12.to_list(), [[2, 3], [6, 7]])
        self.assertEqual(q21.to_list(), [[8, 9], [12, 13]])
        self.assertEqual(q22.to_list(), [[10, 11], [14, 15]])

        self.assertEqual(backend.join_quadrants(q11, q12, q21, q22), matrix)

    def test_quadrants_own_their_storage(self):
        """Test that writing to a quadrant leaves the source untouched."""
        matrix = Matrix.from_numpy(np.arange(16).reshape(4, 4))
        q11, _, _, _ = backend.split_quadrants(matrix)
        q11.set(0, 0, 100)
        self.assertEqual(matrix.get(0, 0), 0)


class TestMultiplicationKernels(unittest.TestCase):
    """Test cases for the three multiplication kernels."""

    def setUp(self):
        """Set up a seeded random generator so failures are reproducible."""
        self.rng = np.random.default_rng(1234)

    def _random_matrix(self, rows, columns):
        return Matrix.from_numpy(self.rng.integers(-9, 10, size=(rows, columns)))

    def test_brute_force_matches_numpy_on_rectangular_shapes(self):
        """Test the brute-force kernel without any padding."""
        for m, n, p in [(1, 1, 1), (2, 3, 4), (5, 1, 3), (3, 7, 2)]:
            with self.subTest(shape=(m, n, p)):
                a = self._random_matrix(m, n)
                b = self._random_matrix(n, p)
                result = backend.brute_force_multiply(a, b)
                np.testing.assert_array_equal(result.to_numpy(), a.to_numpy() @ b.to_numpy())

    def test_brute_force_inner_dimension_mismatch(self):
        """Test that the brute-force kernel checks inner dimensions."""
        with self.assertRaises(DimensionMismatch):
            backend.brute_force_multiply(Matrix(2, 3), Matrix(2, 3))

    def test_recursive_kernels_match_numpy(self):
        """Test the divide-and-conquer and Strassen kernels on power-of-two sizes."""
        kernels = [backend.divide_conquer_multiply, backend.strassen_multiply]
        for size in [1, 2, 4, 8, 16]:
            a = self._random_matrix(size, size)
            b = self._random_matrix(size, size)
            expected = a.to_numpy() @ b.to_numpy()
            for kernel in kernels:
                with self.subTest(kernel=kernel.__name__, size=size):
                    np.testing.assert_array_equal(kernel(a, b).to_numpy(), expected)

    def test_strassen_every_quadrant_of_2x2(self):
        """
        Test each cell of a 2x2 Strassen product separately.
        A sign error in any combination formula shows up in exactly one cell.
        """
        a = Matrix.from_rows([[1, 2], [3, 4]])
        b = Matrix.from_rows([[5, 6], [7, 8]])
        result = backend.strassen_multiply(a, b)

        self.assertEqual(result.get(0, 0), 19)
        self.assertEqual(result.get(0, 1), 22)
        self.assertEqual(result.get(1, 0), 43)
        self.assertEqual(result.get(1, 1), 50)

    def test_strassen_unit_basis_products(self):
        """Test Strassen against products of unit basis matrices, which isolate each term."""
        size = 4
        for i in range(size):
            for j in range(size):
                e_ij = Matrix(size, size)
                e_ij.set(i, j, 1)
                dense = self._random_matrix(size, size)
                with self.subTest(i=i, j=j):
                    np.testing.assert_array_equal(
                        backend.strassen_multiply(e_ij, dense).to_numpy(),
                        e_ij.to_numpy() @ dense.to_numpy(),
                    )
                    np.testing.assert_array_equal(
                        backend.strassen_multiply(dense, e_ij).to_numpy(),
                        dense.to_numpy() @ e_ij.to_numpy(),
                    )

    def test_recursive_kernels_reject_non_square(self):
        """Test that recursion entry rejects non-square operands."""
        for kernel in [backend.divide_conquer_multiply, backend.strassen_multiply]:
            with self.subTest(kernel=kernel.__name__):
                with self.assertRaises(DimensionMismatch):
                    kernel(Matrix(2, 4), Matrix(4, 2))
                with self.assertRaises(DimensionMismatch):
                    kernel(Matrix(2, 2), Matrix(4, 4))

    def test_recursive_kernels_reject_non_power_of_two(self):
        """Test that recursion entry rejects sizes that cannot be halved down to 1."""
        for kernel in [backend.divide_conquer_multiply, backend.strassen_multiply]:
            with self.subTest(kernel=kernel.__name__):
                with self.assertRaises(InvalidDimensions):
                    kernel(Matrix(3, 3), Matrix(3, 3))
                with self.assertRaises(InvalidDimensions):
                    kernel(Matrix(0, 0), Matrix(0, 0))

    def test_threaded_products_match_serial(self):
        """Test that evaluating the top-level products on a thread pool gives the same result."""
        a = self._random_matrix(8, 8)
        b = self._random_matrix(8, 8)
        for kernel in [backend.divide_conquer_multiply, backend.strassen_multiply]:
            with self.subTest(kernel=kernel.__name__):
                self.assertEqual(kernel(a, b, max_workers=4), kernel(a, b))

    def test_kernels_do_not_modify_operands(self):
        """Test that operands are unchanged after multiplication."""
        a = self._random_matrix(4, 4)
        b = self._random_matrix(4, 4)
        a_before, b_before = a.to_numpy(), b.to_numpy()

        backend.strassen_multiply(a, b)
        backend.divide_conquer_multiply(a, b)

        np.testing.assert_array_equal(a.to_numpy(), a_before)
        np.testing.assert_array_equal(b.to_numpy(), b_before)


if __name__ == '__main__':
    unittest.main()
