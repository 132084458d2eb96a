# dcmatrix/__init__.py
"""
dcmatrix: dense matrices with brute-force, divide-and-conquer and Strassen multiplication.
"""

from .core import Matrix, MultiplicationMethod
from .backend import next_power_of_two, sum_product
from .errors import MatrixError, InvalidDimensions, IndexOutOfRange, DimensionMismatch
from .observability import configure_logging, get_profiler, ExecutionProfiler

__version__ = "0.1.0"

__all__ = [
    "Matrix",
    "MultiplicationMethod",
    "next_power_of_two",
    "sum_product",
    "MatrixError",
    "InvalidDimensions",
    "IndexOutOfRange",
    "DimensionMismatch",
    "configure_logging",
    "get_profiler",
    "ExecutionProfiler",
]
