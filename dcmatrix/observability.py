"""
Observability utilities for dcmatrix.

This module provides:
- Logging configuration for the `dcmatrix` logger hierarchy
- An execution profiler that times multiplications by method
"""

import functools
import json
import logging
import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import DEFAULT_LOG_LEVEL, DETAILED_LOG_FORMAT, LOG_DATE_FORMAT, LOG_FORMAT


# ============================================================================
# Logging Configuration
# ============================================================================

def configure_logging(level: str = DEFAULT_LOG_LEVEL, log_file: Optional[str] = None):
    """
    Configure logging for the dcmatrix package.

    Calling this again replaces the handlers a previous call installed
    instead of stacking duplicates.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path to write logs
    """
    log_level = getattr(logging, level.upper())

    package_logger = logging.getLogger('dcmatrix')
    package_logger.setLevel(log_level)

    for handler in list(package_logger.handlers):
        if getattr(handler, '_dcmatrix_handler', False):
            package_logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    console_handler._dcmatrix_handler = True
    package_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)  # Always log everything to file
        file_handler.setFormatter(logging.Formatter(DETAILED_LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        file_handler._dcmatrix_handler = True
        package_logger.addHandler(file_handler)

    package_logger.propagate = False

    return package_logger


# ============================================================================
# Performance Profiling
# ============================================================================

@dataclass
class ProfileEntry:
    """Timing of one profiled block."""
    name: str
    start_time: float
    duration: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def complete(self):
        self.duration = time.perf_counter() - self.start_time

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'duration': self.duration,
            'metadata': {key: _jsonable(value) for key, value in self.metadata.items()},
        }


def _jsonable(value):
    if isinstance(value, tuple):
        return list(value)
    return value


class ExecutionProfiler:
    """
    Collects wall-clock timings for named blocks.

    Example:
        profiler = ExecutionProfiler()

        with profiler.profile("multiply.strassen", size=64):
            a.multiply(b, method="strassen")

        profiler.print_summary()
    """

    def __init__(self, enabled: bool = True):
        self.entries: List[ProfileEntry] = []
        self.aggregated: Dict[str, List[float]] = defaultdict(list)
        self._enabled = enabled

    @contextmanager
    def profile(self, name: str, **metadata):
        """
        Time the enclosed block under `name`.
        The entry is recorded even if the block raises.
        """
        if not self._enabled:
            yield None
            return

        entry = ProfileEntry(name=name, start_time=time.perf_counter(), metadata=metadata)
        try:
            yield entry
        finally:
            entry.complete()
            self.entries.append(entry)
            self.aggregated[name].append(entry.duration)

    def profile_decorator(self, name: Optional[str] = None):
        """Decorator form of profile(); defaults to the function's qualified name."""
        def decorator(func):
            profile_name = name or f"{func.__module__}.{func.__name__}"

            @functools.wraps(func)
            def wrapper(*args, **kwargs):
                with self.profile(profile_name):
                    return func(*args, **kwargs)
            return wrapper
        return decorator

    def get_summary(self) -> Dict[str, Dict[str, float]]:
        """Count, total, mean, min and max duration per profiled name."""
        summary = {}
        for name, durations in self.aggregated.items():
            if durations:
                summary[name] = {
                    'count': len(durations),
                    'total': sum(durations),
                    'mean': sum(durations) / len(durations),
                    'min': min(durations),
                    'max': max(durations),
                }
        return summary

    def print_summary(self):
        summary = self.get_summary()

        print("\n" + "=" * 72)
        print("MULTIPLICATION PROFILE")
        print("=" * 72)
        print(f"{'Operation':<32} {'Count':>8} {'Total (s)':>14} {'Mean (s)':>14}")
        print("-" * 72)

        for name, stats in sorted(summary.items(), key=lambda item: item[1]['total'], reverse=True):
            print(f"{name:<32} {stats['count']:>8} {stats['total']:>14.6f} {stats['mean']:>14.6f}")

        print("=" * 72 + "\n")

    def save_json(self, filepath: str):
        data = {
            'summary': self.get_summary(),
            'entries': [entry.to_dict() for entry in self.entries],
        }
        with open(filepath, 'w') as f:
            json.dump(data, f, indent=2)

    def reset(self):
        self.entries.clear()
        self.aggregated.clear()

    def enable(self):
        self._enabled = True

    def disable(self):
        self._enabled = False


# Global profiler instance; disabled until enable() is called
_global_profiler = ExecutionProfiler(enabled=False)

def get_profiler() -> ExecutionProfiler:
    """Get the global profiler instance."""
    return _global_profiler
