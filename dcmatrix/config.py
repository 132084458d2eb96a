# dcmatrix/config.py
"""
Centralized configuration for the dcmatrix library.
This module provides a single source of truth for all configurable parameters.
"""

# Multiplication defaults
DEFAULT_METHOD = "strassen"  # One of "canonical", "plain_dc", "strassen"
DEFAULT_MAX_WORKERS = None  # None or 1 keeps the top recursion level serial

# Logging
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DETAILED_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
