"""
Error handling module for Home Search.

Provides the error taxonomy and best-effort execution helpers.
"""

from .errors import (
    BestEffort,
    ErrorContext,
    MalformedCachePointer,
    ProviderError,
    StoreError,
    log_error,
    run_best_effort,
)

__all__ = [
    'BestEffort',
    'ErrorContext',
    'MalformedCachePointer',
    'ProviderError',
    'StoreError',
    'log_error',
    'run_best_effort',
]
