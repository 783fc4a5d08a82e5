"""Utility modules for common operations.

- Retry with exponential backoff (startup connectivity, tree writes)
"""

from tree_service.utils.retry import RetryError, RetryStrategy, retry

__all__ = [
    "RetryError",
    "RetryStrategy",
    "retry",
]
