"""Retry strategies using Strategy Pattern."""
from .retry_strategy import RetryStrategy, LinearBackoffStrategy, RetryPolicy

__all__ = [
    'RetryStrategy',
    'LinearBackoffStrategy',
    'RetryPolicy',
]
