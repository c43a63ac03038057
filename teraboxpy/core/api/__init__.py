"""
TeraBox API module.

Provides the async HTTP client and its configuration.
"""
from .config import (
    APIConfig,
    ProxyConfig,
    TimeoutConfig,
    RetryConfig,
    TeraboxSettings,
)
from .async_client import AsyncAPIClient
from .errors import TeraboxAPIError, APIErrorCodes
from .retry import RetryStrategy, LinearBackoffStrategy, RetryPolicy

__all__ = [
    # Configuration
    'APIConfig',
    'ProxyConfig',
    'TimeoutConfig',
    'RetryConfig',
    'TeraboxSettings',

    # Client
    'AsyncAPIClient',

    # Errors
    'TeraboxAPIError',
    'APIErrorCodes',

    # Retry
    'RetryStrategy',
    'LinearBackoffStrategy',
    'RetryPolicy',
]
