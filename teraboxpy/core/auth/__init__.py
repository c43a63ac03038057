"""Authentication module."""
from .credentials import (
    Credentials,
    CredentialProvider,
    StaticCredentialProvider,
    PageScrapingRefresher,
)

__all__ = [
    'Credentials',
    'CredentialProvider',
    'StaticCredentialProvider',
    'PageScrapingRefresher',
]
