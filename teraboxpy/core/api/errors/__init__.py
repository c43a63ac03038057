"""TeraBox API errors and exceptions."""
from .api_errors import TeraboxAPIError, APIErrorCodes

__all__ = [
    'TeraboxAPIError',
    'APIErrorCodes',
]
