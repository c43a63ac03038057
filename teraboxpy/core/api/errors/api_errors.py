"""TeraBox API error codes and exceptions."""
from typing import Dict, Optional

from ...exceptions import TeraboxException


class APIErrorCodes:
    """TeraBox web API ``errno`` values."""

    SUCCESS = 0
    NOT_LOGGED_IN = -6
    VERIFICATION_REQUIRED = 4000023

    ERROR_CODES: Dict[int, str] = {
        0: 'Success',
        2: 'Invalid parameters',
        -6: 'Authentication failed: cookie expired or not logged in',
        -7: 'Invalid file name or path',
        -8: 'File already exists',
        -9: 'File does not exist',
        -10: 'Storage quota exceeded',
        31023: 'Invalid request parameters',
        31034: 'Request frequency limit hit, try again later',
        31299: 'Upload service temporarily unavailable',
        31363: 'Upload block missing, restart upload',
        4000023: 'Account verification required: tokens expired or bdstoken invalid',
    }

    AUTH_CODES = frozenset({NOT_LOGGED_IN, VERIFICATION_REQUIRED})

    @classmethod
    def get_message(cls, code: int) -> str:
        """Gets error message for error code."""
        return cls.ERROR_CODES.get(code, f"Unknown error: {code}")

    @classmethod
    def is_auth_error(cls, code: int) -> bool:
        """True when the code means the credentials need refreshing."""
        return code in cls.AUTH_CODES


class TeraboxAPIError(TeraboxException):
    """Exception raised for TeraBox JSON error envelopes ({errno, errmsg})."""

    def __init__(self, code: int, message: Optional[str] = None, retryable: bool = False):
        self.code = code
        self.retryable = retryable
        text = message or APIErrorCodes.get_message(code)
        super().__init__(text, code)

    @property
    def is_auth_error(self) -> bool:
        return APIErrorCodes.is_auth_error(self.code)

    def __str__(self) -> str:
        return f"errno {self.code}: {self.message}"
