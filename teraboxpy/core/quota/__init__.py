"""Quota checking module."""
from .quota_gate import (
    QuotaGate,
    QuotaSnapshot,
    QuotaDecision,
    STANDARD_MAX_FILE_SIZE,
    PRIVILEGED_MAX_FILE_SIZE,
)

__all__ = [
    'QuotaGate',
    'QuotaSnapshot',
    'QuotaDecision',
    'STANDARD_MAX_FILE_SIZE',
    'PRIVILEGED_MAX_FILE_SIZE',
]
