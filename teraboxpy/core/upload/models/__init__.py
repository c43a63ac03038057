"""Upload models."""
from .upload_models import (
    UploadState,
    Piece,
    UploadTarget,
    UploadSessionState,
    UploadResult,
    UploadSummary,
    UploadProgress,
)

__all__ = [
    'UploadState',
    'Piece',
    'UploadTarget',
    'UploadSessionState',
    'UploadResult',
    'UploadSummary',
    'UploadProgress',
]
