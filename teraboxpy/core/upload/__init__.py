"""
Upload module for TeraBox file uploads.

Implements the precreate -> piece transfer -> create protocol with
pluggable chunking, credential and notification components.
"""
from .coordinator import UploadCoordinator
from .session import UploadSession
from .planner import ChunkPlanner
from .models import (
    UploadState,
    Piece,
    UploadTarget,
    UploadSessionState,
    UploadResult,
    UploadSummary,
    UploadProgress,
)
from .protocols import ChunkingStrategy, FileReaderProtocol, ProgressCallback

__all__ = [
    # Main classes
    'UploadCoordinator',
    'UploadSession',
    'ChunkPlanner',

    # Models
    'UploadState',
    'Piece',
    'UploadTarget',
    'UploadSessionState',
    'UploadResult',
    'UploadSummary',
    'UploadProgress',

    # Protocols
    'ChunkingStrategy',
    'FileReaderProtocol',
    'ProgressCallback',
]
