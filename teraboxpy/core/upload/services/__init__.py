"""Upload services module."""
from .file_service import FileValidator, AsyncFileReader
from .precreate_service import PrecreateService, PrecreateOutcome
from .piece_service import PieceUploader
from .create_service import FinalizeService

__all__ = [
    'FileValidator',
    'AsyncFileReader',
    'PrecreateService',
    'PrecreateOutcome',
    'PieceUploader',
    'FinalizeService',
]
