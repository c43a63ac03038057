"""Filesystem watch queue."""
from .queue_watcher import UploadQueueWatcher, ClosedFileHandler

__all__ = [
    'UploadQueueWatcher',
    'ClosedFileHandler',
]
