"""
Protocol definitions for upload module.

Defines interfaces (protocols) for dependency injection and strategy pattern.
"""
from typing import AsyncIterator, Protocol, List, Tuple, Callable
from pathlib import Path

from .models import UploadProgress


ProgressCallback = Callable[[UploadProgress], None]


class ChunkingStrategy(Protocol):
    """
    Protocol for file chunking strategies.

    Allows different piece layouts to be plugged in.
    """

    def calculate_chunks(self, file_size: int) -> List[Tuple[int, int]]:
        """
        Calculate piece boundaries for a file.

        Args:
            file_size: Total file size in bytes

        Returns:
            List of (start, end) tuples representing piece boundaries
        """
        ...


class FileReaderProtocol(Protocol):
    """Protocol for file reading operations."""

    def iter_range(self, file_path: Path, start: int, end: int) -> AsyncIterator[bytes]:
        """
        Stream a byte range from a file in bounded blocks.

        Args:
            file_path: Path to the file
            start: Start position in bytes
            end: End position in bytes (exclusive)
        """
        ...

    async def hash_range(self, file_path: Path, start: int, end: int) -> str:
        """MD5 hex digest of a byte range."""
        ...

    async def copy_range(self, source: Path, start: int, end: int, destination: Path) -> str:
        """Copy a byte range into its own file and return its MD5."""
        ...
