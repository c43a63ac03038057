"""
File validation and reading services.

Everything that touches local segment bytes goes through here: the
pre-upload sanity check and block-wise range reads for hashing, splitting
and streaming pieces.
"""
from pathlib import Path
from typing import AsyncIterator, Tuple, Union
import hashlib
import logging

import aiofiles


class FileValidator:
    """Rejects paths that cannot be uploaded: missing, not a regular file, or empty."""

    def validate(self, file_path: Union[str, Path]) -> Tuple[Path, int]:
        """
        Check a segment before upload.

        Returns:
            Tuple of (Path, size in bytes)

        Raises:
            FileNotFoundError: If nothing exists at ``file_path``
            ValueError: If it is a directory or other non-regular file, or empty
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        if not path.is_file():
            raise ValueError(f"Not a regular file: {path}")

        size = path.stat().st_size
        if size == 0:
            raise ValueError(f"Cannot upload empty file: {path}")
        return path, size


class AsyncFileReader:
    """
    Asynchronous file reader for range-based reading.

    Uses aiofiles for non-blocking I/O operations. Every operation streams
    through fixed-size blocks, so a piece is never held in memory whole.
    """

    BLOCK_SIZE = 1024 * 1024

    def __init__(self, block_size: int = BLOCK_SIZE):
        """Initialize file reader."""
        self._logger = logging.getLogger('teraboxpy.upload.file')
        self._block_size = block_size

    async def iter_range(self, file_path: Path, start: int, end: int) -> AsyncIterator[bytes]:
        """
        Yield ``file_path[start:end]`` in blocks of at most ``block_size``.

        The file is opened when iteration starts, so each call gives an
        independent stream.

        Raises:
            OSError: If the file cannot be read or is shorter than ``end``
        """
        remaining = end - start
        async with aiofiles.open(file_path, 'rb') as f:
            await f.seek(start)
            while remaining > 0:
                block = await f.read(min(self._block_size, remaining))
                if not block:
                    raise OSError(f"Unexpected end of file in {file_path} at {end - remaining}")
                remaining -= len(block)
                yield block
        self._logger.debug(f"Streamed {file_path.name} {start}-{end}")

    async def hash_range(self, file_path: Path, start: int, end: int) -> str:
        """
        MD5 of ``file_path[start:end]``, streamed block by block.

        Raises:
            OSError: If the file cannot be read or is shorter than ``end``
        """
        digest = hashlib.md5()
        async for block in self.iter_range(file_path, start, end):
            digest.update(block)
        return digest.hexdigest()

    async def copy_range(self, source: Path, start: int, end: int, destination: Path) -> str:
        """
        Copy ``source[start:end]`` into ``destination`` and return its MD5.

        Raises:
            OSError: On read/write failure (disk full, permissions)
        """
        digest = hashlib.md5()
        async with aiofiles.open(destination, 'wb') as dst:
            async for block in self.iter_range(source, start, end):
                await dst.write(block)
                digest.update(block)
        return digest.hexdigest()
