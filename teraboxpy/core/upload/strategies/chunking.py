"""
Chunking strategies for file uploads.

Implements Strategy Pattern for different piece layouts.
Open for extension (new strategies), closed for modification.
"""
from abc import ABC, abstractmethod
from typing import List, Tuple

GiB = 1024 ** 3
MiB = 1024 ** 2


class BaseChunkingStrategy(ABC):
    """Abstract base class for chunking strategies."""

    @abstractmethod
    def calculate_chunks(self, file_size: int) -> List[Tuple[int, int]]:
        """Calculate piece boundaries."""
        pass


class FixedSizeChunkingStrategy(BaseChunkingStrategy):
    """
    Simple fixed-size chunking strategy.

    Every piece is ``chunk_size`` bytes except the last, which holds the
    remainder.
    """

    DEFAULT_CHUNK_SIZE = 120 * MiB

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Initialize with chunk size.

        Args:
            chunk_size: Size of each piece in bytes
        """
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        self.chunk_size = chunk_size

    def calculate_chunks(self, file_size: int) -> List[Tuple[int, int]]:
        """
        Calculate fixed-size piece boundaries.

        Args:
            file_size: Total file size in bytes

        Returns:
            List of (start, end) tuples
        """
        if file_size == 0:
            return []

        chunks = []
        position = 0

        while position < file_size:
            end = min(position + self.chunk_size, file_size)
            chunks.append((position, end))
            position = end

        return chunks


class ThresholdChunkingStrategy(FixedSizeChunkingStrategy):
    """
    TeraBox web upload layout.

    Files smaller than ``threshold`` (2 GiB) go up as one piece; larger
    files are cut into ``chunk_size`` (120 MiB) pieces, giving
    ceil(size / chunk_size) pieces.
    """

    DEFAULT_THRESHOLD = 2 * GiB

    def __init__(
        self,
        threshold: int = DEFAULT_THRESHOLD,
        chunk_size: int = FixedSizeChunkingStrategy.DEFAULT_CHUNK_SIZE
    ):
        super().__init__(chunk_size)
        if threshold <= 0:
            raise ValueError("Threshold must be positive")
        self.threshold = threshold

    def should_split(self, file_size: int) -> bool:
        return file_size >= self.threshold

    def calculate_chunks(self, file_size: int) -> List[Tuple[int, int]]:
        if file_size == 0:
            return []
        if not self.should_split(file_size):
            return [(0, file_size)]
        return super().calculate_chunks(file_size)
