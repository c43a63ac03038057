"""
Chunk planner.

Turns a file into an ordered list of hashed pieces. By default pieces are
byte ranges read straight from the source file; with a work directory they
are materialized as split files, matching the web uploader's layout.
"""
from pathlib import Path
from typing import List, Optional
import logging
import re

from .models import Piece
from .protocols import ChunkingStrategy, FileReaderProtocol
from .services import AsyncFileReader
from .strategies import ThresholdChunkingStrategy
from ..exceptions import ChunkingFailed

logger = logging.getLogger('teraboxpy.upload.planner')


class ChunkPlanner:
    """
    Plans and hashes the pieces of a file.

    Example:
        >>> planner = ChunkPlanner(threshold=2 * 1024**3, piece_size=120 * 1024**2)
        >>> pieces = await planner.plan(Path("2024-01-01-00-00-00.mkv"), size)
        >>> [p.md5 for p in pieces]
    """

    def __init__(
        self,
        threshold: int = ThresholdChunkingStrategy.DEFAULT_THRESHOLD,
        piece_size: int = ThresholdChunkingStrategy.DEFAULT_CHUNK_SIZE,
        work_dir: Optional[Path] = None,
        strategy: Optional[ChunkingStrategy] = None,
        file_reader: Optional[FileReaderProtocol] = None
    ):
        """
        Initialize planner.

        Args:
            threshold: Files at or above this size are split
            piece_size: Size of each piece when splitting
            work_dir: Directory for split artifacts; None streams byte ranges
            strategy: Custom chunking strategy (overrides threshold/piece_size)
            file_reader: File reader used for hashing and splitting
        """
        self._strategy = strategy or ThresholdChunkingStrategy(threshold, piece_size)
        self._work_dir = Path(work_dir) if work_dir else None
        self._reader = file_reader or AsyncFileReader()

    @property
    def materializes(self) -> bool:
        return self._work_dir is not None

    def layout(self, size: int) -> List[Piece]:
        """Unhashed piece boundaries for ``size`` bytes."""
        return [
            Piece(index=i, start=start, end=end)
            for i, (start, end) in enumerate(self._strategy.calculate_chunks(size))
        ]

    def artifact_prefix(self, path: Path) -> str:
        """Prefix shared by every split artifact of ``path``."""
        return 'piece' + re.sub(r'[^A-Za-z0-9._-]', '_', str(path))

    async def plan(self, path: Path, size: int) -> List[Piece]:
        """
        Build the ordered, hashed piece list for a file.

        Args:
            path: Source file
            size: Source file size in bytes

        Returns:
            Pieces in upload order with per-piece MD5

        Raises:
            ChunkingFailed: If reading, splitting or hashing fails
        """
        layout = self.layout(size)
        if not layout:
            raise ChunkingFailed(f"Nothing to upload in {path}", str(path))

        if len(layout) > 1:
            logger.info(f"Large file detected, splitting into {len(layout)} pieces")

        if self.materializes and len(layout) > 1:
            return await self._split(path, layout)

        logger.info("Generating MD5 checksums...")
        pieces = []
        try:
            for piece in layout:
                md5 = await self._reader.hash_range(path, piece.start, piece.end)
                pieces.append(Piece(piece.index, piece.start, piece.end, md5))
        except OSError as e:
            raise ChunkingFailed(f"Failed to hash {path}: {e}", str(path)) from e
        return pieces

    async def _split(self, path: Path, layout: List[Piece]) -> List[Piece]:
        prefix = self.artifact_prefix(path)
        try:
            self._work_dir.mkdir(parents=True, exist_ok=True)
            self._remove_stale(prefix)
        except OSError as e:
            raise ChunkingFailed(f"Failed to prepare work dir {self._work_dir}: {e}", str(path)) from e

        pieces: List[Piece] = []
        try:
            for piece in layout:
                artifact = self._work_dir / f"{prefix}{piece.index:03d}"
                pieces.append(Piece(piece.index, piece.start, piece.end, '', artifact))
                md5 = await self._reader.copy_range(path, piece.start, piece.end, artifact)
                pieces[-1] = Piece(piece.index, piece.start, piece.end, md5, artifact)
                logger.debug(f"Split piece {piece.index}: {artifact.name} ({md5})")
        except OSError as e:
            self.discard(pieces)
            raise ChunkingFailed(f"Failed to split file {path}: {e}", str(path)) from e
        return pieces

    def _remove_stale(self, prefix: str) -> None:
        for stale in self._work_dir.glob(f"{prefix}*"):
            logger.debug(f"Removing stale piece {stale.name}")
            stale.unlink()

    def discard(self, pieces: List[Piece]) -> None:
        """Remove split artifacts; the source file is never touched."""
        for piece in pieces:
            if not piece.is_artifact:
                continue
            try:
                piece.local_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Could not remove piece {piece.local_path}: {e}")
