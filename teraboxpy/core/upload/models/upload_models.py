"""
Data models for upload module.

Uses dataclasses for immutable, type-safe data structures.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional, List, Tuple


class UploadState(str, Enum):
    """States of the upload session state machine."""
    IDLE = 'idle'
    PRECREATING = 'precreating'
    RAPID_UPLOAD_COMPLETE = 'rapid_upload_complete'
    PIECE_TRANSFERRING = 'piece_transferring'
    FINALIZING = 'finalizing'
    DONE = 'done'
    FAILED = 'failed'

    @property
    def is_terminal(self) -> bool:
        return self in (UploadState.DONE, UploadState.FAILED)


@dataclass(frozen=True)
class Piece:
    """
    A contiguous byte range of a file.

    Attributes:
        index: Zero-based sequence index (the remote partseq)
        start: Start offset in the source file
        end: End offset (exclusive)
        md5: Hex MD5 of the piece bytes
        local_path: Split artifact holding the bytes, or None when the
            piece is read straight from the source file
    """
    index: int
    start: int
    end: int
    md5: str = ''
    local_path: Optional[Path] = None

    @property
    def size(self) -> int:
        """Returns piece size."""
        return self.end - self.start

    @property
    def is_artifact(self) -> bool:
        """True when the piece lives in its own split file."""
        return self.local_path is not None


@dataclass(frozen=True)
class UploadTarget:
    """
    A file selected for upload.

    Immutable once the session starts; only files reported closed for
    writing are turned into targets.

    Attributes:
        local_path: Source file
        remote_folder: Remote folder (with trailing slash)
        remote_path: Full remote path of the uploaded file
        size: File size in bytes
    """
    local_path: Path
    remote_folder: str
    remote_path: str
    size: int

    @property
    def file_name(self) -> str:
        return self.local_path.name


@dataclass
class UploadSessionState:
    """
    Remote upload session bookkeeping.

    ``upload_id`` is assigned by precreate and threaded unchanged into
    every piece transfer and the finalize call.
    """
    upload_id: str
    target_path: str
    pieces: List[Piece]
    uploaded_piece_hashes: List[str] = field(default_factory=list)

    @property
    def transferred_count(self) -> int:
        return len(self.uploaded_piece_hashes)

    @property
    def is_complete(self) -> bool:
        return self.transferred_count == len(self.pieces)

    def record(self, piece: Piece, remote_md5: str) -> None:
        """Record the remote-echoed hash of the next piece in order."""
        if piece.index != self.transferred_count:
            raise ValueError(
                f"Piece {piece.index} recorded out of order "
                f"(expected {self.transferred_count})"
            )
        self.uploaded_piece_hashes.append(remote_md5)


@dataclass(frozen=True)
class UploadResult:
    """
    Outcome of one file's upload attempt.

    Attributes:
        target: The uploaded target
        state: Terminal state (DONE or FAILED)
        rapid_upload: True when the service deduplicated the content
        error: Exception that failed the upload, if any
        piece_count: Number of pieces planned
        history: States visited, in order
        response: Raw response of the last remote call
    """
    target: UploadTarget
    state: UploadState
    rapid_upload: bool = False
    error: Optional[Exception] = None
    piece_count: int = 0
    history: Tuple[UploadState, ...] = ()
    response: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        """The only condition under which the local file may be deleted."""
        return self.state is UploadState.DONE

    @property
    def error_code(self) -> Optional[int]:
        if self.error is None:
            return None
        return getattr(self.error, 'code', None) or getattr(self.error, 'error_code', None)


@dataclass
class UploadSummary:
    """Aggregated results of a batch or watch run."""
    results: List[UploadResult] = field(default_factory=list)

    def add(self, result: UploadResult) -> None:
        self.results.append(result)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.succeeded)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0


@dataclass
class UploadProgress:
    """
    Upload progress information.

    Attributes:
        total_pieces: Total number of pieces
        uploaded_pieces: Number of uploaded pieces
        total_bytes: Total file size
        uploaded_bytes: Bytes uploaded so far
    """
    total_pieces: int
    uploaded_pieces: int = 0
    total_bytes: int = 0
    uploaded_bytes: int = 0

    @property
    def percentage(self) -> float:
        """Returns upload progress as percentage."""
        if self.total_pieces == 0:
            return 0.0
        return (self.uploaded_pieces / self.total_pieces) * 100

    @property
    def is_complete(self) -> bool:
        """Returns True if upload is complete."""
        return self.uploaded_pieces >= self.total_pieces
