"""
Piece upload service.

Handles transferring individual pieces to the TeraBox upload host.
"""
from pathlib import Path
from typing import Optional, Tuple
import logging
import time

from ...api import AsyncAPIClient, RetryPolicy
from ...auth import Credentials
from ...exceptions import ChunkingFailed, PieceHashMissing, PieceUploadFailed, TeraboxException
from ..models import Piece, UploadTarget
from ..protocols import FileReaderProtocol
from .file_service import AsyncFileReader


class PieceUploader:
    """
    Uploads pieces through the ``superfile2`` multipart endpoint.

    Responsibilities:
    - Stream piece bytes (split artifact or source byte range)
    - Send them with the upload id and partseq
    - Verify the remote echoed a non-empty MD5
    """

    PATH = '/rest/2.0/pcs/superfile2'

    def __init__(
        self,
        api: AsyncAPIClient,
        retry: Optional[RetryPolicy] = None,
        file_reader: Optional[FileReaderProtocol] = None
    ):
        """
        Initialize piece uploader.

        Args:
            api: API client
            retry: Retry policy wrapping each transfer
            file_reader: Reader for piece payloads
        """
        self._api = api
        self._retry = retry or RetryPolicy(api.config.retry)
        self._reader = file_reader or AsyncFileReader()
        self._logger = logging.getLogger('teraboxpy.upload.piece')

    def build_params(self, target: UploadTarget, upload_id: str, piece: Piece) -> dict:
        return {
            'method': 'upload',
            'type': 'tmpfile',
            'app_id': self._api.config.app_id,
            'path': target.remote_path,
            'uploadid': upload_id,
            'partseq': str(piece.index),
        }

    def payload_range(self, target: UploadTarget, piece: Piece) -> Tuple[Path, int, int]:
        """
        File and byte range holding ``piece``.

        Raises:
            ChunkingFailed: If the file is missing or shorter than the range
        """
        if piece.is_artifact:
            source, start, end = piece.local_path, 0, piece.size
        else:
            source, start, end = target.local_path, piece.start, piece.end
        try:
            available = source.stat().st_size
        except OSError as e:
            raise ChunkingFailed(f"Failed to read piece {piece.index}: {e}", str(source)) from e
        if available < end:
            raise ChunkingFailed(
                f"Failed to read piece {piece.index}: {source.name} has {available} bytes, "
                f"need {end}",
                str(source)
            )
        return source, start, end

    async def upload_piece(
        self,
        target: UploadTarget,
        upload_id: str,
        piece: Piece,
        credentials: Credentials
    ) -> str:
        """
        Upload a single piece.

        The payload is streamed from disk block by block and reopened on
        every attempt.

        Args:
            target: File being uploaded
            upload_id: Id from precreate, passed unchanged
            piece: Piece to send; its index is the partseq
            credentials: Current credentials

        Returns:
            MD5 echoed by the remote

        Raises:
            PieceUploadFailed: If every attempt failed
            ChunkingFailed: If the piece cannot be read locally
        """
        source, start, end = self.payload_range(target, piece)
        params = self.build_params(target, upload_id, piece)
        file_name = piece.local_path.name if piece.is_artifact else target.file_name
        size_mb = piece.size / (1024 * 1024)

        async def attempt() -> str:
            started = time.time()
            stream = self._reader.iter_range(source, start, end)
            try:
                data = await self._api.post_file(self.PATH, stream, file_name, credentials, params)
            except OSError as e:
                raise ChunkingFailed(f"Failed to read piece {piece.index}: {e}", str(source)) from e
            self._api.raise_for_retryable(data)
            md5 = data.get('md5')
            if not md5 or md5 == 'null':
                raise PieceHashMissing(f"Upload response missing MD5: {data}")
            elapsed = time.time() - started
            speed = (size_mb / elapsed) if elapsed > 0 else 0
            self._logger.debug(
                f"Piece {piece.index} uploaded in {elapsed:.2f}s ({speed:.1f} MB/s), md5 {md5}"
            )
            return str(md5)

        try:
            return await self._retry.run(attempt, description=f"piece {piece.index}")
        except ChunkingFailed:
            raise
        except TeraboxException as e:
            self._logger.error(f"Upload failed for piece {piece.index}: {e}")
            raise PieceUploadFailed(piece.index, str(e)) from e
