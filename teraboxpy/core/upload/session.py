"""
Upload session state machine.

Drives one file through precreate, sequential piece transfer and finalize:

    Idle -> Precreating -> {RapidUploadComplete | PieceTransferring}
         -> Finalizing -> {Done | Failed}

Split artifacts are removed on every terminal state; the source file is
left for the caller to decide about.
"""
from typing import List, Optional
import logging

from ..auth import CredentialProvider
from ..exceptions import AuthExpired, PieceUploadFailed, TeraboxException
from .models import (
    Piece,
    UploadProgress,
    UploadResult,
    UploadSessionState,
    UploadState,
    UploadTarget,
)
from .planner import ChunkPlanner
from .protocols import ProgressCallback
from .services import FinalizeService, PieceUploader, PrecreateOutcome, PrecreateService

logger = logging.getLogger('teraboxpy.upload.session')


class UploadSession:
    """
    Executes the three-phase upload protocol for a single file.

    A session is single use: create one per upload attempt.
    """

    def __init__(
        self,
        target: UploadTarget,
        pieces: List[Piece],
        credentials: CredentialProvider,
        precreate: PrecreateService,
        uploader: PieceUploader,
        finalizer: FinalizeService,
        planner: Optional[ChunkPlanner] = None,
        progress_callback: Optional[ProgressCallback] = None
    ):
        """
        Initialize upload session.

        Args:
            target: File being uploaded
            pieces: Hashed pieces in upload order
            credentials: Credential provider (refreshed on auth errors)
            precreate: Precreate service
            uploader: Piece uploader
            finalizer: Finalize service
            planner: Planner owning the piece artifacts (for cleanup)
            progress_callback: Called after each transferred piece
        """
        self._target = target
        self._pieces = list(pieces)
        self._credentials = credentials
        self._precreate = precreate
        self._uploader = uploader
        self._finalizer = finalizer
        self._planner = planner
        self._progress_callback = progress_callback

        self._state = UploadState.IDLE
        self._history: List[UploadState] = [UploadState.IDLE]
        self.session_state: Optional[UploadSessionState] = None

    @property
    def state(self) -> UploadState:
        return self._state

    @property
    def history(self) -> List[UploadState]:
        return list(self._history)

    def _transition(self, state: UploadState) -> None:
        logger.debug(f"{self._target.file_name}: {self._state.value} -> {state.value}")
        self._state = state
        self._history.append(state)

    async def run(self) -> UploadResult:
        """
        Run the session to a terminal state.

        Returns:
            UploadResult in DONE or FAILED state. Remote and local failures
            are captured in the result; cancellation propagates.
        """
        if self._state is not UploadState.IDLE:
            raise RuntimeError("UploadSession can only be run once")

        response = {}
        rapid = False
        error: Optional[TeraboxException] = None
        try:
            self._transition(UploadState.PRECREATING)
            outcome = await self._run_precreate()
            response = outcome.response

            if outcome.rapid_upload:
                rapid = True
                self._transition(UploadState.RAPID_UPLOAD_COMPLETE)
            else:
                self.session_state = UploadSessionState(
                    upload_id=outcome.upload_id,
                    target_path=self._target.remote_path,
                    pieces=self._pieces
                )
                self._transition(UploadState.PIECE_TRANSFERRING)
                await self._transfer_pieces(self.session_state)

                self._transition(UploadState.FINALIZING)
                response = await self._run_finalize(self.session_state)

            self._transition(UploadState.DONE)
            logger.info(f"SUCCESS: File uploaded to {self._target.remote_path}")
        except TeraboxException as e:
            error = e
            self._transition(UploadState.FAILED)
        finally:
            self._cleanup()

        return UploadResult(
            target=self._target,
            state=self._state,
            rapid_upload=rapid,
            error=error,
            piece_count=len(self._pieces),
            history=tuple(self._history),
            response=response
        )

    async def _run_precreate(self) -> PrecreateOutcome:
        block_list = [piece.md5 for piece in self._pieces]
        try:
            return await self._precreate.precreate(
                self._target, block_list, self._credentials.current_credentials()
            )
        except AuthExpired as e:
            logger.warning(f"Credentials rejected ({e}); refreshing tokens and retrying once")
            credentials = await self._credentials.refresh(force=True)
            return await self._precreate.precreate(self._target, block_list, credentials)

    async def _transfer_pieces(self, state: UploadSessionState) -> None:
        total = len(state.pieces)
        progress = UploadProgress(total_pieces=total, total_bytes=self._target.size)
        if total > 1:
            logger.info(f"Uploading {total} file pieces...")
        else:
            logger.info("Uploading file...")

        for piece in state.pieces:
            if total > 1:
                logger.info(f"Piece {piece.index + 1}/{total}")
            md5 = await self._uploader.upload_piece(
                self._target,
                state.upload_id,
                piece,
                self._credentials.current_credentials()
            )
            state.record(piece, md5)

            progress.uploaded_pieces = state.transferred_count
            progress.uploaded_bytes += piece.size
            if self._progress_callback:
                self._progress_callback(progress)

    async def _run_finalize(self, state: UploadSessionState) -> dict:
        if not state.is_complete:
            raise PieceUploadFailed(
                state.transferred_count,
                "finalize attempted before every piece was transferred"
            )
        logger.info("Finalizing upload...")
        return await self._finalizer.finalize(
            self._target,
            state.upload_id,
            list(state.uploaded_piece_hashes),
            self._credentials.current_credentials()
        )

    def _cleanup(self) -> None:
        if self._planner is not None:
            self._planner.discard(self._pieces)
        self.session_state = None
