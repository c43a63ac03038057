"""
Upload coordinator.

Runs one file through the whole pipeline and turns every failure into a
FAILED result plus an operator notification.
"""
from pathlib import Path
from typing import Optional, Union
import logging
import time

from ..api import AsyncAPIClient, RetryPolicy, TeraboxSettings
from ..auth import CredentialProvider
from ..exceptions import (
    ChunkingFailed,
    FinalizeRejected,
    PieceUploadFailed,
    PrecreateRejected,
    QuotaDenied,
    TeraboxException,
)
from ..logging import human_size
from ..notifications import FailureReport, NotificationSink, NullNotifier
from ..quota import QuotaGate
from .models import UploadResult, UploadState, UploadTarget
from .planner import ChunkPlanner
from .protocols import ProgressCallback
from .services import FileValidator, FinalizeService, PieceUploader, PrecreateService
from .session import UploadSession

logger = logging.getLogger('teraboxpy.upload.coordinator')


class UploadCoordinator:
    """
    Coordinates the upload of one file at a time.

    Pipeline per file: validate -> refresh credentials -> quota gate ->
    plan pieces -> upload session -> notify on failure.
    """

    def __init__(
        self,
        api: AsyncAPIClient,
        settings: TeraboxSettings,
        credentials: CredentialProvider,
        quota_gate: Optional[QuotaGate] = None,
        planner: Optional[ChunkPlanner] = None,
        notifier: Optional[NotificationSink] = None,
        retry: Optional[RetryPolicy] = None,
        progress_callback: Optional[ProgressCallback] = None
    ):
        """
        Initialize upload coordinator.

        Args:
            api: TeraBox API client
            settings: Uploader settings
            credentials: Credential provider
            quota_gate: Quota gate (built from ``api`` if omitted)
            planner: Chunk planner (built from settings if omitted)
            notifier: Failure notification sink
            retry: Retry policy shared by every remote call
            progress_callback: Optional callback for piece progress
        """
        self._api = api
        self._settings = settings
        self._credentials = credentials
        self._retry = retry or RetryPolicy(settings.api.retry)
        self._quota = quota_gate or QuotaGate(api, self._retry)
        self._planner = planner or ChunkPlanner(
            threshold=settings.split_threshold,
            piece_size=settings.piece_size,
            work_dir=settings.work_dir
        )
        self._notifier = notifier or NullNotifier()
        self._validator = FileValidator()
        self._progress_callback = progress_callback

        self._precreate = PrecreateService(api, self._retry)
        self._uploader = PieceUploader(api, self._retry)
        self._finalizer = FinalizeService(api, self._retry)

    def build_target(self, path: Path, size: int) -> UploadTarget:
        return UploadTarget(
            local_path=path,
            remote_folder=self._settings.target_folder,
            remote_path=self._settings.remote_path_for(path.name),
            size=size
        )

    async def upload(self, file_path: Union[str, Path]) -> UploadResult:
        """
        Upload one file.

        Never raises for upload failures: they are logged, reported to the
        notification sink and returned as a FAILED result.

        Args:
            file_path: Closed, fully written file

        Returns:
            UploadResult (``succeeded`` is True only in DONE state)
        """
        path = Path(file_path)
        started = time.time()

        try:
            path, size = self._validator.validate(path)
        except (FileNotFoundError, ValueError) as e:
            target = self.build_target(path, 0)
            return await self._fail(target, ChunkingFailed(str(e), str(path)))

        target = self.build_target(path, size)
        logger.info(f"Starting upload: {path.name} ({human_size(size)})")

        credentials = await self._credentials.refresh()

        decision = await self._quota.check(size, credentials)
        try:
            decision.raise_for_denial(size)
        except QuotaDenied as e:
            return await self._fail(target, e)

        try:
            pieces = await self._planner.plan(path, size)
        except ChunkingFailed as e:
            return await self._fail(target, e)

        session = UploadSession(
            target=target,
            pieces=pieces,
            credentials=self._credentials,
            precreate=self._precreate,
            uploader=self._uploader,
            finalizer=self._finalizer,
            planner=self._planner,
            progress_callback=self._progress_callback
        )
        result = await session.run()

        if result.succeeded:
            elapsed = time.time() - started
            how = 'rapid upload' if result.rapid_upload else f"{result.piece_count} piece(s)"
            logger.info(f"Upload of {path.name} completed in {elapsed:.1f}s ({how})")
            return result

        await self._report(target, result.error)
        return result

    async def _fail(self, target: UploadTarget, error: TeraboxException) -> UploadResult:
        await self._report(target, error)
        return UploadResult(
            target=target,
            state=UploadState.FAILED,
            error=error,
            history=(UploadState.IDLE, UploadState.FAILED)
        )

    async def _report(self, target: UploadTarget, error: Optional[Exception]) -> None:
        report = FailureReport(
            file_name=target.file_name,
            file_size=target.size,
            error_code=getattr(error, 'code', None) or getattr(error, 'error_code', None),
            error_message=getattr(error, 'message', None) or str(error),
            target_folder=target.remote_folder,
            stage=self._stage_of(error)
        )
        logger.error(
            f"Upload failed: {report.file_name} ({human_size(report.file_size)}) "
            f"-> {report.target_folder} [{report.stage}] "
            f"errno={report.error_code} message={report.error_message}"
        )
        await self._notifier.notify(report)

    @staticmethod
    def _stage_of(error: Optional[Exception]) -> str:
        if isinstance(error, PrecreateRejected):
            return 'precreate'
        if isinstance(error, PieceUploadFailed):
            return 'transfer'
        if isinstance(error, FinalizeRejected):
            return 'finalize'
        if isinstance(error, QuotaDenied):
            return 'quota'
        if isinstance(error, ChunkingFailed):
            return 'chunking'
        return 'upload'
