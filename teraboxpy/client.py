"""
TeraboxClient - High-level async client for segment uploads.

Example:
    >>> settings = TeraboxSettings.from_env().validate()
    >>> async with TeraboxClient(settings) as terabox:
    ...     result = await terabox.upload("videos/2024-01-01-00-00-00.mkv")
    ...     print(result.state)
"""
from pathlib import Path
from typing import Iterable, Optional, Union
import logging

from .core.api import AsyncAPIClient, RetryPolicy, TeraboxSettings
from .core.auth import Credentials, PageScrapingRefresher
from .core.notifications import NotificationSink, create_notifier
from .core.quota import QuotaGate, QuotaSnapshot
from .core.upload import ChunkPlanner, UploadCoordinator, UploadResult, UploadSummary
from .core.upload.protocols import ProgressCallback
from .core.watcher import UploadQueueWatcher

logger = logging.getLogger('teraboxpy.client')


class TeraboxClient:
    """
    High-level async client wiring the upload pipeline together.

    All components receive the same settings object at construction;
    nothing is read from process globals after that.
    """

    def __init__(
        self,
        settings: TeraboxSettings,
        notifier: Optional[NotificationSink] = None,
        progress_callback: Optional[ProgressCallback] = None,
        api: Optional[AsyncAPIClient] = None
    ):
        """
        Initialize client.

        Args:
            settings: Validated uploader settings
            notifier: Failure sink (webhook from settings when omitted)
            progress_callback: Optional per-piece progress callback
            api: Pre-built API client (mainly for tests)
        """
        self._settings = settings
        self._api = api or AsyncAPIClient(settings.api)
        self._retry = RetryPolicy(settings.api.retry)
        self._credentials = PageScrapingRefresher(
            self._api,
            Credentials(
                js_token=settings.js_token,
                cookie=settings.cookie,
                bds_token=settings.bds_token
            ),
            enabled=settings.refresh_tokens
        )
        self._quota = QuotaGate(self._api, self._retry)
        self._notifier = notifier or create_notifier(settings.webhook_url)
        self._coordinator = UploadCoordinator(
            api=self._api,
            settings=settings,
            credentials=self._credentials,
            quota_gate=self._quota,
            planner=ChunkPlanner(
                threshold=settings.split_threshold,
                piece_size=settings.piece_size,
                work_dir=settings.work_dir
            ),
            notifier=self._notifier,
            retry=self._retry,
            progress_callback=progress_callback
        )

    @property
    def settings(self) -> TeraboxSettings:
        return self._settings

    @property
    def coordinator(self) -> UploadCoordinator:
        return self._coordinator

    async def __aenter__(self) -> 'TeraboxClient':
        await self._api.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        await self._api.close()

    async def upload(self, file_path: Union[str, Path]) -> UploadResult:
        """Upload one file; the local copy is left untouched."""
        return await self._coordinator.upload(file_path)

    async def upload_many(
        self,
        paths: Iterable[Union[str, Path]],
        delete: bool = False
    ) -> UploadSummary:
        """
        Upload files sequentially.

        Args:
            paths: Files to upload, in order
            delete: Remove each local file whose upload reached DONE

        Returns:
            Summary of all attempts
        """
        paths = [Path(p) for p in paths]
        summary = UploadSummary()
        for position, path in enumerate(paths, start=1):
            logger.info(f"Processing file {position}/{len(paths)}: {path.name}")
            result = await self._coordinator.upload(path)
            summary.add(result)
            if result.succeeded and delete:
                path.unlink(missing_ok=True)
                logger.info(f"Deleted local file: {path}")

        logger.info(f"Upload summary: {summary.succeeded}/{summary.total} files uploaded successfully")
        return summary

    async def get_quota(self) -> QuotaSnapshot:
        """Fresh quota snapshot (tokens refreshed first)."""
        credentials = await self._credentials.refresh()
        return await self._quota.fetch_snapshot(credentials)

    def watcher(self, directory: Union[str, Path], min_age: float = 30.0) -> UploadQueueWatcher:
        """Queue watcher feeding ``directory`` into this client's coordinator."""
        return UploadQueueWatcher(
            directory,
            self._coordinator,
            suffixes=self._settings.watch_suffixes,
            delete_on_success=self._settings.delete_after_upload,
            min_age=min_age
        )
