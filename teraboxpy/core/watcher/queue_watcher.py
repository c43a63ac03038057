"""
Upload queue watcher.

Watches the recording directory for files closed after writing and feeds
them, one at a time, to the upload coordinator. The watchdog observer runs
in its own thread and only hands paths over to the asyncio queue; every
upload happens sequentially on the event loop.
"""
from pathlib import Path
from typing import Callable, Iterable, Optional, Protocol, Set, Union
import asyncio
import logging
import time

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from ..exceptions import TeraboxException
from ..upload.models import UploadResult, UploadState, UploadSummary, UploadTarget

logger = logging.getLogger('teraboxpy.watcher')

_STOP = object()


class Uploader(Protocol):
    """Anything that uploads one file and reports the outcome."""

    async def upload(self, file_path: Union[str, Path]) -> UploadResult:
        ...


class ClosedFileHandler(FileSystemEventHandler):
    """Forwards write-complete (close after write) events for matching files."""

    def __init__(self, callback: Callable[[Path], None], suffixes: Iterable[str] = ()):
        super().__init__()
        self._callback = callback
        self._suffixes = tuple(s.lower() for s in suffixes)

    def matches(self, path: Path) -> bool:
        if path.name.startswith('.'):
            return False
        return not self._suffixes or path.suffix.lower() in self._suffixes

    def on_closed(self, event):
        if event.is_directory:
            return
        path = Path(event.src_path)
        if self.matches(path):
            self._callback(path)


class UploadQueueWatcher:
    """
    Sequential consumer over a filesystem watch queue.

    Example:
        >>> watcher = UploadQueueWatcher(Path("./videos"), coordinator, suffixes=(".mkv",))
        >>> summary = await watcher.run(initial_scan=True)

    The local file is deleted only when its upload reached DONE. Failed
    files stay in place and are not retried automatically.
    """

    def __init__(
        self,
        directory: Union[str, Path],
        uploader: Uploader,
        suffixes: Iterable[str] = (),
        delete_on_success: bool = True,
        min_age: float = 30.0,
        observer_factory: Callable[[], Observer] = Observer
    ):
        """
        Initialize watcher.

        Args:
            directory: Directory receiving finished segments
            uploader: Upload coordinator
            suffixes: File suffixes to pick up (empty means all files)
            delete_on_success: Remove local files whose upload is DONE
            min_age: Seconds since last write before an existing file counts as closed
            observer_factory: Watchdog observer constructor
        """
        self._directory = Path(directory)
        self._uploader = uploader
        self._delete_on_success = delete_on_success
        self._min_age = min_age
        self._observer_factory = observer_factory
        self._handler = ClosedFileHandler(self._enqueue_threadsafe, suffixes)

        self._queue: Optional[asyncio.Queue] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Set[Path] = set()
        self._observer = None
        self._stop_requested = False
        self.summary = UploadSummary()

    @property
    def directory(self) -> Path:
        return self._directory

    def _ensure_queue(self) -> asyncio.Queue:
        if self._queue is None:
            self._loop = asyncio.get_running_loop()
            self._queue = asyncio.Queue()
        return self._queue

    def enqueue(self, path: Path) -> bool:
        """Queue a file from the event loop thread; duplicates are ignored."""
        queue = self._ensure_queue()
        if path in self._pending:
            logger.debug(f"Already queued: {path.name}")
            return False
        self._pending.add(path)
        queue.put_nowait(path)
        logger.info(f"New file detected: {path}")
        return True

    def _enqueue_threadsafe(self, path: Path) -> None:
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self.enqueue, path)

    def scan_existing(self) -> int:
        """
        Queue files already present, oldest name first.

        Files written to within ``min_age`` seconds are skipped: the recorder
        may still be filling them and their close event will queue them.
        """
        count = 0
        now = time.time()
        for path in sorted(self._directory.iterdir()):
            if not path.is_file() or not self._handler.matches(path):
                continue
            if now - path.stat().st_mtime < self._min_age:
                logger.debug(f"Skipping {path.name}: still being written")
                continue
            if self.enqueue(path):
                count += 1
        return count

    def stop(self) -> None:
        """
        Ask the consumer to exit after the file in flight.

        Safe to call before run() has started: the request is remembered
        and run() returns without processing anything.
        """
        self._stop_requested = True
        if self._loop is None or self._queue is None:
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, _STOP)

    async def process(self, path: Path) -> UploadResult:
        """Upload one file and delete it only on success."""
        self._pending.discard(path)
        try:
            result = await self._uploader.upload(path)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Unexpected error uploading {path.name}")
            error = e if isinstance(e, TeraboxException) else TeraboxException(str(e))
            result = UploadResult(
                target=UploadTarget(path, '', '', 0),
                state=UploadState.FAILED,
                error=error
            )

        if result.succeeded:
            if self._delete_on_success:
                self._delete(path)
        else:
            logger.warning(f"Upload failed, keeping local file: {path}")

        self.summary.add(result)
        return result

    def _delete(self, path: Path) -> None:
        try:
            path.unlink()
            logger.info(f"Upload succeeded, deleted local file: {path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not delete {path}: {e}")

    async def run(self, initial_scan: bool = False) -> UploadSummary:
        """
        Watch the directory until stop() is called.

        Args:
            initial_scan: Queue files already in the directory first

        Returns:
            Summary of every processed file
        """
        queue = self._ensure_queue()
        self._directory.mkdir(parents=True, exist_ok=True)

        self._observer = self._observer_factory()
        self._observer.schedule(self._handler, str(self._directory), recursive=False)
        self._observer.start()
        logger.info(f"Watching {self._directory} for finished files")

        try:
            if initial_scan:
                found = self.scan_existing()
                if found:
                    logger.info(f"Queued {found} existing file(s)")

            while not self._stop_requested:
                item = await queue.get()
                if item is _STOP:
                    break
                await self.process(item)
        finally:
            self._observer.stop()
            self._observer.join(timeout=5)
            logger.info(
                f"Upload summary: {self.summary.succeeded} succeeded, "
                f"{self.summary.failed} failed"
            )

        return self.summary
