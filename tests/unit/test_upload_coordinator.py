"""End-to-end tests for the upload coordinator over a fake TeraBox API."""
import hashlib
import json

import pytest

from teraboxpy.core.exceptions import (
    ChunkingFailed,
    PrecreateRejected,
    QuotaDenied,
    TransportError,
)
from teraboxpy.core.upload import UploadCoordinator, UploadState
from teraboxpy.core.watcher import UploadQueueWatcher

PRECREATE = '/api/precreate'
PIECE = '/rest/2.0/pcs/superfile2'
CREATE = '/api/create'


@pytest.fixture
def coordinator(api, settings, credential_provider, notifier, retry):
    return UploadCoordinator(
        api=api,
        settings=settings,
        credentials=credential_provider,
        notifier=notifier,
        retry=retry
    )


@pytest.fixture
def watcher(coordinator, tmp_path):
    return UploadQueueWatcher(tmp_path / 'videos', coordinator, delete_on_success=True)


class TestScenarios:
    """Whole-pipeline behavior for single files."""

    @pytest.mark.asyncio
    async def test_single_piece_upload_removes_local_file(self, watcher, make_file, backend, notifier):
        path = make_file('2024-01-01-00-00-00.mkv', 500)

        result = await watcher.process(path)

        assert result.state is UploadState.DONE
        assert result.piece_count == 1
        assert backend.partseqs == [0]
        assert backend.count(CREATE) == 1
        assert not path.exists()
        assert watcher.summary.succeeded == 1
        notifier.notify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_large_file_uploads_43_pieces_in_order(self, coordinator, make_file, backend):
        path = make_file('2024-01-01-01-00-00.mkv', 5120)

        result = await coordinator.upload(path)

        assert result.succeeded
        assert result.piece_count == 43
        assert backend.partseqs == list(range(43))
        block_list = json.loads(backend.create_forms[0]['block_list'])
        assert len(block_list) == 43
        data = path.read_bytes()
        expected = [
            'remote-' + hashlib.md5(data[i * 120:(i + 1) * 120]).hexdigest()
            for i in range(43)
        ]
        assert block_list == expected

    @pytest.mark.asyncio
    async def test_verification_required_fails_and_notifies(self, watcher, make_file, backend, notifier):
        backend.precreate = {'errno': 4000023, 'errmsg': 'need verify'}
        path = make_file('2024-01-01-02-00-00.mkv', 500)

        result = await watcher.process(path)

        assert result.state is UploadState.FAILED
        assert isinstance(result.error, PrecreateRejected)
        assert result.error_code == 4000023
        notifier.notify.assert_awaited_once()
        report = notifier.notify.call_args.args[0]
        assert report.error_code == 4000023
        assert report.stage == 'precreate'
        assert report.file_name == path.name
        assert path.exists()
        assert backend.count(PIECE) == 0

    @pytest.mark.asyncio
    async def test_insufficient_quota_aborts_before_precreate(self, coordinator, make_file, backend, notifier):
        backend.quota = {'errno': 0, 'total': 1000, 'used': 900}
        path = make_file('2024-01-01-03-00-00.mkv', 500)

        result = await coordinator.upload(path)

        assert result.state is UploadState.FAILED
        assert isinstance(result.error, QuotaDenied)
        assert result.error.reason == QuotaDenied.INSUFFICIENT_QUOTA
        assert backend.count(PRECREATE) == 0
        assert backend.count(PIECE) == 0
        assert backend.count(CREATE) == 0
        assert notifier.notify.call_args.args[0].stage == 'quota'
        assert path.exists()


class TestUploadCoordinator:
    """Edge cases around the pipeline."""

    @pytest.mark.asyncio
    async def test_empty_file_rejected(self, coordinator, make_file, backend, notifier):
        path = make_file('empty.mkv', 0)

        result = await coordinator.upload(path)

        assert result.state is UploadState.FAILED
        assert isinstance(result.error, ChunkingFailed)
        assert backend.paths == []
        notifier.notify.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_file(self, coordinator, tmp_path, backend):
        result = await coordinator.upload(tmp_path / 'gone.mkv')

        assert result.state is UploadState.FAILED
        assert isinstance(result.error, ChunkingFailed)
        assert backend.paths == []

    @pytest.mark.asyncio
    async def test_unknown_quota_proceeds(self, coordinator, make_file, backend):
        backend.quota = TransportError('quota endpoint down')
        path = make_file('a.mkv', 300)

        result = await coordinator.upload(path)

        assert result.succeeded
        assert backend.count(PRECREATE) == 1

    @pytest.mark.asyncio
    async def test_rapid_upload_is_done(self, coordinator, make_file, backend):
        backend.precreate = {'errno': 0, 'return_type': 2}
        path = make_file('a.mkv', 300)

        result = await coordinator.upload(path)

        assert result.succeeded
        assert result.rapid_upload
        assert backend.count(PIECE) == 0

    @pytest.mark.asyncio
    async def test_remote_path(self, coordinator, make_file, api):
        path = make_file('2024-01-01-00-00-00.mkv', 100)

        await coordinator.upload(path)

        form = api.post_form.call_args_list[0].args[3]
        assert form['path'] == '/rtsp-videos/2024-01-01-00-00-00.mkv'
        assert form['target_path'] == '/rtsp-videos/'

    @pytest.mark.asyncio
    async def test_transport_failure_during_transfer(self, coordinator, make_file, backend, notifier):
        backend.piece = TransportError('reset')
        path = make_file('a.mkv', 300)

        result = await coordinator.upload(path)

        assert result.state is UploadState.FAILED
        assert backend.partseqs == [0, 0, 0]
        assert notifier.notify.call_args.args[0].stage == 'transfer'
