"""Tests for the upload session state machine."""
import json
from unittest.mock import AsyncMock, Mock

import pytest

from teraboxpy.core.auth import Credentials
from teraboxpy.core.exceptions import (
    AuthExpired,
    FinalizeRejected,
    PieceUploadFailed,
    PrecreateRejected,
)
from teraboxpy.core.upload import ChunkPlanner, UploadSession, UploadState, UploadTarget
from teraboxpy.core.upload.services import FinalizeService, PieceUploader, PrecreateService

PRECREATE = '/api/precreate'
PIECE = '/rest/2.0/pcs/superfile2'
CREATE = '/api/create'


@pytest.fixture
def make_session(api, retry, credential_provider, make_file, tmp_path):
    """Factory planning a file and wiring an UploadSession over the fake API."""
    async def _make(size=500, piece_size=200, work_dir=None, credentials=None, progress=None):
        path = make_file('2024-01-01-00-00-00.mkv', size)
        planner = ChunkPlanner(threshold=piece_size, piece_size=piece_size, work_dir=work_dir)
        pieces = await planner.plan(path, size)
        target = UploadTarget(path, '/rtsp-videos/', '/rtsp-videos/' + path.name, size)
        return UploadSession(
            target=target,
            pieces=pieces,
            credentials=credentials or credential_provider,
            precreate=PrecreateService(api, retry),
            uploader=PieceUploader(api, retry),
            finalizer=FinalizeService(api, retry),
            planner=planner,
            progress_callback=progress
        )
    return _make


class TestUploadSession:
    """Test suite for UploadSession."""

    @pytest.mark.asyncio
    async def test_full_upload(self, make_session, backend):
        session = await make_session()

        result = await session.run()

        assert result.state is UploadState.DONE
        assert result.succeeded
        assert not result.rapid_upload
        assert result.piece_count == 3
        assert list(result.history) == [
            UploadState.IDLE,
            UploadState.PRECREATING,
            UploadState.PIECE_TRANSFERRING,
            UploadState.FINALIZING,
            UploadState.DONE,
        ]
        assert backend.partseqs == [0, 1, 2]
        assert backend.count(CREATE) == 1

    @pytest.mark.asyncio
    async def test_finalize_uses_remote_hashes(self, make_session, backend):
        backend.piece = [{'md5': 'r0'}, {'md5': 'r1'}, {'md5': 'r2'}]
        session = await make_session()

        await session.run()

        block_list = json.loads(backend.create_forms[0]['block_list'])
        assert block_list == ['r0', 'r1', 'r2']

    @pytest.mark.asyncio
    async def test_precreate_sends_local_hashes(self, make_session, api):
        session = await make_session()
        local = [p.md5 for p in session._pieces]

        await session.run()

        form = api.post_form.call_args_list[0].args[3]
        assert json.loads(form['block_list']) == local

    @pytest.mark.asyncio
    async def test_upload_id_threaded_unchanged(self, make_session, api, backend):
        backend.precreate = {'errno': 0, 'uploadid': 'P-abc'}
        session = await make_session()

        await session.run()

        for call in api.post_file.call_args_list:
            assert call.args[4]['uploadid'] == 'P-abc'
        assert api.post_form.call_args_list[-1].args[3]['uploadid'] == 'P-abc'

    @pytest.mark.asyncio
    async def test_rapid_upload_skips_transfer(self, make_session, backend):
        backend.precreate = {'errno': 0, 'return_type': 2}
        session = await make_session()

        result = await session.run()

        assert result.succeeded
        assert result.rapid_upload
        assert UploadState.RAPID_UPLOAD_COMPLETE in result.history
        assert UploadState.PIECE_TRANSFERRING not in result.history
        assert backend.count(PIECE) == 0
        assert backend.count(CREATE) == 0

    @pytest.mark.asyncio
    async def test_precreate_rejected(self, make_session, backend):
        backend.precreate = {'errno': -7, 'errmsg': 'bad name'}
        session = await make_session()

        result = await session.run()

        assert result.state is UploadState.FAILED
        assert isinstance(result.error, PrecreateRejected)
        assert result.error_code == -7
        assert backend.count(PIECE) == 0

    @pytest.mark.asyncio
    async def test_piece_without_md5_fails_before_finalize(self, make_session, backend):
        backend.piece = [{'md5': 'r0'}, {'md5': ''}, {'md5': ''}, {'md5': ''}]
        session = await make_session()

        result = await session.run()

        assert result.state is UploadState.FAILED
        assert isinstance(result.error, PieceUploadFailed)
        assert result.error.index == 1
        assert backend.partseqs == [0, 1, 1, 1]
        assert backend.count(CREATE) == 0

    @pytest.mark.asyncio
    async def test_finalize_rejected(self, make_session, backend):
        backend.create = {'errno': 31363}
        session = await make_session()

        result = await session.run()

        assert result.state is UploadState.FAILED
        assert isinstance(result.error, FinalizeRejected)
        assert result.history[-2] is UploadState.FINALIZING

    @pytest.mark.asyncio
    async def test_auth_error_refreshes_once(self, make_session, backend):
        backend.precreate = [
            {'errno': 4000023},
            {'errno': 0, 'uploadid': 'after-refresh'},
        ]
        fresh = Credentials('FRESHJS0123456789', 'ndus=cookie')
        provider = Mock()
        provider.current_credentials = Mock(return_value=Credentials('stale', 'ndus=cookie'))
        provider.refresh = AsyncMock(return_value=fresh)
        session = await make_session(credentials=provider)

        result = await session.run()

        assert result.succeeded
        provider.refresh.assert_awaited_once_with(force=True)

    @pytest.mark.asyncio
    async def test_auth_error_twice_fails(self, make_session, backend):
        backend.precreate = {'errno': 4000023}
        session = await make_session()

        result = await session.run()

        assert result.state is UploadState.FAILED
        assert isinstance(result.error, AuthExpired)
        assert backend.count(PRECREATE) == 2

    @pytest.mark.asyncio
    async def test_artifacts_removed_on_success(self, make_session, tmp_path):
        work_dir = tmp_path / 'work'
        session = await make_session(work_dir=work_dir)
        artifacts = [p.local_path for p in session._pieces]
        assert all(a.exists() for a in artifacts)

        result = await session.run()

        assert result.succeeded
        assert not any(a.exists() for a in artifacts)
        assert result.target.local_path.exists()

    @pytest.mark.asyncio
    async def test_artifacts_removed_on_failure(self, make_session, backend, tmp_path):
        backend.precreate = {'errno': -7}
        session = await make_session(work_dir=tmp_path / 'work')
        artifacts = [p.local_path for p in session._pieces]

        await session.run()

        assert not any(a.exists() for a in artifacts)

    @pytest.mark.asyncio
    async def test_progress_callback(self, make_session):
        updates = []
        session = await make_session(progress=lambda p: updates.append(
            (p.uploaded_pieces, p.uploaded_bytes)
        ))

        await session.run()

        assert updates == [(1, 200), (2, 400), (3, 500)]

    @pytest.mark.asyncio
    async def test_single_use(self, make_session):
        session = await make_session()
        await session.run()

        with pytest.raises(RuntimeError):
            await session.run()
