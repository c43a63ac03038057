"""Pytest fixtures for teraboxpy tests."""
from pathlib import Path
from unittest.mock import AsyncMock, Mock
import hashlib

import pytest

from teraboxpy.core.api import AsyncAPIClient, APIConfig, RetryConfig, RetryPolicy, TeraboxSettings
from teraboxpy.core.auth import Credentials, StaticCredentialProvider


class FakeTerabox:
    """
    In-memory stand-in for the TeraBox endpoints.

    Each response attribute may be a dict, an exception instance (raised),
    or a list of those consumed one per call.
    """

    def __init__(self):
        self.quota = {'errno': 0, 'total': 2 * 1024 ** 4, 'used': 1024 ** 4}
        self.membership = {'errno': 0, 'data': {'member_info': {'is_vip': 0}}}
        self.precreate = {'errno': 0, 'uploadid': 'N1-upload-id', 'return_type': 1}
        self.create = {'errno': 0, 'fs_id': 123456}
        self.piece = None
        self.landing_page = ''
        self.paths = []
        self.partseqs = []
        self.create_forms = []
        self.payloads = []
        self.blocks = []

    @staticmethod
    def _next(value):
        if isinstance(value, list):
            value = value.pop(0)
        if isinstance(value, BaseException):
            raise value
        return value

    async def get_json(self, path, credentials=None, params=None):
        self.paths.append(path)
        if path == '/api/quota':
            return self._next(self.quota)
        return self._next(self.membership)

    async def post_form(self, path, credentials=None, params=None, form=None):
        self.paths.append(path)
        if path == '/api/precreate':
            return self._next(self.precreate)
        self.create_forms.append(form)
        return self._next(self.create)

    async def post_file(self, path, payload, file_name, credentials=None, params=None):
        self.paths.append(path)
        self.partseqs.append(int(params['partseq']))
        if not isinstance(payload, bytes):
            blocks = [block async for block in payload]
            self.blocks.append(blocks)
            payload = b''.join(blocks)
        self.payloads.append(payload)
        if self.piece is not None:
            return self._next(self.piece)
        return {'md5': 'remote-' + hashlib.md5(payload).hexdigest()}

    async def get_text(self, url, credentials=None):
        return self._next(self.landing_page)

    def count(self, path):
        return self.paths.count(path)


@pytest.fixture
def backend():
    """Fake TeraBox endpoints."""
    return FakeTerabox()


@pytest.fixture
def api(backend):
    """Real API client whose network methods are routed to the fake backend."""
    client = AsyncAPIClient(APIConfig())
    client.get_json = AsyncMock(side_effect=backend.get_json)
    client.post_form = AsyncMock(side_effect=backend.post_form)
    client.post_file = AsyncMock(side_effect=backend.post_file)
    client.get_text = AsyncMock(side_effect=backend.get_text)
    return client


@pytest.fixture
def sleep():
    """Recording no-op sleep."""
    return AsyncMock()


@pytest.fixture
def retry(sleep):
    """Default retry policy that never actually waits."""
    return RetryPolicy(RetryConfig(), sleep=sleep)


@pytest.fixture
def credentials():
    """Static credentials."""
    return Credentials(js_token='JSTOKEN0123456789', cookie='ndus=cookie', bds_token='BDSTOKEN01234567')


@pytest.fixture
def credential_provider(credentials):
    return StaticCredentialProvider(credentials)


@pytest.fixture
def settings():
    """Settings scaled down so split behavior shows up on small files."""
    return TeraboxSettings(
        js_token='JSTOKEN0123456789',
        cookie='ndus=cookie',
        bds_token='BDSTOKEN01234567',
        remote_folder='/rtsp-videos',
        split_threshold=2048,
        piece_size=120,
        refresh_tokens=False,
    )


@pytest.fixture
def notifier():
    """Notification sink recording reports."""
    sink = Mock()
    sink.notify = AsyncMock(return_value=True)
    return sink


@pytest.fixture
def make_file(tmp_path):
    """Factory writing a file of ``size`` deterministic bytes."""
    def _make(name: str, size: int, directory: Path = None) -> Path:
        directory = directory or tmp_path / 'videos'
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_bytes(bytes(i % 251 for i in range(size)))
        return path
    return _make
