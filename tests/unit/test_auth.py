"""Tests for credential handling."""
import pytest

from teraboxpy.core.auth import Credentials, PageScrapingRefresher, StaticCredentialProvider
from teraboxpy.core.exceptions import TransportError

LANDING_PAGE = (
    '<script>var templateData = '
    '%7B%22jsToken%22%3A%22FRESHJS0123456789%22%2C%22bdstoken%22%3A%22freshbds0123456789%22%7D'
    '</script>'
)


class TestCredentials:

    def test_with_tokens_swaps_non_empty(self):
        creds = Credentials('old-js', 'cookie', 'old-bds')

        refreshed = creds.with_tokens(js_token='new-js', bds_token=None)

        assert refreshed.js_token == 'new-js'
        assert refreshed.bds_token == 'old-bds'
        assert refreshed.cookie == 'cookie'
        assert creds.js_token == 'old-js'


class TestPageScrapingRefresher:
    """Test suite for PageScrapingRefresher."""

    @pytest.fixture
    def refresher(self, api, credentials):
        return PageScrapingRefresher(api, credentials)

    def test_tokenize(self):
        tokens = PageScrapingRefresher.tokenize('{"jsToken":"ABC","x":""}')

        assert tokens == ['{', 'jsToken', 'ABC', 'x', '}']

    def test_extract_after_marker(self):
        tokens = PageScrapingRefresher.tokenize(
            '"jsToken":"short","jsToken":"LONGTOKEN_1234"'
        )

        assert PageScrapingRefresher.extract_after_marker(
            tokens, PageScrapingRefresher.JS_TOKEN_MARKER
        ) == 'LONGTOKEN_1234'

    def test_extract_missing(self):
        assert PageScrapingRefresher.extract_after_marker(
            ['nothing', 'here'], PageScrapingRefresher.BDS_TOKEN_MARKER
        ) is None

    @pytest.mark.asyncio
    async def test_refresh_picks_up_tokens(self, refresher, backend):
        backend.landing_page = LANDING_PAGE

        creds = await refresher.refresh()

        assert creds.js_token == 'FRESHJS0123456789'
        assert creds.bds_token == 'freshbds0123456789'
        assert refresher.current_credentials() is creds

    @pytest.mark.asyncio
    async def test_refresh_without_tokens_keeps_configured(self, refresher, credentials, backend):
        backend.landing_page = '<html>nothing useful</html>'

        assert await refresher.refresh() == credentials

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_configured(self, refresher, credentials, backend):
        backend.landing_page = TransportError('timeout')

        assert await refresher.refresh() == credentials

    @pytest.mark.asyncio
    async def test_disabled_skips_fetch(self, api, credentials):
        refresher = PageScrapingRefresher(api, credentials, enabled=False)

        assert await refresher.refresh() is credentials
        api.get_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_forced_refresh_when_disabled(self, api, credentials, backend):
        backend.landing_page = LANDING_PAGE
        refresher = PageScrapingRefresher(api, credentials, enabled=False)

        creds = await refresher.refresh(force=True)

        assert creds.js_token == 'FRESHJS0123456789'


@pytest.mark.asyncio
async def test_static_provider(credentials):
    provider = StaticCredentialProvider(credentials)

    assert await provider.refresh(force=True) is credentials
    assert provider.current_credentials() is credentials
