"""
Credential handling.

The TeraBox web API authenticates with a cookie plus a jsToken (and,
optionally, a bdstoken). Tokens are short-lived, so they are re-validated
before each upload attempt. The refresh source sits behind
``CredentialProvider`` so an official API client can replace page scraping
without touching the upload session.
"""
from dataclasses import dataclass, replace
from typing import List, Optional, Protocol
from urllib.parse import unquote
import re

from ..api import AsyncAPIClient
from ..exceptions import TeraboxException
from ..logging import get_logger

logger = get_logger('teraboxpy.auth')


@dataclass(frozen=True)
class Credentials:
    """
    Authentication material attached to every remote call.

    Attributes:
        js_token: Primary token (jsToken)
        cookie: Session cookie header value
        bds_token: Secondary token (bdstoken), optional
    """
    js_token: str
    cookie: str
    bds_token: Optional[str] = None

    def with_tokens(self, js_token: Optional[str] = None, bds_token: Optional[str] = None) -> 'Credentials':
        """Return a copy with any non-empty refreshed token swapped in."""
        return replace(
            self,
            js_token=js_token or self.js_token,
            bds_token=bds_token or self.bds_token
        )


class CredentialProvider(Protocol):
    """Protocol for credential sources."""

    def current_credentials(self) -> Credentials:
        """Best known credentials; never blocks."""
        ...

    async def refresh(self, force: bool = False) -> Credentials:
        """Re-validate credentials; must never raise."""
        ...


class StaticCredentialProvider:
    """Provider returning the configured credentials unchanged."""

    def __init__(self, credentials: Credentials):
        self._credentials = credentials

    def current_credentials(self) -> Credentials:
        return self._credentials

    async def refresh(self, force: bool = False) -> Credentials:
        return self._credentials


class PageScrapingRefresher:
    """
    Refreshes tokens by scraping the service's landing page.

    The page body is percent-decoded and split on double quotes; the value
    following a token marker (``jsToken``/``bdstoken``) is taken as the
    fresh token. Any failure keeps the previous tokens.

    Example:
        >>> refresher = PageScrapingRefresher(api, Credentials('jt', 'ndus=...'))
        >>> creds = await refresher.refresh()
    """

    JS_TOKEN_MARKER = re.compile(r'jstok', re.IGNORECASE)
    BDS_TOKEN_MARKER = re.compile(r'bdsto', re.IGNORECASE)
    _TOKEN_VALUE = re.compile(r'^[A-Za-z0-9_\-]{8,}$')

    def __init__(
        self,
        api: AsyncAPIClient,
        credentials: Credentials,
        enabled: bool = True,
        landing_url: str = '/'
    ):
        """
        Initialize refresher.

        Args:
            api: API client used to fetch the landing page
            credentials: Initially configured credentials
            enabled: When False, refresh() is a no-op
            landing_url: Page to scrape (relative to the base URL)
        """
        self._api = api
        self._credentials = credentials
        self._enabled = enabled
        self._landing_url = landing_url

    def current_credentials(self) -> Credentials:
        return self._credentials

    async def refresh(self, force: bool = False) -> Credentials:
        """
        Scrape fresh tokens, falling back to the known ones.

        Args:
            force: Refresh even when scraping is disabled (auth error recovery)

        Returns:
            The best known credentials after the attempt
        """
        if not self._enabled and not force:
            return self._credentials

        logger.info("Refreshing authentication tokens...")
        try:
            body = await self._api.get_text(self._landing_url, credentials=self._credentials)
        except TeraboxException as e:
            logger.warning(f"Token refresh failed, keeping configured tokens: {e}")
            return self._credentials

        tokens = self.tokenize(body)
        js_token = self.extract_after_marker(tokens, self.JS_TOKEN_MARKER)
        bds_token = self.extract_after_marker(tokens, self.BDS_TOKEN_MARKER)

        if js_token and js_token != self._credentials.js_token:
            logger.info("Refreshed jsToken")
        if bds_token and bds_token != self._credentials.bds_token:
            logger.info("Refreshed bdstoken")
        if not js_token and not bds_token:
            logger.debug("No tokens found on landing page, keeping configured tokens")

        self._credentials = self._credentials.with_tokens(js_token, bds_token)
        return self._credentials

    @staticmethod
    def tokenize(body: str) -> List[str]:
        """Percent-decode the page and split it into quote-delimited fields."""
        decoded = unquote(body or '')
        fields = []
        for part in decoded.split('"'):
            cleaned = part.replace(':', '').replace(',', '').strip()
            if cleaned:
                fields.append(cleaned)
        return fields

    @classmethod
    def extract_after_marker(cls, tokens: List[str], marker: re.Pattern) -> Optional[str]:
        """Value of the field following the last marker match, if it looks like a token."""
        found = None
        for index, token in enumerate(tokens[:-1]):
            if marker.search(token):
                candidate = tokens[index + 1]
                if cls._TOKEN_VALUE.match(candidate):
                    found = candidate
        return found
