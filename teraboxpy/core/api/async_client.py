"""
Async TeraBox API client.

Thin asynchronous HTTP layer over the TeraBox web endpoints. It knows how to
attach credentials, decode JSON envelopes and map transport failures onto the
package's error taxonomy. It does not retry; callers wrap calls in a
RetryPolicy.
"""
import asyncio
import json
from typing import AsyncIterable, Dict, Optional, Any, Union

import aiohttp

from .config import APIConfig
from .errors import TeraboxAPIError
from ..exceptions import TransportError

JsonDict = Dict[str, Any]


class AsyncAPIClient:
    """
    Asynchronous TeraBox API client.

    Features:
    - Full async/await support
    - Configurable proxy, timeouts and headers
    - Connection pooling through a single aiohttp session
    - Error classification (transport vs. API errno)

    Example:
        >>> async with AsyncAPIClient(APIConfig.default()) as client:
        ...     data = await client.get_json('/api/quota', credentials=creds)
    """

    def __init__(self, config: Optional[APIConfig] = None):
        """
        Initialize async API client.

        Args:
            config: API configuration (uses defaults if not provided)
        """
        self._config = config or APIConfig.default()
        self._session: Optional[aiohttp.ClientSession] = None
        self._closed = False

        from ..logging import get_logger
        self._logger = get_logger('teraboxpy.api')

    @property
    def config(self) -> APIConfig:
        """Get current configuration."""
        return self._config

    async def __aenter__(self) -> 'AsyncAPIClient':
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session is created and open."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(**self._config.get_session_kwargs())
            self._closed = False
        return self._session

    async def close(self):
        """Close client and release resources."""
        self._closed = True
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def url(self, path: str, upload_host: bool = False) -> str:
        """Build an absolute URL for an API path."""
        if path.startswith('http://') or path.startswith('https://'):
            return path
        base = self._config.upload_host if upload_host else self._config.base_url
        return f"{base}{path}"

    def auth_params(self, credentials) -> Dict[str, str]:
        """
        Query parameters carrying the tokens.

        bdstoken is optional: it is only sent when known.
        """
        params = {
            'app_id': self._config.app_id,
            'jsToken': credentials.js_token,
        }
        if credentials.bds_token:
            params['bdstoken'] = credentials.bds_token
        return params

    def _headers(self, credentials) -> Dict[str, str]:
        headers = {}
        if credentials is not None and credentials.cookie:
            headers['Cookie'] = credentials.cookie
        return headers

    def api_error(self, data: JsonDict) -> TeraboxAPIError:
        """Build a TeraboxAPIError from a JSON envelope."""
        code = int(data.get('errno', -1))
        message = data.get('errmsg') or data.get('show_msg') or None
        return TeraboxAPIError(
            code,
            message,
            retryable=code in self._config.retry.retry_on_codes
        )

    def raise_for_retryable(self, data: JsonDict) -> JsonDict:
        """
        Raise for a throttling errno carried in a 2xx body.

        TeraBox answers rate limiting with HTTP 200 and an errno envelope,
        so this is called inside each retried operation.

        Raises:
            TeraboxAPIError: errno is in ``retry_on_codes`` (flagged retryable)
        """
        try:
            code = int(data.get('errno', 0))
        except (TypeError, ValueError):
            return data
        if code in self._config.retry.retry_on_codes:
            raise self.api_error(data)
        return data

    def decode_response(self, status: int, text: str) -> JsonDict:
        """
        Decode a response body.

        Args:
            status: HTTP status code
            text: Raw response body

        Returns:
            Parsed JSON object

        Raises:
            TransportError: Body is not JSON, or non-2xx without errno
            TeraboxAPIError: Non-2xx response with an errno envelope
        """
        try:
            data = json.loads(text) if text else None
        except ValueError:
            data = None

        ok = 200 <= status < 300
        if not isinstance(data, dict):
            if ok:
                raise TransportError(f"Unparseable response body (HTTP {status})", status)
            raise TransportError(f"HTTP {status}", status)

        if not ok:
            if 'errno' in data:
                raise self.api_error(data)
            raise TransportError(f"HTTP {status}: {text[:200]}", status)

        return data

    async def _send(
        self,
        method: str,
        url: str,
        credentials=None,
        params: Optional[Dict[str, Any]] = None,
        data: Any = None
    ) -> JsonDict:
        session = await self._ensure_session()
        proxy = self._config.proxy.to_aiohttp_proxy() if self._config.proxy else None
        try:
            async with session.request(
                method,
                url,
                params=params,
                data=data,
                headers=self._headers(credentials),
                proxy=proxy
            ) as response:
                text = await response.text()
                status = response.status
        except asyncio.TimeoutError as e:
            self._logger.debug(f"{method} {url} timed out")
            raise TransportError(f"Timeout calling {url}") from e
        except aiohttp.ClientError as e:
            self._logger.debug(f"{method} {url} failed: {e}")
            raise TransportError(f"Network error calling {url}: {e}") from e

        self._logger.debug(f"{method} {url} -> HTTP {status}")
        return self.decode_response(status, text)

    async def get_json(
        self,
        path: str,
        credentials=None,
        params: Optional[Dict[str, Any]] = None
    ) -> JsonDict:
        """GET a JSON endpoint."""
        return await self._send('GET', self.url(path), credentials, params)

    async def post_form(
        self,
        path: str,
        credentials=None,
        params: Optional[Dict[str, Any]] = None,
        form: Optional[Dict[str, Any]] = None
    ) -> JsonDict:
        """POST an urlencoded form to a JSON endpoint."""
        return await self._send('POST', self.url(path), credentials, params, form)

    async def post_file(
        self,
        path: str,
        payload: Union[bytes, AsyncIterable[bytes]],
        file_name: str,
        credentials=None,
        params: Optional[Dict[str, Any]] = None
    ) -> JsonDict:
        """
        POST ``payload`` as a multipart ``file`` field to the upload host.

        An async iterable payload is streamed as it is consumed; it must be
        a fresh iterator for every call.
        """
        form = aiohttp.FormData()
        form.add_field(
            'file',
            payload,
            filename=file_name,
            content_type='application/octet-stream'
        )
        return await self._send(
            'POST', self.url(path, upload_host=True), credentials, params, form
        )

    async def get_text(self, url: str, credentials=None) -> str:
        """GET a page and return its decoded body (redirects followed)."""
        session = await self._ensure_session()
        proxy = self._config.proxy.to_aiohttp_proxy() if self._config.proxy else None
        try:
            async with session.get(
                self.url(url),
                headers=self._headers(credentials),
                proxy=proxy,
                allow_redirects=True
            ) as response:
                return await response.text(errors='replace')
        except asyncio.TimeoutError as e:
            raise TransportError(f"Timeout fetching {url}") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Network error fetching {url}: {e}") from e
