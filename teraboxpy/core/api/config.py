"""
API configuration module.

Provides configuration for the TeraBox HTTP client and the upload pipeline.
Every component receives these objects at construction instead of reading
process-wide globals.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any, Mapping, Tuple
import logging
import os

from ..exceptions import ConfigurationError

logger = logging.getLogger('teraboxpy.config')

GiB = 1024 ** 3
MiB = 1024 ** 2

DEFAULT_BASE_URL = 'https://www.terabox.com'
DEFAULT_REMOTE_FOLDER = '/rtsp-videos'
DEFAULT_APP_ID = '250528'
DEFAULT_USER_AGENT = 'okhttp/7.4'


@dataclass
class ProxyConfig:
    """
    Proxy configuration.

    Supports HTTP and HTTPS proxies.
    """
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def to_aiohttp_proxy(self) -> Optional[str]:
        """Convert to aiohttp proxy format."""
        if not self.url:
            return None

        if self.username and self.password:
            if '://' in self.url:
                protocol, rest = self.url.split('://', 1)
                return f"{protocol}://{self.username}:{self.password}@{rest}"

        return self.url


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.

    Piece transfers carry up to 120 MiB per request, so the total timeout
    is generous while connect stays short.
    """
    total: float = 1800.0
    connect: float = 30.0
    sock_read: float = 300.0

    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        import aiohttp
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read
        )


@dataclass
class RetryConfig:
    """
    Retry configuration.

    Linear backoff: first retry waits ``initial_delay`` seconds and each
    following retry waits ``delay_increment`` seconds longer.
    """
    max_attempts: int = 3
    initial_delay: float = 10.0
    delay_increment: float = 5.0
    retry_on_codes: Tuple[int, ...] = (31034, 31299)

    def calculate_delay(self, attempt: int) -> float:
        """Delay before the retry that follows ``attempt`` (zero-based)."""
        return self.initial_delay + self.delay_increment * attempt


@dataclass
class APIConfig:
    """
    HTTP client configuration.

    Groups timeout, retry and proxy settings with the request headers the
    TeraBox web endpoints expect.
    """
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    app_id: str = DEFAULT_APP_ID

    proxy: Optional[ProxyConfig] = None
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)

    extra_headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def default(cls) -> 'APIConfig':
        """Create default configuration."""
        return cls()

    @property
    def upload_host(self) -> str:
        """Host serving piece uploads (``www`` swapped for ``c-jp``)."""
        return self.base_url.replace('://www.', '://c-jp.', 1)

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        headers = {
            'User-Agent': self.user_agent,
            'Origin': self.base_url,
            'Referer': f"{self.base_url}/",
            **self.extra_headers
        }

        return {
            'headers': headers,
            'timeout': self.timeout.to_aiohttp_timeout(),
        }


def _env_int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}")


def _env_bool(environ: Mapping[str, str], key: str, default: bool) -> bool:
    raw = environ.get(key)
    if raw is None or raw == '':
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class TeraboxSettings:
    """
    Complete uploader configuration.

    Attributes:
        js_token: jsToken query parameter (required)
        cookie: Session cookie header value (required)
        bds_token: bdstoken (optional but recommended)
        remote_folder: Remote folder receiving uploads
        webhook_url: Notification webhook (optional)
        split_threshold: Files at or above this size are split into pieces
        piece_size: Size of each piece when splitting
        work_dir: When set, pieces are materialized as split files here
        refresh_tokens: Scrape fresh tokens before each upload attempt
        delete_after_upload: Remove the local file once the upload is done
        watch_suffixes: File suffixes picked up by the queue watcher
        api: HTTP client configuration
    """
    js_token: str = ''
    cookie: str = ''
    bds_token: Optional[str] = None
    remote_folder: str = DEFAULT_REMOTE_FOLDER
    webhook_url: Optional[str] = None
    split_threshold: int = 2 * GiB
    piece_size: int = 120 * MiB
    work_dir: Optional[Path] = None
    refresh_tokens: bool = True
    delete_after_upload: bool = True
    watch_suffixes: Tuple[str, ...] = ('.mkv', '.mp4', '.ts')
    api: APIConfig = field(default_factory=APIConfig)

    def __post_init__(self):
        if isinstance(self.work_dir, str):
            self.work_dir = Path(self.work_dir)
        if not self.bds_token:
            self.bds_token = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'TeraboxSettings':
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Returns:
            TeraboxSettings instance (not yet validated)
        """
        env = os.environ if environ is None else environ
        api = APIConfig(base_url=env.get('TERABOX_BASE_URL') or DEFAULT_BASE_URL)
        proxy_url = env.get('TERABOX_PROXY')
        if proxy_url:
            api.proxy = ProxyConfig(url=proxy_url)

        return cls(
            js_token=env.get('TERABOX_JSTOKEN', ''),
            cookie=env.get('TERABOX_COOKIE', ''),
            bds_token=env.get('TERABOX_BDSTOKEN') or None,
            remote_folder=env.get('TERABOX_REMOTE_FOLDER') or DEFAULT_REMOTE_FOLDER,
            webhook_url=env.get('DINGDING_WEBHOOK') or env.get('TERABOX_WEBHOOK') or None,
            split_threshold=_env_int(env, 'TERABOX_SPLIT_THRESHOLD', 2 * GiB),
            piece_size=_env_int(env, 'TERABOX_PIECE_SIZE', 120 * MiB),
            work_dir=env.get('TERABOX_WORK_DIR') or None,
            refresh_tokens=_env_bool(env, 'TERABOX_REFRESH_TOKENS', True),
            api=api
        )

    @property
    def target_folder(self) -> str:
        """Remote folder with exactly one trailing slash."""
        return self.remote_folder.rstrip('/') + '/'

    def remote_path_for(self, file_name: str) -> str:
        """Full remote path for a local file name."""
        return f"{self.remote_folder.rstrip('/')}/{file_name}"

    def validate(self) -> 'TeraboxSettings':
        """
        Check the minimum auth pair and sizing parameters.

        Raises:
            ConfigurationError: If jsToken or cookie is missing, or sizes are invalid
        """
        missing = []
        if not self.js_token:
            missing.append('TERABOX_JSTOKEN')
        if not self.cookie:
            missing.append('TERABOX_COOKIE')
        if missing:
            raise ConfigurationError(
                f"Missing required TeraBox configuration: {', '.join(missing)}"
            )

        if self.piece_size <= 0:
            raise ConfigurationError("Piece size must be positive")
        if self.split_threshold <= 0:
            raise ConfigurationError("Split threshold must be positive")

        if not self.bds_token:
            logger.warning("TERABOX_BDSTOKEN not provided - some operations may fail")

        return self
