"""
teraboxpy - Resilient uploader for RTSP recording segments to TeraBox.

Usage:
    >>> from teraboxpy import TeraboxClient, TeraboxSettings
    >>>
    >>> settings = TeraboxSettings.from_env().validate()
    >>> async with TeraboxClient(settings) as terabox:
    ...     result = await terabox.upload("videos/2024-01-01-00-00-00.mkv")
    ...     print(result.state)
"""
import logging
from .client import TeraboxClient

# Configuration
from .core.api import (
    APIConfig,
    ProxyConfig,
    TimeoutConfig,
    RetryConfig,
    TeraboxSettings,
    AsyncAPIClient,
)

# Upload pipeline
from .core.upload import (
    UploadCoordinator,
    UploadState,
    UploadResult,
    UploadSummary,
    UploadProgress,
)
from .core.quota import QuotaSnapshot
from .core.watcher import UploadQueueWatcher
from .core.exceptions import (
    TeraboxException,
    ConfigurationError,
    ChunkingFailed,
    QuotaDenied,
    TransportError,
    PrecreateRejected,
    AuthExpired,
    PieceUploadFailed,
    FinalizeRejected,
)

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for teraboxpy modules.

    This ensures that all teraboxpy loggers are properly configured
    to show log messages at the specified level.

    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'teraboxpy',
        'teraboxpy.client',
        'teraboxpy.config',
        'teraboxpy.api',
        'teraboxpy.retry',
        'teraboxpy.auth',
        'teraboxpy.quota',
        'teraboxpy.notify',
        'teraboxpy.upload',
        'teraboxpy.upload.file',
        'teraboxpy.upload.coordinator',
        'teraboxpy.upload.session',
        'teraboxpy.upload.planner',
        'teraboxpy.upload.precreate',
        'teraboxpy.upload.piece',
        'teraboxpy.upload.create',
        'teraboxpy.watcher',
    ]

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


__all__ = [
    'TeraboxClient',
    'APIConfig',
    'ProxyConfig',
    'TimeoutConfig',
    'RetryConfig',
    'TeraboxSettings',
    'AsyncAPIClient',
    'UploadCoordinator',
    'UploadState',
    'UploadResult',
    'UploadSummary',
    'UploadProgress',
    'QuotaSnapshot',
    'UploadQueueWatcher',
    'TeraboxException',
    'ConfigurationError',
    'ChunkingFailed',
    'QuotaDenied',
    'TransportError',
    'PrecreateRejected',
    'AuthExpired',
    'PieceUploadFailed',
    'FinalizeRejected',
    'setup_logging',
]
