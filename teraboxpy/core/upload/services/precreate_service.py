"""
Precreate service.

Registers an intended upload with TeraBox and interprets the three
possible answers: rapid upload, upload id, or error.
"""
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional
import json
import logging

from ...api import AsyncAPIClient, RetryPolicy, TeraboxAPIError, APIErrorCodes
from ...auth import Credentials
from ...exceptions import PrecreateRejected, AuthExpired
from ..models import UploadTarget


@dataclass(frozen=True)
class PrecreateOutcome:
    """
    Interpreted precreate response.

    Exactly one of ``rapid_upload`` or ``upload_id`` is meaningful.
    """
    upload_id: Optional[str] = None
    rapid_upload: bool = False
    response: Dict[str, Any] = field(default_factory=dict)


class PrecreateService:
    """
    Calls the ``precreate`` endpoint.

    Responsibilities:
    - Send path, size and the ordered piece hashes
    - Detect rapid (dedup) upload
    - Surface error codes as PrecreateRejected / AuthExpired
    """

    PATH = '/api/precreate'
    RAPID_UPLOAD_RETURN_TYPE = 2

    def __init__(self, api: AsyncAPIClient, retry: Optional[RetryPolicy] = None):
        self._api = api
        self._retry = retry or RetryPolicy(api.config.retry)
        self._logger = logging.getLogger('teraboxpy.upload.precreate')

    def build_form(self, target: UploadTarget, block_list: List[str]) -> Dict[str, Any]:
        return {
            'path': target.remote_path,
            'size': str(target.size),
            'autoinit': '1',
            'rtype': '3',
            'target_path': target.remote_folder,
            'block_list': json.dumps(block_list),
        }

    async def precreate(
        self,
        target: UploadTarget,
        block_list: List[str],
        credentials: Credentials
    ) -> PrecreateOutcome:
        """
        Register the upload.

        Args:
            target: File being uploaded
            block_list: Locally computed piece MD5s, in order
            credentials: Current credentials

        Returns:
            PrecreateOutcome

        Raises:
            AuthExpired: errno signals expired/unverified credentials
            PrecreateRejected: Any other errno, or no upload id
            TransportError: Network failure after retries
        """
        form = self.build_form(target, block_list)
        params = self._api.auth_params(credentials)

        async def attempt() -> Dict[str, Any]:
            data = await self._api.post_form(self.PATH, credentials, params, form)
            return self._api.raise_for_retryable(data)

        try:
            data = await self._retry.run(attempt, description='precreate')
        except TeraboxAPIError as e:
            raise self._rejection(e.code, e.message) from e

        errno = self._as_int(data.get('errno', 0))
        if errno:
            self._logger.error(f"Precreate failed. Response: {data}")
            error = self._api.api_error(data)
            raise self._rejection(error.code, error.message)

        if self._as_int(data.get('return_type')) == self.RAPID_UPLOAD_RETURN_TYPE:
            self._logger.info("File already exists, rapid upload successful")
            return PrecreateOutcome(rapid_upload=True, response=data)

        upload_id = data.get('uploadid')
        if not upload_id:
            self._logger.error(f"Failed to get upload ID from precreate response: {data}")
            raise PrecreateRejected(-1, "No upload id in precreate response")

        self._logger.info(f"Upload ID: {upload_id}")
        return PrecreateOutcome(upload_id=str(upload_id), response=data)

    @staticmethod
    def _rejection(code: int, message: str) -> PrecreateRejected:
        if APIErrorCodes.is_auth_error(code):
            return AuthExpired(code, message)
        return PrecreateRejected(code, message)

    @staticmethod
    def _as_int(value) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0
