"""
Finalize service.

Commits transferred pieces into a remote file through the ``create``
endpoint.
"""
from typing import Dict, Any, List, Optional
import json
import logging

from ...api import AsyncAPIClient, RetryPolicy, TeraboxAPIError
from ...auth import Credentials
from ...exceptions import FinalizeRejected
from ..models import UploadTarget


class FinalizeService:
    """
    Calls the ``create`` endpoint.

    The block list must hold the remote-echoed hashes from the piece
    transfers, not the locally computed ones.
    """

    PATH = '/api/create'

    def __init__(self, api: AsyncAPIClient, retry: Optional[RetryPolicy] = None):
        self._api = api
        self._retry = retry or RetryPolicy(api.config.retry)
        self._logger = logging.getLogger('teraboxpy.upload.create')

    def build_form(
        self,
        target: UploadTarget,
        upload_id: str,
        block_list: List[str]
    ) -> Dict[str, Any]:
        return {
            'path': target.remote_path,
            'size': str(target.size),
            'uploadid': upload_id,
            'target_path': target.remote_folder,
            'block_list': json.dumps(block_list),
        }

    async def finalize(
        self,
        target: UploadTarget,
        upload_id: str,
        block_list: List[str],
        credentials: Credentials
    ) -> Dict[str, Any]:
        """
        Commit the upload.

        Args:
            target: File being uploaded
            upload_id: Id from precreate
            block_list: Remote-echoed piece hashes, in partseq order
            credentials: Current credentials

        Returns:
            Raw create response (errno 0)

        Raises:
            FinalizeRejected: If errno is anything but 0
        """
        form = self.build_form(target, upload_id, block_list)
        params = {'isdir': '0', 'rtype': '1', **self._api.auth_params(credentials)}

        async def attempt() -> Dict[str, Any]:
            data = await self._api.post_form(self.PATH, credentials, params, form)
            return self._api.raise_for_retryable(data)

        try:
            data = await self._retry.run(attempt, description='create')
        except TeraboxAPIError as e:
            raise FinalizeRejected(e.code, e.message) from e

        if 'errno' not in data:
            raise FinalizeRejected(-1, f"No errno in create response: {data}")

        try:
            errno = int(data['errno'])
        except (TypeError, ValueError):
            errno = -1
        if errno != 0:
            self._logger.error(f"Upload failed (errno: {errno}). Response: {data}")
            error = self._api.api_error(data)
            raise FinalizeRejected(errno, error.message)

        return data
