"""
Quota gate.

Advisory capacity check run before any transfer. The remote finalize call
is the real gate, so an unknown or malformed quota answer lets the upload
proceed; only a definite shortfall or an oversize file is rejected.
"""
from dataclasses import dataclass
from typing import Optional
import logging

from ..api import AsyncAPIClient, RetryPolicy
from ..auth import Credentials
from ..exceptions import QuotaDenied, TeraboxException
from ..logging import human_size

logger = logging.getLogger('teraboxpy.quota')

STANDARD_MAX_FILE_SIZE = 4294967296      # 4 GiB
PRIVILEGED_MAX_FILE_SIZE = 21474836479   # ~20 GiB


@dataclass(frozen=True)
class QuotaSnapshot:
    """
    Account capacity at the time of one upload.

    Attributes:
        total_bytes: Total capacity (None when unknown)
        used_bytes: Used capacity (None when unknown)
        is_privileged_account: VIP tier flag (None when unknown)
    """
    total_bytes: Optional[int] = None
    used_bytes: Optional[int] = None
    is_privileged_account: Optional[bool] = None

    @property
    def is_known(self) -> bool:
        """True when total/used were reported and total is positive."""
        return (
            self.total_bytes is not None
            and self.used_bytes is not None
            and self.total_bytes > 0
        )

    @property
    def free_bytes(self) -> Optional[int]:
        if not self.is_known:
            return None
        return self.total_bytes - self.used_bytes

    @property
    def max_file_size(self) -> int:
        """Largest single file the account tier accepts."""
        if self.is_privileged_account:
            return PRIVILEGED_MAX_FILE_SIZE
        return STANDARD_MAX_FILE_SIZE


@dataclass(frozen=True)
class QuotaDecision:
    """Result of a quota check: allowed, or denied with a reason."""
    allowed: bool
    snapshot: QuotaSnapshot
    reason: Optional[str] = None
    limit: Optional[int] = None

    def raise_for_denial(self, required: int) -> None:
        """Raise QuotaDenied when the decision is a denial."""
        if not self.allowed:
            raise QuotaDenied(self.reason, required, self.limit)


def _as_int(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class QuotaGate:
    """
    Checks remote capacity and account tier before an upload.

    Snapshots are fetched fresh for every file and never cached.
    """

    QUOTA_PATH = '/api/quota'
    MEMBERSHIP_PATH = '/rest/2.0/membership/proxy/user'

    def __init__(self, api: AsyncAPIClient, retry: Optional[RetryPolicy] = None):
        """
        Initialize quota gate.

        Args:
            api: API client
            retry: Retry policy wrapping each probe
        """
        self._api = api
        self._retry = retry or RetryPolicy(api.config.retry)

    async def fetch_snapshot(self, credentials: Credentials) -> QuotaSnapshot:
        """
        Query quota and membership tier.

        Failures of either probe are logged and reported as unknown fields.
        """
        total = used = None
        try:
            params = {'checkexpire': 1, 'checkfree': 1, **self._api.auth_params(credentials)}
            data = await self._retry.run(
                lambda: self._api.get_json(self.QUOTA_PATH, credentials, params),
                description='quota query'
            )
            total = _as_int(data.get('total'))
            used = _as_int(data.get('used'))
        except TeraboxException as e:
            logger.warning(f"Quota check unavailable, proceeding: {e}")

        privileged = None
        try:
            data = await self._retry.run(
                lambda: self._api.get_json(
                    self.MEMBERSHIP_PATH, credentials, {'method': 'query'}
                ),
                description='membership query'
            )
            member_info = (data.get('data') or {}).get('member_info') or {}
            if 'is_vip' in member_info:
                privileged = _as_int(member_info.get('is_vip')) == 1
        except (TeraboxException, AttributeError) as e:
            logger.warning(f"Account tier unavailable, assuming standard: {e}")

        return QuotaSnapshot(total_bytes=total, used_bytes=used, is_privileged_account=privileged)

    @staticmethod
    def evaluate(snapshot: QuotaSnapshot, size: int) -> QuotaDecision:
        """Decide whether ``size`` bytes fit the snapshot."""
        if snapshot.is_known and snapshot.free_bytes < size:
            return QuotaDecision(
                allowed=False,
                snapshot=snapshot,
                reason=QuotaDenied.INSUFFICIENT_QUOTA,
                limit=max(0, snapshot.free_bytes)
            )

        if size > snapshot.max_file_size:
            return QuotaDecision(
                allowed=False,
                snapshot=snapshot,
                reason=QuotaDenied.FILE_TOO_LARGE,
                limit=snapshot.max_file_size
            )

        return QuotaDecision(allowed=True, snapshot=snapshot)

    async def check(self, size: int, credentials: Credentials) -> QuotaDecision:
        """
        Fetch a fresh snapshot and evaluate it for ``size`` bytes.

        Args:
            size: Bytes about to be uploaded
            credentials: Current credentials

        Returns:
            QuotaDecision (never raises for remote failures)
        """
        logger.info("Checking storage quota...")
        snapshot = await self.fetch_snapshot(credentials)
        decision = self.evaluate(snapshot, size)

        if not decision.allowed:
            logger.error(
                f"{decision.reason}: limit {human_size(decision.limit)}, "
                f"required {human_size(size)}"
            )
        elif snapshot.is_known:
            logger.info(f"Quota OK. Available: {human_size(snapshot.free_bytes)}")
        else:
            logger.info("Quota unknown, proceeding")

        if snapshot.is_privileged_account:
            logger.debug("VIP account detected (max file: 20GB)")
        return decision
