"""Failure notification module."""
from .notifier import (
    FailureReport,
    NotificationSink,
    NullNotifier,
    WebhookNotifier,
    create_notifier,
)

__all__ = [
    'FailureReport',
    'NotificationSink',
    'NullNotifier',
    'WebhookNotifier',
    'create_notifier',
]
