"""
Background notification dispatcher - Implements NotificationPort protocol.

Wraps another sender and hands each send to an executor, so the request
returns without waiting for mail delivery. This keeps the response time
of a password reset request independent of whether an email goes out,
and a delivery failure can never roll back the account transition.
Failures are reported through logging when the future completes.
"""

import logging
from collections.abc import Callable
from concurrent.futures import Executor, Future

from accounts.domain.models import User
from accounts.domain.ports import NotificationPort

logger = logging.getLogger(__name__)


class BackgroundNotificationSender:
    """Fire-and-forget decorator around a NotificationPort."""

    def __init__(self, delegate: NotificationPort, executor: Executor) -> None:
        self._delegate = delegate
        self._executor = executor

    def send_activation_email(self, user: User) -> None:
        self._submit("activation", self._delegate.send_activation_email, user)

    def send_password_reset_email(self, user: User) -> None:
        self._submit("password reset", self._delegate.send_password_reset_email, user)

    def _submit(self, kind: str, send: Callable[[User], None], user: User) -> None:
        future = self._executor.submit(send, user)

        def report(done: Future) -> None:
            if done.cancelled():
                logger.warning("Cancelled %s email to %s", kind, user.login)
                return
            error = done.exception()
            if error is not None:
                logger.error("Failed to send %s email to %s", kind, user.login, exc_info=error)

        future.add_done_callback(report)
