"""
Console notification sender adapter - Implements NotificationPort protocol.

This module provides a console-based implementation of the domain's
notification port, logging activation and reset links for demo purposes.
"""

import logging

from accounts.adapters.smtp.messages import activation_link, reset_link
from accounts.domain.models import User

logger = logging.getLogger(__name__)


class ConsoleNotificationSender:
    """
    Implements NotificationPort protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints account links to stdout.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        reset_url: str = "http://localhost:9000/account/reset/finish",
    ) -> None:
        self._base_url = base_url
        self._reset_url = reset_url

    def send_activation_email(self, user: User) -> None:
        """
        Log the activation link (simulates email delivery).

        The link is logged at INFO level to be visible in docker-compose logs.

        Args:
            user: Freshly registered user holding an activation key
        """
        logger.info(
            "[ACTIVATION] Login: %s Email: %s Link: %s",
            user.login,
            user.email,
            activation_link(self._base_url, user.activation_key or ""),
        )

    def send_password_reset_email(self, user: User) -> None:
        """
        Log the password reset link (simulates email delivery).

        Args:
            user: Activated user holding a fresh reset key
        """
        logger.info(
            "[PASSWORD RESET] Login: %s Email: %s Link: %s",
            user.login,
            user.email,
            reset_link(self._reset_url, user.reset_key or ""),
        )
