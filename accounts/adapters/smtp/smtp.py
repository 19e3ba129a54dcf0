"""
SMTP notification sender adapter - Implements NotificationPort protocol.

Delivers activation and reset emails through an SMTP relay using the
standard library client. Each send opens its own connection, so the
sender is safe to call from several worker threads.
"""

import logging
import smtplib
from email.message import EmailMessage

from accounts.adapters.smtp.messages import render_activation, render_password_reset
from accounts.domain.models import User

logger = logging.getLogger(__name__)


class SmtpNotificationSender:
    """
    Implements NotificationPort protocol via smtplib.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Errors propagate to the caller; wrap in BackgroundNotificationSender
    to keep delivery off the request path.
    """

    def __init__(
        self,
        host: str,
        port: int,
        mail_from: str,
        base_url: str,
        reset_url: str,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = False,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._mail_from = mail_from
        self._base_url = base_url
        self._reset_url = reset_url
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout

    def send_activation_email(self, user: User) -> None:
        subject, body = render_activation(user, self._base_url)
        self._send(user.email, subject, body)

    def send_password_reset_email(self, user: User) -> None:
        subject, body = render_password_reset(user, self._reset_url)
        self._send(user.email, subject, body)

    def _send(self, to: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self._mail_from
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
            if self._use_tls:
                smtp.starttls()
            if self._username:
                smtp.login(self._username, self._password or "")
            smtp.send_message(message)

        logger.info("Sent '%s' email to %s", subject, to)
