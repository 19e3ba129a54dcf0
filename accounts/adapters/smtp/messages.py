"""
Subjects, links, and bodies for account emails.

Activation links point straight at the API's GET /v1/activate. The reset
finish step is a POST carrying the new password, so reset links point at
the frontend page (``reset_url``) that collects it and submits ``key`` and
``new_password`` to /v1/account/reset-password/finish.
"""

from urllib.parse import urlencode

from accounts.domain.models import User


def activation_link(base_url: str, key: str) -> str:
    return f"{base_url.rstrip('/')}/v1/activate?{urlencode({'key': key})}"


def reset_link(reset_url: str, key: str) -> str:
    separator = "&" if "?" in reset_url else "?"
    return f"{reset_url}{separator}{urlencode({'key': key})}"


def _greeting(user: User) -> str:
    return f"Dear {user.first_name or user.login},"


def render_activation(user: User, base_url: str) -> tuple[str, str]:
    """Return (subject, body) of the activation email."""
    if user.activation_key is None:
        raise ValueError(f"User {user.login} has no pending activation")
    body = "\n\n".join(
        [
            _greeting(user),
            "Your account has been created, please click on the link below to activate it:",
            activation_link(base_url, user.activation_key),
        ]
    )
    return "Account activation", body


def render_password_reset(user: User, reset_url: str) -> tuple[str, str]:
    """Return (subject, body) of the password reset email."""
    if user.reset_key is None:
        raise ValueError(f"User {user.login} has no pending password reset")
    body = "\n\n".join(
        [
            _greeting(user),
            "For your account a password reset was requested, please click on the link below to reset it:",
            reset_link(reset_url, user.reset_key),
        ]
    )
    return "Password reset", body
