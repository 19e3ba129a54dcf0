"""
Secret key generation for activation and password reset links.

Keys come from the secrets module (OS CSPRNG) and are URL-safe so they
can travel in query strings. Uniqueness is a property of the entropy;
no lookup against existing keys is performed.
"""

import secrets
from dataclasses import dataclass

MIN_KEY_BYTES = 16  # 128 bits


@dataclass(frozen=True)
class SecretKeyGenerator:
    """Produces unpredictable single-use tokens."""

    nbytes: int = 20

    def __post_init__(self) -> None:
        if self.nbytes < MIN_KEY_BYTES:
            raise ValueError(f"Secret keys need at least {MIN_KEY_BYTES} random bytes, got {self.nbytes}")

    def generate(self) -> str:
        return secrets.token_urlsafe(self.nbytes)
