"""
bcrypt password hasher adapter - Implements PasswordHasher protocol.

Security Design:
---------------
1. **Pre-hashing**: bcrypt only reads the first 72 bytes of its input
   (newer releases reject longer input). Passwords are therefore reduced
   to the base64 of their SHA-256 digest (44 bytes) before bcrypt sees
   them, so every length the password policy allows is hashed in full.

2. **Timing Oracle Prevention**: verify() always runs bcrypt.checkpw().
   When no stored hash is available (unknown login) it compares the same
   pre-hashed input against a dummy hash of the same cost, so "no such
   account" and "wrong password" take the same path and the same time.
"""

import base64
import hashlib
import logging

import bcrypt

logger = logging.getLogger(__name__)


def _prehash(password: str) -> bytes:
    return base64.b64encode(hashlib.sha256(password.encode()).digest())


class BcryptPasswordHasher:
    """
    Implements PasswordHasher protocol via bcrypt.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, rounds: int = 10) -> None:
        """
        Initialize hasher with a bcrypt cost factor.

        Args:
            rounds: bcrypt work factor (4..31)
        """
        self._rounds = rounds
        # Same cost as real hashes so dummy comparisons take equal time.
        self._dummy_hash = bcrypt.hashpw(_prehash("dummy_password_for_timing_safety"), bcrypt.gensalt(rounds))

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(_prehash(password), bcrypt.gensalt(rounds=self._rounds)).decode()

    def verify(self, password: str, password_hash: str | None) -> bool:
        candidate = _prehash(password)
        if password_hash is None:
            bcrypt.checkpw(candidate, self._dummy_hash)
            return False
        try:
            return bcrypt.checkpw(candidate, password_hash.encode())
        except ValueError:
            logger.error("Stored password hash is not a valid bcrypt hash")
            return False
