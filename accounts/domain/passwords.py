"""Password length policy shared by registration, change, and reset."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PasswordPolicy:
    """Inclusive [min_length, max_length] bound on raw passwords."""

    min_length: int = 4
    max_length: int = 100

    def __post_init__(self) -> None:
        if self.min_length < 1:
            raise ValueError("min_length must be at least 1")
        if self.max_length < self.min_length:
            raise ValueError("max_length must not be smaller than min_length")

    def is_valid(self, password: str | None) -> bool:
        if password is None or not password.strip():
            return False
        return self.min_length <= len(password) <= self.max_length
