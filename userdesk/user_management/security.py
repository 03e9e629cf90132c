"""Password encoding for stored user credentials."""

from typing import Optional, Sequence

from passlib.context import CryptContext

# bcrypt only reads this many bytes of the password
BCRYPT_MAX_PASSWORD_BYTES = 72


class PasswordEncoder:
    """One-way password encoder backed by a passlib context."""

    def __init__(self, schemes: Sequence[str] = ("bcrypt",)):
        self._context = CryptContext(schemes=list(schemes), deprecated="auto")

    @property
    def max_password_bytes(self) -> Optional[int]:
        """Longest UTF-8 password the default scheme fully hashes, None if unbounded."""
        if self._context.default_scheme() == "bcrypt":
            return BCRYPT_MAX_PASSWORD_BYTES
        return None

    def encode(self, plain_password: str) -> str:
        """Hash a plain-text password with the context's default scheme."""
        return self._context.hash(plain_password)

    def verify(self, plain_password: str, encoded_password: str) -> bool:
        """Verify a password against its hash."""
        return self._context.verify(plain_password, encoded_password)
