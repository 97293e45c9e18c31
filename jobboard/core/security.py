# jobboard/core/security.py
from passlib.context import CryptContext


class PasswordHasher:
    """Salted one-way password hashing.

    Wraps a passlib context so the cost factor comes from settings instead of
    being fixed at import time. ``matches`` relies on passlib's constant-time
    digest comparison.
    """

    def __init__(self, rounds: int = 29000):
        self._ctx = CryptContext(
            schemes=["pbkdf2_sha256"],
            deprecated="auto",
            pbkdf2_sha256__rounds=rounds,
        )

    def hash(self, secret: str) -> str:
        if not secret:
            raise ValueError("password_blank")
        return self._ctx.hash(secret)

    def matches(self, secret: str, digest: str) -> bool:
        if not secret or not digest:
            return False
        try:
            return self._ctx.verify(secret, digest)
        except (ValueError, TypeError):
            # unknown or corrupt digest format
            return False
