"""
Security Module

Password hashing (scrypt with a per-digest salt) and session token signing
(JWT, HS256). Both are constructed once by the banking system and passed to
the services that need them.
"""

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt

from .exceptions import DependencyError


class PasswordHasher:
    """scrypt password hashing; digests look like ``scrypt$<salt>$<hash>``"""

    scheme = "scrypt"

    def __init__(self, n: int = 16384, r: int = 8, p: int = 1):
        self.n = n
        self.r = r
        self.p = p

    def _derive(self, secret: str, salt: str) -> str:
        try:
            return hashlib.scrypt(
                secret.encode(),
                salt=salt.encode(),
                n=self.n, r=self.r, p=self.p
            ).hex()
        except (ValueError, MemoryError) as e:
            raise DependencyError("Password hashing failed") from e

    def hash(self, secret: str) -> str:
        salt = secrets.token_hex(16)
        return f"{self.scheme}${salt}${self._derive(secret, salt)}"

    def verify(self, secret: str, digest: Optional[str]) -> bool:
        if not digest:
            return False
        try:
            scheme, salt, expected = digest.split("$", 2)
        except ValueError:
            return False
        if scheme != self.scheme:
            return False
        return hmac.compare_digest(self._derive(secret, salt), expected)


class TokenSigner:
    """Issues and verifies signed session tokens"""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expiry_hours: int = 24 * 7,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.expiry = timedelta(hours=expiry_hours)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def issue(self, subject: str, **claims) -> str:
        now = self._clock()
        payload = {"sub": subject, "iat": now, "exp": now + self.expiry}
        payload.update(claims)
        try:
            return jwt.encode(payload, self.secret, algorithm=self.algorithm)
        except jwt.PyJWTError as e:
            raise DependencyError("Token signing failed") from e

    def verify(self, token: str) -> Optional[str]:
        """Return the token subject, or None if the token is invalid or expired"""
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None
        subject = payload.get("sub")
        return subject if isinstance(subject, str) and subject else None
