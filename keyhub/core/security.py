import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.crypto.digest import pbkdf2_hmac
from passlib.utils import consteq

from .config import Settings, access_token_expires
from .errors import Forbidden, Unauthenticated

PASSWORD_DIGEST = "sha512"
# Not recorded in the stored `salt:hash`, so it must never change for existing users.
PASSWORD_HASH_ITERATIONS = 1000


def _derive(password: str, salt: str, iterations: int, key_bytes: int) -> str:
    # The hex salt string itself is the PBKDF2 salt, matching existing user.json files.
    raw = pbkdf2_hmac(PASSWORD_DIGEST, password.encode("utf-8"), salt.encode("utf-8"), iterations, key_bytes)
    return raw.hex()


def get_password_hash(
    password: str,
    iterations: int = PASSWORD_HASH_ITERATIONS,
    salt_bytes: int = 16,
    key_bytes: int = 64,
) -> str:
    """Return ``salt:hash`` (both hex) for ``password``."""
    salt = secrets.token_hex(salt_bytes)
    return f"{salt}:{_derive(password, salt, iterations, key_bytes)}"


def verify_password(plain_password: str, hashed_password: str, iterations: int = PASSWORD_HASH_ITERATIONS) -> bool:
    salt, sep, expected = (hashed_password or "").partition(":")
    if not sep or not salt or not expected:
        return False
    try:
        key_bytes = len(bytes.fromhex(expected))
    except ValueError:
        return False
    actual = _derive(plain_password, salt, iterations, key_bytes)
    return consteq(actual, expected.lower())


class AuthGate:
    """Issues and checks the admin bearer tokens."""

    def __init__(self, settings: Settings):
        self.secret = settings.JWT_SECRET_KEY
        self.algorithm = settings.JWT_ALGORITHM
        self.expires = access_token_expires(settings)

    def issue_token(self, user_id: str, expires_delta: Optional[timedelta] = None) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "iat": now,
            "exp": now + (expires_delta or self.expires),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def authenticate(self, token: Optional[str]) -> str:
        """Return the identity bound to ``token``.

        Raises Unauthenticated when no token was supplied and Forbidden when
        it is malformed, badly signed or expired.
        """
        if not token:
            raise Unauthenticated("No token provided")
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise Forbidden("Token expired")
        except jwt.PyJWTError:
            raise Forbidden("Invalid token")

        user_id = payload.get("sub")
        if not user_id:
            raise Forbidden("Invalid token payload")
        return user_id
