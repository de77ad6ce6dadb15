# microblog/core/security.py
"""
Security module for authentication.
Handles password hashing and the signing/verification of bearer tokens.
"""
import datetime as dt
import uuid

import jwt  # PyJWT
from passlib.context import CryptContext

from microblog.config import Settings

# Password hashing context
# Argon2 is a modern, salted, memory-hard password hashing algorithm
pwd_context = CryptContext(
    schemes=["argon2"],  # Use Argon2 for password hashing
    deprecated="auto",   # Automatically handle deprecated schemes
)

def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (safe to store in database)
    """
    return pwd_context.hash(plain)

def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a plain text password against a hashed password.

    Args:
        plain: Plain text password to verify
        hashed: Hashed password from database

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain, hashed)


class TokenCodec:
    """
    Signs and verifies session tokens.

    A token only proves that the server issued it for a given user id. Whether the
    session is still open is decided by the user's token allow-list, see
    AuthorizationGate.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 0):
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        return cls(
            settings.jwt_secret,
            algorithm=settings.jwt_alg,
            expire_minutes=settings.access_token_expire_minutes,
        )

    def encode(self, user_id: str) -> str:
        """
        Create a signed token bound to a user id.

        Token payload includes:
            - sub: Subject (user ID)
            - jti: Random token id, keeps concurrent sessions distinct
            - iat: Issued at timestamp
            - exp: Expiration timestamp (omitted when expiry is disabled)
        """
        now = dt.datetime.now(dt.timezone.utc)
        payload = {
            "sub": str(user_id),
            "jti": uuid.uuid4().hex,
            "iat": now,
        }
        if self.expire_minutes > 0:
            payload["exp"] = now + dt.timedelta(minutes=self.expire_minutes)
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> dict:
        """
        Decode and validate a token.

        Raises:
            jwt.ExpiredSignatureError: If token has expired
            jwt.InvalidTokenError: If token is invalid, malformed or signed with another secret
        """
        return jwt.decode(token, self.secret, algorithms=[self.algorithm])

    def is_valid(self, token: str) -> bool:
        """True if `token` still decodes: signed by us and not expired."""
        try:
            self.decode(token)
        except jwt.InvalidTokenError:
            return False
        return True
