# microblog/services/gate.py
"""
Authorization gate.

Resolves a bearer token to the acting user and performs the ownership checks that
guard tweet and comment mutations.
"""
import logging
import uuid
from typing import NamedTuple, Optional

import jwt

from microblog.core.errors import AuthUnresolved, Forbidden
from microblog.core.security import TokenCodec
from microblog.models.user import User

logger = logging.getLogger(__name__)


class Session(NamedTuple):
    """The acting user and the exact token the request presented."""
    user: User
    token: str


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an `Authorization: Bearer xxx` header value."""
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    return None


class AuthorizationGate:
    def __init__(self, tokens: TokenCodec):
        self.tokens = tokens

    async def resolve(self, token: Optional[str]) -> Session:
        """
        Resolve a bearer token to a live session.

        The token must verify against the signing secret AND still be present in
        the user's token list. A correctly signed token that was revoked by a
        logout does not resolve.

        Raises:
            AuthUnresolved: Token missing, malformed, expired, revoked, or its user is gone
        """
        if not token:
            raise AuthUnresolved()
        try:
            payload = self.tokens.decode(token)
            user_id = uuid.UUID(str(payload.get("sub")))
        except (jwt.InvalidTokenError, ValueError):
            raise AuthUnresolved() from None

        user = await User.get_or_none(id=user_id)
        if user is None or token not in user.tokens:
            logger.debug("token for user_id=%s is not an open session", user_id)
            raise AuthUnresolved()
        return Session(user, token)

    @staticmethod
    def ensure_owner(user: User, author_id, resource: str) -> None:
        """
        Raise Forbidden unless `user` is the author recorded on the resource.
        Forbidden is reported exactly like a missing `resource`.
        """
        if str(user.id) != str(author_id):
            raise Forbidden(resource)
