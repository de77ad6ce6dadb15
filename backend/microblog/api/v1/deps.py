from fastapi import Depends, Header, Request

from microblog.models.user import User
from microblog.services.content import ContentStore
from microblog.services.gate import AuthorizationGate, Session, bearer_token
from microblog.services.identity import IdentityStore


def get_identity(request: Request) -> IdentityStore:
    return request.app.state.identity


def get_content(request: Request) -> ContentStore:
    return request.app.state.content


def get_gate(request: Request) -> AuthorizationGate:
    return request.app.state.gate


async def get_current_session(
    authorization: str | None = Header(default=None),
    gate: AuthorizationGate = Depends(get_gate),
) -> Session:
    """
    FastAPI dependency resolving `Authorization: Bearer <token>` to a session.

    Returns:
        Session: The acting user and the token it presented (needed by logout)

    Raises:
        AuthUnresolved (401): Header missing, token invalid/expired, or session closed

    Usage:
        @router.post("/users/logout")
        async def logout(session: Session = Depends(get_current_session)):
            ...
    """
    return await gate.resolve(bearer_token(authorization))


async def get_current_user(session: Session = Depends(get_current_session)) -> User:
    """Same as get_current_session for routes that only need the user."""
    return session.user
