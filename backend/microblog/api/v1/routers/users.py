from typing import Any

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import PlainTextResponse

from microblog.api.v1.deps import get_current_session, get_current_user, get_identity
from microblog.models.user import User
from microblog.schemas.user import LoginIn, RegisterIn
from microblog.services.gate import Session
from microblog.services.identity import IdentityStore

router = APIRouter(prefix="/users", tags=["users"])

@router.post("", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterIn, identity: IdentityStore = Depends(get_identity)):
    """
    Register a new user account and log it in.

    Returns:
        dict: {"user": UserView, "token": str}

    Errors:
        400: Username taken, weak password, or invalid email
    """
    user, token = await identity.register(body.username, body.password, body.email)
    return {"user": identity.public_view(user), "token": token}

@router.post("/login")
async def login(body: LoginIn, identity: IdentityStore = Depends(get_identity)):
    """
    Authenticate and open a new session. Existing sessions on other devices stay open.

    Errors:
        400: Unable to login (unknown username or wrong password)
    """
    user = await identity.authenticate(body.username, body.password)
    token = await identity.issue_token(user)
    return {"user": identity.public_view(user), "token": token}

@router.post("/logout")
async def logout(session: Session = Depends(get_current_session), identity: IdentityStore = Depends(get_identity)):
    """Close the session the request was made with."""
    await identity.revoke_token(session.user, session.token)
    return {}

@router.post("/logoutAll")
async def logout_all(user: User = Depends(get_current_user), identity: IdentityStore = Depends(get_identity)):
    """Close every session of the current user."""
    await identity.revoke_all_tokens(user)
    return {}

@router.get("/me")
async def me(user: User = Depends(get_current_user), identity: IdentityStore = Depends(get_identity)):
    return identity.public_view(user)

@router.patch("/me")
async def update_me(
    body: dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    identity: IdentityStore = Depends(get_identity),
):
    """
    Update any of username, password, email, avatar.

    A new username is copied onto all of the user's tweets and comments before
    this returns.

    Errors:
        400: Key outside the allowed set, invalid value, or username taken
        404: Account no longer exists
    """
    updated = await identity.update_profile(user, body)
    return identity.public_view(updated)

@router.delete("/me")
async def delete_me(user: User = Depends(get_current_user), identity: IdentityStore = Depends(get_identity)):
    """Delete the account and every tweet it owns."""
    deleted = await identity.delete_user(user)
    return identity.public_view(deleted)

@router.delete("/me/avatar")
async def delete_avatar(user: User = Depends(get_current_user), identity: IdentityStore = Depends(get_identity)):
    await identity.remove_avatar(user)
    return {"message": "Profile picture removed"}

@router.get("/{user_id}/avatar", response_class=PlainTextResponse)
async def get_avatar(user_id: str, identity: IdentityStore = Depends(get_identity)):
    """Public: any user's profile picture, 404 if they have none."""
    return await identity.get_avatar(user_id)
