# microblog/services/identity.py
"""
Identity store: user accounts, credentials and session tokens.
"""
import logging
from typing import Any, Optional

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from tortoise.exceptions import IntegrityError

from microblog.core.db import parse_id
from microblog.core.errors import AuthError, NotFound, ValidationError
from microblog.core.security import TokenCodec, hash_password, verify_password
from microblog.models.user import User
from microblog.schemas.user import PROFILE_FIELDS, ProfilePatch
from microblog.services.propagation import ConsistencyPropagator

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

_email_adapter = TypeAdapter(EmailStr)


def _clean_username(value: Any) -> str:
    username = value.strip() if isinstance(value, str) else ""
    if not username:
        raise ValidationError("Username is required", field="username")
    return username


def _clean_password(value: Any) -> str:
    password = value.strip() if isinstance(value, str) else ""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
        )
    if "password" in password.lower():
        raise ValidationError("Please use a stronger password", field="password")
    return password


def _clean_email(value: Any) -> str:
    email = value.strip().lower() if isinstance(value, str) else ""
    try:
        _email_adapter.validate_python(email)
    except PydanticValidationError:
        raise ValidationError("Email is invalid", field="email") from None
    return email


def public_view(user: User) -> dict:
    """
    The only representation of a user that leaves the service.
    Password hash and session tokens are never included.
    """
    return {
        "id": str(user.id),
        "username": user.username,
        "email": user.email,
        "avatar": user.avatar,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
        "updatedAt": user.updated_at.isoformat() if user.updated_at else None,
    }


class IdentityStore:
    def __init__(self, tokens: TokenCodec, propagator: ConsistencyPropagator):
        self.tokens = tokens
        self.propagator = propagator

    public_view = staticmethod(public_view)

    async def _ensure_username_free(self, username: str, exclude_id=None) -> None:
        query = User.filter(username=username)
        if exclude_id is not None:
            query = query.exclude(id=exclude_id)
        if await query.exists():
            raise ValidationError("Username is already taken", field="username")

    async def register(self, username: str, password: str, email: str) -> tuple[User, str]:
        """
        Create an account and open its first session.

        Raises:
            ValidationError: Username taken or empty, weak password, invalid email
        """
        username = _clean_username(username)
        password = _clean_password(password)
        email = _clean_email(email)
        await self._ensure_username_free(username)

        try:
            user = await User.create(
                username=username,
                email=email,
                password_hash=hash_password(password),  # Hash password before storing
                tokens=[],
            )
        except IntegrityError:
            # Lost a race with a concurrent registration of the same name
            raise ValidationError("Username is already taken", field="username") from None
        logger.info("registered user id=%s username=%s", user.id, user.username)

        token = await self.issue_token(user)
        return user, token

    async def authenticate(self, username: str, password: str) -> User:
        """
        Check credentials.

        Raises:
            AuthError: Unknown username or wrong password (indistinguishable)
        """
        user = await User.get_or_none(username=(username or "").strip())
        if user is None or not verify_password(password or "", user.password_hash):
            logger.info("failed login for username=%r", username)
            raise AuthError()
        return user

    async def issue_token(self, user: User) -> str:
        """
        Sign a new token for `user` and add it to the open sessions.
        Sessions whose token no longer verifies (expired, old secret) are dropped.
        """
        token = self.tokens.encode(str(user.id))
        user.tokens = [*(t for t in user.tokens if self.tokens.is_valid(t)), token]
        await user.save(update_fields=["tokens"])
        return token

    async def revoke_token(self, user: User, token: str) -> None:
        """Close one session; other devices stay logged in."""
        user.tokens = [t for t in user.tokens if t != token]
        await user.save(update_fields=["tokens"])
        logger.info("session closed for user=%s", user.id)

    async def revoke_all_tokens(self, user: User) -> None:
        user.tokens = []
        await user.save(update_fields=["tokens"])
        logger.info("all sessions closed for user=%s", user.id)

    async def get_user(self, user_id) -> User:
        user = await User.get_or_none(id=parse_id(user_id, "User"))
        if user is None:
            raise NotFound("User")
        return user

    async def update_profile(self, user: User, patch: dict) -> User:
        """
        Apply a profile patch.

        The whole patch is validated before anything is written. A username change
        is propagated to the user's tweets and comments before the user document
        itself is saved.

        Raises:
            ValidationError: Disallowed key, bad value or taken username
            NotFound: The account no longer exists
        """
        if not isinstance(patch, dict) or any(k not in PROFILE_FIELDS for k in patch):
            raise ValidationError("Attempt to update invalid fields")
        try:
            values = ProfilePatch.model_validate(patch)
        except PydanticValidationError:
            raise ValidationError("Malformed request") from None

        changes: dict[str, Optional[str]] = {}
        if "username" in patch:
            changes["username"] = _clean_username(values.username)
        if "password" in patch:
            changes["password_hash"] = hash_password(_clean_password(values.password))
        if "email" in patch:
            changes["email"] = _clean_email(values.email)
        if "avatar" in patch:
            changes["avatar"] = (values.avatar or "").strip() or None

        current = await self.get_user(user.id)
        old_username = current.username
        new_username = changes.get("username", old_username)
        if new_username != old_username:
            await self._ensure_username_free(new_username, exclude_id=current.id)

        for field, value in changes.items():
            setattr(current, field, value)
        if new_username != old_username:
            await self.propagator.on_username_changed(current, old_username, new_username)
        try:
            # Only the patched columns; tokens may have changed under us
            await current.save(update_fields=[*changes, "updated_at"])
        except IntegrityError:
            # Lost a race for the name after the copies were rewritten; put them back
            if new_username != old_username:
                await self.propagator.on_username_changed(current, new_username, old_username)
            raise ValidationError("Username is already taken", field="username") from None
        return current

    async def delete_user(self, user: User) -> User:
        """Delete the account together with every tweet it owns."""
        await self.propagator.on_user_deleted(user)
        await user.delete()
        logger.info("deleted user id=%s username=%s", user.id, user.username)
        return user

    async def get_avatar(self, user_id) -> str:
        user = await User.get_or_none(id=parse_id(user_id, "Avatar"))
        if user is None or not user.avatar:
            raise NotFound("Avatar")
        return user.avatar

    async def remove_avatar(self, user: User) -> None:
        user.avatar = None
        await user.save(update_fields=["avatar", "updated_at"])
