"""
Pydantic schemas for the user endpoints.
Only shape/type checks live here; the account rules (unique username, password
strength, email format) are enforced by IdentityStore so every caller gets them.
"""
from typing import Optional

from pydantic import BaseModel

__all__ = ["RegisterIn", "LoginIn", "ProfilePatch", "PROFILE_FIELDS"]

# Keys accepted by PATCH /users/me
PROFILE_FIELDS = ("username", "password", "email", "avatar")

class RegisterIn(BaseModel):
    """Request body for POST /users."""
    username: str
    password: str
    email: str

class LoginIn(BaseModel):
    """Request body for POST /users/login."""
    username: str
    password: str

class ProfilePatch(BaseModel):
    """
    Typed view of a profile patch.
    Unknown keys are rejected by the service before this model is built.
    """
    username: Optional[str] = None
    password: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None
