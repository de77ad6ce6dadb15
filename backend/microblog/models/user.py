# microblog/models/user.py
"""
Database model for users.
Represents a user account: credentials, open sessions and profile information.
"""
import uuid
from tortoise import fields, models

class User(models.Model):
    """
    User database model.

    Relationships:
    - Has many Tweets (one-to-many, via related_name="tweets"); the user owns them
      and they are deleted with the account

    Security:
    - Password is stored as a hash (never store plain text passwords)
    - Username must be unique across all users
    - tokens is the allow-list of open sessions, one entry per logged-in device
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    username = fields.CharField(
        max_length=256,
        unique=True,
        index=True
    )  # Public handle (unique, copied onto every tweet and comment the user writes)
    email = fields.CharField(max_length=256)  # Lower-cased email address
    password_hash = fields.CharField(max_length=255)  # Argon2 hash, never exposed
    tokens = fields.JSONField(default=list)  # Signed session tokens, in issue order
    avatar = fields.TextField(null=True)  # Profile picture (e.g. a data URL)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"  # Database table name
