"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User: User account, credentials and open session tokens
- Tweet: Tweet document with its embedded comments
"""
from .user import User
from .tweet import Tweet
