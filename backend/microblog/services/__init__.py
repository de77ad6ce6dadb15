"""
Services Module

- IdentityStore: accounts, credentials, session tokens
- AuthorizationGate: bearer token resolution and ownership checks
- ContentStore: tweets and their embedded comments
- ConsistencyPropagator: keeps username copies in step with their authors
"""
from .gate import AuthorizationGate, Session, bearer_token
from .content import ContentStore
from .propagation import ConsistencyPropagator
from .identity import IdentityStore, public_view

__all__ = [
    "AuthorizationGate",
    "Session",
    "bearer_token",
    "ContentStore",
    "ConsistencyPropagator",
    "IdentityStore",
    "public_view",
]
