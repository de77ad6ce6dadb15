"""
Pydantic schemas for tweet and comment endpoints.
"""
from typing import List, Optional

from pydantic import BaseModel

__all__ = ["TweetCreateIn", "TweetPatch", "CommentIn"]

class TweetCreateIn(BaseModel):
    """
    Request body for POST /tweets.
    author/username are stamped server-side; any such keys in the body are ignored.
    """
    content: str
    pictures: List[str] = []
    videos: List[str] = []

class TweetPatch(BaseModel):
    """Typed view of PATCH /tweets/{id}; keys are checked by ContentStore first."""
    content: Optional[str] = None
    pictures: Optional[List[str]] = None
    videos: Optional[List[str]] = None

class CommentIn(BaseModel):
    """Request body for creating or editing a comment."""
    content: str
