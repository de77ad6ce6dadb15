from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status

from microblog.api.v1.deps import get_content, get_current_user
from microblog.models.tweet import Tweet
from microblog.models.user import User
from microblog.schemas.tweet import CommentIn, TweetCreateIn
from microblog.services.content import ContentStore

router = APIRouter(prefix="/tweets", tags=["tweets"])


def _tweet_to_dict(t: Tweet) -> dict:
    """
    Convert a Tweet document to its API representation.
    Embedded comments are passed through as stored.
    """
    return {
        "id": str(t.id),
        "author": str(t.author_id),
        "username": t.username,
        "content": t.content,
        "pictures": t.pictures,
        "videos": t.videos,
        "comments": t.comments,
        "createdAt": t.created_at.isoformat() if t.created_at else None,
        "updatedAt": t.updated_at.isoformat() if t.updated_at else None,
    }

# ===== Tweets =====
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_tweet(
    body: TweetCreateIn,
    user: User = Depends(get_current_user),
    store: ContentStore = Depends(get_content),
):
    tweet = await store.create_tweet(user, body.content, body.pictures, body.videos)
    return _tweet_to_dict(tweet)

@router.get("")
async def list_tweets(
    sortBy: str | None = Query(None),
    limit: str | None = Query(None),
    skip: str | None = Query(None),
    username: str | None = Query(None),
    store: ContentStore = Depends(get_content),
):
    """
    Public timeline.

    Query:
        sortBy: "field:asc|desc" (default createdAt:desc)
        limit: page size, non-positive or non-numeric means 10
        skip: number of tweets to skip
        username: only tweets by this (current) username
    """
    tweets = await store.list_tweets(username=username, sort_by=sortBy, limit=limit, skip=skip)
    return [_tweet_to_dict(t) for t in tweets]

@router.get("/{tweet_id}")
async def get_tweet(tweet_id: str, store: ContentStore = Depends(get_content)):
    return _tweet_to_dict(await store.get_tweet(tweet_id))

@router.patch("/{tweet_id}")
async def update_tweet(
    tweet_id: str,
    body: dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    store: ContentStore = Depends(get_content),
):
    """
    Edit content, pictures or videos of one of the caller's tweets.

    Errors:
        400: Key outside {content, pictures, videos} or invalid value (nothing applied)
        404: No such tweet, or it belongs to someone else
    """
    tweet = await store.update_tweet(tweet_id, user, body)
    return _tweet_to_dict(tweet)

@router.delete("/{tweet_id}")
async def delete_tweet(
    tweet_id: str,
    user: User = Depends(get_current_user),
    store: ContentStore = Depends(get_content),
):
    tweet = await store.delete_tweet(tweet_id, user)
    return _tweet_to_dict(tweet)

# ===== Comments =====
@router.post("/{tweet_id}/comments")
async def add_comment(
    tweet_id: str,
    body: CommentIn,
    user: User = Depends(get_current_user),
    store: ContentStore = Depends(get_content),
):
    """Comment on any tweet. Returns the whole tweet."""
    tweet = await store.add_comment(tweet_id, user, body.content)
    return _tweet_to_dict(tweet)

@router.get("/{tweet_id}/comments")
async def list_comments(
    tweet_id: str,
    sortByOrder: str | None = Query(None),
    limit: str | None = Query(None),
    skip: str | None = Query(None),
    store: ContentStore = Depends(get_content),
):
    """
    Comments of a tweet ordered by creation time.

    Query:
        sortByOrder: "asc" (default) or "desc"
        limit / skip: window [skip, skip + limit), limit defaults to 10
    """
    return await store.list_comments(tweet_id, order=sortByOrder, limit=limit, skip=skip)

@router.patch("/{tweet_id}/comments/{comment_id}")
async def update_comment(
    tweet_id: str,
    comment_id: str,
    body: CommentIn,
    user: User = Depends(get_current_user),
    store: ContentStore = Depends(get_content),
):
    """
    Edit a comment. Only the owner of the tweet may do this, not the comment's author.

    Errors:
        404: No such tweet/comment, or the caller does not own the tweet
    """
    tweet = await store.update_comment(tweet_id, comment_id, user, body.content)
    return _tweet_to_dict(tweet)

@router.delete("/{tweet_id}/comments/{comment_id}")
async def delete_comment(
    tweet_id: str,
    comment_id: str,
    user: User = Depends(get_current_user),
    store: ContentStore = Depends(get_content),
):
    """Remove a comment. Same rule as editing: tweet owner only."""
    tweet = await store.delete_comment(tweet_id, comment_id, user)
    return _tweet_to_dict(tweet)
