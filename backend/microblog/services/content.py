# microblog/services/content.py
"""
Content store: tweets and the comments embedded in them.
"""
import logging
from typing import Any, List, Optional

from pydantic import ValidationError as PydanticValidationError
from tortoise.queryset import QuerySet

from microblog.core.db import parse_id
from microblog.core.errors import NotFound, ValidationError
from microblog.models.tweet import TWEET_MUTABLE_FIELDS, Tweet, new_comment
from microblog.models.user import User
from microblog.schemas.tweet import TweetPatch
from microblog.services.gate import AuthorizationGate

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10

# sortBy field names accepted from clients -> model fields
SORT_FIELDS = {
    "createdAt": "created_at",
    "created_at": "created_at",
    "updatedAt": "updated_at",
    "updated_at": "updated_at",
    "username": "username",
    "content": "content",
}


def parse_limit(raw: Any) -> int:
    """Non-numeric or non-positive limits fall back to DEFAULT_LIMIT."""
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    return limit if limit > 0 else DEFAULT_LIMIT


def parse_skip(raw: Any) -> int:
    try:
        skip = int(raw)
    except (TypeError, ValueError):
        return 0
    return max(skip, 0)


def parse_sort(raw: Optional[str]) -> str:
    """
    Turn `field:dir` into a Tortoise order_by expression.
    Missing -> newest first. Any direction other than "desc" sorts ascending.
    """
    if not raw:
        return "-created_at"
    field, _, direction = raw.partition(":")
    column = SORT_FIELDS.get(field.strip())
    if column is None:
        raise ValidationError(f"Cannot sort by '{field}'", field="sortBy")
    return f"-{column}" if direction.strip().lower() == "desc" else column


def _clean_content(value: Any) -> str:
    content = value.strip() if isinstance(value, str) else ""
    if not content:
        raise ValidationError("Content is required", field="content")
    return content


def _clean_refs(values: Optional[List[str]]) -> List[str]:
    return [v.strip() for v in values or [] if v and v.strip()]


class ContentStore:
    def __init__(self, gate: AuthorizationGate):
        self.gate = gate

    # ------------------------------------------------------------------
    # Queries by author, used as worklists by ConsistencyPropagator
    # ------------------------------------------------------------------
    def tweets_by_author(self, author_id) -> QuerySet[Tweet]:
        return Tweet.filter(author_id=author_id)

    async def tweets_commented_by(self, author_id) -> List[Tweet]:
        """
        Tweets holding at least one comment by `author_id`, whoever wrote the tweet.
        Comments are embedded JSON, so this scans every tweet; fine at small scale.
        """
        author_id = str(author_id)
        return [t for t in await Tweet.all() if t.has_comment_by(author_id)]

    # ------------------------------------------------------------------
    # Tweets
    # ------------------------------------------------------------------
    async def _current_username(self, user: User) -> str:
        # Read fresh: the caller's User instance may predate a rename
        username = await User.filter(id=user.id).values_list("username", flat=True)
        if not username:
            raise NotFound("User")
        return username[0]

    async def create_tweet(
        self,
        author: User,
        content: str,
        pictures: Optional[List[str]] = None,
        videos: Optional[List[str]] = None,
    ) -> Tweet:
        content = _clean_content(content)
        username = await self._current_username(author)
        tweet = await Tweet.create(
            author_id=author.id,
            username=username,
            content=content,
            pictures=_clean_refs(pictures),
            videos=_clean_refs(videos),
            comments=[],
        )
        logger.info("tweet created id=%s author=%s", tweet.id, author.id)
        return tweet

    async def list_tweets(
        self,
        username: Optional[str] = None,
        sort_by: Optional[str] = None,
        limit: Any = None,
        skip: Any = None,
    ) -> List[Tweet]:
        query = Tweet.filter(username=username) if username else Tweet.all()
        return await query.order_by(parse_sort(sort_by)).offset(parse_skip(skip)).limit(parse_limit(limit))

    async def get_tweet(self, tweet_id) -> Tweet:
        tweet = await Tweet.get_or_none(id=parse_id(tweet_id, "Tweet"))
        if tweet is None:
            raise NotFound("Tweet")
        return tweet

    async def _get_owned_tweet(self, tweet_id, actor: User) -> Tweet:
        # Scoped by author: someone else's tweet looks exactly like a missing one
        tweet = await Tweet.get_or_none(id=parse_id(tweet_id, "Tweet"), author_id=actor.id)
        if tweet is None:
            raise NotFound("Tweet")
        return tweet

    async def update_tweet(self, tweet_id, actor: User, patch: dict) -> Tweet:
        if not isinstance(patch, dict) or any(k not in TWEET_MUTABLE_FIELDS for k in patch):
            raise ValidationError("Attempt to update invalid fields")
        try:
            values = TweetPatch.model_validate(patch)
        except PydanticValidationError:
            raise ValidationError("Malformed request") from None

        changes = {}
        if "content" in patch:
            changes["content"] = _clean_content(values.content)
        if "pictures" in patch:
            changes["pictures"] = _clean_refs(values.pictures)
        if "videos" in patch:
            changes["videos"] = _clean_refs(values.videos)

        tweet = await self._get_owned_tweet(tweet_id, actor)
        for field, value in changes.items():
            setattr(tweet, field, value)
        await tweet.save()
        return tweet

    async def delete_tweet(self, tweet_id, actor: User) -> Tweet:
        tweet = await self._get_owned_tweet(tweet_id, actor)
        # A concurrent delete may win between the lookup and here
        deleted = await Tweet.filter(id=tweet.id, author_id=actor.id).delete()
        if not deleted:
            raise NotFound("Tweet")
        logger.info("tweet deleted id=%s author=%s", tweet.id, actor.id)
        return tweet

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------
    async def add_comment(self, tweet_id, actor: User, content: str) -> Tweet:
        """Any authenticated user may comment on any tweet."""
        content = _clean_content(content)
        tweet = await self.get_tweet(tweet_id)
        username = await self._current_username(actor)
        tweet.comments = [*tweet.comments, new_comment(actor.id, username, content)]
        await tweet.save(update_fields=["comments", "updated_at"])
        return tweet

    async def list_comments(self, tweet_id, order: Optional[str] = None, limit: Any = None, skip: Any = None) -> List[dict]:
        """
        Comments of a tweet sorted by creation time, windowed as [skip, skip + limit).
        """
        order = (order or "asc").lower()
        if order not in ("asc", "desc"):
            raise ValidationError("sortByOrder must be 'asc' or 'desc'", field="sortByOrder")
        tweet = await self.get_tweet(tweet_id)
        comments = sorted(tweet.comments, key=lambda c: c["datetime"], reverse=(order == "desc"))
        start = parse_skip(skip)
        return comments[start:start + parse_limit(limit)]

    async def _get_comment_for_owner(self, tweet_id, comment_id: str, actor: User) -> tuple[Tweet, dict]:
        tweet = await self.get_tweet(tweet_id)
        comment = tweet.find_comment(comment_id)
        if comment is None:
            raise NotFound("Comment")
        # Moderation belongs to the tweet's owner, not to the comment's author
        self.gate.ensure_owner(actor, tweet.author_id, "Comment")
        return tweet, comment

    async def update_comment(self, tweet_id, comment_id: str, actor: User, content: str) -> Tweet:
        content = _clean_content(content)
        tweet, comment = await self._get_comment_for_owner(tweet_id, comment_id, actor)
        comment["content"] = content
        await tweet.save(update_fields=["comments", "updated_at"])
        return tweet

    async def delete_comment(self, tweet_id, comment_id: str, actor: User) -> Tweet:
        tweet, comment = await self._get_comment_for_owner(tweet_id, comment_id, actor)
        tweet.comments = [c for c in tweet.comments if c.get("id") != comment["id"]]
        await tweet.save(update_fields=["comments", "updated_at"])
        return tweet
