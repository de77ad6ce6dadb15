# microblog/models/tweet.py
"""
Database model for tweets.

A tweet is stored as one document: its comments live inside it as an ordered JSON
list rather than in a table of their own. Each comment is a dict:

    {"id": str, "author": str, "username": str, "content": str, "datetime": str}

`username` on the tweet and on every comment is a copy of the author's current
username, rewritten by ConsistencyPropagator when the author renames.
"""
import datetime as dt
import uuid
from tortoise import fields, models

# Fields a client may change on an existing tweet / comment
TWEET_MUTABLE_FIELDS = ("content", "pictures", "videos")
COMMENT_MUTABLE_FIELDS = ("content",)

class Tweet(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    author = fields.ForeignKeyField(
        "models.User",
        related_name="tweets",
        on_delete=fields.CASCADE
    )  # Owning user, fixed at creation
    username = fields.CharField(max_length=256, index=True)  # Denormalized author username
    content = fields.TextField()
    pictures = fields.JSONField(default=list)  # Ordered picture references
    videos = fields.JSONField(default=list)    # Ordered video references
    comments = fields.JSONField(default=list)  # Embedded comments, append order
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "tweets"

    def find_comment(self, comment_id: str) -> dict | None:
        # Linear scan; comment lists are short
        for comment in self.comments:
            if comment.get("id") == comment_id:
                return comment
        return None

    def has_comment_by(self, author_id: str) -> bool:
        return any(c.get("author") == author_id for c in self.comments)


def new_comment(author_id: str, username: str, content: str) -> dict:
    """Build an embedded comment document with a fresh id and creation time."""
    return {
        "id": uuid.uuid4().hex,
        "author": str(author_id),
        "username": username,
        "content": content,
        "datetime": dt.datetime.now(dt.timezone.utc).isoformat(),
    }
