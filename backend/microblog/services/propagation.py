# microblog/services/propagation.py
"""
Keeps the username copies on tweets and comments in step with their authors.

Every tweet and every embedded comment stores the author's username next to the
author id. When a user renames, both copies are rewritten here before the rename
is acknowledged; when a user is deleted, the tweets they own go with them.

Nothing is locked and nothing is rolled back: a failure halfway leaves some copies
on the old name, and re-running the same rename finishes the job.
"""
import logging

from microblog.models.user import User
from microblog.services.content import ContentStore

logger = logging.getLogger(__name__)


class ConsistencyPropagator:
    def __init__(self, content: ContentStore):
        self.content = content

    async def on_username_changed(self, user: User, old_username: str, new_username: str) -> tuple[int, int]:
        """
        Rewrite the username copies of `user` to `new_username`.

        Runs two passes in order: the user's own tweets, then the user's comments
        on any tweet. Both passes are idempotent.

        Returns:
            (tweets rewritten, comments rewritten)
        """
        author_id = str(user.id)

        tweets_updated = await self.content.tweets_by_author(user.id).update(username=new_username)

        comments_updated = 0
        for tweet in await self.content.tweets_commented_by(author_id):
            stale = [
                c for c in tweet.comments
                if c.get("author") == author_id and c.get("username") != new_username
            ]
            if not stale:
                continue
            for comment in stale:
                comment["username"] = new_username
            await tweet.save(update_fields=["comments", "updated_at"])
            comments_updated += len(stale)

        logger.info(
            "username %r -> %r for user=%s: %d tweets, %d comments rewritten",
            old_username, new_username, author_id, tweets_updated, comments_updated,
        )
        return tweets_updated, comments_updated

    async def on_user_deleted(self, user: User) -> int:
        """
        Delete every tweet owned by `user`.

        Comments the user left on other people's tweets stay where they are, still
        carrying the user's last username.
        """
        deleted = await self.content.tweets_by_author(user.id).delete()
        logger.info("user=%s deleted: %d tweets removed", user.id, deleted)
        return deleted
