"""
Feed assembly: followed-community feed, trending and text search.

Every read fans out over communities and merges client side, the document
store has no cross-collection query we can rely on here.
"""
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

from app.core.config import settings
from app.core.database import ARRAY_CONTAINS, GTE, DocumentStore, QueryFilter
from app.core.exceptions import InvalidInputError
from app.core.logging_config import logger
from app.schemas.community import Community, Post
from app.services.otp_store import Clock, utc_now
from app.utils.pagination import paginate_list

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

MIN_SEARCH_LENGTH = 2


class FeedFilter(str, Enum):
    ALL = "all"
    FOLLOWING = "following"
    TRENDING = "trending"


def parse_feed_filter(value: Optional[str]) -> FeedFilter:
    if value is None:
        return FeedFilter.ALL
    try:
        return FeedFilter(value)
    except ValueError:
        raise InvalidInputError(f"Unknown feed filter '{value}'", field="filter")


def _recency(post: Post) -> datetime:
    ts = post.timestamp
    if ts is None:
        return _EPOCH
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


class FeedService:
    def __init__(self, store: DocumentStore, clock: Clock = utc_now,
                 trending_window_hours: int = settings.TRENDING_WINDOW_HOURS):
        self.store = store
        self.clock = clock
        self.trending_window = timedelta(hours=trending_window_hours)

    def _trending_cutoff(self) -> datetime:
        return self.clock() - self.trending_window

    async def _community_posts(
        self,
        community: Community,
        uid: str,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Post]:
        filters = [QueryFilter("timestamp", GTE, since)] if since else []
        docs = await self.store.query(
            f"communities/{community.id}/posts",
            filters=filters,
            order_by="timestamp",
            limit=limit,
        )
        posts = []
        for doc in docs:
            post = Post.from_document(doc, communityId=community.id, communityName=community.name)
            post.is_liked = uid in post.likes
            posts.append(post)
        return posts

    async def _communities(self, followed_by: Optional[str] = None) -> List[Community]:
        filters = [QueryFilter("followers", ARRAY_CONTAINS, followed_by)] if followed_by else []
        docs = await self.store.query("communities", filters=filters)
        return [Community.from_document(doc) for doc in docs]

    async def get_feed(self, uid: str, feed_filter: FeedFilter, limit: int, offset: int) -> List[Post]:
        """
        Posts from the communities the caller follows.

        Each community contributes at most `limit` posts before the merge, so
        deep offsets can miss older posts.
        """
        communities = await self._communities(followed_by=uid)
        if not communities:
            return []

        trending = feed_filter == FeedFilter.TRENDING
        since = self._trending_cutoff() if trending else None

        posts: List[Post] = []
        for community in communities:
            posts.extend(await self._community_posts(community, uid, since=since, limit=limit))

        if trending:
            posts.sort(key=lambda p: p.like_count, reverse=True)
        else:
            posts.sort(key=_recency, reverse=True)

        logger.debug(f"[Feed] uid={uid} filter={feed_filter.value} communities={len(communities)} posts={len(posts)}")
        return paginate_list(posts, offset, limit)

    async def get_trending(self, uid: str, limit: int, offset: int) -> List[Post]:
        """Recent posts from every community, most liked first"""
        since = self._trending_cutoff()
        posts: List[Post] = []
        for community in await self._communities():
            posts.extend(await self._community_posts(community, uid, since=since))

        posts.sort(key=lambda p: p.like_count, reverse=True)
        return paginate_list(posts, offset, limit)

    async def search(self, uid: str, q: Optional[str], limit: int, offset: int) -> List[Post]:
        """Case-insensitive substring match on post text across all communities"""
        term = (q or "").strip()
        if len(term) < MIN_SEARCH_LENGTH:
            raise InvalidInputError("Search query must be at least 2 characters", field="q")

        needle = term.lower()
        matches: List[Post] = []
        for community in await self._communities():
            for post in await self._community_posts(community, uid):
                if post.text and needle in post.text.lower():
                    matches.append(post)

        matches.sort(key=_recency, reverse=True)
        return paginate_list(matches, offset, limit)
