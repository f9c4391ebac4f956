"""
Unit Tests for FeedService
Tests for: followed feed, trending window, search
"""
import pytest
from datetime import timedelta

from app.core.exceptions import InvalidInputError
from app.services.feed_service import FeedFilter, parse_feed_filter

ME = "uid-me"


def seed_community(store, name, followers=(), community_id=None):
    return store.seed("communities", {
        "name": name,
        "description": f"{name} club",
        "category": "Technical",
        "admin": "uid-admin",
        "adminName": "Admin",
        "followers": list(followers),
        "postCount": 0,
    }, doc_id=community_id)


def seed_post(store, clock, community_id, text, age=timedelta(0), likes=()):
    return store.seed(f"communities/{community_id}/posts", {
        "text": text,
        "images": [],
        "author": "uid-author",
        "authorName": "Author",
        "likes": list(likes),
        "comments": 0,
        "timestamp": clock() - age,
    })


class TestParseFeedFilter:
    def test_defaults_to_all(self):
        assert parse_feed_filter(None) is FeedFilter.ALL

    def test_known_values(self):
        assert parse_feed_filter("trending") is FeedFilter.TRENDING
        assert parse_feed_filter("following") is FeedFilter.FOLLOWING

    def test_unknown_value_rejected(self):
        with pytest.raises(InvalidInputError):
            parse_feed_filter("popular")


class TestGetFeed:
    """Test FeedService.get_feed"""

    @pytest.mark.asyncio
    async def test_no_followed_communities_returns_empty(self, feed_service, document_store, clock):
        other = seed_community(document_store, "Chess", followers=["uid-other"])
        seed_post(document_store, clock, other, "hidden")

        assert await feed_service.get_feed(ME, FeedFilter.ALL, 20, 0) == []

    @pytest.mark.asyncio
    async def test_merges_followed_communities_newest_first(self, feed_service, document_store, clock):
        robotics = seed_community(document_store, "Robotics", followers=[ME])
        music = seed_community(document_store, "Music", followers=[ME])
        chess = seed_community(document_store, "Chess", followers=["uid-other"])
        seed_post(document_store, clock, robotics, "r-old", age=timedelta(hours=3))
        seed_post(document_store, clock, music, "m-new", age=timedelta(hours=1), likes=[ME])
        seed_post(document_store, clock, robotics, "r-mid", age=timedelta(hours=2))
        seed_post(document_store, clock, chess, "c-newest")

        posts = await feed_service.get_feed(ME, FeedFilter.ALL, 20, 0)

        assert [p.text for p in posts] == ["m-new", "r-mid", "r-old"]
        assert posts[0].community_id == music
        assert posts[0].community_name == "Music"
        assert posts[0].is_liked is True
        assert posts[1].is_liked is False

    @pytest.mark.asyncio
    async def test_trending_filter_window_and_like_order(self, feed_service, document_store, clock):
        robotics = seed_community(document_store, "Robotics", followers=[ME])
        seed_post(document_store, clock, robotics, "few", age=timedelta(hours=2), likes=["a"])
        seed_post(document_store, clock, robotics, "many", age=timedelta(hours=5), likes=["a", "b", "c"])
        seed_post(document_store, clock, robotics, "stale", age=timedelta(hours=30), likes=["a", "b", "c", "d"])

        posts = await feed_service.get_feed(ME, FeedFilter.TRENDING, 20, 0)

        assert [p.text for p in posts] == ["many", "few"]

    @pytest.mark.asyncio
    async def test_pagination_applies_after_merge(self, feed_service, document_store, clock):
        a = seed_community(document_store, "A", followers=[ME])
        b = seed_community(document_store, "B", followers=[ME])
        for i in range(3):
            seed_post(document_store, clock, a, f"a{i}", age=timedelta(minutes=10 * i))
            seed_post(document_store, clock, b, f"b{i}", age=timedelta(minutes=10 * i + 5))

        page = await feed_service.get_feed(ME, FeedFilter.ALL, 2, 1)

        assert [p.text for p in page] == ["b0", "a1"]

    @pytest.mark.asyncio
    async def test_limit_is_applied_per_community_before_merge(self, feed_service, document_store, clock):
        a = seed_community(document_store, "A", followers=[ME])
        for i in range(5):
            seed_post(document_store, clock, a, f"a{i}", age=timedelta(minutes=i))

        # Only the first `limit` posts of each community are considered
        assert await feed_service.get_feed(ME, FeedFilter.ALL, 2, 2) == []


class TestGetTrending:
    """Test FeedService.get_trending"""

    @pytest.mark.asyncio
    async def test_all_communities_recent_posts_by_likes(self, feed_service, document_store, clock):
        followed = seed_community(document_store, "Robotics", followers=[ME])
        unfollowed = seed_community(document_store, "Chess")
        seed_post(document_store, clock, followed, "one-like", age=timedelta(hours=1), likes=["x"])
        seed_post(document_store, clock, unfollowed, "two-likes", age=timedelta(hours=23), likes=["x", ME])
        seed_post(document_store, clock, unfollowed, "yesterday", age=timedelta(hours=25), likes=["x", "y", "z"])

        posts = await feed_service.get_trending(ME, 20, 0)

        assert [p.text for p in posts] == ["two-likes", "one-like"]
        assert posts[0].is_liked is True
        assert posts[0].community_name == "Chess"

    @pytest.mark.asyncio
    async def test_no_per_community_limit(self, feed_service, document_store, clock):
        community = seed_community(document_store, "Robotics")
        for i in range(5):
            seed_post(document_store, clock, community, f"p{i}", likes=["x"] * i)

        posts = await feed_service.get_trending(ME, 2, 3)

        assert [p.text for p in posts] == ["p1", "p0"]


class TestSearch:
    """Test FeedService.search"""

    @pytest.mark.asyncio
    async def test_case_insensitive_substring(self, feed_service, document_store, clock):
        robotics = seed_community(document_store, "Robotics")
        music = seed_community(document_store, "Music")
        seed_post(document_store, clock, robotics, "Arduino workshop on Friday", age=timedelta(hours=2))
        seed_post(document_store, clock, music, "Bring your ARDUINO synth", age=timedelta(hours=1))
        seed_post(document_store, clock, music, "Choir practice")

        posts = await feed_service.search(ME, "arduino", 20, 0)

        assert [p.text for p in posts] == ["Bring your ARDUINO synth", "Arduino workshop on Friday"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("q", [None, "", "a", "  b  "])
    async def test_short_query_rejected(self, feed_service, q):
        with pytest.raises(InvalidInputError):
            await feed_service.search(ME, q, 20, 0)

    @pytest.mark.asyncio
    async def test_query_is_trimmed(self, feed_service, document_store, clock):
        community = seed_community(document_store, "Robotics")
        seed_post(document_store, clock, community, "Line follower bot")

        posts = await feed_service.search(ME, "  bot ", 20, 0)
        assert len(posts) == 1
