"""Unit tests for feed scoring and ranking."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List

import pytest

from ngurra_pathways.server.services.feed_ranking import (
    DEFAULT_WEIGHTS,
    MAX_AGE_HOURS,
    calculate_feed_score,
    rank_posts,
)

NOW = datetime(2026, 1, 18, 12, 0, 0)


@dataclass
class FakePost:
    author_id: str
    created_at: datetime = NOW
    like_count: int = 0
    comment_count: int = 0
    share_count: int = 0
    media_urls: List[str] = field(default_factory=list)


class TestCalculateFeedScore:
    def test_fresh_post_from_stranger(self):
        post = FakePost(author_id="a")
        score = calculate_feed_score(post, set(), set(), NOW)
        expected = 1.0 * DEFAULT_WEIGHTS.recency * 1.5 + 0.5 * DEFAULT_WEIGHTS.quality
        assert score == pytest.approx(expected)

    def test_recency_halves_after_half_life(self):
        post = FakePost(author_id="a", created_at=NOW - timedelta(hours=6))
        score = calculate_feed_score(post, set(), set(), NOW)
        expected = 0.5 * DEFAULT_WEIGHTS.recency + 0.5 * DEFAULT_WEIGHTS.quality
        assert score == pytest.approx(expected)

    def test_posts_past_max_age_score_zero(self):
        post = FakePost(author_id="a", created_at=NOW - timedelta(hours=MAX_AGE_HOURS + 1))
        assert calculate_feed_score(post, {"a"}, set(), NOW) == 0.0

    def test_connection_outranks_follow_outranks_stranger(self):
        post = FakePost(author_id="a", created_at=NOW - timedelta(hours=2))
        connected = calculate_feed_score(post, {"a"}, set(), NOW)
        followed = calculate_feed_score(post, set(), {"a"}, NOW)
        stranger = calculate_feed_score(post, set(), set(), NOW)
        assert connected > followed > stranger
        assert connected - stranger == pytest.approx(DEFAULT_WEIGHTS.relationship)

    def test_engagement_saturates(self):
        busy = FakePost(author_id="a", like_count=10_000, comment_count=10_000)
        quiet = FakePost(author_id="a")
        difference = calculate_feed_score(busy, set(), set(), NOW) - calculate_feed_score(quiet, set(), set(), NOW)
        assert difference == pytest.approx(DEFAULT_WEIGHTS.engagement)

    def test_media_improves_quality(self):
        with_media = FakePost(author_id="a", media_urls=["https://cdn/x.png"])
        without = FakePost(author_id="a")
        assert calculate_feed_score(with_media, set(), set(), NOW) > calculate_feed_score(without, set(), set(), NOW)


class TestRankPosts:
    def test_sorted_by_score_and_stale_posts_dropped(self):
        old = FakePost(author_id="a", created_at=NOW - timedelta(hours=MAX_AGE_HOURS + 5))
        recent = FakePost(author_id="b", created_at=NOW - timedelta(hours=1))
        newest = FakePost(author_id="c")
        assert rank_posts([old, recent, newest], set(), set(), NOW) == [newest, recent]

    def test_caps_posts_per_author(self):
        posts = [FakePost(author_id="a", created_at=NOW - timedelta(minutes=i)) for i in range(5)]
        posts.append(FakePost(author_id="b", created_at=NOW - timedelta(hours=3)))
        ranked = rank_posts(posts, set(), set(), NOW, max_per_author=3)
        assert [p.author_id for p in ranked].count("a") == 3
        assert ranked[-1].author_id == "b"
