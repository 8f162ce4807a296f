"""
Feed ranking.

A post's score blends four signals:

- recency: halves every ``HALF_LIFE_HOURS``, with a boost for posts under
  ``FRESH_MINUTES`` old
- engagement: weighted likes, comments and shares, saturating at 1
- relationship: 1 for accepted connections, 0.7 for followed authors
- quality: 0.8 for posts with media, otherwise 0.5

Posts older than ``MAX_AGE_HOURS`` score 0 and are dropped from the feed.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Collection, Dict, List, Optional

from ngurra_pathways.core.database.utils import utc_now

HALF_LIFE_HOURS = 6
MAX_AGE_HOURS = 168
FRESH_MINUTES = 30
FRESH_BOOST = 1.5
MAX_POSTS_PER_AUTHOR = 3


@dataclass(frozen=True)
class RankingWeights:
    recency: float = 0.35
    engagement: float = 0.25
    relationship: float = 0.25
    quality: float = 0.15


DEFAULT_WEIGHTS = RankingWeights()


def calculate_feed_score(
    post: Any,
    connections: Collection[str],
    following: Collection[str],
    now: Optional[datetime] = None,
    weights: RankingWeights = DEFAULT_WEIGHTS,
) -> float:
    """
    Score one post for one viewer.

    Args:
        post: Object exposing ``created_at``, ``author_id``, ``like_count``,
            ``comment_count``, ``share_count`` and ``media_urls``
        connections: User ids the viewer is connected to
        following: User ids the viewer follows
        now: Reference time (naive UTC), defaults to the current time

    Returns:
        Score in ``[0, ~1.2]``; 0 for posts past the maximum age.
    """
    now = now or utc_now()
    age_hours = max(0.0, (now - post.created_at).total_seconds() / 3600)
    if age_hours > MAX_AGE_HOURS:
        return 0.0

    recency = 0.5 ** (age_hours / HALF_LIFE_HOURS)
    boost = FRESH_BOOST if age_hours < FRESH_MINUTES / 60 else 1.0

    engagement = min(
        1.0,
        (post.like_count * 0.3 + post.comment_count * 0.5 + post.share_count * 0.2) / 100,
    )

    if post.author_id in connections:
        relationship = 1.0
    elif post.author_id in following:
        relationship = 0.7
    else:
        relationship = 0.0

    quality = 0.8 if post.media_urls else 0.5

    return (
        recency * weights.recency * boost
        + engagement * weights.engagement
        + relationship * weights.relationship
        + quality * weights.quality
    )


def rank_posts(
    posts: List[Any],
    connections: Collection[str],
    following: Collection[str],
    now: Optional[datetime] = None,
    max_per_author: int = MAX_POSTS_PER_AUTHOR,
    score: Callable[..., float] = calculate_feed_score,
) -> List[Any]:
    """Drop zero scores, sort by score descending and cap posts per author."""
    now = now or utc_now()
    scored = [(score(post, connections, following, now), post) for post in posts]
    scored = [item for item in scored if item[0] > 0]
    scored.sort(key=lambda item: item[0], reverse=True)

    per_author: Dict[str, int] = {}
    ranked = []
    for _score, post in scored:
        per_author[post.author_id] = per_author.get(post.author_id, 0) + 1
        if per_author[post.author_id] <= max_per_author:
            ranked.append(post)
    return ranked
