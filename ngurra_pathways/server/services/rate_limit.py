"""
Per-user action rate limiting backed by the database.

Each (user, action) pair keeps independent minute, hour and day counters.
A counter resets once its window has elapsed; an action is refused while any
counter is at its limit.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ngurra_pathways.core.database.entities.rate_limits import RateLimitTracker
from ngurra_pathways.core.database.utils import utc_now
from ngurra_pathways.core.errors import RateLimitError
from ngurra_pathways.core.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimit:
    per_minute: int
    per_hour: int
    per_day: int


RATE_LIMITS: Dict[str, RateLimit] = {
    "post": RateLimit(per_minute=2, per_hour=10, per_day=30),
    "comment": RateLimit(per_minute=5, per_hour=30, per_day=100),
    "message": RateLimit(per_minute=10, per_hour=50, per_day=200),
    "reaction": RateLimit(per_minute=20, per_hour=100, per_day=500),
    "follow": RateLimit(per_minute=5, per_hour=30, per_day=100),
    "connection_request": RateLimit(per_minute=3, per_hour=20, per_day=50),
}

# (counter attribute, reset attribute, window length, label)
_WINDOWS = (
    ("minute_count", "minute_reset_at", timedelta(minutes=1), "minute"),
    ("hour_count", "hour_reset_at", timedelta(hours=1), "hour"),
    ("day_count", "day_reset_at", timedelta(days=1), "day"),
)


class RateLimiter:
    """Checks and records actions against ``RATE_LIMITS``."""

    def __init__(self, session: AsyncSession, limits: Optional[Dict[str, RateLimit]] = None):
        self.session = session
        self.limits = RATE_LIMITS if limits is None else limits

    async def check(self, user_id: str, action: str, now: Optional[datetime] = None) -> None:
        """
        Record one ``action`` for ``user_id`` or refuse it.

        The counter update is flushed but not committed, so it becomes durable
        together with the action it guards.

        Raises:
            RateLimitError: A window is exhausted; ``retry_after`` is that
                window's length in seconds
        """
        limit = self.limits.get(action)
        if limit is None:
            return

        now = now or utc_now()
        result = await self.session.execute(
            select(RateLimitTracker).where(RateLimitTracker.user_id == user_id, RateLimitTracker.action == action)
        )
        tracker = result.scalars().first()
        if tracker is None:
            tracker = RateLimitTracker(
                user_id=user_id,
                action=action,
                minute_reset_at=now + timedelta(minutes=1),
                hour_reset_at=now + timedelta(hours=1),
                day_reset_at=now + timedelta(days=1),
            )

        maxima = {"minute": limit.per_minute, "hour": limit.per_hour, "day": limit.per_day}
        for count_attr, reset_attr, window, label in _WINDOWS:
            if now >= getattr(tracker, reset_attr):
                setattr(tracker, count_attr, 0)
                setattr(tracker, reset_attr, now + window)

        for count_attr, _reset_attr, window, label in _WINDOWS:
            if getattr(tracker, count_attr) >= maxima[label]:
                logger.info(f"Rate limit hit: user={user_id} action={action} window={label}")
                # Persist any window resets before refusing.
                self.session.add(tracker)
                await self.session.commit()
                raise RateLimitError(
                    f"Rate limit exceeded for {action}. Try again later.",
                    retry_after=int(window.total_seconds()),
                )

        tracker.minute_count += 1
        tracker.hour_count += 1
        tracker.day_count += 1
        tracker.updated_at = now
        self.session.add(tracker)
        await self.session.flush()
