"""
Mentorship scheduling service.

Mentees book sessions with mentors. A mentor cannot hold two SCHEDULED
sessions whose time ranges overlap.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ngurra_pathways.core.database.entities.mentorship import MentorSession, SessionStatus
from ngurra_pathways.core.database.entities.notifications import NotificationType
from ngurra_pathways.core.database.entities.users import User, UserType
from ngurra_pathways.core.database.repositories import PageParams, paginate
from ngurra_pathways.core.database.utils import to_naive_utc, utc_now
from ngurra_pathways.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from ngurra_pathways.core.logging_config import get_logger
from ngurra_pathways.core.models.io.mentorship import FeedbackRequest, SessionCreate
from ngurra_pathways.core.monitoring import log_domain_event

from .notifications import notify, publish_notifications
from .realtime import manager

logger = get_logger(__name__)

MAX_DURATION = timedelta(minutes=180)
CLOSED_STATUSES = {SessionStatus.COMPLETED.value, SessionStatus.CANCELLED.value}


def overlaps(start: datetime, minutes: int, other_start: datetime, other_minutes: int) -> bool:
    end = start + timedelta(minutes=minutes)
    other_end = other_start + timedelta(minutes=other_minutes)
    return start < other_end and other_start < end


class MentorshipService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_mentors(self, query: Optional[str], params: PageParams) -> Tuple[List[User], int]:
        stmt = select(User).where(User.user_type == UserType.MENTOR.value, User.is_active.is_(True))
        if query:
            like = f"%{query.strip()}%"
            stmt = stmt.where(
                or_(
                    User.display_name.ilike(like),
                    User.first_name.ilike(like),
                    User.last_name.ilike(like),
                    User.headline.ilike(like),
                    User.bio.ilike(like),
                )
            )
        return await paginate(self.session, stmt.order_by(User.created_at.desc()), params)

    async def list_sessions(self, user: User) -> List[MentorSession]:
        result = await self.session.execute(
            select(MentorSession)
            .where(or_(MentorSession.mentor_id == user.id, MentorSession.mentee_id == user.id))
            .order_by(MentorSession.scheduled_at.desc())
        )
        return list(result.scalars().all())

    async def book(self, mentee: User, data: SessionCreate) -> MentorSession:
        """
        Book a session with a mentor.

        Raises:
            NotFoundError: Unknown mentor
            BadRequestError: Not a mentor, booking oneself, or a past time
            ConflictError: The mentor already has an overlapping session
        """
        mentor = await self.session.get(User, data.mentor_id)
        if mentor is None or not mentor.is_active:
            raise NotFoundError("Mentor")
        if mentor.user_type != UserType.MENTOR:
            raise BadRequestError("Selected user is not a mentor")
        if mentor.id == mentee.id:
            raise BadRequestError("You cannot book a session with yourself")

        scheduled_at = to_naive_utc(data.scheduled_at)
        if scheduled_at <= utc_now():
            raise BadRequestError("Session time must be in the future")

        window_start = scheduled_at - MAX_DURATION
        window_end = scheduled_at + timedelta(minutes=data.duration)
        result = await self.session.execute(
            select(MentorSession).where(
                MentorSession.mentor_id == mentor.id,
                MentorSession.status == SessionStatus.SCHEDULED.value,
                MentorSession.scheduled_at > window_start,
                MentorSession.scheduled_at < window_end,
            )
        )
        for existing in result.scalars().all():
            if overlaps(scheduled_at, data.duration, existing.scheduled_at, existing.duration):
                raise ConflictError("Mentor is not available at the requested time")

        mentor_session = MentorSession(
            mentor_id=mentor.id,
            mentee_id=mentee.id,
            scheduled_at=scheduled_at,
            duration=data.duration,
            topic=data.topic,
            notes=data.notes,
            meeting_link=data.meeting_link,
        )
        self.session.add(mentor_session)
        await self.session.flush()
        notification = await notify(
            self.session,
            mentor.id,
            NotificationType.MENTORSHIP_REQUEST.value,
            "New mentorship session",
            f"{mentee.name} booked a session with you",
            data={"session_id": mentor_session.id, "scheduled_at": scheduled_at.isoformat()},
            action_url=f"/mentorship/sessions/{mentor_session.id}",
            commit=False,
        )
        await self.session.commit()
        await publish_notifications(notification)
        await self.session.refresh(mentor_session)

        await manager.send_to_user(
            mentor.id,
            "mentorship:request",
            {
                "session_id": mentor_session.id,
                "mentee_id": mentee.id,
                "mentee_name": mentee.name,
                "scheduled_at": scheduled_at.isoformat(),
                "topic": mentor_session.topic,
            },
        )
        log_domain_event("mentorship.booked", session_id=mentor_session.id, mentor_id=mentor.id)
        return mentor_session

    async def get(self, user: User, session_id: str) -> MentorSession:
        mentor_session = await self.session.get(MentorSession, session_id)
        if mentor_session is None:
            raise NotFoundError("Session")
        if user.id not in (mentor_session.mentor_id, mentor_session.mentee_id):
            raise ForbiddenError("You are not a participant in this session")
        return mentor_session

    async def _save(self, mentor_session: MentorSession) -> MentorSession:
        self.session.add(mentor_session)
        await self.session.commit()
        await self.session.refresh(mentor_session)
        return mentor_session

    async def update_notes(self, user: User, session_id: str, notes: str) -> MentorSession:
        mentor_session = await self.get(user, session_id)
        mentor_session.notes = notes
        return await self._save(mentor_session)

    async def cancel(self, user: User, session_id: str) -> MentorSession:
        mentor_session = await self.get(user, session_id)
        if mentor_session.status in CLOSED_STATUSES:
            raise BadRequestError(f"Session is already {mentor_session.status.lower()}")
        mentor_session.status = SessionStatus.CANCELLED.value
        mentor_session.cancelled_at = utc_now()
        self.session.add(mentor_session)

        other_id = mentor_session.mentee_id if user.id == mentor_session.mentor_id else mentor_session.mentor_id
        notification = await notify(
            self.session,
            other_id,
            NotificationType.MENTORSHIP_CANCELLED.value,
            "Session cancelled",
            f"{user.name} cancelled your mentorship session",
            data={"session_id": mentor_session.id},
            action_url=f"/mentorship/sessions/{mentor_session.id}",
            commit=False,
        )
        mentor_session = await self._save(mentor_session)
        await publish_notifications(notification)
        return mentor_session

    async def complete(self, user: User, session_id: str) -> MentorSession:
        mentor_session = await self.get(user, session_id)
        if user.id != mentor_session.mentor_id:
            raise ForbiddenError("Only the mentor can complete a session")
        if mentor_session.status != SessionStatus.SCHEDULED.value:
            raise BadRequestError("Only scheduled sessions can be completed")
        mentor_session.status = SessionStatus.COMPLETED.value
        mentor_session.completed_at = utc_now()
        return await self._save(mentor_session)

    async def _rateable(self, user: User, session_id: str) -> MentorSession:
        mentor_session = await self.get(user, session_id)
        if user.id != mentor_session.mentee_id:
            raise ForbiddenError("Only the mentee can rate a session")
        if mentor_session.status != SessionStatus.COMPLETED.value:
            raise BadRequestError("Only completed sessions can be rated")
        return mentor_session

    async def rate(self, user: User, session_id: str, rating: int, feedback: Optional[str]) -> MentorSession:
        mentor_session = await self._rateable(user, session_id)
        mentor_session.rating = rating
        mentor_session.feedback = feedback
        return await self._save(mentor_session)

    async def submit_feedback(self, user: User, session_id: str, data: FeedbackRequest) -> MentorSession:
        mentor_session = await self._rateable(user, session_id)
        mentor_session.rating = data.rating
        mentor_session.feedback = data.feedback
        mentor_session.feedback_data = {
            "rating": data.rating,
            "feedback": data.feedback,
            "would_recommend": data.would_recommend,
            "topics_discussed": list(data.topics_discussed),
            "submitted_at": utc_now().isoformat(),
        }
        return await self._save(mentor_session)

    async def reviews(self, mentor_id: str) -> Dict[str, Any]:
        mentor = await self.session.get(User, mentor_id)
        if mentor is None or mentor.user_type != UserType.MENTOR:
            raise NotFoundError("Mentor")
        result = await self.session.execute(
            select(MentorSession, User)
            .join(User, User.id == MentorSession.mentee_id)
            .where(MentorSession.mentor_id == mentor_id, MentorSession.rating.is_not(None))
            .order_by(MentorSession.completed_at.desc())
        )
        rows = result.all()
        ratings = [s.rating for s, _ in rows]
        return {
            "mentor_id": mentor_id,
            "average_rating": round(sum(ratings) / len(ratings), 2) if ratings else None,
            "total_reviews": len(ratings),
            "reviews": [
                {
                    "session_id": s.id,
                    "mentee_name": mentee.name,
                    "rating": s.rating,
                    "feedback": s.feedback,
                    "completed_at": s.completed_at,
                }
                for s, mentee in rows
            ],
        }
