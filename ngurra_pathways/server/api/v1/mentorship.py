"""
Mentorship API Endpoints.

Mentor discovery, session booking and the session lifecycle
(notes, cancel, complete, rating and feedback).
"""

from typing import List, Optional

from fastapi import APIRouter, Query, status

from ngurra_pathways.core.models.io.mentorship import (
    FeedbackRequest,
    MentorList,
    MentorRead,
    MentorReviews,
    NotesUpdate,
    RatingRequest,
    SessionCreate,
    SessionRead,
)
from ngurra_pathways.server.services.deps import CurrentUser, DBSession, Paging
from ngurra_pathways.server.services.mentorship import MentorshipService

router = APIRouter()


@router.get(
    "/mentors",
    response_model=MentorList,
    summary="List Mentors",
    description="Active mentors, optionally filtered by name, headline or bio.",
)
async def list_mentors(
    session: DBSession, paging: Paging, q: Optional[str] = Query(default=None, max_length=100)
) -> MentorList:
    mentors, total = await MentorshipService(session).list_mentors(q, paging)
    return MentorList(
        data=[
            MentorRead(
                id=m.id,
                name=m.name,
                headline=m.headline,
                bio=m.bio,
                location=m.location,
                avatar_url=m.avatar_url,
                skills=m.skills or [],
            )
            for m in mentors
        ],
        pagination=paging.envelope(total),
    )


@router.get(
    "/mentors/{mentor_id}/reviews",
    response_model=MentorReviews,
    summary="Mentor Reviews",
    description="Rated sessions of a mentor and the average rating.",
    responses={404: {"description": "Mentor not found"}},
)
async def mentor_reviews(mentor_id: str, session: DBSession) -> MentorReviews:
    return MentorReviews.model_validate(await MentorshipService(session).reviews(mentor_id))


@router.get(
    "/sessions",
    response_model=List[SessionRead],
    summary="List Sessions",
    description="Sessions where the caller is mentor or mentee, latest scheduled first.",
)
async def list_sessions(user: CurrentUser, session: DBSession) -> List[SessionRead]:
    return [SessionRead.model_validate(s) for s in await MentorshipService(session).list_sessions(user)]


@router.post(
    "/sessions",
    response_model=SessionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Book Session",
    description="Book a session with a mentor. The mentor is notified.",
    responses={
        400: {"description": "Not a mentor, booking yourself, or a time in the past"},
        404: {"description": "Mentor not found"},
        409: {"description": "Mentor already has a session at that time"},
    },
)
async def book_session(data: SessionCreate, user: CurrentUser, session: DBSession) -> SessionRead:
    """
    Book a mentorship session.

    - **mentor_id**: The mentor to meet.
    - **scheduled_at**: Start time in the future.
    - **duration**: Length in minutes, 15 to 180.
    - **topic**: Optional topic.
    """
    return SessionRead.model_validate(await MentorshipService(session).book(user, data))


@router.get(
    "/sessions/{session_id}",
    response_model=SessionRead,
    summary="Get Session",
    responses={403: {"description": "Not a participant"}, 404: {"description": "Session not found"}},
)
async def get_session_detail(session_id: str, user: CurrentUser, session: DBSession) -> SessionRead:
    return SessionRead.model_validate(await MentorshipService(session).get(user, session_id))


@router.patch(
    "/sessions/{session_id}/notes",
    response_model=SessionRead,
    summary="Update Session Notes",
    responses={403: {"description": "Not a participant"}, 404: {"description": "Session not found"}},
)
async def update_notes(session_id: str, data: NotesUpdate, user: CurrentUser, session: DBSession) -> SessionRead:
    return SessionRead.model_validate(await MentorshipService(session).update_notes(user, session_id, data.notes))


@router.post(
    "/sessions/{session_id}/cancel",
    response_model=SessionRead,
    summary="Cancel Session",
    description="Cancel a scheduled session. The other participant is notified.",
    responses={400: {"description": "Session already completed or cancelled"}},
)
async def cancel_session(session_id: str, user: CurrentUser, session: DBSession) -> SessionRead:
    return SessionRead.model_validate(await MentorshipService(session).cancel(user, session_id))


@router.post(
    "/sessions/{session_id}/complete",
    response_model=SessionRead,
    summary="Complete Session",
    responses={
        400: {"description": "Session is not scheduled"},
        403: {"description": "Only the mentor can complete a session"},
    },
)
async def complete_session(session_id: str, user: CurrentUser, session: DBSession) -> SessionRead:
    return SessionRead.model_validate(await MentorshipService(session).complete(user, session_id))


@router.post(
    "/sessions/{session_id}/rate",
    response_model=SessionRead,
    summary="Rate Session",
    responses={
        400: {"description": "Session is not completed"},
        403: {"description": "Only the mentee can rate a session"},
    },
)
async def rate_session(session_id: str, data: RatingRequest, user: CurrentUser, session: DBSession) -> SessionRead:
    """
    Rate a completed session.

    - **rating**: 1 to 5.
    - **feedback**: Optional free text.
    """
    rated = await MentorshipService(session).rate(user, session_id, data.rating, data.feedback)
    return SessionRead.model_validate(rated)


@router.post(
    "/sessions/{session_id}/feedback",
    response_model=SessionRead,
    summary="Submit Session Feedback",
    description="Structured feedback including whether the mentee would recommend the mentor.",
    responses={
        400: {"description": "Session is not completed"},
        403: {"description": "Only the mentee can give feedback"},
    },
)
async def session_feedback(
    session_id: str, data: FeedbackRequest, user: CurrentUser, session: DBSession
) -> SessionRead:
    return SessionRead.model_validate(await MentorshipService(session).submit_feedback(user, session_id, data))
