"""
Mentorship I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import Pagination


class SessionCreate(BaseModel):
    mentor_id: str
    scheduled_at: datetime
    duration: int = Field(default=60, ge=15, le=180, description="Minutes")
    topic: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = Field(default=None, max_length=5000)
    meeting_link: Optional[str] = None


class SessionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    mentor_id: str
    mentee_id: str
    scheduled_at: datetime
    duration: int
    status: str
    topic: Optional[str] = None
    notes: Optional[str] = None
    meeting_link: Optional[str] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None
    feedback_data: Optional[Dict[str, Any]] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime


class NotesUpdate(BaseModel):
    notes: str = Field(max_length=5000)


class RatingRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    feedback: Optional[str] = Field(default=None, max_length=5000)


class FeedbackRequest(RatingRequest):
    would_recommend: Optional[bool] = None
    topics_discussed: List[str] = Field(default_factory=list)


class MentorRead(BaseModel):
    id: str
    name: str
    headline: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    avatar_url: Optional[str] = None
    skills: List[str] = Field(default_factory=list)


class MentorList(BaseModel):
    data: List[MentorRead]
    pagination: Pagination


class Review(BaseModel):
    session_id: str
    mentee_name: str
    rating: int
    feedback: Optional[str] = None
    completed_at: Optional[datetime] = None


class MentorReviews(BaseModel):
    mentor_id: str
    average_rating: Optional[float] = None
    total_reviews: int
    reviews: List[Review]
