"""
Social feed and connection I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ngurra_pathways.core.database.entities.social import PostVisibility, ReactionType


class PostCreate(BaseModel):
    type: str = Field(default="text", max_length=20)
    content: Optional[str] = None
    media_urls: List[str] = Field(default_factory=list)
    article_title: Optional[str] = Field(default=None, max_length=300)
    poll_options: Optional[List[str]] = None
    visibility: PostVisibility = PostVisibility.PUBLIC


class PostRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    author_id: str
    author_name: Optional[str] = None
    author_avatar: Optional[str] = None
    type: str
    content: Optional[str] = None
    media_urls: List[str] = Field(default_factory=list)
    article_title: Optional[str] = None
    poll_options: Optional[List[str]] = None
    visibility: str
    hashtags: List[str] = Field(default_factory=list)
    mentions: List[str] = Field(default_factory=list)
    like_count: int
    comment_count: int
    share_count: int
    view_count: int
    reaction_counts: Dict[str, int] = Field(default_factory=dict)
    user_reaction: Optional[str] = None
    created_at: datetime


class FeedResponse(BaseModel):
    posts: List[PostRead]
    page: int
    limit: int
    has_more: bool


class ReactionRequest(BaseModel):
    type: str = Field(default=ReactionType.LIKE.value)


class ReactionResult(BaseModel):
    reaction: Optional[str] = Field(description="Current reaction of the caller, null when removed")
    like_count: int


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=1000)
    parent_id: Optional[str] = None


class CommentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    post_id: str
    author_id: str
    author_name: Optional[str] = None
    author_avatar: Optional[str] = None
    parent_id: Optional[str] = None
    content: str
    reply_count: int
    like_count: int
    created_at: datetime


class CommentList(BaseModel):
    comments: List[CommentRead]
    total: int


class ConnectionRequestCreate(BaseModel):
    addressee_id: str
    message: Optional[str] = Field(default=None, max_length=500)


class ConnectionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    requester_id: str
    addressee_id: str
    status: str
    message: Optional[str] = None
    created_at: datetime
    responded_at: Optional[datetime] = None


class ConnectionPeer(BaseModel):
    """An accepted or pending connection seen from the caller's side."""

    connection_id: str
    user_id: str
    name: str
    headline: Optional[str] = None
    avatar_url: Optional[str] = None
    status: str
    message: Optional[str] = None
    created_at: datetime


class FollowRequest(BaseModel):
    following_id: str


class BlockRequest(BaseModel):
    blocked_id: str


class RelatedUser(BaseModel):
    user_id: str
    name: str
    headline: Optional[str] = None
    avatar_url: Optional[str] = None
    since: datetime
