"""
Social feed and relationship entities.

Tables:
- social_posts, social_reactions, social_comments: The community feed
- user_connections: Two-sided connection requests
- user_follows, user_blocks: One-sided relationships
"""

from enum import Enum
from typing import List, Optional

from pydantic import NaiveDatetime
from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import JSON, Column, Field

from ..base import Base
from ..utils import new_id, utc_now


class PostVisibility(str, Enum):
    PUBLIC = "public"
    CONNECTIONS = "connections"
    PRIVATE = "private"


class ReactionType(str, Enum):
    LIKE = "like"
    LOVE = "love"
    SUPPORT = "support"
    CELEBRATE = "celebrate"
    INSIGHTFUL = "insightful"
    CURIOUS = "curious"


class ConnectionStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class SocialPost(Base, table=True):
    """Table: social_posts"""

    __tablename__ = "social_posts"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    author_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    type: str = Field(default="text", max_length=20)
    content: Optional[str] = Field(default=None)
    media_urls: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    article_title: Optional[str] = Field(default=None, max_length=300)
    poll_options: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    visibility: str = Field(default=PostVisibility.PUBLIC.value, max_length=20, index=True)
    hashtags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    mentions: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    like_count: int = Field(default=0)
    comment_count: int = Field(default=0)
    share_count: int = Field(default=0)
    view_count: int = Field(default=0)
    is_active: bool = Field(default=True, index=True)
    is_spam: bool = Field(default=False)
    created_at: NaiveDatetime = Field(default_factory=utc_now, index=True, sa_type=DateTime())
    updated_at: NaiveDatetime = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}, sa_type=DateTime()
    )


class SocialReaction(Base, table=True):
    """Table: social_reactions"""

    __tablename__ = "social_reactions"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_social_reactions_post_user"),
        {"extend_existing": True},
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    post_id: str = Field(foreign_key="social_posts.id", index=True, max_length=36)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    type: str = Field(default=ReactionType.LIKE.value, max_length=20)
    created_at: NaiveDatetime = Field(default_factory=utc_now, sa_type=DateTime())


class SocialComment(Base, table=True):
    """Table: social_comments"""

    __tablename__ = "social_comments"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    post_id: str = Field(foreign_key="social_posts.id", index=True, max_length=36)
    author_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    parent_id: Optional[str] = Field(default=None, foreign_key="social_comments.id", index=True, max_length=36)
    content: str
    reply_count: int = Field(default=0)
    like_count: int = Field(default=0)
    is_active: bool = Field(default=True)
    created_at: NaiveDatetime = Field(default_factory=utc_now, index=True, sa_type=DateTime())


class UserConnection(Base, table=True):
    """Table: user_connections"""

    __tablename__ = "user_connections"
    __table_args__ = (
        UniqueConstraint("requester_id", "addressee_id", name="uq_user_connections_pair"),
        {"extend_existing": True},
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    requester_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    addressee_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    status: str = Field(default=ConnectionStatus.PENDING.value, max_length=10, index=True)
    message: Optional[str] = Field(default=None, max_length=500)
    created_at: NaiveDatetime = Field(default_factory=utc_now, sa_type=DateTime())
    responded_at: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime())


class UserFollow(Base, table=True):
    """Table: user_follows"""

    __tablename__ = "user_follows"
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_user_follows_pair"),
        {"extend_existing": True},
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    follower_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    following_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    created_at: NaiveDatetime = Field(default_factory=utc_now, sa_type=DateTime())


class UserBlock(Base, table=True):
    """Table: user_blocks"""

    __tablename__ = "user_blocks"
    __table_args__ = (
        UniqueConstraint("blocker_id", "blocked_id", name="uq_user_blocks_pair"),
        {"extend_existing": True},
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    blocker_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    blocked_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    created_at: NaiveDatetime = Field(default_factory=utc_now, sa_type=DateTime())
