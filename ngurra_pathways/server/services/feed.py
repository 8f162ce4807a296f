"""
Social feed service: posts, reactions and comments.
"""

import re
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ngurra_pathways.core.database.entities.notifications import NotificationType
from ngurra_pathways.core.database.entities.social import (
    ConnectionStatus,
    PostVisibility,
    ReactionType,
    SocialComment,
    SocialPost,
    SocialReaction,
    UserBlock,
    UserConnection,
    UserFollow,
)
from ngurra_pathways.core.database.entities.users import User
from ngurra_pathways.core.database.utils import utc_now
from ngurra_pathways.core.errors import BadRequestError, ForbiddenError, NotFoundError
from ngurra_pathways.core.logging_config import get_logger
from ngurra_pathways.core.models.io.feed import CommentCreate, PostCreate

from .feed_ranking import rank_posts
from .notifications import notify, publish_notifications
from .rate_limit import RateLimiter

logger = get_logger(__name__)

MAX_CONTENT_LENGTH = 2000
MAX_MEDIA_ITEMS = 3
MAX_MEDIA_URL_LENGTH = 1_000_000
MAX_HASHTAGS = 10
MAX_MENTIONS = 20
CANDIDATE_POOL = 100
ANONYMOUS_WINDOW = timedelta(days=7)

HASHTAG_PATTERN = re.compile(r"#(\w+)")
MENTION_PATTERN = re.compile(r"@([\w.+-]+)")
REACTION_TYPES = {reaction.value for reaction in ReactionType}


def _unique(values: Iterable[str], limit: int) -> List[str]:
    return list(dict.fromkeys(values))[:limit]


def extract_hashtags(text: Optional[str]) -> List[str]:
    return _unique((tag.lower() for tag in HASHTAG_PATTERN.findall(text or "")), MAX_HASHTAGS)


def extract_mentions(text: Optional[str]) -> List[str]:
    return _unique((name.rstrip(".") for name in MENTION_PATTERN.findall(text or "")), MAX_MENTIONS)


def validate_post(data: PostCreate) -> None:
    """
    Raises:
        BadRequestError: Empty post, content too long, or invalid media list
    """
    has_text = bool(data.content and data.content.strip())
    if not (has_text or data.media_urls or data.article_title or data.poll_options):
        raise BadRequestError("Post must include text, media, an article or a poll")
    if data.content and len(data.content) > MAX_CONTENT_LENGTH:
        raise BadRequestError(f"Post content must be {MAX_CONTENT_LENGTH} characters or less")
    if len(data.media_urls) > MAX_MEDIA_ITEMS:
        raise BadRequestError(f"A post can include at most {MAX_MEDIA_ITEMS} media items")
    for url in data.media_urls:
        if not url or not url.strip():
            raise BadRequestError("Media URLs must not be empty")
        if len(url) > MAX_MEDIA_URL_LENGTH:
            raise BadRequestError("Media item is too large")


class FeedService:
    def __init__(self, session: AsyncSession, rate_limiter: Optional[RateLimiter] = None):
        self.session = session
        self.rate_limiter = rate_limiter or RateLimiter(session)

    # ------------------------------------------------------------------
    # Relationship sets
    # ------------------------------------------------------------------

    async def connection_ids(self, user_id: str) -> Set[str]:
        result = await self.session.execute(
            select(UserConnection).where(
                UserConnection.status == ConnectionStatus.ACCEPTED.value,
                or_(UserConnection.requester_id == user_id, UserConnection.addressee_id == user_id),
            )
        )
        return {
            c.addressee_id if c.requester_id == user_id else c.requester_id for c in result.scalars().all()
        }

    async def following_ids(self, user_id: str) -> Set[str]:
        result = await self.session.execute(select(UserFollow.following_id).where(UserFollow.follower_id == user_id))
        return {row[0] for row in result.all()}

    async def blocked_ids(self, user_id: str) -> Set[str]:
        """Users the viewer blocked plus users who blocked the viewer."""
        result = await self.session.execute(
            select(UserBlock).where(or_(UserBlock.blocker_id == user_id, UserBlock.blocked_id == user_id))
        )
        return {b.blocked_id if b.blocker_id == user_id else b.blocker_id for b in result.scalars().all()}

    # ------------------------------------------------------------------
    # Decoration
    # ------------------------------------------------------------------

    async def _decorate(self, posts: List[SocialPost], viewer: Optional[User]) -> List[Dict[str, Any]]:
        if not posts:
            return []
        post_ids = [post.id for post in posts]

        counts: Dict[str, Dict[str, int]] = {pid: {} for pid in post_ids}
        rows = await self.session.execute(
            select(SocialReaction.post_id, SocialReaction.type, func.count())
            .where(SocialReaction.post_id.in_(post_ids))
            .group_by(SocialReaction.post_id, SocialReaction.type)
        )
        for post_id, reaction_type, count in rows.all():
            counts[post_id][reaction_type] = int(count)

        own: Dict[str, str] = {}
        if viewer is not None:
            rows = await self.session.execute(
                select(SocialReaction.post_id, SocialReaction.type).where(
                    SocialReaction.post_id.in_(post_ids), SocialReaction.user_id == viewer.id
                )
            )
            own = {post_id: reaction_type for post_id, reaction_type in rows.all()}

        authors_result = await self.session.execute(
            select(User).where(User.id.in_(list({post.author_id for post in posts})))
        )
        authors = {user.id: user for user in authors_result.scalars().all()}

        decorated = []
        for post in posts:
            author = authors.get(post.author_id)
            item = post.model_dump()
            item.update(
                author_name=author.name if author else "Community Member",
                author_avatar=author.avatar_url if author else None,
                reaction_counts=counts[post.id],
                user_reaction=own.get(post.id),
            )
            decorated.append(item)
        return decorated

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    async def create_post(self, author: User, data: PostCreate) -> Dict[str, Any]:
        validate_post(data)
        await self.rate_limiter.check(author.id, "post")

        mentions = extract_mentions(data.content)
        post = SocialPost(
            author_id=author.id,
            type=data.type,
            content=data.content,
            media_urls=list(data.media_urls),
            article_title=data.article_title,
            poll_options=data.poll_options,
            visibility=data.visibility.value,
            hashtags=extract_hashtags(data.content),
            mentions=mentions,
        )
        self.session.add(post)
        await self.session.flush()

        pending = []
        for mentioned in await self._mentioned_users(mentions, exclude_id=author.id):
            notification = await notify(
                self.session,
                mentioned.id,
                NotificationType.MENTION.value,
                "You were mentioned",
                f"{author.name} mentioned you in a post",
                data={"post_id": post.id},
                action_url=f"/feed/posts/{post.id}",
                commit=False,
            )
            pending.append(notification)

        await self.session.commit()
        await publish_notifications(*pending)
        await self.session.refresh(post)
        return (await self._decorate([post], author))[0]

    async def _mentioned_users(self, mentions: List[str], exclude_id: str) -> List[User]:
        """Users whose email local part equals a mention, case-insensitively."""
        if not mentions:
            return []
        wanted = {mention.lower() for mention in mentions}
        conditions = [func.lower(User.email).like(f"{mention}@%") for mention in wanted]
        result = await self.session.execute(
            select(User).where(or_(*conditions), User.is_active.is_(True), User.id != exclude_id)
        )
        return [user for user in result.scalars().all() if user.email.split("@")[0].lower() in wanted]

    async def get_feed(self, viewer: Optional[User], page: int, limit: int) -> Dict[str, Any]:
        """Anonymous viewers get recent popular public posts; members get a ranked feed."""
        offset = (page - 1) * limit
        if viewer is None:
            stmt = (
                select(SocialPost)
                .where(
                    SocialPost.visibility == PostVisibility.PUBLIC.value,
                    SocialPost.is_active.is_(True),
                    SocialPost.is_spam.is_(False),
                    SocialPost.created_at >= utc_now() - ANONYMOUS_WINDOW,
                )
                .order_by(SocialPost.like_count.desc(), SocialPost.created_at.desc())
                .offset(offset)
                .limit(limit + 1)
            )
            posts = list((await self.session.execute(stmt)).scalars().all())
            return {
                "posts": await self._decorate(posts[:limit], None),
                "page": page,
                "limit": limit,
                "has_more": len(posts) > limit,
            }

        connections = await self.connection_ids(viewer.id)
        following = await self.following_ids(viewer.id)
        blocked = await self.blocked_ids(viewer.id)

        visibility = or_(
            SocialPost.visibility == PostVisibility.PUBLIC.value,
            SocialPost.author_id == viewer.id,
        )
        if connections:
            visibility = or_(
                visibility,
                and_(
                    SocialPost.visibility == PostVisibility.CONNECTIONS.value,
                    SocialPost.author_id.in_(list(connections)),
                ),
            )
        stmt = select(SocialPost).where(
            SocialPost.is_active.is_(True),
            SocialPost.is_spam.is_(False),
            visibility,
        )
        if blocked:
            stmt = stmt.where(SocialPost.author_id.not_in(list(blocked)))
        stmt = stmt.order_by(SocialPost.created_at.desc()).limit(CANDIDATE_POOL)

        candidates = list((await self.session.execute(stmt)).scalars().all())
        ranked = rank_posts(candidates, connections, following)
        page_posts = ranked[offset : offset + limit]
        return {
            "posts": await self._decorate(page_posts, viewer),
            "page": page,
            "limit": limit,
            "has_more": offset + limit < len(ranked),
        }

    async def can_view(self, post: SocialPost, viewer: Optional[User]) -> bool:
        if post.visibility == PostVisibility.PUBLIC.value:
            return True
        if viewer is None:
            return False
        if viewer.id == post.author_id:
            return True
        if post.visibility == PostVisibility.CONNECTIONS.value:
            return post.author_id in await self.connection_ids(viewer.id)
        return False

    async def _visible_post(self, post_id: str, viewer: Optional[User]) -> SocialPost:
        post = await self.session.get(SocialPost, post_id)
        if post is None or not post.is_active or not await self.can_view(post, viewer):
            raise NotFoundError("Post")
        return post

    async def get_post(self, post_id: str, viewer: Optional[User]) -> Dict[str, Any]:
        post = await self._visible_post(post_id, viewer)
        post.view_count += 1
        self.session.add(post)
        await self.session.commit()
        await self.session.refresh(post)
        return (await self._decorate([post], viewer))[0]

    async def delete_post(self, user: User, post_id: str) -> None:
        post = await self.session.get(SocialPost, post_id)
        if post is None or not post.is_active:
            raise NotFoundError("Post")
        if post.author_id != user.id:
            raise ForbiddenError("You can only delete your own posts")
        post.is_active = False
        self.session.add(post)
        await self.session.commit()

    # ------------------------------------------------------------------
    # Reactions
    # ------------------------------------------------------------------

    async def react(self, user: User, post_id: str, reaction_type: str) -> Dict[str, Any]:
        """
        Toggle or switch the caller's reaction.

        Reacting with the current type removes the reaction; another type
        replaces it; a first reaction notifies the author.
        """
        if reaction_type not in REACTION_TYPES:
            raise BadRequestError(f"Invalid reaction type. Must be one of: {', '.join(sorted(REACTION_TYPES))}")
        post = await self._visible_post(post_id, user)
        await self.rate_limiter.check(user.id, "reaction")

        result = await self.session.execute(
            select(SocialReaction).where(SocialReaction.post_id == post.id, SocialReaction.user_id == user.id)
        )
        existing = result.scalars().first()

        current: Optional[str]
        notification = None
        if existing is not None and existing.type == reaction_type:
            await self.session.delete(existing)
            post.like_count = max(0, post.like_count - 1)
            current = None
        elif existing is not None:
            existing.type = reaction_type
            self.session.add(existing)
            current = reaction_type
        else:
            self.session.add(SocialReaction(post_id=post.id, user_id=user.id, type=reaction_type))
            post.like_count += 1
            current = reaction_type
            if post.author_id != user.id:
                notification = await notify(
                    self.session,
                    post.author_id,
                    NotificationType.POST_REACTION.value,
                    "New reaction",
                    f"{user.name} reacted to your post",
                    data={"post_id": post.id, "reaction": reaction_type},
                    action_url=f"/feed/posts/{post.id}",
                    commit=False,
                )

        self.session.add(post)
        await self.session.commit()
        await publish_notifications(notification)
        return {"reaction": current, "like_count": post.like_count}

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    async def add_comment(self, user: User, post_id: str, data: CommentCreate) -> Dict[str, Any]:
        post = await self._visible_post(post_id, user)
        parent = None
        if data.parent_id:
            parent = await self.session.get(SocialComment, data.parent_id)
            if parent is None or parent.post_id != post.id or not parent.is_active:
                raise NotFoundError("Comment")
        await self.rate_limiter.check(user.id, "comment")

        comment = SocialComment(post_id=post.id, author_id=user.id, parent_id=data.parent_id, content=data.content)
        self.session.add(comment)
        post.comment_count += 1
        self.session.add(post)
        if parent is not None:
            parent.reply_count += 1
            self.session.add(parent)
        await self.session.flush()

        notification = None
        if post.author_id != user.id:
            notification = await notify(
                self.session,
                post.author_id,
                NotificationType.POST_COMMENT.value,
                "New comment",
                f"{user.name} commented on your post",
                data={"post_id": post.id, "comment_id": comment.id},
                action_url=f"/feed/posts/{post.id}",
                commit=False,
            )
        await self.session.commit()
        await publish_notifications(notification)
        await self.session.refresh(comment)
        return self._comment_view(comment, user)

    @staticmethod
    def _comment_view(comment: SocialComment, author: Optional[User]) -> Dict[str, Any]:
        item = comment.model_dump()
        item.update(
            author_name=author.name if author else "Community Member",
            author_avatar=author.avatar_url if author else None,
        )
        return item

    async def list_comments(
        self, viewer: Optional[User], post_id: str, parent_id: Optional[str], page: int, limit: int
    ) -> Tuple[List[Dict[str, Any]], int]:
        post = await self._visible_post(post_id, viewer)
        stmt = select(SocialComment).where(SocialComment.post_id == post.id, SocialComment.is_active.is_(True))
        if parent_id:
            stmt = stmt.where(SocialComment.parent_id == parent_id)
        else:
            stmt = stmt.where(SocialComment.parent_id.is_(None))

        total = (
            await self.session.execute(select(func.count()).select_from(stmt.subquery()))
        ).scalar_one()
        result = await self.session.execute(
            stmt.order_by(SocialComment.created_at.asc()).offset((page - 1) * limit).limit(limit)
        )
        comments = list(result.scalars().all())
        authors_result = await self.session.execute(
            select(User).where(User.id.in_(list({c.author_id for c in comments})))
        )
        authors = {user.id: user for user in authors_result.scalars().all()}
        return [self._comment_view(c, authors.get(c.author_id)) for c in comments], int(total)
