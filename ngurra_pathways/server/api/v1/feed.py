"""
Social Feed API Endpoints.

Posts, reactions and comments. Authenticated members get a feed ranked by
recency, engagement, relationship and content quality; anonymous visitors
see recent popular public posts.
"""

from typing import Optional

from fastapi import APIRouter, Query, status

from ngurra_pathways.core.models.io.feed import (
    CommentCreate,
    CommentList,
    CommentRead,
    FeedResponse,
    PostCreate,
    PostRead,
    ReactionRequest,
    ReactionResult,
)
from ngurra_pathways.server.core.constant import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ngurra_pathways.server.services.deps import CurrentUser, DBSession, OptionalUser
from ngurra_pathways.server.services.feed import FeedService

router = APIRouter()


@router.get(
    "",
    response_model=FeedResponse,
    summary="Get Feed",
    description="Ranked feed for members, popular recent public posts for anonymous visitors.",
    response_description="One page of posts and whether more are available.",
)
async def get_feed(
    session: DBSession,
    viewer: OptionalUser,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> FeedResponse:
    return FeedResponse.model_validate(await FeedService(session).get_feed(viewer, page, limit))


@router.post(
    "/posts",
    response_model=PostRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Post",
    description="Publish a post. Hashtags and @mentions are extracted from the text.",
    responses={
        400: {"description": "Empty post, content too long or invalid media"},
        429: {"description": "Post rate limit exceeded"},
    },
)
async def create_post(data: PostCreate, user: CurrentUser, session: DBSession) -> PostRead:
    """
    Create a post.

    - **content**: Up to 2000 characters.
    - **media_urls**: Up to 3 media URLs.
    - **article_title**: Title for article posts.
    - **poll_options**: Options for poll posts.
    - **visibility**: `public`, `connections` or `private`.
    """
    return PostRead.model_validate(await FeedService(session).create_post(user, data))


@router.get(
    "/posts/{post_id}",
    response_model=PostRead,
    summary="Get Post",
    description="Retrieve a post visible to the caller and count the view.",
    responses={404: {"description": "Post not found"}},
)
async def get_post(post_id: str, session: DBSession, viewer: OptionalUser) -> PostRead:
    return PostRead.model_validate(await FeedService(session).get_post(post_id, viewer))


@router.delete(
    "/posts/{post_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Post",
    responses={403: {"description": "Not the author"}, 404: {"description": "Post not found"}},
)
async def delete_post(post_id: str, user: CurrentUser, session: DBSession):
    await FeedService(session).delete_post(user, post_id)


@router.post(
    "/posts/{post_id}/react",
    response_model=ReactionResult,
    summary="React to Post",
    description="Add, switch or (by repeating the same type) remove the caller's reaction.",
    responses={
        400: {"description": "Unknown reaction type"},
        404: {"description": "Post not found"},
        429: {"description": "Reaction rate limit exceeded"},
    },
)
async def react(post_id: str, data: ReactionRequest, user: CurrentUser, session: DBSession) -> ReactionResult:
    """
    React to a post.

    - **type**: like, love, support, celebrate, insightful or curious.
    """
    return ReactionResult.model_validate(await FeedService(session).react(user, post_id, data.type))


@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on Post",
    responses={
        404: {"description": "Post or parent comment not found"},
        429: {"description": "Comment rate limit exceeded"},
    },
)
async def add_comment(post_id: str, data: CommentCreate, user: CurrentUser, session: DBSession) -> CommentRead:
    return CommentRead.model_validate(await FeedService(session).add_comment(user, post_id, data))


@router.get(
    "/posts/{post_id}/comments",
    response_model=CommentList,
    summary="List Comments",
    description="Top-level comments, or replies to `parent_id`, oldest first.",
    responses={404: {"description": "Post not found"}},
)
async def list_comments(
    post_id: str,
    session: DBSession,
    viewer: OptionalUser,
    parent_id: Optional[str] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> CommentList:
    comments, total = await FeedService(session).list_comments(viewer, post_id, parent_id, page, limit)
    return CommentList(comments=[CommentRead.model_validate(c) for c in comments], total=total)
