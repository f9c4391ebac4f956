from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from app.api.deps import get_document_store, get_feed_service
from app.core.database import DocumentStore, Increment, SERVER_TIMESTAMP
from app.core.exceptions import InvalidInputError, PostNotFoundError
from app.modules.auth.dependencies import get_current_user
from app.schemas.auth import AuthenticatedUser
from app.schemas.common import CreatedResponse
from app.schemas.community import Comment, CommentCreate, Post
from app.services.feed_service import FeedService, parse_feed_filter
from app.utils.pagination import PaginationParams, pagination_params

router = APIRouter()


def require_community_id(community_id: Optional[str]) -> str:
    if not community_id:
        raise InvalidInputError("Community ID is required", field="communityId")
    return community_id


@router.get("/feed", response_model=List[Post])
async def get_feed(
    filter: Optional[str] = Query("all"),
    page: PaginationParams = Depends(pagination_params()),
    current_user: AuthenticatedUser = Depends(get_current_user),
    feed: FeedService = Depends(get_feed_service),
):
    """Posts from followed communities (filter: all, following, trending)"""
    return await feed.get_feed(current_user.uid, parse_feed_filter(filter), page.limit, page.offset)


@router.get("/trending", response_model=List[Post])
async def get_trending(
    page: PaginationParams = Depends(pagination_params()),
    current_user: AuthenticatedUser = Depends(get_current_user),
    feed: FeedService = Depends(get_feed_service),
):
    return await feed.get_trending(current_user.uid, page.limit, page.offset)


@router.get("/search", response_model=List[Post])
async def search_posts(
    q: Optional[str] = Query(None),
    page: PaginationParams = Depends(pagination_params()),
    current_user: AuthenticatedUser = Depends(get_current_user),
    feed: FeedService = Depends(get_feed_service),
):
    return await feed.search(current_user.uid, q, page.limit, page.offset)


@router.get("/{post_id}", response_model=Post)
async def get_post(
    post_id: str,
    community_id: Optional[str] = Query(None, alias="communityId"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    community_id = require_community_id(community_id)
    doc = await store.get(f"communities/{community_id}/posts/{post_id}")
    if doc is None:
        raise PostNotFoundError(post_id)

    post = Post.from_document(doc, communityId=community_id)
    post.is_liked = current_user.uid in post.likes
    return post


@router.post("/{post_id}/comments", response_model=CreatedResponse)
async def add_comment(
    post_id: str,
    payload: CommentCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    post_path = f"communities/{payload.community_id}/posts/{post_id}"
    if await store.get(post_path) is None:
        raise PostNotFoundError(post_id)

    comment_id = await store.add(f"{post_path}/comments", {
        "text": payload.text,
        "author": current_user.uid,
        "authorName": current_user.display_name,
        "authorPhoto": current_user.picture,
        "timestamp": SERVER_TIMESTAMP,
    })
    # Best-effort counter, not transactional with the insert
    await store.update(post_path, {"comments": Increment(1)})

    return CreatedResponse(id=comment_id, message="Comment added successfully")


@router.get("/{post_id}/comments", response_model=List[Comment])
async def list_comments(
    post_id: str,
    community_id: Optional[str] = Query(None, alias="communityId"),
    page: PaginationParams = Depends(pagination_params()),
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    community_id = require_community_id(community_id)
    docs = await store.query(
        f"communities/{community_id}/posts/{post_id}/comments",
        order_by="timestamp",
        limit=page.limit,
        offset=page.offset,
    )
    return [Comment.from_document(doc) for doc in docs]
