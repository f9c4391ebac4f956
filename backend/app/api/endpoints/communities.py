from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from app.api.deps import get_document_store
from app.core.database import (
    ArrayRemove,
    ArrayUnion,
    DocumentStore,
    EQ,
    Increment,
    QueryFilter,
    SERVER_TIMESTAMP,
)
from app.core.exceptions import (
    CommunityNotFoundError,
    NotFollowerError,
    NotPostAuthorError,
    PostNotFoundError,
)
from app.core.logging_config import logger
from app.modules.auth.dependencies import get_current_user
from app.schemas.auth import AuthenticatedUser
from app.schemas.common import CreatedResponse, MessageResponse
from app.schemas.community import (
    Community,
    CommunityCreate,
    FollowResponse,
    LikeResponse,
    Post,
    PostCreate,
)
from app.utils.pagination import PaginationParams, pagination_params

router = APIRouter()

ALL_CATEGORIES = "All"


async def load_community(store: DocumentStore, community_id: str) -> Community:
    doc = await store.get(f"communities/{community_id}")
    if doc is None:
        raise CommunityNotFoundError(community_id)
    return Community.from_document(doc)


@router.get("", response_model=List[Community])
@router.get("/", response_model=List[Community], include_in_schema=False)
async def list_communities(
    category: Optional[str] = Query(None),
    page: PaginationParams = Depends(pagination_params()),
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    """List communities, newest first, optionally filtered by category"""
    filters = []
    if category and category != ALL_CATEGORIES:
        filters.append(QueryFilter("category", EQ, category))

    docs = await store.query(
        "communities",
        filters=filters,
        order_by="createdAt",
        limit=page.limit,
        offset=page.offset,
    )
    communities = [Community.from_document(doc) for doc in docs]
    for community in communities:
        community.is_following = current_user.uid in community.followers
    return communities


@router.get("/{community_id}", response_model=Community)
async def get_community(
    community_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    community = await load_community(store, community_id)
    community.is_following = current_user.uid in community.followers
    return community


@router.post("", response_model=CreatedResponse)
@router.post("/", response_model=CreatedResponse, include_in_schema=False)
async def create_community(
    payload: CommunityCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    """Create a community; the creator becomes its admin and first follower"""
    community_id = await store.add("communities", {
        "name": payload.name,
        "description": payload.description,
        "category": payload.category,
        "admin": current_user.uid,
        "adminName": current_user.display_name,
        "followers": [current_user.uid],
        "postCount": 0,
        "createdAt": SERVER_TIMESTAMP,
    })
    logger.info(f"[Communities] {current_user.uid} created community {community_id}")
    return CreatedResponse(id=community_id, message="Community created successfully")


@router.post("/{community_id}/follow", response_model=FollowResponse)
async def toggle_follow(
    community_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    community = await load_community(store, community_id)
    path = f"communities/{community_id}"

    if current_user.uid in community.followers:
        await store.update(path, {"followers": ArrayRemove(current_user.uid)})
        return FollowResponse(message="Unfollowed community", is_following=False)

    await store.update(path, {"followers": ArrayUnion(current_user.uid)})
    return FollowResponse(message="Following community", is_following=True)


@router.get("/{community_id}/posts", response_model=List[Post])
async def list_posts(
    community_id: str,
    page: PaginationParams = Depends(pagination_params()),
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    community = await load_community(store, community_id)
    docs = await store.query(
        f"communities/{community_id}/posts",
        order_by="timestamp",
        limit=page.limit,
        offset=page.offset,
    )
    posts = []
    for doc in docs:
        post = Post.from_document(doc, communityId=community.id, communityName=community.name)
        post.is_liked = current_user.uid in post.likes
        posts.append(post)
    return posts


@router.post("/{community_id}/posts", response_model=CreatedResponse)
async def create_post(
    community_id: str,
    payload: PostCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    """Publish a post; only followers may post"""
    community = await load_community(store, community_id)
    if current_user.uid not in community.followers:
        raise NotFollowerError()

    post_id = await store.add(f"communities/{community_id}/posts", {
        "text": payload.text or "",
        "images": payload.images,
        "author": current_user.uid,
        "authorName": current_user.display_name,
        "authorPhoto": current_user.picture,
        "likes": [],
        "comments": 0,
        "timestamp": SERVER_TIMESTAMP,
    })
    # Not transactional with the insert above
    await store.update(f"communities/{community_id}", {"postCount": Increment(1)})

    return CreatedResponse(id=post_id, message="Post created successfully")


@router.delete("/{community_id}/posts/{post_id}", response_model=MessageResponse)
async def delete_post(
    community_id: str,
    post_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    """Remove a post; only its author may do so"""
    await load_community(store, community_id)

    path = f"communities/{community_id}/posts/{post_id}"
    doc = await store.get(path)
    if doc is None:
        raise PostNotFoundError(post_id)
    if Post.from_document(doc).author != current_user.uid:
        raise NotPostAuthorError()

    await store.delete(path)
    await store.update(f"communities/{community_id}", {"postCount": Increment(-1)})
    logger.info(f"[Communities] {current_user.uid} deleted post {post_id} in {community_id}")
    return MessageResponse(message="Post deleted successfully")


@router.post("/{community_id}/posts/{post_id}/like", response_model=LikeResponse)
async def toggle_like(
    community_id: str,
    post_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    path = f"communities/{community_id}/posts/{post_id}"
    doc = await store.get(path)
    if doc is None:
        raise PostNotFoundError(post_id)
    post = Post.from_document(doc)

    if current_user.uid in post.likes:
        await store.update(path, {"likes": ArrayRemove(current_user.uid)})
        return LikeResponse(message="Post unliked", is_liked=False)

    await store.update(path, {"likes": ArrayUnion(current_user.uid)})
    return LikeResponse(message="Post liked", is_liked=True)
