from fastapi import APIRouter, Depends
from typing import List

from app.api.deps import get_document_store
from app.core.database import DocumentStore, EQ, QueryFilter, SERVER_TIMESTAMP
from app.core.exceptions import (
    BookmarkNotFoundError,
    NotificationNotFoundError,
    ProfileExistsError,
    ProfileNotFoundError,
)
from app.core.logging_config import logger
from app.modules.auth.dependencies import get_current_user
from app.schemas.auth import AuthenticatedUser
from app.schemas.common import CreatedResponse, MessageResponse
from app.schemas.user import (
    Bookmark,
    BookmarkCreate,
    Notification,
    ProfileCreate,
    ProfileUpdate,
    UnreadCountResponse,
    UserProfile,
)
from app.utils.pagination import PaginationParams, pagination_params

router = APIRouter()

NOTIFICATION_PAGE_LIMIT = 50
BOOKMARK_PAGE_LIMIT = 50


# ==================== Profile ====================

@router.get("/profile", response_model=UserProfile)
async def get_profile(
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    doc = await store.get(f"users/{current_user.uid}")
    if doc is None:
        raise ProfileNotFoundError(current_user.uid)
    return UserProfile.from_document(doc)


@router.post("/profile", response_model=MessageResponse)
async def create_profile(
    payload: ProfileCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    """First-time profile setup after login"""
    path = f"users/{current_user.uid}"
    if await store.get(path) is not None:
        raise ProfileExistsError()

    await store.set(path, {
        **payload.model_dump(by_alias=True, exclude_none=True),
        "uid": current_user.uid,
        "email": current_user.email,
        "isProfileComplete": True,
        "createdAt": SERVER_TIMESTAMP,
        "updatedAt": SERVER_TIMESTAMP,
    })
    logger.info(f"[Users] Profile created for {current_user.uid}")
    return MessageResponse(message="Profile created successfully")


@router.put("/profile", response_model=MessageResponse)
async def update_profile(
    payload: ProfileUpdate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    """Update only the fields present in the body"""
    path = f"users/{current_user.uid}"
    if await store.get(path) is None:
        raise ProfileNotFoundError(current_user.uid)

    changes = payload.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
    await store.update(path, {**changes, "updatedAt": SERVER_TIMESTAMP})
    return MessageResponse(message="Profile updated successfully")


# ==================== Notifications ====================

@router.get("/notifications", response_model=List[Notification])
async def list_notifications(
    page: PaginationParams = Depends(pagination_params(NOTIFICATION_PAGE_LIMIT)),
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    docs = await store.query(
        f"users/{current_user.uid}/notifications",
        order_by="timestamp",
        limit=page.limit,
        offset=page.offset,
    )
    return [Notification.from_document(doc) for doc in docs]


@router.get("/notifications/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    docs = await store.query(
        f"users/{current_user.uid}/notifications",
        filters=[QueryFilter("read", EQ, False)],
    )
    return UnreadCountResponse(count=len(docs))


@router.put("/notifications/read-all", response_model=MessageResponse)
async def mark_all_read(
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    collection = f"users/{current_user.uid}/notifications"
    unread = await store.query(collection, filters=[QueryFilter("read", EQ, False)])
    updated = await store.update_many(
        [f"{collection}/{doc.id}" for doc in unread],
        {"read": True, "readAt": SERVER_TIMESTAMP},
    )
    logger.debug(f"[Users] Marked {updated} notifications read for {current_user.uid}")
    return MessageResponse(message="All notifications marked as read")


@router.put("/notifications/{notification_id}/read", response_model=MessageResponse)
async def mark_read(
    notification_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    path = f"users/{current_user.uid}/notifications/{notification_id}"
    if await store.get(path) is None:
        raise NotificationNotFoundError(notification_id)

    await store.update(path, {"read": True, "readAt": SERVER_TIMESTAMP})
    return MessageResponse(message="Notification marked as read")


# ==================== Bookmarks ====================

@router.get("/bookmarks", response_model=List[Bookmark])
async def list_bookmarks(
    page: PaginationParams = Depends(pagination_params(BOOKMARK_PAGE_LIMIT)),
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    docs = await store.query(
        f"users/{current_user.uid}/bookmarks",
        order_by="createdAt",
        limit=page.limit,
        offset=page.offset,
    )
    return [Bookmark.from_document(doc) for doc in docs]


@router.post("/bookmarks", response_model=CreatedResponse)
async def add_bookmark(
    payload: BookmarkCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    bookmark_id = await store.add(f"users/{current_user.uid}/bookmarks", {
        "postId": payload.post_id,
        "communityId": payload.community_id,
        "postType": payload.post_type,
        "createdAt": SERVER_TIMESTAMP,
    })
    return CreatedResponse(id=bookmark_id, message="Bookmark added successfully")


@router.delete("/bookmarks/{bookmark_id}", response_model=MessageResponse)
async def remove_bookmark(
    bookmark_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    path = f"users/{current_user.uid}/bookmarks/{bookmark_id}"
    if await store.get(path) is None:
        raise BookmarkNotFoundError(bookmark_id)

    await store.delete(path)
    return MessageResponse(message="Bookmark removed successfully")
