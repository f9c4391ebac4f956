from fastapi import APIRouter, Depends
from typing import List

from app.api.deps import get_document_store
from app.core.database import ArrayRemove, ArrayUnion, DocumentStore, SERVER_TIMESTAMP
from app.core.exceptions import (
    AdminCannotLeaveError,
    AlreadyMemberError,
    GroupNotFoundError,
    MessageNotFoundError,
    NotGroupMemberError,
    NotMemberError,
    NotMessageAuthorError,
)
from app.core.logging_config import logger
from app.modules.auth.dependencies import get_current_user
from app.schemas.auth import AuthenticatedUser
from app.schemas.common import CreatedResponse, MessageResponse
from app.schemas.group import Group, GroupCreate, GroupMessage, MessageCreate
from app.utils.pagination import PaginationParams, pagination_params

router = APIRouter()

MESSAGE_PAGE_LIMIT = 50


async def load_group(store: DocumentStore, group_id: str) -> Group:
    doc = await store.get(f"groups/{group_id}")
    if doc is None:
        raise GroupNotFoundError(group_id)
    return Group.from_document(doc)


async def load_membership(store: DocumentStore, group_id: str, uid: str) -> Group:
    """Fetch a group the caller belongs to"""
    group = await load_group(store, group_id)
    if uid not in group.members:
        raise NotGroupMemberError()
    return group


@router.get("", response_model=List[Group])
@router.get("/", response_model=List[Group], include_in_schema=False)
async def list_groups(
    page: PaginationParams = Depends(pagination_params()),
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    docs = await store.query("groups", order_by="createdAt", limit=page.limit, offset=page.offset)
    return [Group.from_document(doc) for doc in docs]


@router.get("/{group_id}", response_model=Group)
async def get_group(
    group_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    return await load_group(store, group_id)


@router.post("", response_model=CreatedResponse)
@router.post("/", response_model=CreatedResponse, include_in_schema=False)
async def create_group(
    payload: GroupCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    """Create a group; the creator becomes admin and first member"""
    group_id = await store.add("groups", {
        "name": payload.name,
        "description": payload.description,
        "isPrivate": payload.is_private,
        "admin": current_user.uid,
        "members": [current_user.uid],
        "createdAt": SERVER_TIMESTAMP,
        "updatedAt": SERVER_TIMESTAMP,
    })
    logger.info(f"[Groups] {current_user.uid} created group {group_id}")
    return CreatedResponse(id=group_id, message="Group created successfully")


@router.post("/{group_id}/join", response_model=MessageResponse)
async def join_group(
    group_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    group = await load_group(store, group_id)
    if current_user.uid in group.members:
        raise AlreadyMemberError()

    await store.update(f"groups/{group_id}", {
        "members": ArrayUnion(current_user.uid),
        "updatedAt": SERVER_TIMESTAMP,
    })
    return MessageResponse(message="Successfully joined group")


@router.post("/{group_id}/leave", response_model=MessageResponse)
async def leave_group(
    group_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    group = await load_group(store, group_id)
    if current_user.uid not in group.members:
        raise NotMemberError()
    if group.admin == current_user.uid:
        raise AdminCannotLeaveError()

    await store.update(f"groups/{group_id}", {
        "members": ArrayRemove(current_user.uid),
        "updatedAt": SERVER_TIMESTAMP,
    })
    return MessageResponse(message="Successfully left group")


@router.get("/{group_id}/messages", response_model=List[GroupMessage])
async def list_messages(
    group_id: str,
    page: PaginationParams = Depends(pagination_params(MESSAGE_PAGE_LIMIT)),
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    """Newest messages first; members only"""
    await load_membership(store, group_id, current_user.uid)
    docs = await store.query(
        f"groups/{group_id}/messages",
        order_by="timestamp",
        limit=page.limit,
        offset=page.offset,
    )
    return [GroupMessage.from_document(doc) for doc in docs]


@router.post("/{group_id}/messages", response_model=CreatedResponse)
async def send_message(
    group_id: str,
    payload: MessageCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    await load_membership(store, group_id, current_user.uid)

    text = payload.text or f"Shared a file: {payload.file_name}"
    message_id = await store.add(f"groups/{group_id}/messages", {
        "text": text,
        "author": current_user.uid,
        "authorName": current_user.display_name,
        "authorPhoto": current_user.picture,
        "type": payload.type,
        "fileUrl": payload.file_url,
        "fileName": payload.file_name,
        "timestamp": SERVER_TIMESTAMP,
    })
    await store.update(f"groups/{group_id}", {
        "lastMessage": {
            "text": text,
            "timestamp": SERVER_TIMESTAMP,
            "author": current_user.uid,
        },
        "updatedAt": SERVER_TIMESTAMP,
    })

    return CreatedResponse(id=message_id, message="Message sent successfully")


@router.delete("/{group_id}/messages/{message_id}", response_model=MessageResponse)
async def delete_message(
    group_id: str,
    message_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
):
    """Remove a message; only its author may do so"""
    await load_group(store, group_id)

    path = f"groups/{group_id}/messages/{message_id}"
    doc = await store.get(path)
    if doc is None:
        raise MessageNotFoundError(message_id)
    if GroupMessage.from_document(doc).author != current_user.uid:
        raise NotMessageAuthorError()

    await store.delete(path)
    return MessageResponse(message="Message deleted successfully")
