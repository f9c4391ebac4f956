from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel, DocumentModel


class ProfileCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    reg_no: str = Field(..., min_length=1, max_length=30)
    department: str = Field(..., min_length=1, max_length=100)
    year: str = Field(..., min_length=1, max_length=20)
    photo_url: Optional[str] = Field(None, alias="photoURL")


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    reg_no: Optional[str] = Field(None, min_length=1, max_length=30)
    department: Optional[str] = Field(None, min_length=1, max_length=100)
    year: Optional[str] = Field(None, min_length=1, max_length=20)
    photo_url: Optional[str] = Field(None, alias="photoURL")


class UserProfile(DocumentModel):
    uid: str
    email: Optional[str] = None
    name: str
    reg_no: Optional[str] = None
    department: Optional[str] = None
    year: Optional[str] = None
    photo_url: Optional[str] = Field(None, alias="photoURL")
    is_profile_complete: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Notification(DocumentModel):
    type: str
    title: Optional[str] = None
    message: str
    read: bool = False
    read_at: Optional[datetime] = None
    timestamp: Optional[datetime] = None
    post_id: Optional[str] = None
    community_id: Optional[str] = None
    from_user: Optional[dict] = None


class UnreadCountResponse(CamelModel):
    count: int


class BookmarkCreate(CamelModel):
    post_id: str = Field(..., min_length=1)
    community_id: str = Field(..., min_length=1)
    post_type: str = "community"


class Bookmark(DocumentModel):
    post_id: str
    community_id: Optional[str] = None
    post_type: Optional[str] = None
    created_at: Optional[datetime] = None
