from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from app.schemas.common import CamelModel, DocumentModel


class CommunityCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    category: str = Field(..., min_length=1, max_length=50)


class Community(DocumentModel):
    name: str
    description: str = ""
    category: str = ""
    admin: str
    admin_name: Optional[str] = None
    followers: List[str] = []
    post_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_following: bool = False


class FollowResponse(CamelModel):
    message: str
    is_following: bool


class PostCreate(CamelModel):
    text: Optional[str] = Field(None, max_length=5000)
    images: List[str] = []

    @model_validator(mode='after')
    def validate_content(self):
        """A post needs text or at least one image"""
        if not self.text and not self.images:
            raise ValueError("Post content is required")
        return self


class Post(DocumentModel):
    text: Optional[str] = ""
    images: List[str] = []
    author: str
    author_name: Optional[str] = None
    author_photo: Optional[str] = None
    likes: List[str] = []
    comments: int = 0
    timestamp: Optional[datetime] = None

    # Annotations added when a post is returned to a caller
    community_id: Optional[str] = None
    community_name: Optional[str] = None
    is_liked: bool = False

    @property
    def like_count(self) -> int:
        return len(self.likes)


class LikeResponse(CamelModel):
    message: str
    is_liked: bool


class CommentCreate(CamelModel):
    community_id: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1, max_length=2000)


class Comment(DocumentModel):
    text: str
    author: str
    author_name: Optional[str] = None
    author_photo: Optional[str] = None
    timestamp: Optional[datetime] = None
