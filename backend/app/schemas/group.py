from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from app.schemas.common import CamelModel, DocumentModel


class GroupCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    is_private: bool = False


class LastMessage(CamelModel):
    text: str
    author: str
    timestamp: Optional[datetime] = None


class Group(DocumentModel):
    name: str
    description: str = ""
    is_private: bool = False
    admin: str
    members: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_message: Optional[LastMessage] = None


class MessageCreate(CamelModel):
    text: Optional[str] = Field(None, max_length=5000)
    type: str = "text"
    file_url: Optional[str] = None
    file_name: Optional[str] = None

    @model_validator(mode='after')
    def validate_content(self):
        """A message carries text, a file, or both"""
        if not self.text and not self.file_url:
            raise ValueError("Message content is required")
        return self


class GroupMessage(DocumentModel):
    text: str
    author: str
    author_name: Optional[str] = None
    author_photo: Optional[str] = None
    type: str = "text"
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    timestamp: Optional[datetime] = None
