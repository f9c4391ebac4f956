"""
Shared schema plumbing.

Documents are stored with camelCase keys (the frontend reads Firestore
directly), so every model uses a camelCase alias generator and is
serialized by alias.
"""
from typing import Any, TypeVar, Type

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from app.core.database import Document
from app.core.exceptions import MalformedDocumentError
from app.core.logging_config import logger

D = TypeVar("D", bound="DocumentModel")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class DocumentModel(CamelModel):
    """A stored entity; `id` is the document id, never a stored field"""

    model_config = ConfigDict(extra="ignore")

    id: str

    @classmethod
    def from_document(cls: Type[D], doc: Document, **annotations: Any) -> D:
        """Validate a raw document, rejecting shapes that miss required fields"""
        try:
            return cls.model_validate({**doc.data, **annotations, "id": doc.id})
        except ValidationError as e:
            logger.error(f"[Schema] {cls.__name__} document '{doc.id}' is malformed: {e.error_count()} error(s)")
            raise MalformedDocumentError(f"{cls.__name__}/{doc.id}", cause=str(e)) from e


class MessageResponse(CamelModel):
    message: str


class CreatedResponse(CamelModel):
    id: str
    message: str
