"""
Unit Tests for entity and request schemas
"""
import pytest
from pydantic import ValidationError

from app.core.database import Document
from app.core.exceptions import MalformedDocumentError
from app.schemas.community import Community, CommunityCreate, Post, PostCreate
from app.schemas.group import MessageCreate
from app.schemas.user import BookmarkCreate, ProfileUpdate, UserProfile


class TestDocumentModels:

    def test_from_document_reads_camel_case(self):
        doc = Document(id="c1", data={
            "name": "Robotics",
            "description": "Bots",
            "category": "Technical",
            "admin": "u1",
            "adminName": "Asha",
            "followers": ["u1"],
            "postCount": 3,
        })
        community = Community.from_document(doc)

        assert community.id == "c1"
        assert community.admin_name == "Asha"
        assert community.post_count == 3

    def test_serializes_by_alias(self):
        post = Post.from_document(
            Document(id="p1", data={"text": "hi", "author": "u1", "likes": ["u2"]}),
            communityId="c1",
        )
        data = post.model_dump(by_alias=True)

        assert data["communityId"] == "c1"
        assert data["isLiked"] is False
        assert post.like_count == 1

    def test_unknown_fields_ignored(self):
        profile = UserProfile.from_document(Document(id="u1", data={
            "uid": "u1", "name": "Asha", "photoURL": "https://img", "legacyFlag": True,
        }))
        assert profile.photo_url == "https://img"
        assert "legacyFlag" not in profile.model_dump(by_alias=True)

    def test_missing_required_field_is_malformed(self):
        with pytest.raises(MalformedDocumentError) as exc_info:
            Community.from_document(Document(id="c1", data={"description": "no name"}))
        assert exc_info.value.status_code == 500


class TestRequestModels:

    def test_post_needs_text_or_images(self):
        with pytest.raises(ValidationError):
            PostCreate()
        assert PostCreate(images=["https://img/1.png"]).images
        assert PostCreate(text="hello").text == "hello"

    def test_message_needs_text_or_file(self):
        with pytest.raises(ValidationError):
            MessageCreate(text="")
        message = MessageCreate(fileUrl="https://files/a.pdf", fileName="a.pdf")
        assert message.type == "text"

    def test_community_fields_required_and_trimmed(self):
        with pytest.raises(ValidationError):
            CommunityCreate(name="  ", description="d", category="c")
        assert CommunityCreate(name=" Robotics ", description="d", category="c").name == "Robotics"

    def test_bookmark_post_type_defaults_to_community(self):
        assert BookmarkCreate(postId="p1", communityId="c1").post_type == "community"

    def test_profile_update_only_dumps_sent_fields(self):
        update = ProfileUpdate.model_validate({"department": "ECE", "photoURL": "https://img"})
        assert update.model_dump(by_alias=True, exclude_unset=True) == {
            "department": "ECE",
            "photoURL": "https://img",
        }
