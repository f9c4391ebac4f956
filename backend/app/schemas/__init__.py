# Pydantic schemas
from app.schemas.common import CamelModel, DocumentModel, MessageResponse, CreatedResponse
from app.schemas.auth import (
    SendOtpRequest,
    SendOtpResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
    AuthenticatedUser,
)
from app.schemas.community import (
    CommunityCreate,
    Community,
    FollowResponse,
    PostCreate,
    Post,
    LikeResponse,
    CommentCreate,
    Comment,
)
from app.schemas.group import GroupCreate, Group, LastMessage, MessageCreate, GroupMessage
from app.schemas.user import (
    ProfileCreate,
    ProfileUpdate,
    UserProfile,
    Notification,
    UnreadCountResponse,
    BookmarkCreate,
    Bookmark,
)
