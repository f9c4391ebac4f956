"""
Custom Exceptions for CEG Connect
=================================

Every error a handler can raise derives from CampusConnectError and carries
its HTTP status, so the API layer converts it in one place (see app.main).

Usage:
    from app.core.exceptions import CommunityNotFoundError, NotFollowerError

    if community is None:
        raise CommunityNotFoundError(community_id)

    if uid not in community.followers:
        raise NotFollowerError()
"""

from typing import Optional, Any, Dict


class CampusConnectError(Exception):
    """Base exception for all CEG Connect errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "message": self.message,
            "code": self.code,
        }
        if self.details:
            body["details"] = self.details
        return body


# ============================================
# Validation Errors (400)
# ============================================

class InvalidInputError(CampusConnectError):
    """Missing or malformed request fields"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="INVALID_INPUT", details=details)


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(CampusConnectError):
    """Missing or invalid bearer token"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class InvalidTokenError(AuthenticationError):
    """Bearer token is malformed, expired or revoked"""

    def __init__(self):
        super().__init__("Invalid token")
        self.code = "INVALID_TOKEN"


class ForbiddenError(CampusConnectError):
    """Authenticated, but lacking the required relationship"""

    status_code = 403

    def __init__(self, message: str = "Not authorized", code: str = "FORBIDDEN"):
        super().__init__(message, code=code)


class NotFollowerError(ForbiddenError):
    def __init__(self):
        super().__init__("Must follow community to post", code="NOT_FOLLOWER")


class NotGroupMemberError(ForbiddenError):
    def __init__(self):
        super().__init__("Not a member of this group", code="NOT_GROUP_MEMBER")


class NotMessageAuthorError(ForbiddenError):
    def __init__(self):
        super().__init__("Only the author can delete this message", code="NOT_MESSAGE_AUTHOR")


class NotPostAuthorError(ForbiddenError):
    def __init__(self):
        super().__init__("Only the author can delete this post", code="NOT_POST_AUTHOR")


# ============================================
# Resource Errors (404)
# ============================================

class ResourceNotFoundError(CampusConnectError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str, message: Optional[str] = None):
        super().__init__(
            message or f"{resource_type} not found",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class CommunityNotFoundError(ResourceNotFoundError):
    def __init__(self, community_id: str):
        super().__init__("Community", community_id)


class PostNotFoundError(ResourceNotFoundError):
    def __init__(self, post_id: str):
        super().__init__("Post", post_id)


class GroupNotFoundError(ResourceNotFoundError):
    def __init__(self, group_id: str):
        super().__init__("Group", group_id)


class MessageNotFoundError(ResourceNotFoundError):
    def __init__(self, message_id: str):
        super().__init__("Message", message_id)


class ProfileNotFoundError(ResourceNotFoundError):
    def __init__(self, uid: str):
        super().__init__("User profile", uid)


class NotificationNotFoundError(ResourceNotFoundError):
    def __init__(self, notification_id: str):
        super().__init__("Notification", notification_id)


class BookmarkNotFoundError(ResourceNotFoundError):
    def __init__(self, bookmark_id: str):
        super().__init__("Bookmark", bookmark_id)


# ============================================
# Business Rule Errors (400)
# ============================================

class BusinessRuleError(CampusConnectError):
    """A request that is well-formed but breaks a membership rule"""

    status_code = 400


class AlreadyMemberError(BusinessRuleError):
    def __init__(self):
        super().__init__("Already a member of this group", code="ALREADY_MEMBER")


class NotMemberError(BusinessRuleError):
    def __init__(self):
        super().__init__("Not a member of this group", code="NOT_MEMBER")


class AdminCannotLeaveError(BusinessRuleError):
    def __init__(self):
        super().__init__("Admin cannot leave the group", code="ADMIN_CANNOT_LEAVE")


class ProfileExistsError(BusinessRuleError):
    def __init__(self):
        super().__init__("Profile already exists", code="PROFILE_EXISTS")


# ============================================
# OTP Errors (400)
# ============================================

class OtpError(CampusConnectError):
    """OTP redemption failed because of user input"""

    status_code = 400


class OtpNotFoundError(OtpError):
    def __init__(self):
        super().__init__("OTP not found or expired", code="OTP_NOT_FOUND")


class OtpExpiredError(OtpError):
    def __init__(self):
        super().__init__("OTP has expired", code="OTP_EXPIRED")


class TooManyAttemptsError(OtpError):
    def __init__(self):
        super().__init__(
            "Too many failed attempts. Please request a new OTP.",
            code="TOO_MANY_ATTEMPTS"
        )


class InvalidOtpError(OtpError):
    def __init__(self, attempts: int):
        super().__init__("Invalid OTP", code="INVALID_OTP", details={"attempts": attempts})


# ============================================
# Rate Limiting (429)
# ============================================

class RateLimitedError(CampusConnectError):
    """Caller exceeded RATE_LIMIT_DEFAULT"""

    status_code = 429

    def __init__(self, retry_after_seconds: int):
        super().__init__("Too many requests, please try again later.", code="RATE_LIMITED")
        self.retry_after_seconds = retry_after_seconds


# ============================================
# Upstream Errors (500)
# ============================================

class UpstreamError(CampusConnectError):
    """A collaborator (identity provider, document store, mail) failed"""

    status_code = 500

    def __init__(self, message: str, code: str = "UPSTREAM_ERROR", cause: Optional[str] = None):
        super().__init__(message, code=code)
        # Never sent to the client, only logged
        self.cause = cause


class AuthProviderError(UpstreamError):
    def __init__(self, cause: Optional[str] = None):
        super().__init__("Failed to create authentication token", code="AUTH_PROVIDER_ERROR", cause=cause)


class EmailDeliveryError(UpstreamError):
    def __init__(self, cause: Optional[str] = None):
        super().__init__("Failed to send OTP. Please try again.", code="EMAIL_DELIVERY_FAILED", cause=cause)


class DocumentStoreError(UpstreamError):
    def __init__(self, operation: str, cause: Optional[str] = None):
        super().__init__(f"Failed to {operation}", code="DOCUMENT_STORE_ERROR", cause=cause)


class OtpStoreError(UpstreamError):
    def __init__(self, operation: str, cause: Optional[str] = None):
        super().__init__("Failed to process OTP. Please try again.", code="OTP_STORE_ERROR", cause=f"{operation}: {cause}")


class MalformedDocumentError(UpstreamError):
    def __init__(self, path: str, cause: Optional[str] = None):
        super().__init__("Stored data is malformed", code="MALFORMED_DOCUMENT", cause=f"{path}: {cause}")


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: CampusConnectError, expose_details: bool = True) -> Dict[str, Any]:
    """Convert exception to API error response body"""
    body = error.to_dict()
    if not expose_details:
        body.pop("details", None)
    return body
