from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from app.api.deps import get_identity_provider
from app.core.exceptions import AuthenticationError, CampusConnectError
from app.core.logging_config import logger, set_user_id
from app.core.security import IdentityProvider
from app.schemas.auth import AuthenticatedUser

security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> AuthenticatedUser:
    """Verify the bearer ID token and bind the identity to the request"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token provided")

    try:
        claims = await identity.verify_id_token(credentials.credentials)
    except CampusConnectError as e:
        logger.log_auth_event(
            event="verify_token",
            success=False,
            reason=e.code,
            http_path=request.url.path,
        )
        raise AuthenticationError("Invalid token") from e

    uid = claims.get("uid") or claims.get("sub")
    if not uid:
        logger.log_auth_event(event="verify_token", success=False, reason="missing uid claim")
        raise AuthenticationError("Invalid token")

    user = AuthenticatedUser(
        uid=uid,
        name=claims.get("name"),
        email=claims.get("email"),
        picture=claims.get("picture"),
    )

    set_user_id(user.uid)
    request.state.user_id = user.uid
    return user
