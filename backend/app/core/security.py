"""
Identity provider access.

Wraps Firebase Authentication behind a small interface: verify a client ID
token, resolve an email to a stable uid (creating the account on first
login), and mint a custom token for the client to exchange for a session.
"""
import asyncio
import functools
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from app.core.exceptions import AuthProviderError, InvalidTokenError
from app.core.logging_config import logger


class IdentityProvider(ABC):
    """Interface for the external identity/token service"""

    @abstractmethod
    async def verify_id_token(self, token: str) -> Dict[str, Any]:
        """Return the decoded claims (uid, name, email, picture) or raise InvalidTokenError"""

    @abstractmethod
    async def get_or_create_user(self, email: str) -> str:
        """Return the uid for email, creating a pre-verified account if absent"""

    @abstractmethod
    async def create_custom_token(self, uid: str, claims: Optional[Dict[str, Any]] = None) -> str:
        ...


class FirebaseIdentityProvider(IdentityProvider):
    """IdentityProvider backed by firebase_admin.auth"""

    def __init__(self, app=None, check_revoked: bool = True):
        if app is None:
            from app.core.firebase import get_firebase_app
            app = get_firebase_app()
        self.app = app
        self.check_revoked = check_revoked

    async def _call(self, func, *args, **kwargs):
        # firebase_admin.auth is synchronous, keep it off the event loop
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args, app=self.app, **kwargs))

    async def verify_id_token(self, token: str) -> Dict[str, Any]:
        from firebase_admin import auth
        from firebase_admin.exceptions import FirebaseError

        try:
            return await self._call(auth.verify_id_token, token, check_revoked=self.check_revoked)
        except (ValueError, auth.InvalidIdTokenError, auth.ExpiredIdTokenError,
                auth.RevokedIdTokenError, auth.UserDisabledError) as e:
            logger.debug(f"[Identity] Token rejected: {type(e).__name__}")
            raise InvalidTokenError() from e
        except FirebaseError as e:
            logger.warning(f"[Identity] Token verification failed upstream: {e}")
            raise InvalidTokenError() from e

    async def get_or_create_user(self, email: str) -> str:
        from firebase_admin import auth
        from firebase_admin.exceptions import FirebaseError

        try:
            try:
                record = await self._call(auth.get_user_by_email, email)
            except auth.UserNotFoundError:
                record = await self._call(auth.create_user, email=email, email_verified=True)
                logger.info(f"[Identity] Created user {record.uid} for {email}")
            return record.uid
        except (FirebaseError, ValueError) as e:
            raise AuthProviderError(cause=str(e)) from e

    async def create_custom_token(self, uid: str, claims: Optional[Dict[str, Any]] = None) -> str:
        from firebase_admin import auth
        from firebase_admin.exceptions import FirebaseError

        try:
            token = await self._call(auth.create_custom_token, uid, claims)
        except (FirebaseError, ValueError) as e:
            raise AuthProviderError(cause=str(e)) from e
        return token.decode("utf-8") if isinstance(token, bytes) else token
