"""
Mock identity provider and email channel for testing
"""
import itertools
from typing import Any, Dict, List, Optional, Tuple

from app.core.exceptions import AuthProviderError, InvalidTokenError
from app.core.security import IdentityProvider


class FakeIdentityProvider(IdentityProvider):
    """Issues opaque test tokens and keeps an email -> uid directory"""

    def __init__(self):
        self.tokens: Dict[str, Dict[str, Any]] = {}
        self.users: Dict[str, str] = {}
        self.custom_tokens: List[Tuple[str, Dict[str, Any]]] = []
        self.fail_token_minting = False
        self._uids = itertools.count(1)

    def issue_id_token(self, uid: str, email: Optional[str] = None,
                       name: Optional[str] = None, picture: Optional[str] = None) -> str:
        token = f"id-token-{uid}"
        claims: Dict[str, Any] = {"uid": uid}
        if email:
            claims["email"] = email
        if name:
            claims["name"] = name
        if picture:
            claims["picture"] = picture
        self.tokens[token] = claims
        return token

    async def verify_id_token(self, token: str) -> Dict[str, Any]:
        if token not in self.tokens:
            raise InvalidTokenError()
        return dict(self.tokens[token])

    async def get_or_create_user(self, email: str) -> str:
        if email not in self.users:
            self.users[email] = f"uid-{next(self._uids)}"
        return self.users[email]

    async def create_custom_token(self, uid: str, claims: Optional[Dict[str, Any]] = None) -> str:
        if self.fail_token_minting:
            raise AuthProviderError(cause="signing key unavailable")
        self.custom_tokens.append((uid, dict(claims or {})))
        return f"custom-token-{uid}"


class FakeEmailService:
    """Records outgoing OTP mails instead of sending them"""

    def __init__(self, deliver: bool = True):
        self.deliver = deliver
        self.sent: List[Dict[str, Any]] = []

    @property
    def is_configured(self) -> bool:
        return True

    async def send_otp_email(self, to_email: str, otp: str, expires_minutes: int) -> bool:
        if not self.deliver:
            return False
        self.sent.append({"to": to_email, "otp": otp, "expires_minutes": expires_minutes})
        return True

    def last_code_for(self, email: str) -> Optional[str]:
        for message in reversed(self.sent):
            if message["to"] == email:
                return message["otp"]
        return None
