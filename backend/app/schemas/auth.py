from pydantic import BaseModel, Field
from typing import Optional

from app.schemas.common import CamelModel


class SendOtpRequest(BaseModel):
    # Syntax is checked by the OTP service so the error message matches the flow
    email: Optional[str] = None


class VerifyOtpRequest(BaseModel):
    email: Optional[str] = None
    otp: Optional[str] = None


class SendOtpResponse(CamelModel):
    message: str
    expires_in: int = Field(..., description="Seconds until the code expires")


class VerifyOtpResponse(CamelModel):
    message: str
    token: str = Field(..., description="Custom token to exchange for a client session")


class AuthenticatedUser(BaseModel):
    """Identity bound to a request after bearer token verification"""
    uid: str
    name: Optional[str] = None
    email: Optional[str] = None
    picture: Optional[str] = None

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        if self.email:
            return self.email.split("@")[0]
        return "Anonymous"
