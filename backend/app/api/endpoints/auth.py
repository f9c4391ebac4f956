from fastapi import APIRouter, Depends, Request

from app.api.deps import get_otp_service
from app.core.rate_limiter import otp_send_rate_limit
from app.schemas.auth import SendOtpRequest, SendOtpResponse, VerifyOtpRequest, VerifyOtpResponse
from app.services.otp_service import OtpService

router = APIRouter()


@router.post("/send-otp", response_model=SendOtpResponse)
@otp_send_rate_limit()
async def send_otp(
    request: Request,
    payload: SendOtpRequest,
    otp_service: OtpService = Depends(get_otp_service),
):
    """Email a one-time login code (rate limited per IP)"""
    return await otp_service.send_otp(payload.email)


@router.post("/verify-otp", response_model=VerifyOtpResponse)
async def verify_otp(
    payload: VerifyOtpRequest,
    otp_service: OtpService = Depends(get_otp_service),
):
    """Redeem a login code for a custom auth token"""
    return await otp_service.verify_otp(payload.email, payload.otp)
