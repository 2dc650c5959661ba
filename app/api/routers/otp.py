from __future__ import annotations
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...db import get_db
from ...deps import get_mailer, get_otp_registry
from ...domain.errors import DeliveryError, StoreError
from ...domain.schemas.member import EmailIn, MessageOut, VerifyOtpIn
from ...repos import submissions as submissions_repo
from ...services.mailer import SMTPMailer
from ...services.otp import OtpRegistry
from ...services.otp_sender import send_otp_via_email

router = APIRouter(tags=["otp"])
log = logging.getLogger(__name__)

def _send_failed() -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to send OTP")


@router.post("/send-otp", response_model=MessageOut)
async def send_otp(
    payload: Optional[EmailIn] = None,
    db: AsyncSession = Depends(get_db),
    otps: OtpRegistry = Depends(get_otp_registry),
    mailer: SMTPMailer = Depends(get_mailer),
):
    email = (payload or EmailIn()).email
    try:
        known = bool(email) and await submissions_repo.email_exists(db, email)
    except StoreError as e:
        log.error("send otp lookup failed: %s", e)
        raise _send_failed()
    if not known:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Email not found", "message": "This email is not registered in our database"},
        )

    try:
        code = await otps.issue(email)
    except Exception:
        log.exception("otp issue failed")
        raise _send_failed()

    try:
        await send_otp_via_email(mailer, email, code, otps.ttl_seconds)
    except DeliveryError as e:
        log.error("Error sending OTP: %s", e)
        # the member never received it
        await otps.invalidate(email, code)
        raise _send_failed()

    return MessageOut(message="OTP sent successfully")


@router.post("/verify-otp", response_model=MessageOut)
async def verify_otp(payload: Optional[VerifyOtpIn] = None, otps: OtpRegistry = Depends(get_otp_registry)):
    payload = payload or VerifyOtpIn()
    if not payload.email or payload.otp is None or not await otps.verify(payload.email, payload.otp):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid OTP")
    return MessageOut(message="OTP verified successfully")
