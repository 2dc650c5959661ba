from __future__ import annotations

from ..config import get_settings
from .mailer import SMTPMailer

SUBJECT = "Your Verification Code - Bharat Community"

PRIORITY_HEADERS = {
    "X-Priority": "1",
    "X-MSMail-Priority": "High",
    "Importance": "high",
    "X-Mailer": "Bharat Community Mailer",
}

_TEMPLATE = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">Verification Code</h2>
  <p style="font-size: 16px; color: #666;">Hello,</p>
  <p style="font-size: 16px; color: #666;">Your verification code is:</p>
  <div style="background-color: #f4f4f4; padding: 15px; text-align: center; margin: 20px 0;">
    <h1 style="color: #333; letter-spacing: 5px; margin: 0;">{code}</h1>
  </div>
  <p style="font-size: 14px; color: #888;">This code will expire in {minutes} minutes.</p>
  <p style="font-size: 14px; color: #888;">If you didn't request this code, please ignore this email.</p>
  <hr style="border: 1px solid #eee; margin: 20px 0;">
  <p style="font-size: 12px; color: #999;">This is an automated message, please do not reply.</p>
</div>
"""


def render_otp_email(code: str, ttl_seconds: int) -> str:
    minutes = max(1, ttl_seconds // 60)
    return _TEMPLATE.format(code=code, minutes=minutes)


async def send_otp_via_email(mailer: SMTPMailer, email: str, code: str, ttl_seconds: int) -> None:
    S = get_settings()
    await mailer.send_mail(
        to=email,
        subject=SUBJECT,
        html=render_otp_email(code, ttl_seconds),
        display_name=S.MAIL_FROM_NAME,
        headers=PRIORITY_HEADERS,
    )
