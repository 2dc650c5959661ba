from __future__ import annotations

import asyncio
import logging
import smtplib
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Mapping, Optional

from ..config import Settings, get_settings
from ..domain.errors import DeliveryError
from ..observability.metrics import MAIL_SENT

logger = logging.getLogger(__name__)


class SMTPMailer:
    """Sends one HTML email per call over SMTP+STARTTLS, off the event loop."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self._host = settings.SMTP_HOST
        self._port = settings.SMTP_PORT
        self._timeout = settings.SMTP_TIMEOUT_SECONDS
        self._user: Optional[str] = settings.EMAIL_USER
        self._password: Optional[str] = settings.EMAIL_PASS
        self._dev = settings.ENV == "dev"
        if not self.enabled:
            missing = [
                key
                for key, value in [("EMAIL_USER", self._user), ("EMAIL_PASS", self._password)]
                if not value
            ]
            logger.info("SMTP mail disabled; missing settings: %s", ", ".join(missing))

    @property
    def enabled(self) -> bool:
        return bool(self._user and self._password)

    def _build(
        self,
        *,
        to: str,
        subject: str,
        html: str,
        display_name: str,
        headers: Optional[Mapping[str, str]],
    ) -> MIMEText:
        msg = MIMEText(html, "html", "utf-8")
        msg["Subject"] = subject
        msg["From"] = formataddr((display_name, self._user or ""))
        msg["To"] = to
        for key, value in (headers or {}).items():
            msg[key] = value
        return msg

    def _send_blocking(self, msg: MIMEText, to: str) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
            server.starttls()
            server.login(self._user, self._password)
            server.sendmail(self._user, [to], msg.as_string())

    async def send_mail(
        self,
        *,
        to: str,
        subject: str,
        html: str,
        display_name: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Dispatch the message or raise DeliveryError. No retries."""
        if not self.enabled:
            if self._dev:
                logger.info("[DEV] mail to %s skipped (SMTP not configured): %s", to, subject)
                MAIL_SENT.labels(outcome="skipped").inc()
                return
            MAIL_SENT.labels(outcome="failed").inc()
            raise DeliveryError("mail transport is not configured")

        msg = self._build(to=to, subject=subject, html=html, display_name=display_name, headers=headers)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._send_blocking, msg, to)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("SMTP send to %s failed: %s", to, exc)
            MAIL_SENT.labels(outcome="failed").inc()
            raise DeliveryError(str(exc)) from exc

        MAIL_SENT.labels(outcome="sent").inc()
        logger.info("mail sent", extra={"extra": f"to={to} subject={subject!r}"})
