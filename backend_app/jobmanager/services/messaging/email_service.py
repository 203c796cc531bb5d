"""
Email outbox.

Every message is recorded in the ``emails`` collection (the ``demo_emails``
key of the local store). When an SMTP host is configured the message is
also delivered; otherwise it is only recorded, as in demo mode.
"""
import logging
import smtplib
import uuid
from email.mime.text import MIMEText
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from ...core.config import AppConfig
from ...core.errors import ResourceNotFoundError
from ...models.domain import EmailRecord, EmailStatus, to_document, utc_now_iso
from ...utils.async_utils import run_sync

if TYPE_CHECKING:
    from ..storage.gateway import DataGateway

logger = logging.getLogger(__name__)

COLLECTION = "emails"


class EmailService:
    def __init__(self, gateway: "DataGateway", config: AppConfig):
        self._gateway = gateway
        self.config = config

    @property
    def sender(self) -> str:
        return f"{self.config.email_from_name} <{self.config.email_from_address}>"

    def _deliver(self, to: str, subject: str, text_body: str) -> None:
        msg = MIMEText(text_body, "plain")
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject

        with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=30) as server:
            if self.config.smtp_use_tls:
                server.starttls()
            if self.config.smtp_username:
                server.login(self.config.smtp_username, self.config.smtp_password or "")
            server.send_message(msg)

    async def send_email(self, to: str, subject: str, text_body: str, kind: str = "general") -> Dict[str, Any]:
        """Deliver (when SMTP is configured) and record a message. Returns the outbox record."""
        status = EmailStatus.SENT
        error: Optional[str] = None
        if self.config.smtp_host:
            try:
                await run_sync(self._deliver, to, subject, text_body)
            except (smtplib.SMTPException, OSError) as exc:
                logger.warning("SMTP delivery to %s failed: %s", to, exc, extra={"kind": kind})
                status = EmailStatus.FAILED
                error = str(exc)
        else:
            logger.info("Email to %s recorded without delivery (no SMTP host)", to, extra={"kind": kind})

        record = EmailRecord(
            id=f"email-{uuid.uuid4().hex[:12]}",
            to=to,
            subject=subject,
            text_body=text_body,
            from_address=self.config.email_from_address,
            sent_at=utc_now_iso(),
            status=status,
            kind=kind,
            error=error,
        )
        return await self._gateway.create_item(COLLECTION, to_document(record))

    async def send_welcome_email(
        self, user: Dict[str, Any], business_name: Optional[str] = None, login_url: Optional[str] = None
    ) -> Dict[str, Any]:
        login_url = login_url or self.config.get_frontend_url()
        lines = [
            f"Hello {user.get('name')},",
            "",
            f"An account has been created for you on {self.config.app_name}.",
            f"Role: {user.get('role')}",
        ]
        if business_name:
            lines.append(f"Business: {business_name}")
        lines.extend([
            f"Sign in with {user.get('email')} at {login_url}",
            "",
            f"Questions? Contact {self.config.support_email}.",
        ])
        return await self.send_email(
            user["email"], f"Welcome to {self.config.app_name}", "\n".join(lines), kind="welcome"
        )

    async def send_password_reset_email(self, user: Dict[str, Any]) -> Dict[str, Any]:
        body = "\n".join([
            f"Hello {user.get('name')},",
            "",
            f"The password for your {self.config.app_name} account was changed.",
            f"If you did not expect this, contact {self.config.support_email} immediately.",
        ])
        return await self.send_email(
            user["email"], f"Your {self.config.app_name} password was changed", body, kind="password_reset"
        )

    async def list_emails(self, search: str = "", status: str = "all") -> List[Dict[str, Any]]:
        """Outbox newest first, filtered by recipient/subject text and delivery status."""
        term = (search or "").strip().lower()
        emails = await self._gateway.list_items(COLLECTION)
        result = []
        for email in emails:
            if status and status != "all" and email.get("status") != status:
                continue
            if term and term not in (email.get("to") or "").lower() and term not in (email.get("subject") or "").lower():
                continue
            result.append(email)
        result.sort(key=lambda e: e.get("sent_at") or "", reverse=True)
        return result

    async def delete_email(self, email_id: str) -> None:
        if not await self._gateway.delete_item(COLLECTION, email_id):
            raise ResourceNotFoundError("Email", email_id)

    async def clear_emails(self) -> int:
        removed = await self._gateway.clear(COLLECTION)
        logger.info("Cleared %d emails from the outbox", removed)
        return removed
