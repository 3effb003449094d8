# club/adapters/mail/smtp_mailer.py
from __future__ import annotations

import os
import smtplib
import ssl
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from email.message import EmailMessage
from typing import Optional

from club.app.config import Settings


class MailerError(RuntimeError):
    """Raised when sending email fails (without leaking secrets)."""


@dataclass(frozen=True)
class SmtpMailer:
    settings: Settings
    timeout_seconds: int = 15

    def _assert_enabled(self) -> None:
        if not self.settings.smtp_enabled:
            raise MailerError("SMTP is disabled (SMTP_ENABLED=0).")

    def _build_message(self, to_email: str, subject: str, body_text: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.settings.smtp_from
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content(body_text)
        return msg

    def _send(self, msg: EmailMessage) -> None:
        self._assert_enabled()

        ehlo_name = os.getenv("SMTP_EHLO_NAME", "").strip() or "localhost"

        try:
            with smtplib.SMTP(host=self.settings.smtp_host, port=self.settings.smtp_port, timeout=self.timeout_seconds) as smtp:
                smtp.ehlo(ehlo_name)
                if self.settings.smtp_starttls:
                    smtp.starttls(context=ssl.create_default_context())
                    smtp.ehlo(ehlo_name)
                if self.settings.smtp_user:
                    smtp.login(self.settings.smtp_user, self.settings.smtp_pass)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise MailerError(f"SMTP send failed: {type(e).__name__}") from e

    # --- Public templates ---

    def send_enrollment_confirmation(
        self,
        to_email: str,
        *,
        member_name: str,
        plan_name: str,
        start_date: date,
        end_date: date,
        grand_total: Decimal,
        currency: str,
        contract_no: Optional[str] = None,
        invoice_no: Optional[str] = None,
        cooling_off_days: int = 0,
    ) -> None:
        subject = f"Welcome to the club: {plan_name}"
        lines = [
            f"Hello {member_name},",
            "",
            f"Your {plan_name} membership is booked.",
            f"Period: {start_date.isoformat()} - {end_date.isoformat()}",
            f"Total due: {grand_total} {currency}",
        ]
        if contract_no:
            lines.append(f"Contract: {contract_no}")
        if invoice_no:
            lines.append(f"Invoice: {invoice_no}")
        if cooling_off_days > 0:
            lines += ["", f"You may cancel free of charge within {cooling_off_days} days of the start date."]
        lines += ["", "See you at the club!"]

        msg = self._build_message(to_email, subject, "\n".join(lines) + "\n")
        self._send(msg)


def get_mailer(settings: Settings) -> Optional[SmtpMailer]:
    """Returns None when SMTP is disabled, so dev setups never send mail."""
    if not settings.smtp_enabled:
        return None
    return SmtpMailer(settings=settings)
