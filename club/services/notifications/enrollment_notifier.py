from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

import structlog

from club.adapters.mail.smtp_mailer import SmtpMailer


logger = structlog.get_logger(__name__)


class EnrollmentNotifier:
    """Downstream side effect of a committed enrollment (confirmation e-mail)."""

    def __init__(self, mailer: Optional[SmtpMailer]) -> None:
        self._mailer = mailer

    def enrollment_committed(
        self,
        *,
        member_id: int,
        email: Optional[str],
        member_name: str,
        plan_name: str,
        start_date: date,
        end_date: date,
        grand_total: Decimal,
        currency: str,
        contract_no: Optional[str] = None,
        invoice_no: Optional[str] = None,
        cooling_off_days: int = 0,
    ) -> bool:
        if self._mailer is None:
            logger.info("enrollment.notification.skipped", member_id=member_id, reason="smtp_disabled")
            return False
        if not email:
            logger.info("enrollment.notification.skipped", member_id=member_id, reason="no_email")
            return False

        self._mailer.send_enrollment_confirmation(
            email,
            member_name=member_name,
            plan_name=plan_name,
            start_date=start_date,
            end_date=end_date,
            grand_total=grand_total,
            currency=currency,
            contract_no=contract_no,
            invoice_no=invoice_no,
            cooling_off_days=cooling_off_days,
        )
        logger.info("enrollment.notification.sent", member_id=member_id)
        return True
