from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from club.db.models.subscriptions import Subscription
from club.domains.subscriptions.enums import SubscriptionStatus


class SubscriptionRepoError(RuntimeError):
    pass


class ActiveSubscriptionExistsError(SubscriptionRepoError):
    """uq_subscriptions_one_active_per_member violated (concurrent enrollment of the same member)."""


ONE_ACTIVE_INDEX = "uq_subscriptions_one_active_per_member"


class SubscriptionRepository:
    """Repo for subscriptions.

    Zero business logic: reads and writes only.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def get(self, subscription_id: int) -> Subscription | None:
        return self._db.get(Subscription, subscription_id)

    def count_for_member(self, member_id: int) -> int:
        stmt = sa.select(sa.func.count(Subscription.id)).where(Subscription.member_id == member_id)
        return int(self._db.execute(stmt).scalar_one())

    def exists_active_for_member(self, member_id: int) -> bool:
        stmt = (
            sa.select(Subscription.id)
            .where(Subscription.member_id == member_id)
            .where(Subscription.status == SubscriptionStatus.ACTIVE.value)
            .limit(1)
        )
        return self._db.execute(stmt).scalars().first() is not None

    def create(
        self,
        *,
        member_id: int,
        plan_id: int,
        status: str,
        start_date: date,
        end_date: date,
        currency: str,
        auto_renew: bool = False,
        contract_id: Optional[int] = None,
        paid_amount: Optional[Decimal] = None,
        discount_type: Optional[str] = None,
        discount_value: Optional[Decimal] = None,
        discount_reason: Optional[str] = None,
        voucher_code: Optional[str] = None,
        original_price: Optional[Decimal] = None,
        final_price: Optional[Decimal] = None,
        staff_notes: Optional[str] = None,
        referred_by_member_id: Optional[int] = None,
    ) -> Subscription:
        obj = Subscription(
            member_id=member_id,
            plan_id=plan_id,
            contract_id=contract_id,
            status=status,
            start_date=start_date,
            end_date=end_date,
            auto_renew=auto_renew,
            currency=currency,
            paid_amount=paid_amount,
            discount_type=discount_type,
            discount_value=discount_value,
            discount_reason=discount_reason,
            voucher_code=voucher_code,
            original_price=original_price,
            final_price=final_price,
            staff_notes=staff_notes,
            referred_by_member_id=referred_by_member_id,
        )
        self._db.add(obj)
        try:
            self._db.flush()
        except IntegrityError as e:
            if ONE_ACTIVE_INDEX in str(e.orig):
                raise ActiveSubscriptionExistsError(f"Member {member_id} already has an active subscription.") from e
            raise SubscriptionRepoError(f"Subscription create failed: {e}") from e
        return obj

    def attach_contract(self, subscription: Subscription, contract_id: int) -> None:
        subscription.contract_id = contract_id
        self._db.flush()
