from __future__ import annotations

from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from club.db.models.vouchers import Voucher, VoucherRedemption


class VoucherRepoError(RuntimeError):
    pass


class VoucherExhaustedError(VoucherRepoError):
    """No redemption left at write time (another enrollment took the last one)."""


class VoucherRepository:
    def __init__(self, db: Session) -> None:
        self._db = db

    def get_by_code(self, code: str) -> Voucher | None:
        stmt = sa.select(Voucher).where(Voucher.code == code.strip().upper())
        return self._db.execute(stmt).scalars().first()

    def has_redemption(self, *, voucher_id: int, member_id: int) -> bool:
        stmt = (
            sa.select(VoucherRedemption.id)
            .where(VoucherRedemption.voucher_id == voucher_id)
            .where(VoucherRedemption.member_id == member_id)
            .limit(1)
        )
        return self._db.execute(stmt).scalars().first() is not None

    def claim_redemption(self, voucher_id: int) -> Optional[int]:
        """Atomically bumps redemption_count if a redemption is left; returns the new count or None."""
        stmt = (
            sa.update(Voucher)
            .where(Voucher.id == voucher_id)
            .where(sa.or_(Voucher.max_redemptions.is_(None), Voucher.redemption_count < Voucher.max_redemptions))
            .values(redemption_count=Voucher.redemption_count + 1)
            .returning(Voucher.redemption_count)
            .execution_options(synchronize_session=False)
        )
        row = self._db.execute(stmt).first()
        return int(row[0]) if row is not None else None

    def redeem(
        self,
        voucher: Voucher,
        *,
        member_id: int,
        subscription_id: Optional[int],
        discount_amount: Decimal,
    ) -> VoucherRedemption:
        count = self.claim_redemption(int(voucher.id))
        if count is None:
            raise VoucherExhaustedError(f"Voucher {voucher.code} has no redemptions left.")
        set_committed_value(voucher, "redemption_count", count)

        r = VoucherRedemption(
            voucher_id=voucher.id,
            member_id=member_id,
            subscription_id=subscription_id,
            discount_amount=discount_amount,
        )
        self._db.add(r)
        try:
            self._db.flush()
        except IntegrityError as e:
            raise VoucherRepoError(f"Voucher redemption failed: {e}") from e
        return r
