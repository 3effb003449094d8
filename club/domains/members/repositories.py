from __future__ import annotations

from datetime import date
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from club.db.models.members import Member


class MemberRepoError(RuntimeError):
    pass


class MemberRepository:
    """Member directory: lookup and create."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def get(self, member_id: int) -> Member | None:
        return self._db.get(Member, member_id)

    def get_by_email(self, email: str) -> Member | None:
        stmt = sa.select(Member).where(sa.func.lower(Member.email) == email.strip().lower())
        return self._db.execute(stmt).scalars().first()

    def create(
        self,
        *,
        first_name: str,
        last_name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        date_of_birth: Optional[date] = None,
        gender: Optional[str] = None,
        national_id: Optional[str] = None,
        status: str = "active",
    ) -> Member:
        obj = Member(
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            date_of_birth=date_of_birth,
            gender=gender,
            national_id=national_id,
            status=status,
        )
        self._db.add(obj)
        try:
            self._db.flush()
        except IntegrityError as e:
            raise MemberRepoError(f"Member create failed: {e}") from e
        return obj
