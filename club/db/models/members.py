# club/db/models/members.py
from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import BigInteger, Date, DateTime, Identity, String, text
from sqlalchemy.dialects.postgresql import ENUM
from sqlalchemy.orm import Mapped, mapped_column

from club.db.models.base import Base


SCHEMA = Base.metadata.schema or "club"


GenderDb = ENUM(
    "male",
    "female",
    name="gender",
    schema=SCHEMA,
    create_type=False,
)

MemberStatusDb = ENUM(
    "pending",
    "active",
    "suspended",
    "archived",
    name="member_status",
    schema=SCHEMA,
    create_type=False,
)


class Member(Base):
    __tablename__ = "members"

    id: Mapped[int] = mapped_column(BigInteger, Identity(), primary_key=True)

    first_name: Mapped[str] = mapped_column(String(80), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(GenderDb, nullable=True)
    national_id: Mapped[str | None] = mapped_column(String(32), nullable=True)

    status: Mapped[str] = mapped_column(MemberStatusDb, nullable=False, server_default=text("'active'"))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
