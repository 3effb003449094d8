# club/db/models/audit.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column

from club.db.models.base import Base


SCHEMA = Base.metadata.schema or "club"


AuditSeverity = postgresql.ENUM(
    "info",
    "warning",
    "critical",
    name="audit_severity",
    schema=SCHEMA,
    create_type=False,
)


class AuditLog(Base):
    """Business audit trail; rows are written in the same transaction as the change."""

    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(sa.BigInteger, sa.Identity(), primary_key=True)

    occurred_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    )

    severity: Mapped[str] = mapped_column(AuditSeverity, nullable=False, server_default="info")
    action: Mapped[str] = mapped_column(sa.String(120), nullable=False)

    entity_type: Mapped[Optional[str]] = mapped_column(sa.String(80), nullable=True)
    entity_id: Mapped[Optional[str]] = mapped_column(sa.String(80), nullable=True)

    request_id: Mapped[Optional[str]] = mapped_column(sa.String(80), nullable=True)
    ip: Mapped[Optional[str]] = mapped_column(postgresql.INET, nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)

    before: Mapped[Optional[Dict[str, Any]]] = mapped_column(postgresql.JSONB(astext_type=sa.Text), nullable=True)
    after: Mapped[Optional[Dict[str, Any]]] = mapped_column(postgresql.JSONB(astext_type=sa.Text), nullable=True)
    meta: Mapped[Optional[Dict[str, Any]]] = mapped_column(postgresql.JSONB(astext_type=sa.Text), nullable=True)
