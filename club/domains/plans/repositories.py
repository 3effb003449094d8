from __future__ import annotations

from typing import Any

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from club.db.models.plans import MembershipPlan


class PlanRepoError(RuntimeError):
    pass


class PlanRepository:
    """Repo for membership_plans (plan catalogue). No business rules here."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def get(self, plan_id: int) -> MembershipPlan | None:
        return self._db.get(MembershipPlan, plan_id)

    def get_by_name(self, name: str) -> MembershipPlan | None:
        stmt = sa.select(MembershipPlan).where(sa.func.lower(MembershipPlan.name) == name.strip().lower())
        return self._db.execute(stmt).scalars().first()

    def list_all(self, *, include_inactive: bool = False, limit: int = 100, offset: int = 0) -> list[MembershipPlan]:
        stmt = sa.select(MembershipPlan).order_by(MembershipPlan.name.asc(), MembershipPlan.id.asc())
        if not include_inactive:
            stmt = stmt.where(MembershipPlan.is_active.is_(True))
        stmt = stmt.limit(limit).offset(offset)
        return list(self._db.execute(stmt).scalars().all())

    def create(self, **values: Any) -> MembershipPlan:
        obj = MembershipPlan(**values)
        self._db.add(obj)
        try:
            self._db.flush()
        except IntegrityError as e:
            raise PlanRepoError(f"Plan create failed: {e}") from e
        return obj

    def update(self, plan: MembershipPlan, **values: Any) -> MembershipPlan:
        for k, v in values.items():
            setattr(plan, k, v)
        plan.updated_at = sa.func.now()
        try:
            self._db.flush()
        except IntegrityError as e:
            raise PlanRepoError(f"Plan update failed: {e}") from e
        return plan
