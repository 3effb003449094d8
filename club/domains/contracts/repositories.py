from __future__ import annotations

from typing import Any

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from club.db.models.base import Base
from club.db.models.contracts import MembershipContract


SCHEMA = Base.metadata.schema or "club"


class ContractRepoError(RuntimeError):
    pass


class ContractRepository:
    """Repo for membership_contracts.

    Simple, testable DB operations without business logic.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def get(self, contract_id: int) -> MembershipContract | None:
        return self._db.get(MembershipContract, contract_id)

    def get_by_no(self, contract_no: str) -> MembershipContract | None:
        stmt = sa.select(MembershipContract).where(MembershipContract.contract_no == contract_no)
        return self._db.execute(stmt).scalars().first()

    def list_for_member(self, member_id: int, *, limit: int = 50, offset: int = 0) -> list[MembershipContract]:
        stmt = (
            sa.select(MembershipContract)
            .where(MembershipContract.member_id == member_id)
            .order_by(MembershipContract.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self._db.execute(stmt).scalars().all())

    def next_sequence_value(self) -> int:
        return int(self._db.execute(sa.text(f"SELECT nextval('{SCHEMA}.contract_no_seq')")).scalar_one())

    def create(self, **values: Any) -> MembershipContract:
        obj = MembershipContract(**values)
        self._db.add(obj)
        try:
            self._db.flush()
        except IntegrityError as e:
            raise ContractRepoError(f"Contract create failed: {e}") from e
        return obj
