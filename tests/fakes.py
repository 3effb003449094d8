"""In-memory fakes for service tests (no database needed).

Writes go to FakeStore.pending; FakeSession.commit() moves them to committed,
rollback() drops them. That is enough to observe transaction boundaries.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from club.domains.subscriptions.repositories import ActiveSubscriptionExistsError
from club.domains.vouchers.repositories import VoucherExhaustedError


class FakeStore:
    def __init__(self) -> None:
        self.pending: list = []
        self.committed: list = []

    def of_kind(self, kind: str) -> list:
        return [o for o in self.committed if getattr(o, "_kind", None) == kind]


class FakeSession:
    def __init__(self, store: FakeStore) -> None:
        self.store = store
        self.commits = 0
        self.rollbacks = 0
        self.flushes = 0

    def add(self, obj) -> None:
        self.store.pending.append(obj)

    def flush(self) -> None:
        self.flushes += 1

    def commit(self) -> None:
        self.commits += 1
        self.store.committed.extend(self.store.pending)
        self.store.pending.clear()

    def rollback(self) -> None:
        self.rollbacks += 1
        self.store.pending.clear()


def _row(store: FakeStore, kind: str, **values):
    obj = SimpleNamespace(_kind=kind, **values)
    store.pending.append(obj)
    return obj


def make_plan(**overrides):
    values = dict(
        id=1,
        name="Gold",
        is_active=True,
        available_from=None,
        available_until=None,
        minimum_age=None,
        maximum_age=None,
        currency="SAR",
        membership_fee_amount=Decimal("200.00"),
        membership_fee_tax_rate=Decimal("15.00"),
        admin_fee_amount=Decimal("50.00"),
        admin_fee_tax_rate=Decimal("15.00"),
        admin_fee_waived=False,
        join_fee_amount=Decimal("100.00"),
        join_fee_tax_rate=Decimal("15.00"),
        billing_period="monthly",
        duration_days=None,
        contract_type="fixed_term",
        supported_terms=["monthly", "annual"],
        commitment_months=12,
        notice_period_days=30,
        cooling_off_days=7,
        early_termination_fee_type="remaining_months",
        early_termination_fee_value=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def make_voucher(**overrides):
    values = dict(
        id=5,
        code="WELCOME20",
        description="Welcome offer",
        discount_type="percentage",
        discount_value=Decimal("20"),
        is_active=True,
        valid_from=None,
        valid_until=None,
        max_redemptions=None,
        redemption_count=0,
        plan_id=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def make_member(**overrides):
    values = dict(
        id=7,
        first_name="Sara",
        last_name="Haddad",
        email="sara@example.com",
        date_of_birth=date(1990, 5, 17),
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class FakePlanRepo:
    def __init__(self, *plans) -> None:
        self._plans = {p.id: p for p in plans}

    def get(self, plan_id):
        return self._plans.get(plan_id)


class FakeMemberRepo:
    def __init__(self, store: FakeStore, *members) -> None:
        self._store = store
        self._members = {m.id: m for m in members}
        self._next_id = 100

    def get(self, member_id):
        return self._members.get(member_id)

    def get_by_email(self, email):
        for m in self._members.values():
            if m.email and m.email.lower() == email.strip().lower():
                return m
        return None

    def create(self, **values):
        self._next_id += 1
        return _row(self._store, "member", id=self._next_id, **values)


class FakeSubscriptionRepo:
    def __init__(self, store: FakeStore, *, counts=None, active=(), lose_race: bool = False) -> None:
        self._store = store
        # another enrollment of the same member commits between the check and the insert
        self._lose_race = lose_race
        self._counts = dict(counts or {})
        self._active = set(active)
        self._next_id = 200

    def count_for_member(self, member_id):
        return self._counts.get(member_id, 0)

    def exists_active_for_member(self, member_id):
        return member_id in self._active

    def create(self, **values):
        if self._lose_race:
            raise ActiveSubscriptionExistsError(f"Member {values['member_id']} already has an active subscription.")
        self._next_id += 1
        values.setdefault("contract_id", None)
        return _row(self._store, "subscription", id=self._next_id, **values)

    def attach_contract(self, subscription, contract_id):
        subscription.contract_id = contract_id


class FakeContractRepo:
    def __init__(self, store: FakeStore, *, seq_start: int = 1) -> None:
        self._store = store
        self._seq = seq_start - 1
        self._next_id = 300

    def next_sequence_value(self):
        self._seq += 1
        return self._seq

    def create(self, **values):
        self._next_id += 1
        return _row(self._store, "contract", id=self._next_id, **values)


class FakeInvoiceRepo:
    def __init__(self, store: FakeStore, *, fail_on_create: bool = False) -> None:
        self._store = store
        self._fail = fail_on_create
        self._seq = 0
        self._next_id = 400
        self.lines: list = []
        self.payments: list = []

    def next_sequence_value(self):
        self._seq += 1
        return self._seq

    def create(self, **values):
        if self._fail:
            raise RuntimeError("invoice storage unavailable")
        self._next_id += 1
        return _row(self._store, "invoice", id=self._next_id, **values)

    def add_line(self, **values):
        line = _row(self._store, "invoice_line", **values)
        self.lines.append(line)
        return line

    def add_payment(self, **values):
        p = _row(self._store, "invoice_payment", **values)
        self.payments.append(p)
        return p


class FakeVoucherRepo:
    def __init__(self, store: FakeStore, *vouchers, redeemed=(), redeemed_elsewhere: int = 0) -> None:
        self._store = store
        # redemptions committed by other enrollments after the preview read the voucher
        self._elsewhere = redeemed_elsewhere
        self._vouchers = {v.code: v for v in vouchers}
        self._redeemed = set(redeemed)

    def get_by_code(self, code):
        return self._vouchers.get(code.strip().upper())

    def has_redemption(self, *, voucher_id, member_id):
        return (voucher_id, member_id) in self._redeemed

    def redeem(self, voucher, *, member_id, subscription_id, discount_amount):
        voucher.redemption_count += self._elsewhere
        self._elsewhere = 0
        if voucher.max_redemptions is not None and voucher.redemption_count >= voucher.max_redemptions:
            raise VoucherExhaustedError(f"Voucher {voucher.code} has no redemptions left.")
        voucher.redemption_count += 1
        return _row(
            self._store,
            "voucher_redemption",
            voucher_id=voucher.id,
            member_id=member_id,
            subscription_id=subscription_id,
            discount_amount=discount_amount,
        )
