"""enrollment foundation: plans, members, subscriptions, contracts, invoices, vouchers, audit

Revision ID: 4c1e7a9d2b10
Revises:
Create Date: 2026-10-18 10:12:44.118302

"""
from typing import Sequence, Union
from sqlalchemy.dialects import postgresql
from alembic import op
import sqlalchemy as sa

from club.app.config import get_settings


# revision identifiers, used by Alembic.
revision: str = '4c1e7a9d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# same schema as the models and the alembic version table
SCHEMA = get_settings().db_schema


def _enum(name: str, *values: str) -> postgresql.ENUM:
    return postgresql.ENUM(*values, name=name, schema=SCHEMA, create_type=False)


billing_period = _enum("billing_period", "daily", "weekly", "biweekly", "monthly", "quarterly", "semi_annual", "yearly", "one_time")
contract_type = _enum("contract_type", "month_to_month", "fixed_term")
contract_term = _enum("contract_term", "monthly", "quarterly", "semi_annual", "annual")
termination_fee_type = _enum("termination_fee_type", "none", "flat", "remaining_months", "percentage")
gender = _enum("gender", "male", "female")
member_status = _enum("member_status", "pending", "active", "suspended", "archived")
subscription_status = _enum("subscription_status", "pending_payment", "active", "frozen", "cancelled", "expired")
discount_type = _enum("discount_type", "flat", "percentage")
contract_status = _enum("contract_status", "pending_signature", "active", "in_notice_period", "cancelled", "voided", "expired")
invoice_status = _enum("invoice_status", "draft", "issued", "paid", "partially_paid", "overdue", "void")
invoice_line_type = _enum("invoice_line_type", "membership_fee", "admin_fee", "join_fee", "discount")
payment_method = _enum("payment_method", "cash", "card", "bank_transfer", "online")
audit_severity = _enum("audit_severity", "info", "warning", "critical")

ALL_ENUMS = (
    billing_period,
    contract_type,
    contract_term,
    termination_fee_type,
    gender,
    member_status,
    subscription_status,
    discount_type,
    contract_status,
    invoice_status,
    invoice_line_type,
    payment_method,
    audit_severity,
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def upgrade() -> None:
    op.execute(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA}")

    bind = op.get_bind()
    for e in ALL_ENUMS:
        e.create(bind, checkfirst=True)

    # numbering: CLB-YYYY-NNNNNN / INV-YYYY-NNNNNN
    op.execute(f"CREATE SEQUENCE IF NOT EXISTS {SCHEMA}.contract_no_seq START 1")
    op.execute(f"CREATE SEQUENCE IF NOT EXISTS {SCHEMA}.invoice_no_seq START 1")

    # ---------------------------
    # membership_plans (pricing + contract policy)
    # ---------------------------
    op.create_table(
        "membership_plans",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("available_from", sa.Date(), nullable=True),
        sa.Column("available_until", sa.Date(), nullable=True),
        sa.Column("minimum_age", sa.Integer(), nullable=True),
        sa.Column("maximum_age", sa.Integer(), nullable=True),

        sa.Column("currency", sa.String(length=3), nullable=False, server_default=sa.text("'SAR'")),
        sa.Column("membership_fee_amount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("membership_fee_tax_rate", sa.Numeric(5, 2), nullable=False, server_default=sa.text("15.00")),
        sa.Column("admin_fee_amount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("admin_fee_tax_rate", sa.Numeric(5, 2), nullable=False, server_default=sa.text("15.00")),
        sa.Column("admin_fee_waived", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("join_fee_amount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("join_fee_tax_rate", sa.Numeric(5, 2), nullable=False, server_default=sa.text("15.00")),
        sa.Column("billing_period", billing_period, nullable=False, server_default="monthly"),
        sa.Column("duration_days", sa.Integer(), nullable=True),

        sa.Column("contract_type", contract_type, nullable=False, server_default="month_to_month"),
        sa.Column("supported_terms", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'[\"monthly\"]'::jsonb")),
        sa.Column("commitment_months", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notice_period_days", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("cooling_off_days", sa.Integer(), nullable=False, server_default="7"),
        sa.Column("early_termination_fee_type", termination_fee_type, nullable=False, server_default="none"),
        sa.Column("early_termination_fee_value", sa.Numeric(10, 2), nullable=True),
        *_timestamps(),

        sa.UniqueConstraint("name", name="uq_membership_plans_name"),
        sa.CheckConstraint("membership_fee_amount >= 0 AND admin_fee_amount >= 0 AND join_fee_amount >= 0", name="ck_membership_plans_fees_non_negative"),
        sa.CheckConstraint(
            "membership_fee_tax_rate BETWEEN 0 AND 100 AND admin_fee_tax_rate BETWEEN 0 AND 100 AND join_fee_tax_rate BETWEEN 0 AND 100",
            name="ck_membership_plans_tax_rates",
        ),
        schema=SCHEMA,
    )
    op.create_index("ix_membership_plans_is_active", "membership_plans", ["is_active"], schema=SCHEMA)

    # ---------------------------
    # members
    # ---------------------------
    op.create_table(
        "members",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("first_name", sa.String(length=80), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", gender, nullable=True),
        sa.Column("national_id", sa.String(length=32), nullable=True),
        sa.Column("status", member_status, nullable=False, server_default="active"),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_members_email"),
        schema=SCHEMA,
    )

    # ---------------------------
    # membership_contracts (terms locked at enrollment)
    # ---------------------------
    op.create_table(
        "membership_contracts",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("contract_no", sa.String(length=64), nullable=False),
        sa.Column("member_id", sa.BigInteger(), sa.ForeignKey(f"{SCHEMA}.members.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("plan_id", sa.BigInteger(), sa.ForeignKey(f"{SCHEMA}.membership_plans.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("status", contract_status, nullable=False, server_default="pending_signature"),
        sa.Column("contract_type", contract_type, nullable=False),
        sa.Column("contract_term", contract_term, nullable=False),
        sa.Column("commitment_months", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notice_period_days", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("commitment_end_date", sa.Date(), nullable=True),
        sa.Column("cooling_off_days", sa.Integer(), nullable=False, server_default="7"),
        sa.Column("cooling_off_end_date", sa.Date(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default=sa.text("'SAR'")),
        sa.Column("locked_membership_fee_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("locked_membership_fee_tax_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("locked_admin_fee_amount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("locked_admin_fee_tax_rate", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("locked_join_fee_amount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("locked_join_fee_tax_rate", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("early_termination_fee_type", termination_fee_type, nullable=False, server_default="none"),
        sa.Column("early_termination_fee_value", sa.Numeric(10, 2), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("contract_no", name="uq_membership_contracts_contract_no"),
        schema=SCHEMA,
    )
    op.create_index("ix_membership_contracts_member_id", "membership_contracts", ["member_id"], schema=SCHEMA)

    # ---------------------------
    # subscriptions
    # ---------------------------
    op.create_table(
        "subscriptions",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("member_id", sa.BigInteger(), sa.ForeignKey(f"{SCHEMA}.members.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("plan_id", sa.BigInteger(), sa.ForeignKey(f"{SCHEMA}.membership_plans.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("contract_id", sa.BigInteger(), sa.ForeignKey(f"{SCHEMA}.membership_contracts.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", subscription_status, nullable=False, server_default="pending_payment"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("auto_renew", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default=sa.text("'SAR'")),
        sa.Column("paid_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("discount_type", discount_type, nullable=True),
        sa.Column("discount_value", sa.Numeric(10, 2), nullable=True),
        sa.Column("discount_reason", sa.String(length=255), nullable=True),
        sa.Column("voucher_code", sa.String(length=64), nullable=True),
        sa.Column("original_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("final_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("staff_notes", sa.Text(), nullable=True),
        sa.Column("referred_by_member_id", sa.BigInteger(), sa.ForeignKey(f"{SCHEMA}.members.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("end_date >= start_date", name="ck_subscriptions_dates"),
        schema=SCHEMA,
    )
    op.create_index("ix_subscriptions_member_id", "subscriptions", ["member_id"], schema=SCHEMA)
    op.create_index("ix_subscriptions_plan_id", "subscriptions", ["plan_id"], schema=SCHEMA)
    op.create_index("ix_subscriptions_status", "subscriptions", ["status"], schema=SCHEMA)
    # at most one active subscription per member
    op.create_index(
        "uq_subscriptions_one_active_per_member",
        "subscriptions",
        ["member_id"],
        unique=True,
        schema=SCHEMA,
        postgresql_where=sa.text("status = 'active'"),
    )

    # ---------------------------
    # invoices + lines + payments
    # ---------------------------
    op.create_table(
        "invoices",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("invoice_no", sa.String(length=64), nullable=False),
        sa.Column("member_id", sa.BigInteger(), sa.ForeignKey(f"{SCHEMA}.members.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("subscription_id", sa.BigInteger(), sa.ForeignKey(f"{SCHEMA}.subscriptions.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", invoice_status, nullable=False, server_default="draft"),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default=sa.text("'SAR'")),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("vat_total", sa.Numeric(12, 2), nullable=False),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("grand_total", sa.Numeric(12, 2), nullable=False),
        sa.Column("paid_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("invoice_no", name="uq_invoices_invoice_no"),
        sa.CheckConstraint("grand_total >= 0", name="ck_invoices_grand_total_non_negative"),
        schema=SCHEMA,
    )
    op.create_index("ix_invoices_member_id", "invoices", ["member_id"], schema=SCHEMA)
    op.create_index("ix_invoices_subscription_id", "invoices", ["subscription_id"], schema=SCHEMA)
    op.create_index("ix_invoices_status", "invoices", ["status"], schema=SCHEMA)

    op.create_table(
        "invoice_lines",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("invoice_id", sa.BigInteger(), sa.ForeignKey(f"{SCHEMA}.invoices.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("line_type", invoice_line_type, nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("amount_net", sa.Numeric(12, 2), nullable=False),
        sa.Column("tax_rate", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("amount_gross", sa.Numeric(12, 2), nullable=False),
        sa.UniqueConstraint("invoice_id", "position", name="uq_invoice_lines_invoice_position"),
        schema=SCHEMA,
    )
    op.create_index("ix_invoice_lines_invoice_id", "invoice_lines", ["invoice_id"], schema=SCHEMA)

    op.create_table(
        "invoice_payments",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("invoice_id", sa.BigInteger(), sa.ForeignKey(f"{SCHEMA}.invoices.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("method", payment_method, nullable=False),
        sa.Column("reference", sa.String(length=128), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        schema=SCHEMA,
    )
    op.create_index("ix_invoice_payments_invoice_id", "invoice_payments", ["invoice_id"], schema=SCHEMA)

    # ---------------------------
    # vouchers
    # ---------------------------
    op.create_table(
        "vouchers",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("discount_type", discount_type, nullable=False),
        sa.Column("discount_value", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("valid_from", sa.Date(), nullable=True),
        sa.Column("valid_until", sa.Date(), nullable=True),
        sa.Column("max_redemptions", sa.Integer(), nullable=True),
        sa.Column("redemption_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("plan_id", sa.BigInteger(), sa.ForeignKey(f"{SCHEMA}.membership_plans.id", ondelete="CASCADE"), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("code", name="uq_vouchers_code"),
        sa.CheckConstraint("discount_value >= 0", name="ck_vouchers_discount_value_non_negative"),
        sa.CheckConstraint(
            "max_redemptions IS NULL OR redemption_count <= max_redemptions",
            name="ck_vouchers_redemptions_within_limit",
        ),
        schema=SCHEMA,
    )

    op.create_table(
        "voucher_redemptions",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("voucher_id", sa.BigInteger(), sa.ForeignKey(f"{SCHEMA}.vouchers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("member_id", sa.BigInteger(), sa.ForeignKey(f"{SCHEMA}.members.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("subscription_id", sa.BigInteger(), sa.ForeignKey(f"{SCHEMA}.subscriptions.id", ondelete="SET NULL"), nullable=True),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("voucher_id", "member_id", name="uq_voucher_redemptions_voucher_member"),
        schema=SCHEMA,
    )
    op.create_index("ix_voucher_redemptions_voucher_id", "voucher_redemptions", ["voucher_id"], schema=SCHEMA)

    # ---------------------------
    # audit_log
    # ---------------------------
    op.create_table(
        "audit_log",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("severity", audit_severity, nullable=False, server_default="info"),
        sa.Column("action", sa.String(length=120), nullable=False),
        sa.Column("entity_type", sa.String(length=80), nullable=True),
        sa.Column("entity_id", sa.String(length=80), nullable=True),
        sa.Column("request_id", sa.String(length=80), nullable=True),
        sa.Column("ip", postgresql.INET(), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("before", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("after", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("meta", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        schema=SCHEMA,
    )
    op.create_index("ix_audit_log_occurred_at", "audit_log", ["occurred_at"], schema=SCHEMA)
    op.create_index("ix_audit_log_entity", "audit_log", ["entity_type", "entity_id"], schema=SCHEMA)


def downgrade() -> None:
    for table in (
        "audit_log",
        "voucher_redemptions",
        "vouchers",
        "invoice_payments",
        "invoice_lines",
        "invoices",
        "subscriptions",
        "membership_contracts",
        "members",
        "membership_plans",
    ):
        op.drop_table(table, schema=SCHEMA)

    op.execute(f"DROP SEQUENCE IF EXISTS {SCHEMA}.invoice_no_seq")
    op.execute(f"DROP SEQUENCE IF EXISTS {SCHEMA}.contract_no_seq")

    bind = op.get_bind()
    for e in reversed(ALL_ENUMS):
        e.drop(bind, checkfirst=True)
