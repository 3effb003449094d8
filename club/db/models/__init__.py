# Import models so that SQLAlchemy knows them when needed (e.g., metadata, migrations autogenerate).
# Keep this file lightweight: only imports.

from club.db.models.audit import AuditLog  # noqa: F401
from club.db.models.contracts import MembershipContract  # noqa: F401
from club.db.models.invoices import Invoice, InvoiceLine, InvoicePayment  # noqa: F401
from club.db.models.members import Member  # noqa: F401
from club.db.models.plans import MembershipPlan  # noqa: F401
from club.db.models.subscriptions import Subscription  # noqa: F401
from club.db.models.vouchers import Voucher, VoucherRedemption  # noqa: F401
