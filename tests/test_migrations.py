import importlib.util
import unittest
from pathlib import Path

from club.app.config import get_settings
from club.db.models.base import Base


MIGRATION = Path(__file__).resolve().parents[1] / "alembic" / "versions" / "4c1e7a9d2b10_enrollment_foundation.py"


def _load_migration():
    spec = importlib.util.spec_from_file_location("enrollment_foundation", MIGRATION)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class FoundationMigrationTests(unittest.TestCase):
    def test_schema_follows_settings(self):
        m = _load_migration()
        self.assertEqual(m.SCHEMA, get_settings().db_schema)
        self.assertEqual(m.SCHEMA, Base.metadata.schema)

    def test_voucher_limit_is_enforced_by_the_database(self):
        self.assertIn("ck_vouchers_redemptions_within_limit", MIGRATION.read_text(encoding="utf-8"))


if __name__ == "__main__":
    unittest.main()
