from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List
from urllib.parse import quote_plus


def _parse_simple_env(text: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        k, v = line.split("=", 1)
        out[k.strip()] = v.strip()
    return out


def _read_env_file(path: Path) -> Dict[str, str]:
    if not path.exists():
        raise FileNotFoundError(f"Env file not found: {path}")
    return _parse_simple_env(path.read_text(encoding="utf-8"))


def load_env_stack(project_root: Path | None = None) -> List[Path]:
    if project_root is None:
        project_root = Path(__file__).resolve().parents[2]

    stack_path = project_root / "env" / "stack.env"
    stack = _read_env_file(stack_path)

    env_files = stack.get("ENV_FILES", "").strip()
    if not env_files:
        raise RuntimeError("env/stack.env must define ENV_FILES=...")

    loaded: List[Path] = []
    merged: Dict[str, str] = {}

    for rel in [x.strip() for x in env_files.split(",") if x.strip()]:
        p = (project_root / rel).resolve()
        merged.update(_read_env_file(p))
        loaded.append(p)

    # files only provide defaults, the real environment wins
    for k, v in merged.items():
        os.environ.setdefault(k, v)

    return loaded


@dataclass(frozen=True)
class Settings:
    # --- ENV ---
    env_name: str
    log_level: str
    log_format: str

    # --- DB ---
    db_host: str
    db_port: int
    db_name: str
    db_schema: str
    db_user: str
    db_password: str

    # --- BILLING ---
    billing_currency: str
    billing_default_tax_rate: Decimal
    contract_number_prefix: str
    invoice_number_prefix: str

    # --- SMTP / MAIL ---
    smtp_enabled: bool
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_pass: str
    smtp_from: str
    smtp_starttls: bool

    security_allowlist_ips: str = ""

    @property
    def database_url(self) -> str:
        pwd = quote_plus(self.db_password)
        return (
            f"postgresql+psycopg://"
            f"{self.db_user}:{pwd}@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def db_dsn(self) -> str:
        return self.database_url


_settings_cache: dict[str, Settings] = {}


def _is_truthy(v: str) -> bool:
    return v.strip().lower() in ("1", "true", "yes", "on")


def get_settings(project_root: Path | None = None) -> Settings:
    global _settings_cache

    cache_key = os.getenv("DB_ROLE", "").strip().lower() or "default"
    if cache_key in _settings_cache:
        return _settings_cache[cache_key]

    loaded = load_env_stack(project_root=project_root)

    def req(name: str) -> str:
        v = os.getenv(name, "").strip()
        if not v:
            raise RuntimeError(
                f"Missing required env var: {name} "
                f"(loaded: {[str(p) for p in loaded]})"
            )
        return v

    # --- SMTP VALIDATION (only when enabled) ---
    smtp_enabled = _is_truthy(os.getenv("SMTP_ENABLED", "0"))
    if smtp_enabled:
        req("SMTP_HOST")
        req("SMTP_FROM")
        if os.getenv("SMTP_USER", "").strip():
            req("SMTP_PASS")

    # --- DB ROLE RESOLUTION ---
    db_role = os.getenv("DB_ROLE", "").strip().lower()

    user_admin = os.getenv("DB_USER_ADMIN", "club_admin").strip()
    user_writer = os.getenv("DB_USER_WRITER", "club_writer").strip()
    user_reader = os.getenv("DB_USER_READER", "club_reader").strip()

    if db_role:
        if db_role == "admin":
            db_user = user_admin
            db_password = req("DB_PASSWORD_ADMIN")
        elif db_role == "writer":
            db_user = user_writer
            db_password = req("DB_PASSWORD_WRITER")
        elif db_role == "reader":
            db_user = user_reader
            db_password = req("DB_PASSWORD_READER")
        else:
            raise RuntimeError(f"Unknown DB_ROLE={db_role}. Expected admin/writer/reader.")
    else:
        db_user = req("DB_USER")
        db_password = req("DB_PASSWORD")

    smtp_port_raw = os.getenv("SMTP_PORT", "").strip() or "587"
    try:
        smtp_port = int(smtp_port_raw)
    except ValueError as e:
        raise RuntimeError(f"Invalid SMTP_PORT={smtp_port_raw!r} (must be int)") from e

    tax_rate_raw = os.getenv("BILLING_DEFAULT_TAX_RATE", "").strip() or "15.00"
    try:
        default_tax_rate = Decimal(tax_rate_raw)
    except InvalidOperation as e:
        raise RuntimeError(f"Invalid BILLING_DEFAULT_TAX_RATE={tax_rate_raw!r} (must be decimal)") from e
    if not (Decimal("0") <= default_tax_rate <= Decimal("100")):
        raise RuntimeError(f"BILLING_DEFAULT_TAX_RATE={tax_rate_raw!r} must be within 0..100")

    log_format = os.getenv("LOG_FORMAT", "console").strip().lower() or "console"
    if log_format not in ("console", "json"):
        raise RuntimeError(f"Invalid LOG_FORMAT={log_format!r}. Expected console/json.")

    s = Settings(
        # --- ENV ---
        env_name=os.getenv("ENV_NAME", "dev"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_format=log_format,

        # --- DB ---
        db_host=req("DB_HOST"),
        db_port=int(req("DB_PORT")),
        db_name=req("DB_NAME"),
        db_schema=req("DB_SCHEMA"),
        db_user=db_user,
        db_password=db_password,

        # --- BILLING ---
        billing_currency=(os.getenv("BILLING_CURRENCY", "").strip() or "SAR").upper(),
        billing_default_tax_rate=default_tax_rate,
        contract_number_prefix=os.getenv("CONTRACT_NUMBER_PREFIX", "").strip() or "CLB",
        invoice_number_prefix=os.getenv("INVOICE_NUMBER_PREFIX", "").strip() or "INV",

        # --- SMTP / MAIL ---
        smtp_enabled=smtp_enabled,
        smtp_host=os.getenv("SMTP_HOST", "").strip(),
        smtp_port=smtp_port,
        smtp_user=os.getenv("SMTP_USER", "").strip(),
        smtp_pass=os.getenv("SMTP_PASS", "").strip(),
        smtp_from=os.getenv("SMTP_FROM", "").strip(),
        smtp_starttls=_is_truthy(os.getenv("SMTP_STARTTLS", "1")),

        security_allowlist_ips=os.getenv("SECURITY_ALLOWLIST_IPS", "").strip(),
    )

    _settings_cache[cache_key] = s
    return s
