from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/library.db'
    - LIBRARY_TIMEZONE: IANA zone used for all due-date arithmetic. Default 'America/Los_Angeles'
    - ITEMS_SHEET_NAME / CHECKIN_SHEET_NAME / CHECKOUT_SHEET_NAME: sheet names in the store
    - LIBRARY_ORGANIZATION: organization name used in reminder emails
    - MAIL_BACKEND: 'outbox' (default, in-memory) or 'smtp'
    - SMTP_HOST, SMTP_PORT, SMTP_USERNAME, SMTP_PASSWORD, SMTP_SENDER, SMTP_USE_TLS
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - ENABLE_BASIC_AUTH: 'true' to protect trigger endpoints with HTTP Basic Auth (default: false)
    - BASIC_AUTH_USERNAME / BASIC_AUTH_PASSWORD: credentials when ENABLE_BASIC_AUTH=true
    - LOG_LEVEL: logging level name. Default 'INFO'
    - LOG_FORMAT: 'text' (default) or 'json'
    """

    persistence_backend: str
    sqlite_db_path: str
    time_zone: str
    items_sheet_name: str
    checkin_sheet_name: str
    checkout_sheet_name: str
    organization_name: str
    mail_backend: str
    smtp_host: str
    smtp_port: int
    smtp_username: Optional[str]
    smtp_password: Optional[str]
    smtp_sender: str
    smtp_use_tls: bool
    cors_allow_origins: List[str]
    enable_basic_auth: bool
    basic_auth_username: Optional[str]
    basic_auth_password: Optional[str]
    log_level: str
    log_format: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return default


def _parse_choice(value: str, allowed: set, default: str) -> str:
    v = value.strip().lower()
    return v if v in allowed else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    enable_basic_auth = _parse_bool(_get_env("ENABLE_BASIC_AUTH", "false"), False)

    return Settings(
        persistence_backend=_parse_choice(_get_env("PERSISTENCE_BACKEND", "memory"), {"memory", "sqlite"}, "memory"),
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/library.db").strip(),
        time_zone=_get_env("LIBRARY_TIMEZONE", "America/Los_Angeles").strip(),
        items_sheet_name=_get_env("ITEMS_SHEET_NAME", "Items"),
        checkin_sheet_name=_get_env("CHECKIN_SHEET_NAME", "Check In Responses"),
        checkout_sheet_name=_get_env("CHECKOUT_SHEET_NAME", "Check Out Responses"),
        organization_name=_get_env("LIBRARY_ORGANIZATION", "San Diego Saints Choir"),
        mail_backend=_parse_choice(_get_env("MAIL_BACKEND", "outbox"), {"outbox", "smtp"}, "outbox"),
        smtp_host=_get_env("SMTP_HOST", "localhost").strip(),
        smtp_port=_parse_int(_get_env("SMTP_PORT", "587"), 587),
        smtp_username=os.getenv("SMTP_USERNAME") or None,
        smtp_password=os.getenv("SMTP_PASSWORD") or None,
        smtp_sender=_get_env("SMTP_SENDER", "library@localhost").strip(),
        smtp_use_tls=_parse_bool(_get_env("SMTP_USE_TLS", "true"), True),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        enable_basic_auth=enable_basic_auth,
        basic_auth_username=os.getenv("BASIC_AUTH_USERNAME") if enable_basic_auth else None,
        basic_auth_password=os.getenv("BASIC_AUTH_PASSWORD") if enable_basic_auth else None,
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        log_format=_parse_choice(_get_env("LOG_FORMAT", "text"), {"text", "json"}, "text"),
    )
