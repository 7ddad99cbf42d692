"""Environment-driven settings for the ingestion job."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

DEFAULT_DATABASE_URL = "sqlite:///inventory.db"


def _get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(key)
    if value is not None:
        value = value.strip()
        if value == "":
            return default
        return value
    return default


def _get_int(key: str, default: int) -> int:
    value = _get_env(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} must be an integer") from exc


def _get_float(key: str, default: float) -> float:
    value = _get_env(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} must be a number") from exc


def _get_decimal(key: str, default: str) -> Decimal:
    value = _get_env(key, default)
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise ValueError(f"Environment variable {key} must be a decimal number") from exc


@dataclass(frozen=True)
class IngestSettings:
    database_url: str
    default_premium_percent: Decimal
    default_tax_percent: Decimal
    checkpoint_flush_every: int
    document_timeout: float
    db_timeout: float


def load_settings() -> IngestSettings:
    return IngestSettings(
        database_url=_get_env("DATABASE_URL", DEFAULT_DATABASE_URL),
        default_premium_percent=_get_decimal("DEFAULT_PREMIUM_PERCENT", "18"),
        default_tax_percent=_get_decimal("DEFAULT_TAX_PERCENT", "8.625"),
        checkpoint_flush_every=max(1, _get_int("CHECKPOINT_FLUSH_EVERY", 10)),
        document_timeout=max(1.0, _get_float("DOCUMENT_TIMEOUT_SECONDS", 120.0)),
        db_timeout=max(1.0, _get_float("DB_TIMEOUT_SECONDS", 30.0)),
    )
