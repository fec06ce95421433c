"""Map free-form CSV rows onto the canonical transaction record.

Column names are matched case-insensitively against a priority list of
aliases per attribute; the first alias holding a non-empty value wins.
Values that are missing fall back to a fixed default, values that fail to
parse as numbers fall back to 0. No row is ever rejected.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional

import pandas as pd

from backend.core.schemas import CanonicalTransaction

RawRow = Mapping[str, Any]

ALIASES: dict[str, tuple[str, ...]] = {
    "transaction_type": ("transaction_type", "txn_type", "type"),
    "timestamp": ("timestamp", "transaction_time", "datetime", "date"),
    "account_balance": ("account_balance", "amount", "transaction_amount"),
    "device_type": ("device_type", "device"),
    "location": ("location", "country", "city"),
    "merchant_category": ("merchant_category", "category"),
    "ip_address_flag": ("ip_address_flag", "ip_flag"),
    "previous_fraud_flag": ("previous_fraudulent_activity", "previous_fraud_flag", "prior_fraud"),
    "daily_transaction_count": ("daily_transaction_count", "daily_txn_count"),
    "avg_transaction_amount_7d": ("avg_transaction_amount_7d", "avg_amount_7d"),
    "failed_transaction_count_7d": ("failed_transaction_count_7d", "failed_txn_count_7d"),
    "card_type": ("card_type",),
    "card_age_days": ("card_age", "card_age_days"),
    "transaction_distance": ("transaction_distance", "distance"),
    "authentication_method": ("authentication_method", "auth_method"),
    "declared_risk_score": ("risk_score", "declared_risk_score"),
    "is_weekend": ("is_weekend", "weekend"),
    "transaction_id": ("transaction_id", "txn_id", "tx_id"),
    "customer_id": ("customer_id", "user_id", "account_id"),
}

STRING_DEFAULTS = {
    "transaction_type": "Online",
    "device_type": "Mobile",
    "location": "Unknown",
    "merchant_category": "Retail",
    "card_type": "Credit",
    "authentication_method": "Basic",
}

FLOAT_FIELDS = ("account_balance", "avg_transaction_amount_7d", "transaction_distance")
INT_FIELDS = {"daily_transaction_count": 1, "failed_transaction_count_7d": 0, "card_age_days": 365}
FLAG_FIELDS = ("ip_address_flag", "previous_fraud_flag")

_TRUE_TOKENS = {"1", "true", "yes", "y"}


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _lowered(row: RawRow) -> dict[str, Any]:
    lowered: dict[str, Any] = {}
    for key, value in row.items():
        name = str(key).strip().lower()
        # keep the first spelling when a file repeats a header in another case
        if name not in lowered or _is_blank(lowered[name]):
            lowered[name] = value
    return lowered


def resolve(row: Mapping[str, Any], field: str) -> Optional[Any]:
    """Return the first non-empty value among the aliases of ``field``.

    ``row`` must already have lower-cased keys.
    """
    for alias in ALIASES[field]:
        value = row.get(alias)
        if not _is_blank(value):
            return value
    return None


def to_float(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def to_int(value: Any) -> int:
    return int(to_float(value))


def to_flag(value: Any) -> int:
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _TRUE_TOKENS:
            return 1
        return 1 if to_float(token) > 0 else 0
    return 1 if to_float(value) > 0 else 0


def to_weekend(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        token = value.strip().lower()
        return token == "true" or token == "1"
    return False


def to_timestamp(value: Any, now: datetime) -> str:
    if not _is_blank(value):
        parsed = pd.to_datetime(value, errors="coerce", utc=True)
        if not pd.isna(parsed):
            return parsed.isoformat()
    return now.isoformat()


def normalize_row(row: RawRow, now: Optional[datetime] = None) -> CanonicalTransaction:
    now = now or datetime.now(timezone.utc)
    values = _lowered(row)
    fields: dict[str, Any] = {}

    for name, default in STRING_DEFAULTS.items():
        raw = resolve(values, name)
        fields[name] = str(raw).strip() if raw is not None else default

    for name in FLOAT_FIELDS:
        raw = resolve(values, name)
        fields[name] = max(0.0, to_float(raw)) if raw is not None else 0.0

    for name, default in INT_FIELDS.items():
        raw = resolve(values, name)
        fields[name] = max(0, to_int(raw)) if raw is not None else default

    for name in FLAG_FIELDS:
        raw = resolve(values, name)
        fields[name] = to_flag(raw) if raw is not None else 0

    raw_risk = resolve(values, "declared_risk_score")
    fields["declared_risk_score"] = to_float(raw_risk) if raw_risk is not None else 0.0
    fields["is_weekend"] = to_weekend(resolve(values, "is_weekend"))
    fields["timestamp"] = to_timestamp(resolve(values, "timestamp"), now)

    for name in ("transaction_id", "customer_id"):
        raw = resolve(values, name)
        fields[name] = str(raw).strip() if raw is not None else None

    return CanonicalTransaction(**fields)


def normalize_rows(rows: Iterable[RawRow], now: Optional[datetime] = None) -> list[CanonicalTransaction]:
    now = now or datetime.now(timezone.utc)
    return [normalize_row(row, now=now) for row in rows]
