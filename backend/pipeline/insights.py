"""Chart-ready series derived from a scored dataset."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

import pandas as pd

from backend.core.schemas import ScoredTransaction

TREND_DAYS = 10
RISK_BINS = 10


def _frame(transactions: Sequence[ScoredTransaction]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "timestamp": [txn.timestamp for txn in transactions],
            "channel": [txn.channel or "Unknown" for txn in transactions],
            "is_fraud": [txn.is_fraud for txn in transactions],
            "risk_score": [txn.risk_score for txn in transactions],
            "amount": [txn.transaction_amount for txn in transactions],
        }
    )


def fraud_vs_legit(df: pd.DataFrame) -> List[Dict[str, Any]]:
    fraud = int(df["is_fraud"].sum()) if not df.empty else 0
    return [
        {"name": "Legit", "count": len(df) - fraud},
        {"name": "Fraud", "count": fraud},
    ]


def fraud_trend(df: pd.DataFrame, days: int = TREND_DAYS) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    dates = pd.to_datetime(df["timestamp"], errors="coerce", utc=True, format="ISO8601")
    daily = df.assign(date=dates.dt.strftime("%Y-%m-%d")).dropna(subset=["date"])
    grouped = daily.groupby("date")["is_fraud"].agg(["count", "sum"]).sort_index().tail(days)
    return [
        {"date": date, "fraud_percentage": float(row["sum"] / row["count"] * 100) if row["count"] else 0.0}
        for date, row in grouped.iterrows()
    ]


def fraud_by_channel(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    counts = df.groupby("channel", sort=False)["is_fraud"].sum()
    return [{"name": channel, "value": int(value)} for channel, value in counts.items()]


def risk_histogram(df: pd.DataFrame, bins: int = RISK_BINS) -> List[Dict[str, Any]]:
    width = 100 // bins
    counts = [0] * bins
    if not df.empty:
        for score in df.loc[df["is_fraud"] == 1, "risk_score"]:
            counts[min(int(score * bins), bins - 1)] += 1
    return [{"range": f"{i * width}-{(i + 1) * width}%", "count": counts[i]} for i in range(bins)]


def amount_risk_points(df: pd.DataFrame) -> List[Dict[str, float]]:
    if df.empty:
        return []
    fraud = df[(df["is_fraud"] == 1) & (df["amount"] > 0) & (df["risk_score"] > 0)]
    return [
        {"amount": float(row.amount), "risk_percent": float(row.risk_score * 100)}
        for row in fraud.itertuples(index=False)
    ]


def build_insights(transactions: Sequence[ScoredTransaction]) -> Dict[str, Any]:
    df = _frame(transactions)
    return {
        "fraud_vs_legit": fraud_vs_legit(df),
        "fraud_trend": fraud_trend(df),
        "fraud_by_channel": fraud_by_channel(df),
        "risk_histogram": risk_histogram(df),
        "amount_vs_risk": amount_risk_points(df),
    }
