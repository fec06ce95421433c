"""CSV export of the currently filtered and sorted table views."""

from __future__ import annotations

import csv
import io
from typing import Iterable, List

from backend.core.schemas import HistoryRecord, ScoredTransaction

SCORED_COLUMNS = ["Transaction ID", "Customer ID", "Amount", "Channel", "Timestamp", "Risk Score"]
HISTORY_COLUMNS = [
    "ID",
    "Customer ID",
    "Amount",
    "Channel",
    "KYC",
    "Timestamp",
    "Prediction",
    "Risk Score",
    "Confidence",
]


def risk_percent(score: float) -> str:
    return f"{score * 100:.2f}%" if score else "0%"


def _render(header: List[str], rows: Iterable[List[object]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def export_scored_csv(transactions: Iterable[ScoredTransaction]) -> str:
    return _render(
        SCORED_COLUMNS,
        (
            [
                txn.transaction_id or "N/A",
                txn.customer_id or "N/A",
                txn.transaction_amount,
                txn.channel or "Unknown",
                txn.timestamp or "N/A",
                risk_percent(txn.risk_score),
            ]
            for txn in transactions
        ),
    )


def export_history_csv(records: Iterable[HistoryRecord]) -> str:
    return _render(
        HISTORY_COLUMNS,
        (
            [
                record.id,
                record.customer_id,
                f"{record.transaction_amount:.2f}",
                record.channel,
                "yes" if record.kyc_verified else "no",
                record.timestamp,
                record.prediction.value,
                round(record.risk_score * 100),
                round(record.confidence * 100),
            ]
            for record in records
        ),
    )
