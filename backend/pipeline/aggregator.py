"""Summary statistics over a scored dataset."""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Optional, Sequence

from backend.core.schemas import DatasetSummary, HighestRiskTransaction, ScoredTransaction

HIGH_RISK = 0.7
MEDIUM_RISK = 0.4


def highest_risk(transactions: Sequence[ScoredTransaction]) -> Optional[ScoredTransaction]:
    """Left-to-right scan; on equal scores the earliest transaction is kept."""
    best: Optional[ScoredTransaction] = None
    for txn in transactions:
        if best is None or txn.risk_score > best.risk_score:
            best = txn
    return best


def summarize(transactions: Sequence[ScoredTransaction]) -> DatasetSummary:
    total = len(transactions)
    fraud_scores = [txn.risk_score for txn in transactions if txn.is_fraud == 1]
    fraud_count = len(fraud_scores)

    top = highest_risk(transactions)
    highest = None
    if top is not None:
        highest = HighestRiskTransaction(id=top.transaction_id, score=top.risk_score, amount=top.transaction_amount)

    return DatasetSummary(
        total_transactions=total,
        fraud_count=fraud_count,
        fraud_percentage=(fraud_count / total * 100) if total else 0.0,
        avg_fraud_risk_score=(sum(fraud_scores) / fraud_count) if fraud_count else 0.0,
        highest_risk_transaction=highest,
    )


def dataset_statistics(transactions: Sequence[ScoredTransaction]) -> Dict[str, Any]:
    """Overview, risk bands and channel mix for the analytics views."""
    total = len(transactions)
    fraud = [txn for txn in transactions if txn.is_fraud == 1]
    total_amount = sum(txn.transaction_amount for txn in transactions)
    avg_risk = sum(txn.risk_score for txn in transactions) / total if total else 0.0
    high = sum(1 for txn in transactions if txn.risk_score > HIGH_RISK)
    medium = sum(1 for txn in transactions if MEDIUM_RISK <= txn.risk_score <= HIGH_RISK)

    return {
        "overview": {
            "total_transactions": total,
            "fraud_detected": len(fraud),
            "legitimate_transactions": total - len(fraud),
            "fraud_rate": round(len(fraud) / total * 100, 2) if total else 0.0,
            "total_amount": round(total_amount, 2),
            "avg_risk_score": round(avg_risk, 4),
            "amount_protected": round(sum(txn.transaction_amount for txn in fraud), 2),
        },
        "risk_distribution": {"high": high, "medium": medium, "low": total - high - medium},
        "channel_distribution": dict(Counter(txn.channel or "Unknown" for txn in transactions)),
    }
