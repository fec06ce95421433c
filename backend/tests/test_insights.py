from datetime import datetime, timezone

from backend.pipeline.insights import build_insights, fraud_trend, _frame
from backend.pipeline.normalizer import normalize_rows
from conftest import scored


def test_trend_keeps_rows_with_sub_second_timestamps():
    txns = [
        scored("a", 0.1, timestamp="2024-01-15T10:00:00+00:00"),
        scored("b", 0.9, fraud=1, timestamp="2024-01-17T09:30:15.123456+00:00"),
        scored("c", 0.2, timestamp="2024-01-16T10:00:00+00:00"),
    ]

    trend = fraud_trend(_frame(txns))

    assert trend == [
        {"date": "2024-01-15", "fraud_percentage": 0.0},
        {"date": "2024-01-16", "fraud_percentage": 0.0},
        {"date": "2024-01-17", "fraud_percentage": 100.0},
    ]


def test_trend_counts_rows_that_fell_back_to_upload_time():
    now = datetime(2024, 1, 17, 9, 30, 15, 123456, tzinfo=timezone.utc)
    rows = normalize_rows(
        [
            {"transaction_id": "a", "timestamp": "2024-01-15 10:00:00"},
            {"transaction_id": "b"},
            {"transaction_id": "c", "timestamp": "2024-01-16 10:00:00"},
        ],
        now=now,
    )
    flagged = {"b"}
    txns = [
        scored(
            txn.transaction_id,
            0.9 if txn.transaction_id in flagged else 0.1,
            fraud=1 if txn.transaction_id in flagged else 0,
            timestamp=txn.timestamp,
        )
        for txn in rows
    ]

    trend = build_insights(txns)["fraud_trend"]

    assert [point["date"] for point in trend] == ["2024-01-15", "2024-01-16", "2024-01-17"]
    assert trend[-1]["fraud_percentage"] == 100.0


def test_empty_dataset_insights():
    insights = build_insights([])

    assert insights["fraud_vs_legit"] == [{"name": "Legit", "count": 0}, {"name": "Fraud", "count": 0}]
    assert insights["fraud_trend"] == []
    assert sum(bucket["count"] for bucket in insights["risk_histogram"]) == 0
