"""Repository for single-transaction predictions (newest first, capped)."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from backend.core import config
from backend.core.schemas import HistoryRecord, Prediction

logger = logging.getLogger("fraudshield.history")


def demo_records(now: Optional[datetime] = None) -> List[HistoryRecord]:
    now = now or datetime.now(timezone.utc)
    rows = [
        ("TXN001", "CUST001", 2500.00, "Online", True, Prediction.LEGIT, 0.25, 0.89),
        ("TXN002", "CUST002", 15000.00, "ATM", False, Prediction.FRAUD, 0.85, 0.92),
        ("TXN003", "CUST003", 750.50, "POS", True, Prediction.LEGIT, 0.15, 0.87),
        ("TXN004", "CUST004", 8500.00, "Mobile", False, Prediction.FRAUD, 0.78, 0.85),
        ("TXN005", "CUST005", 1200.00, "Online", True, Prediction.LEGIT, 0.32, 0.79),
    ]
    return [
        HistoryRecord(
            id=tx_id,
            customer_id=customer,
            transaction_amount=amount,
            channel=channel,
            kyc_verified=kyc,
            timestamp=(now - timedelta(hours=hours)).isoformat(),
            prediction=prediction,
            risk_score=risk,
            confidence=confidence,
        )
        for hours, (tx_id, customer, amount, channel, kyc, prediction, risk, confidence) in enumerate(rows, start=1)
    ]


class TransactionHistoryRepository:
    def __init__(self, limit: int = 100) -> None:
        self.limit = limit

    def append(self, record: HistoryRecord) -> None:
        raise NotImplementedError

    def list(self) -> List[HistoryRecord]:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class InMemoryHistoryRepository(TransactionHistoryRepository):
    def __init__(self, limit: int = 100, seed: Optional[List[HistoryRecord]] = None) -> None:
        super().__init__(limit)
        self._records: List[HistoryRecord] = list(seed or [])[:limit]

    def append(self, record: HistoryRecord) -> None:
        self._records = [record, *self._records][: self.limit]

    def list(self) -> List[HistoryRecord]:
        return list(self._records)

    def clear(self) -> None:
        self._records = []


class JsonFileHistoryRepository(TransactionHistoryRepository):
    """Stores the history as a JSON array; writes go through a temp file."""

    def __init__(self, path: Path, limit: int = 100, seed: Optional[List[HistoryRecord]] = None) -> None:
        super().__init__(limit)
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if seed and not self.path.exists():
            self._write(seed[:limit])

    def _read(self) -> List[HistoryRecord]:
        if not self.path.exists():
            return []
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            return [HistoryRecord.model_validate(item) for item in payload]
        except (ValueError, TypeError, ValidationError) as exc:
            logger.warning("history file %s unreadable, starting empty: %s", self.path, exc)
            return []

    def _write(self, records: List[HistoryRecord]) -> None:
        tmp_path = self.path.with_suffix(f"{self.path.suffix}.tmp")
        tmp_path.write_text(
            json.dumps([record.model_dump(mode="json") for record in records], indent=2),
            encoding="utf-8",
        )
        tmp_path.replace(self.path)

    def append(self, record: HistoryRecord) -> None:
        self._write([record, *self._read()][: self.limit])

    def list(self) -> List[HistoryRecord]:
        return self._read()

    def clear(self) -> None:
        self._write([])


def build_history_repository() -> TransactionHistoryRepository:
    seed = demo_records() if config.SEED_DEMO_HISTORY else None
    if config.HISTORY_PATH:
        return JsonFileHistoryRepository(Path(config.HISTORY_PATH), limit=config.HISTORY_LIMIT, seed=seed)
    return InMemoryHistoryRepository(limit=config.HISTORY_LIMIT, seed=seed)
