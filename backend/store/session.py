"""In-memory session holding the most recent bulk upload."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from backend.core.schemas import DatasetOut, DatasetSummary, ModelInfo, ScoredTransaction


class DatasetSession:
    """Current dataset, its summary and model info.

    ``update_dataset`` is the only way to replace the contents; readers get
    tuples so they cannot mutate the stored list.
    """

    def __init__(self) -> None:
        self._transactions: tuple[ScoredTransaction, ...] = ()
        self._summary: Optional[DatasetSummary] = None
        self._model_info: Optional[ModelInfo] = None
        self._uploaded_at: Optional[datetime] = None

    @property
    def transactions(self) -> tuple[ScoredTransaction, ...]:
        return self._transactions

    @property
    def summary(self) -> Optional[DatasetSummary]:
        return self._summary

    @property
    def model_info(self) -> Optional[ModelInfo]:
        return self._model_info

    @property
    def loaded(self) -> bool:
        return self._summary is not None

    def update_dataset(
        self,
        transactions: Sequence[ScoredTransaction],
        summary: DatasetSummary,
        model_info: Optional[ModelInfo] = None,
    ) -> None:
        self._transactions = tuple(transactions)
        self._summary = summary
        if model_info is not None:
            self._model_info = model_info
        self._uploaded_at = datetime.now(timezone.utc)

    def clear(self) -> None:
        self._transactions = ()
        self._summary = None
        self._model_info = None
        self._uploaded_at = None

    def fraud_transactions(self) -> List[ScoredTransaction]:
        return [txn for txn in self._transactions if txn.is_fraud == 1]

    def describe(self) -> DatasetOut:
        return DatasetOut(
            loaded=self.loaded,
            row_count=len(self._transactions),
            summary=self._summary,
            model_info=self._model_info,
            uploaded_at=self._uploaded_at.isoformat() if self._uploaded_at else None,
        )
