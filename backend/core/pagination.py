"""Search, filter, sort and pagination helpers for table endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Iterable, List, Sequence, TypeVar

import pandas as pd
from fastapi import Query

from backend.core import config
from backend.core.schemas import HistoryRecord, Page, PaginationParams, Prediction, ScoredTransaction


T = TypeVar("T")


@dataclass(frozen=True)
class TableQuery:
    search: str = ""
    status: str = "all"
    sort_by: str = "timestamp"
    sort_order: str = "desc"


@dataclass(frozen=True)
class TableSpec(Generic[T]):
    search_fields: Callable[[T], Iterable[str]]
    is_fraud: Callable[[T], bool]
    sort_keys: Dict[str, Callable[[T], Any]]


def _timestamp_key(value: str) -> float:
    parsed = pd.to_datetime(value, errors="coerce", utc=True)
    return float("-inf") if pd.isna(parsed) else parsed.timestamp()


SCORED_TABLE: TableSpec[ScoredTransaction] = TableSpec(
    search_fields=lambda txn: (txn.transaction_id, txn.customer_id, txn.channel),
    is_fraud=lambda txn: txn.is_fraud == 1,
    sort_keys={
        "timestamp": lambda txn: _timestamp_key(txn.timestamp),
        "amount": lambda txn: txn.transaction_amount,
        "risk": lambda txn: txn.risk_score,
        "customer_id": lambda txn: txn.customer_id,
        "transaction_id": lambda txn: txn.transaction_id,
    },
)

HISTORY_TABLE: TableSpec[HistoryRecord] = TableSpec(
    search_fields=lambda record: (record.id, record.customer_id, record.channel),
    is_fraud=lambda record: record.prediction == Prediction.FRAUD,
    sort_keys={
        "timestamp": lambda record: _timestamp_key(record.timestamp),
        "amount": lambda record: record.transaction_amount,
        "risk": lambda record: record.risk_score,
    },
)


def pagination_params(
    page: int = Query(1, ge=1),
    page_size: int = Query(config.TABLE_PAGE_SIZE, ge=1, le=500),
) -> PaginationParams:
    return PaginationParams(page=page, page_size=page_size)


def table_params(
    search: str = Query("", max_length=200),
    status: str = Query("all", pattern="^(all|fraud|legit)$"),
    sort_by: str = Query("timestamp"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
) -> TableQuery:
    return TableQuery(search=search, status=status, sort_by=sort_by, sort_order=sort_order)


def filter_and_sort(items: Sequence[T], query: TableQuery, spec: TableSpec[T]) -> List[T]:
    rows = list(items)

    needle = query.search.strip().lower()
    if needle:
        rows = [row for row in rows if any(needle in str(value).lower() for value in spec.search_fields(row))]

    if query.status == "fraud":
        rows = [row for row in rows if spec.is_fraud(row)]
    elif query.status == "legit":
        rows = [row for row in rows if not spec.is_fraud(row)]

    key = spec.sort_keys.get(query.sort_by)
    if key is None:
        raise ValueError(f"Unsupported sort field: {query.sort_by}")
    rows.sort(key=key, reverse=query.sort_order == "desc")
    return rows


def paginate_list(items: Iterable[T], params: PaginationParams) -> Page[T]:
    items_list: List[T] = list(items)
    total = len(items_list)
    start = (params.page - 1) * params.page_size
    end = start + params.page_size
    return Page(page=params.page, page_size=params.page_size, total=total, items=items_list[start:end])
