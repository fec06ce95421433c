"""Bulk upload pipeline: normalize, batch, score sequentially, aggregate.

Batches are scored strictly one after another; batch N+1 is only sent once
batch N has come back. The first failing batch aborts the whole upload and
nothing scored so far is returned.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from prometheus_client import Counter

from backend.core import config
from backend.core.errors import BatchFailure, ScoringError
from backend.core.schemas import BulkResult, CanonicalTransaction, ModelInfo, ScoredTransaction
from backend.pipeline.aggregator import summarize
from backend.pipeline.batcher import make_batches
from backend.pipeline.csv_reader import read_csv_rows
from backend.pipeline.normalizer import normalize_rows
from backend.pipeline.scoring import ScoringClient

logger = logging.getLogger("fraudshield.pipeline")

UPLOADS_TOTAL = Counter("fraudshield_bulk_uploads_total", "Bulk uploads by outcome", ["outcome"])
BATCHES_TOTAL = Counter("fraudshield_scoring_batches_total", "Scoring batches by outcome", ["outcome"])

ProgressCallback = Callable[[int, int], None]


class BulkUploadPipeline:
    def __init__(self, client: ScoringClient, batch_size: Optional[int] = None) -> None:
        self.client = client
        self.batch_size = batch_size or config.BATCH_SIZE

    async def run_csv(self, text: str, on_progress: Optional[ProgressCallback] = None) -> BulkResult:
        rows = read_csv_rows(text)
        return await self.run_rows(rows, on_progress=on_progress)

    async def run_rows(
        self,
        rows: Sequence[Dict[str, Any]],
        on_progress: Optional[ProgressCallback] = None,
    ) -> BulkResult:
        started = time.perf_counter()
        transactions = normalize_rows(rows)
        batches = make_batches(transactions, self.batch_size)
        logger.info(
            json.dumps(
                {"event": "bulk_start", "rows": len(transactions), "batches": len(batches), "batch_size": self.batch_size}
            )
        )

        try:
            scored, model_info = await self._score_all(batches, on_progress)
        except BatchFailure:
            UPLOADS_TOTAL.labels(outcome="failed").inc()
            raise

        summary = summarize(scored)
        UPLOADS_TOTAL.labels(outcome="completed").inc()
        logger.info(
            json.dumps(
                {
                    "event": "bulk_complete",
                    "rows": summary.total_transactions,
                    "fraud_count": summary.fraud_count,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                }
            )
        )
        return BulkResult(transactions=scored, summary=summary, model_info=model_info)

    async def _score_all(
        self,
        batches: List[List[CanonicalTransaction]],
        on_progress: Optional[ProgressCallback],
    ) -> tuple[List[ScoredTransaction], Optional[ModelInfo]]:
        scored: List[ScoredTransaction] = []
        model_info: Optional[ModelInfo] = None
        total = len(batches)

        for number, batch in enumerate(batches, start=1):
            if on_progress:
                on_progress(number, total)
            try:
                response = await self.client.score_batch(batch)
            except ScoringError as exc:
                BATCHES_TOTAL.labels(outcome="failed").inc()
                logger.error(json.dumps({"event": "batch_failed", "batch": number, "batches": total, "error": str(exc)}))
                raise BatchFailure(number, total, exc) from exc
            except Exception as exc:
                BATCHES_TOTAL.labels(outcome="failed").inc()
                logger.exception("batch %d/%d raised unexpectedly", number, total)
                raise BatchFailure(number, total, exc) from exc

            BATCHES_TOTAL.labels(outcome="ok").inc()
            scored.extend(response.transactions)
            model_info = response.model_info or model_info
            logger.info(json.dumps({"event": "batch_done", "batch": number, "batches": total, "rows": len(batch)}))

        return scored, model_info
