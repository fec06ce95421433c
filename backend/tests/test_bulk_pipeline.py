import asyncio

import pytest

from backend.core.errors import BatchFailure, CsvParseError, InputError, ScoringError
from backend.pipeline.bulk import BulkUploadPipeline
from backend.pipeline.scoring import LocalScoringClient, ScoringClient
from conftest import csv_text


class FailingOnSecondBatch(ScoringClient):
    def __init__(self, inner: ScoringClient) -> None:
        self.inner = inner
        self.calls = 0

    async def score_batch(self, batch):
        self.calls += 1
        if self.calls == 2:
            raise ScoringError("scoring endpoint returned HTTP 500")
        return await self.inner.score_batch(batch)


def _rows(n: int):
    return [{"transaction_id": f"T{i}", "amount": "100"} for i in range(n)]


def test_end_to_end_with_amount_header(stub_model):
    text = csv_text("amount,device_type", ["100,Mobile", "20000,Mobile", "50,Mobile"])
    pipeline = BulkUploadPipeline(LocalScoringClient(stub_model), batch_size=500)

    result = asyncio.run(pipeline.run_csv(text))

    assert result.summary.total_transactions == 3
    assert result.summary.fraud_count == 1
    assert [txn.transaction_amount for txn in result.transactions] == [100, 20000, 50]
    assert all(txn.device_type == "Mobile" for txn in result.transactions)
    assert result.summary.highest_risk_transaction.amount == 20000
    assert result.model_info.model_type == "threshold stub"


def test_batches_preserve_order_across_boundaries(stub_model):
    pipeline = BulkUploadPipeline(LocalScoringClient(stub_model), batch_size=4)
    progress = []

    result = asyncio.run(pipeline.run_rows(_rows(10), on_progress=lambda i, n: progress.append((i, n))))

    assert [txn.transaction_id for txn in result.transactions] == [f"T{i}" for i in range(10)]
    assert progress == [(1, 3), (2, 3), (3, 3)]


def test_failure_on_second_batch_aborts_upload(stub_model):
    client = FailingOnSecondBatch(LocalScoringClient(stub_model))
    pipeline = BulkUploadPipeline(client, batch_size=2)

    with pytest.raises(BatchFailure) as excinfo:
        asyncio.run(pipeline.run_rows(_rows(6)))

    assert excinfo.value.batch_index == 2
    assert excinfo.value.total_batches == 3
    assert str(excinfo.value).startswith("Batch 2 failed:")
    assert client.calls == 2


def test_unexpected_client_error_is_wrapped(stub_model):
    class Broken(ScoringClient):
        async def score_batch(self, batch):
            raise RuntimeError("socket closed")

    with pytest.raises(BatchFailure, match="Batch 1 failed: socket closed"):
        asyncio.run(BulkUploadPipeline(Broken(), batch_size=5).run_rows(_rows(3)))


def test_csv_with_only_blank_rows_is_rejected(stub_model):
    pipeline = BulkUploadPipeline(LocalScoringClient(stub_model))

    with pytest.raises(InputError, match="no valid data rows"):
        asyncio.run(pipeline.run_csv("amount,device_type\n,\n,\n"))


def test_malformed_csv_reports_parser_error(stub_model):
    pipeline = BulkUploadPipeline(LocalScoringClient(stub_model))

    with pytest.raises(CsvParseError, match="CSV parsing failed"):
        asyncio.run(pipeline.run_csv('amount,device\n"100,Mobile\n'))
