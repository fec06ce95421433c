import asyncio
import json

import httpx
import pytest

from backend.core.errors import ScoringError
from backend.pipeline.normalizer import normalize_rows
from backend.pipeline.scoring import HttpScoringClient, LocalScoringClient


def _batch(n: int = 2):
    return normalize_rows([{"transaction_id": f"T{i}", "amount": str(100 * (i + 1))} for i in range(n)])


def _echo_scored(request: httpx.Request) -> httpx.Response:
    body = json.loads(request.content)
    transactions = [
        dict(txn, customer_id="C1", is_fraud=0, risk_score=0.25, transaction_amount=txn["account_balance"])
        for txn in body["transactions"]
    ]
    return httpx.Response(200, json={"transactions": transactions})


def _score(handler, batch):
    async def run():
        client = HttpScoringClient("http://scoring.test", transport=httpx.MockTransport(handler))
        try:
            return await client.score_batch(batch)
        finally:
            await client.aclose()

    return asyncio.run(run())


def test_http_client_posts_batch_and_parses_response():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["count"] = len(json.loads(request.content)["transactions"])
        return _echo_scored(request)

    response = _score(handler, _batch(3))

    assert seen == {"path": "/score", "count": 3}
    assert [txn.transaction_id for txn in response.transactions] == ["T0", "T1", "T2"]
    assert response.transactions[2].transaction_amount == 300


def test_missing_transactions_key_is_a_scoring_error():
    with pytest.raises(ScoringError, match="invalid data"):
        _score(lambda request: httpx.Response(200, json={"status": "ok"}), _batch())


def test_server_error_is_a_scoring_error():
    with pytest.raises(ScoringError, match="HTTP 500"):
        _score(lambda request: httpx.Response(500, text="boom"), _batch())


def test_invalid_json_is_a_scoring_error():
    with pytest.raises(ScoringError, match="invalid JSON"):
        _score(lambda request: httpx.Response(200, text="<html>"), _batch())


def test_count_mismatch_is_a_scoring_error():
    def handler(request):
        full = _echo_scored(request).json()
        return httpx.Response(200, json={"transactions": full["transactions"][:1]})

    with pytest.raises(ScoringError, match="returned 1 transactions for a batch of 2"):
        _score(handler, _batch(2))


def test_out_of_range_risk_is_rejected():
    def handler(request):
        body = _echo_scored(request).json()
        body["transactions"][0]["risk_score"] = 87
        return httpx.Response(200, json=body)

    with pytest.raises(ScoringError, match="malformed"):
        _score(handler, _batch(2))


def test_transport_failure_is_a_scoring_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ScoringError, match="request failed"):
        _score(handler, _batch())


def test_local_client_returns_model_info(stub_model):
    response = asyncio.run(LocalScoringClient(stub_model).score_batch(_batch(2)))

    assert len(response.transactions) == 2
    assert response.model_info.model_type == "threshold stub"
