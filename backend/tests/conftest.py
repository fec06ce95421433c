# ruff: noqa: E402
import sys
from pathlib import Path
from typing import List, Sequence

import pytest
from fastapi.testclient import TestClient

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.api.main import app
from backend.core.schemas import CanonicalTransaction, ModelInfo, ScoredTransaction
from backend.ml.scorer import ScoringModel, device_channel
from backend.pipeline.scoring import LocalScoringClient
from backend.store.history import InMemoryHistoryRepository, demo_records
from backend.store.progress import UploadProgress
from backend.store.session import DatasetSession

STUB_INFO = ModelInfo(
    model_type="threshold stub",
    preprocessing="none",
    features_count=1,
    precision=1.0,
    recall=1.0,
    f1_score=1.0,
    auc_roc=1.0,
)


class ThresholdModel(ScoringModel):
    """Deterministic scorer: anything above 10,000 is fraud."""

    name = "threshold-stub"
    model_info = STUB_INFO

    def score(self, batch: Sequence[CanonicalTransaction]) -> List[ScoredTransaction]:
        scored = []
        for index, txn in enumerate(batch):
            fraud = txn.account_balance > 10000
            fields = txn.model_dump()
            fields.update(
                transaction_id=txn.transaction_id or f"T{index}",
                customer_id=txn.customer_id or f"C{index}",
                is_fraud=1 if fraud else 0,
                risk_score=0.9 if fraud else 0.1,
                transaction_amount=txn.account_balance,
                channel=device_channel(txn.device_type),
            )
            scored.append(ScoredTransaction(**fields))
        return scored


def scored(txn_id: str, risk: float, fraud: int = 0, amount: float = 100.0, **extra) -> ScoredTransaction:
    fields = dict(
        timestamp="2024-01-15T10:00:00+00:00",
        transaction_id=txn_id,
        customer_id=f"C-{txn_id}",
        is_fraud=fraud,
        risk_score=risk,
        account_balance=amount,
        transaction_amount=amount,
        channel="Mobile",
    )
    fields.update(extra)
    return ScoredTransaction(**fields)


def csv_text(header: str, rows: Sequence[str]) -> str:
    return "\n".join([header, *rows]) + "\n"


@pytest.fixture()
def stub_model():
    return ThresholdModel()


@pytest.fixture()
def client(stub_model):
    with TestClient(app) as c:
        app.state.session = DatasetSession()
        app.state.progress = UploadProgress()
        app.state.history = InMemoryHistoryRepository(limit=100, seed=demo_records())
        app.state.model = stub_model
        app.state.scoring_client = LocalScoringClient(stub_model)
        yield c


def login(client, email: str = "analyst@demo", password: str = "password") -> str:
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200
    return resp.json()["access_token"]
