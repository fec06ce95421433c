from backend.core.schemas import HistoryRecord, Prediction
from backend.store.history import InMemoryHistoryRepository, JsonFileHistoryRepository, demo_records


def _record(record_id: str) -> HistoryRecord:
    return HistoryRecord(
        id=record_id,
        customer_id="CUST9",
        transaction_amount=10.0,
        channel="POS",
        kyc_verified=True,
        timestamp="2024-01-01T00:00:00+00:00",
        prediction=Prediction.LEGIT,
        risk_score=0.2,
        confidence=0.8,
    )


def test_in_memory_history_is_newest_first_and_capped():
    repo = InMemoryHistoryRepository(limit=3)
    for i in range(5):
        repo.append(_record(f"R{i}"))

    assert [record.id for record in repo.list()] == ["R4", "R3", "R2"]
    repo.clear()
    assert repo.list() == []


def test_demo_seed():
    repo = InMemoryHistoryRepository(seed=demo_records())
    assert [record.id for record in repo.list()] == ["TXN001", "TXN002", "TXN003", "TXN004", "TXN005"]


def test_json_file_history_persists(tmp_path):
    path = tmp_path / "history.json"
    repo = JsonFileHistoryRepository(path, limit=10)
    repo.append(_record("R1"))
    repo.append(_record("R2"))

    reopened = JsonFileHistoryRepository(path, limit=10)
    assert [record.id for record in reopened.list()] == ["R2", "R1"]


def test_corrupt_history_file_reads_as_empty(tmp_path):
    path = tmp_path / "history.json"
    path.write_text("{not json", encoding="utf-8")

    assert JsonFileHistoryRepository(path).list() == []
