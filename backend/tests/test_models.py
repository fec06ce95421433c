import re

import numpy as np
import pytest
from pydantic import ValidationError

from backend.core.schemas import CanonicalTransaction, Channel, Prediction, SingleTransactionIn
from backend.ml.registry import get_model
from backend.ml.rules import RuleEnsembleScorer, apply_rules, predict_single
from backend.ml.scorer import GradientBoostSimScorer

CLEAN = dict(
    timestamp="2024-01-15T12:00:00+00:00",
    account_balance=100.0,
    location="London",
    authentication_method="Basic",
    card_age_days=365,
)


def _txn(**overrides) -> CanonicalTransaction:
    return CanonicalTransaction(**{**CLEAN, **overrides})


def _batch(n: int, with_ids: bool = True):
    return [
        _txn(
            account_balance=float(100 * (i + 1)),
            transaction_id=f"T{i}" if with_ids else None,
        )
        for i in range(n)
    ]


def test_gradient_boost_scores_each_row_in_order():
    batch = _batch(25)
    result = GradientBoostSimScorer(random_state=3).score(batch)

    assert [txn.transaction_id for txn in result] == [f"T{i}" for i in range(25)]
    assert all(0.0 <= txn.risk_score <= 1.0 for txn in result)
    assert all(txn.is_fraud in (0, 1) for txn in result)
    assert [txn.transaction_amount for txn in result] == [txn.account_balance for txn in batch]
    assert all(txn.model_features is not None for txn in result)


def test_gradient_boost_empty_batch():
    assert GradientBoostSimScorer().score([]) == []


def test_ids_are_assigned_only_when_absent():
    batch = [_txn(transaction_id="ORIG-1", customer_id="C-9"), _txn()]
    first, second = GradientBoostSimScorer(random_state=1).score(batch)

    assert (first.transaction_id, first.customer_id) == ("ORIG-1", "C-9")
    assert re.fullmatch(r"TX-[0-9a-f]{12}", second.transaction_id)
    assert re.fullmatch(r"CUST_\d{4}", second.customer_id)


def test_same_seed_gives_same_scores():
    batch = _batch(30, with_ids=False)

    def run(model):
        return [(txn.is_fraud, txn.risk_score, txn.customer_id) for txn in model.score(batch)]

    assert run(GradientBoostSimScorer(random_state=42)) == run(GradientBoostSimScorer(random_state=42))
    assert run(RuleEnsembleScorer(random_state=42)) == run(RuleEnsembleScorer(random_state=42))


def test_unseeded_runs_differ():
    batch = _batch(30)
    first = [txn.risk_score for txn in GradientBoostSimScorer().score(batch)]
    second = [txn.risk_score for txn in GradientBoostSimScorer().score(batch)]

    assert first != second


def _triggered(txn: CanonicalTransaction) -> set:
    return {rule.name for rule in apply_rules(txn) if rule.triggered}


def test_clean_transaction_triggers_no_rule():
    assert _triggered(_txn()) == set()


@pytest.mark.parametrize(
    "overrides,expected",
    [
        ({"account_balance": 15000.0}, {"high_amount"}),
        ({"authentication_method": "None"}, {"kyc_unverified"}),
        ({"timestamp": "2024-01-15T03:00:00+00:00"}, {"odd_hours"}),
        ({"card_age_days": 10}, {"new_account"}),
        ({"location": "Suspicious proxy"}, {"suspicious_location"}),
        ({"location": "Unknown"}, {"suspicious_location"}),
        (
            {"account_balance": 15000.0, "authentication_method": "None"},
            {"high_amount", "kyc_unverified", "multiple_high_risk"},
        ),
    ],
)
def test_each_rule_triggers(overrides, expected):
    assert _triggered(_txn(**overrides)) == expected


def test_rule_ensemble_reasons_and_range():
    risky = _txn(
        account_balance=15000.0,
        authentication_method="None",
        timestamp="2024-01-15T03:00:00+00:00",
        card_age_days=10,
        location="Unknown",
    )
    clean, flagged = RuleEnsembleScorer(random_state=5).score([_txn(), risky])

    assert clean.is_fraud == 0
    assert clean.rules_triggered == []
    assert clean.reason.startswith("Legit: Transaction appears normal")
    assert flagged.rules_triggered == [
        "high_amount",
        "kyc_unverified",
        "odd_hours",
        "new_account",
        "suspicious_location",
        "multiple_high_risk",
    ]
    assert "exceeds high-risk threshold" in flagged.reason
    assert 0.0 <= flagged.risk_score <= 1.0
    assert flagged.risk_score > clean.risk_score


def test_registry_lookup():
    assert isinstance(get_model("rule-ensemble"), RuleEnsembleScorer)
    assert isinstance(get_model("gradient-boost-sim", random_state=1), GradientBoostSimScorer)
    with pytest.raises(ValueError, match="Unknown scoring model: nope"):
        get_model("nope")


def test_predict_single_low_and_high_risk():
    rng = np.random.default_rng(0)
    low = predict_single(
        SingleTransactionIn(
            customer_id="C1",
            kyc_verified=True,
            account_age_days=400,
            transaction_amount=100,
            channel=Channel.POS,
            timestamp="2024-01-15T12:00:00",
        ),
        rng=rng,
    )
    high = predict_single(
        SingleTransactionIn(
            customer_id="C2",
            kyc_verified=False,
            account_age_days=3,
            transaction_amount=25000,
            channel=Channel.ONLINE,
            timestamp="2024-01-15T02:00:00",
        ),
        rng=rng,
    )

    assert low.prediction == Prediction.LEGIT
    assert low.reason is None
    assert low.risk_score < 0.2
    assert 0.75 <= low.confidence <= 0.95
    assert high.prediction == Prediction.FRAUD
    assert high.risk_score == 1.0
    assert "not KYC verified" in high.reason


@pytest.mark.parametrize("value", ["2024-01-15T10:00:00Z", "2024-01-17T09:30:15.123456+00:00", "2024-01-15"])
def test_iso_timestamps_are_accepted(value):
    assert _txn(timestamp=value).timestamp == value


@pytest.mark.parametrize("value", ["yesterday", "", "15/13/2024"])
def test_non_iso_timestamps_are_rejected(value):
    with pytest.raises(ValidationError, match="ISO-8601"):
        _txn(timestamp=value)
