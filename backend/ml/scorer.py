"""Simulated gradient-boosting scorer used behind the scoring endpoint.

This is not a trained model. It engineers a handful of features per batch and
draws fraud labels and risk scores from a seeded random generator, so two
calls on the same batch generally disagree unless ``random_state`` is fixed.
"""

from __future__ import annotations

import math
import uuid
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from backend.core.schemas import CanonicalTransaction, ModelFeatures, ModelInfo, ScoredTransaction

DEVICE_CODES = {"Mobile": 1, "Desktop": 2, "Tablet": 3, "ATM": 4, "POS": 5}
DEVICE_CHANNELS = {"Mobile": "Mobile", "Desktop": "Online", "Tablet": "Online", "ATM": "ATM", "POS": "POS"}

BASE_FRAUD_RATE = 0.05
FALLBACK_AMOUNT = 1000.0


class ScoringModel:
    """Capability every scorer offers: one prediction per input, in order."""

    name = "base"
    model_info: ModelInfo

    def __init__(self, random_state: Optional[int] = None) -> None:
        self.rng = np.random.default_rng(random_state)

    def score(self, batch: Sequence[CanonicalTransaction]) -> List[ScoredTransaction]:
        raise NotImplementedError

    def _customer_id(self, txn: CanonicalTransaction) -> str:
        if txn.customer_id:
            return txn.customer_id
        return f"CUST_{int(self.rng.integers(1, 1001)):04d}"


def assign_transaction_id(txn: CanonicalTransaction) -> str:
    return txn.transaction_id or f"TX-{uuid.uuid4().hex[:12]}"


def transaction_amount(txn: CanonicalTransaction) -> float:
    return txn.account_balance or txn.avg_transaction_amount_7d or FALLBACK_AMOUNT


def device_channel(device_type: str) -> str:
    return DEVICE_CHANNELS.get(device_type, "Mobile")


def behaviour_risk(txn: CanonicalTransaction) -> float:
    risk = 0.0
    if txn.previous_fraud_flag:
        risk += 0.5
    if txn.ip_address_flag:
        risk += 0.3
    if txn.failed_transaction_count_7d > 3:
        risk += 0.2
    if txn.failed_transaction_count_7d > 7:
        risk += 0.1
    if txn.authentication_method in {"None", "Basic"}:
        risk += 0.2
    if txn.authentication_method in {"Biometric", "2FA"}:
        risk -= 0.1
    if txn.transaction_distance > 100:
        risk += 0.1
    if txn.transaction_distance > 500:
        risk += 0.1
    card_age = txn.card_age_days or 365
    if card_age < 30:
        risk += 0.2
    if card_age < 7:
        risk += 0.1
    return max(0.0, min(risk, 1.0))


class GradientBoostSimScorer(ScoringModel):
    name = "gradient-boost-sim"
    model_info = ModelInfo(
        model_type="XGBoostClassifier (simulated)",
        preprocessing="SMOTE + Feature Engineering",
        features_count=12,
        precision=0.924,
        recall=0.887,
        f1_score=0.905,
        auc_roc=0.951,
    )

    def score(self, batch: Sequence[CanonicalTransaction]) -> List[ScoredTransaction]:
        if not batch:
            return []
        amounts = np.array([transaction_amount(txn) for txn in batch], dtype=float)
        mean = float(amounts.mean())
        std = float(amounts.std())
        return [self._predict(txn, amount, mean, std) for txn, amount in zip(batch, amounts)]

    def _velocity(self, txn: CanonicalTransaction, amount: float) -> float:
        daily = txn.daily_transaction_count or int(self.rng.integers(1, 11))
        return min(daily / 10 + (0.3 if amount > 5000 else 0.0), 1.0)

    def _predict(self, txn: CanonicalTransaction, amount: float, mean: float, std: float) -> ScoredTransaction:
        ts = pd.Timestamp(txn.timestamp)
        amount_log = math.log(amount + 1)
        zscore = (amount - mean) / std if std > 0 else 0.0
        velocity = self._velocity(txn, amount)
        kyc_risk = behaviour_risk(txn)
        weekend = txn.is_weekend or ts.dayofweek >= 5

        combined = (
            amount_log * 0.25
            + velocity * 0.20
            + kyc_risk * 0.18
            + zscore * 0.15
            + (1 if weekend else 0) * 0.08
            + DEVICE_CODES.get(txn.device_type, 1) * 0.07
            + (ts.hour / 24) * 0.07
        )

        rng = self.rng
        if rng.random() < BASE_FRAUD_RATE:
            is_fraud = 1
            if rng.random() < 0.91:
                risk = 0.65 + rng.random() * 0.35 + combined * 0.1
            else:
                risk = 0.2 + rng.random() * 0.4
        else:
            is_fraud = 0
            if rng.random() < 0.95:
                risk = rng.random() * 0.45 - combined * 0.05
            else:
                risk = 0.55 + rng.random() * 0.35
        risk = float(min(1.0, max(0.0, risk)))

        fields = txn.model_dump()
        fields.update(
            transaction_id=assign_transaction_id(txn),
            customer_id=self._customer_id(txn),
            is_fraud=is_fraud,
            risk_score=risk,
            transaction_amount=float(amount),
            channel=device_channel(txn.device_type),
            model_features=ModelFeatures(
                amount_log=amount_log,
                velocity_score=velocity,
                kyc_risk_score=kyc_risk,
                combined_feature_score=combined,
            ),
        )
        return ScoredTransaction(**fields)
