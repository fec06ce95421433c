"""API and pipeline schemas for the FraudShield backend."""

from __future__ import annotations

from enum import Enum
from typing import Generic, List, Optional, TypeVar

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator


T = TypeVar("T")


class ErrorResponse(BaseModel):
    detail: str
    code: str
    request_id: Optional[str] = None


class Page(BaseModel, Generic[T]):
    page: int
    page_size: int
    total: int
    items: List[T]


class PaginationParams(BaseModel):
    page: int = 1
    page_size: int = 10


class HealthOut(BaseModel):
    status: str
    api_version: str
    uptime: float


class Prediction(str, Enum):
    FRAUD = "fraud"
    LEGIT = "legit"


class Channel(str, Enum):
    ONLINE = "Online"
    ATM = "ATM"
    POS = "POS"
    MOBILE = "Mobile"


class CanonicalTransaction(BaseModel):
    """One normalized CSV row. Every attribute always carries a value."""

    model_config = ConfigDict(frozen=True)

    transaction_type: str = "Online"
    timestamp: str
    account_balance: float = Field(default=0.0, ge=0)
    device_type: str = "Mobile"
    location: str = "Unknown"
    merchant_category: str = "Retail"
    ip_address_flag: int = Field(default=0, ge=0, le=1)
    previous_fraud_flag: int = Field(default=0, ge=0, le=1)
    daily_transaction_count: int = Field(default=1, ge=0)
    avg_transaction_amount_7d: float = Field(default=0.0, ge=0)
    failed_transaction_count_7d: int = Field(default=0, ge=0)
    card_type: str = "Credit"
    card_age_days: int = Field(default=365, ge=0)
    transaction_distance: float = Field(default=0.0, ge=0)
    authentication_method: str = "Basic"
    declared_risk_score: float = 0.0
    is_weekend: bool = False
    transaction_id: Optional[str] = None
    customer_id: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def check_timestamp(cls, value: str) -> str:
        try:
            parsed = pd.to_datetime(value, format="ISO8601")
        except (ValueError, TypeError) as exc:
            raise ValueError(f"timestamp must be ISO-8601, got {value!r}") from exc
        if pd.isna(parsed):
            raise ValueError(f"timestamp must be ISO-8601, got {value!r}")
        return value


class ModelFeatures(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount_log: float
    velocity_score: float
    kyc_risk_score: float
    combined_feature_score: float


class ScoredTransaction(CanonicalTransaction):
    transaction_id: str
    customer_id: str
    is_fraud: int = Field(ge=0, le=1)
    risk_score: float = Field(ge=0.0, le=1.0)
    transaction_amount: float = 0.0
    channel: str = "Mobile"
    reason: Optional[str] = None
    rules_triggered: List[str] = Field(default_factory=list)
    model_features: Optional[ModelFeatures] = None


class HighestRiskTransaction(BaseModel):
    id: str
    score: float
    amount: float


class DatasetSummary(BaseModel):
    total_transactions: int
    fraud_count: int
    fraud_percentage: float
    avg_fraud_risk_score: float
    highest_risk_transaction: Optional[HighestRiskTransaction] = None


class ModelInfo(BaseModel):
    model_type: str
    preprocessing: str
    features_count: int
    precision: float
    recall: float
    f1_score: float
    auc_roc: float
    rules_count: Optional[int] = None
    accuracy: Optional[float] = None


class ScoreRequest(BaseModel):
    transactions: List[CanonicalTransaction]


class ScoreResponse(BaseModel):
    transactions: List[ScoredTransaction]
    summary: DatasetSummary
    model_info: Optional[ModelInfo] = None


class BulkResult(BaseModel):
    transactions: List[ScoredTransaction]
    summary: DatasetSummary
    model_info: Optional[ModelInfo] = None


class DatasetOut(BaseModel):
    loaded: bool
    row_count: int
    summary: Optional[DatasetSummary] = None
    model_info: Optional[ModelInfo] = None
    uploaded_at: Optional[str] = None


class LoginIn(BaseModel):
    email: str
    password: str


class AuthTokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserOut(BaseModel):
    email: str
    display_name: str


class SingleTransactionIn(BaseModel):
    customer_id: str = Field(min_length=1)
    kyc_verified: bool
    account_age_days: int = Field(ge=0)
    transaction_amount: float = Field(ge=0)
    channel: Channel
    timestamp: Optional[str] = None


class PredictionOut(BaseModel):
    prediction: Prediction
    risk_score: float
    confidence: float
    reason: Optional[str] = None


class HistoryRecord(BaseModel):
    id: str
    customer_id: str
    transaction_amount: float
    channel: str
    kyc_verified: bool
    timestamp: str
    prediction: Prediction
    risk_score: float
    confidence: float
    reason: Optional[str] = None


class UploadProgressOut(BaseModel):
    status: str
    batch: int = 0
    total_batches: int = 0
    error: Optional[str] = None
    updated_at: Optional[str] = None
