"""FastAPI application for the FraudShield backend."""

from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, List

import numpy as np
from fastapi import Depends, FastAPI, File, HTTPException, Query, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import make_asgi_app
from pydantic import BaseModel

from backend.core import config
from backend.core.auth import get_current_user, login_demo_user
from backend.core.errors import CsvParseError, PipelineError, UploadTooLargeError
from backend.core.middleware import RequestContextMiddleware
from backend.core.observability import configure_logging, init_sentry
from backend.core.pagination import (
    HISTORY_TABLE,
    SCORED_TABLE,
    TableQuery,
    filter_and_sort,
    paginate_list,
    pagination_params,
    table_params,
)
from backend.core.schemas import (
    AuthTokenOut,
    BulkResult,
    DatasetOut,
    ErrorResponse,
    HealthOut,
    HistoryRecord,
    LoginIn,
    Page,
    PaginationParams,
    ScoredTransaction,
    ScoreRequest,
    ScoreResponse,
    SingleTransactionIn,
    UploadProgressOut,
    UserOut,
)
from backend.ml.registry import get_model
from backend.ml.rules import predict_single
from backend.ml.scorer import ScoringModel
from backend.pipeline.aggregator import dataset_statistics, summarize
from backend.pipeline.bulk import BulkUploadPipeline
from backend.pipeline.csv_reader import validate_upload
from backend.pipeline.export import export_history_csv, export_scored_csv
from backend.pipeline.insights import build_insights
from backend.pipeline.scoring import ScoringClient, build_scoring_client
from backend.store.history import TransactionHistoryRepository, build_history_repository
from backend.store.progress import UploadProgress
from backend.store.session import DatasetSession

logger = configure_logging()
init_sentry()

START_TIME = time.time()
CHUNK_SIZE = 1024 * 1024  # 1MB


class TransactionsIn(BaseModel):
    transactions: List[ScoredTransaction]


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.scoring_client = build_scoring_client()
    try:
        yield
    finally:
        await app.state.scoring_client.aclose()


app = FastAPI(
    title="FraudShield API",
    version="1.0.0",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Health", "description": "Service health."},
        {"name": "Auth", "description": "Mock login and session."},
        {"name": "Scoring", "description": "Batch scoring endpoint and single-transaction prediction."},
        {"name": "Bulk", "description": "Bulk CSV upload and analysis."},
        {"name": "Dataset", "description": "The current session dataset, its tables and exports."},
        {"name": "History", "description": "Single-transaction prediction log."},
    ],
)

app.state.session = DatasetSession()
app.state.progress = UploadProgress()
app.state.history = build_history_repository()
app.state.model = get_model(config.SCORING_MODEL, random_state=config.SCORING_SEED)
app.state.rng = np.random.default_rng(config.SCORING_SEED)

app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWLIST,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/metrics", make_asgi_app())


def get_session(request: Request) -> DatasetSession:
    return request.app.state.session


def get_progress(request: Request) -> UploadProgress:
    return request.app.state.progress


def get_history(request: Request) -> TransactionHistoryRepository:
    return request.app.state.history


def get_model_dep(request: Request) -> ScoringModel:
    return request.app.state.model


def get_scoring_client(request: Request) -> ScoringClient:
    return request.app.state.scoring_client


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _sorted_view(items, query: TableQuery, spec) -> list:
    try:
        return filter_and_sort(items, query, spec)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.exception_handler(PipelineError)
async def pipeline_exception_handler(request: Request, exc: PipelineError):
    payload = ErrorResponse(detail=exc.message, code=exc.code, request_id=_request_id(request))
    return JSONResponse(status_code=exc.status_code, content=payload.model_dump())


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    payload = ErrorResponse(detail=str(exc.detail), code="http_error", request_id=_request_id(request))
    return JSONResponse(status_code=exc.status_code, content=payload.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    payload = ErrorResponse(detail="Validation failed", code="validation_error", request_id=_request_id(request))
    return JSONResponse(status_code=422, content=payload.model_dump())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s", request.url.path)
    payload = ErrorResponse(detail="Internal server error", code="internal_error", request_id=_request_id(request))
    return JSONResponse(status_code=500, content=payload.model_dump())


@app.get("/", summary="API root", tags=["Health"])
def root() -> dict:
    return {
        "status": "ok",
        "message": "FraudShield API. See /docs for the OpenAPI schema.",
    }


@app.get("/health", response_model=HealthOut, summary="Liveness probe", tags=["Health"])
def health() -> HealthOut:
    return HealthOut(status="ok", api_version=app.version, uptime=round(time.time() - START_TIME, 2))


@app.post("/auth/login", response_model=AuthTokenOut, summary="Authenticate (demo)", tags=["Auth"])
def login(payload: LoginIn) -> AuthTokenOut:
    return AuthTokenOut(access_token=login_demo_user(payload))


@app.get("/auth/me", response_model=UserOut, summary="Current user", tags=["Auth"])
def me(current_user: UserOut = Depends(get_current_user)) -> UserOut:
    return current_user


@app.post("/score", response_model=ScoreResponse, summary="Score a batch of transactions", tags=["Scoring"])
def score_batch(payload: ScoreRequest, model: ScoringModel = Depends(get_model_dep)) -> ScoreResponse:
    scored = model.score(payload.transactions)
    return ScoreResponse(transactions=scored, summary=summarize(scored), model_info=model.model_info)


@app.post(
    "/transactions/predict",
    response_model=HistoryRecord,
    summary="Predict a single transaction",
    tags=["Scoring"],
)
def predict_transaction(
    payload: SingleTransactionIn,
    request: Request,
    history: TransactionHistoryRepository = Depends(get_history),
) -> HistoryRecord:
    result = predict_single(payload, rng=request.app.state.rng)
    record = HistoryRecord(
        id=f"TXN{int(time.time() * 1000)}{uuid.uuid4().hex[:4].upper()}",
        customer_id=payload.customer_id,
        transaction_amount=payload.transaction_amount,
        channel=payload.channel.value,
        kyc_verified=payload.kyc_verified,
        timestamp=payload.timestamp or datetime.now(timezone.utc).isoformat(),
        prediction=result.prediction,
        risk_score=result.risk_score,
        confidence=result.confidence,
        reason=result.reason,
    )
    history.append(record)
    logger.info("prediction %s -> %s (%.2f)", record.id, record.prediction.value, record.risk_score)
    return record


@app.post("/bulk/upload", response_model=BulkResult, summary="Upload and analyze a CSV", tags=["Bulk"])
async def bulk_upload(
    file: UploadFile = File(...),
    session: DatasetSession = Depends(get_session),
    client: ScoringClient = Depends(get_scoring_client),
    progress: UploadProgress = Depends(get_progress),
) -> BulkResult:
    validate_upload(file.filename, file.content_type, 0)

    chunks: list[bytes] = []
    total = 0
    try:
        while True:
            chunk = await file.read(CHUNK_SIZE)
            if not chunk:
                break
            total += len(chunk)
            if total > config.MAX_UPLOAD_BYTES:
                raise UploadTooLargeError(
                    f"File size too large. Please select a file smaller than {config.MAX_UPLOAD_MB}MB."
                )
            chunks.append(chunk)
    finally:
        await file.close()

    try:
        text = b"".join(chunks).decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise CsvParseError(f"CSV parsing failed: {exc}") from exc

    logger.info("bulk upload %s (%d bytes)", file.filename, total)
    pipeline = BulkUploadPipeline(client, batch_size=config.BATCH_SIZE)
    progress.start()
    try:
        result = await pipeline.run_csv(text, on_progress=progress.update)
    except PipelineError as exc:
        progress.fail(exc.message)
        raise
    progress.finish()
    session.update_dataset(result.transactions, result.summary, result.model_info)
    return result


@app.get(
    "/bulk/progress",
    response_model=UploadProgressOut,
    summary="Batch progress of the running or last upload",
    tags=["Bulk"],
)
def bulk_progress(progress: UploadProgress = Depends(get_progress)) -> UploadProgressOut:
    return progress.snapshot()


@app.get("/dataset", response_model=DatasetOut, summary="Current dataset summary", tags=["Dataset"])
def get_dataset(session: DatasetSession = Depends(get_session)) -> DatasetOut:
    return session.describe()


@app.delete("/dataset", response_model=DatasetOut, summary="Clear the current dataset", tags=["Dataset"])
def clear_dataset(session: DatasetSession = Depends(get_session)) -> DatasetOut:
    session.clear()
    return session.describe()


def _dataset_view(session: DatasetSession, query: TableQuery, fraud_only: bool) -> list[ScoredTransaction]:
    rows = session.fraud_transactions() if fraud_only else session.transactions
    return _sorted_view(rows, query, SCORED_TABLE)


@app.get(
    "/dataset/transactions",
    response_model=Page[ScoredTransaction],
    summary="Filtered, sorted and paginated dataset rows",
    tags=["Dataset"],
)
def list_dataset_transactions(
    fraud_only: bool = Query(False),
    query: TableQuery = Depends(table_params),
    params: PaginationParams = Depends(pagination_params),
    session: DatasetSession = Depends(get_session),
) -> Page[ScoredTransaction]:
    return paginate_list(_dataset_view(session, query, fraud_only), params)


@app.get("/dataset/export", summary="Export the filtered dataset view as CSV", tags=["Dataset"])
def export_dataset(
    fraud_only: bool = Query(True),
    query: TableQuery = Depends(table_params),
    session: DatasetSession = Depends(get_session),
) -> Response:
    rows = _dataset_view(session, query, fraud_only)
    return _csv_response(export_scored_csv(rows), "fraud_transactions.csv" if fraud_only else "transactions.csv")


@app.get("/dataset/insights", summary="Chart series for the current dataset", tags=["Dataset"])
def dataset_insights(session: DatasetSession = Depends(get_session)) -> dict:
    return build_insights(session.transactions)


@app.get("/dataset/stats", summary="Statistics for the current dataset", tags=["Dataset"])
def dataset_stats(session: DatasetSession = Depends(get_session)) -> dict:
    return _stats_payload(session.transactions)


@app.post("/stats", summary="Statistics for a posted transaction list", tags=["Dataset"])
def post_stats(payload: TransactionsIn) -> dict:
    return _stats_payload(payload.transactions)


def _stats_payload(transactions) -> dict[str, Any]:
    data = dataset_statistics(transactions)
    data["timestamp"] = datetime.now(timezone.utc).isoformat()
    return {"status": "success", "message": "Statistics calculated successfully", "data": data}


@app.get("/history", response_model=Page[HistoryRecord], summary="Prediction history", tags=["History"])
def list_history(
    query: TableQuery = Depends(table_params),
    params: PaginationParams = Depends(pagination_params),
    history: TransactionHistoryRepository = Depends(get_history),
) -> Page[HistoryRecord]:
    return paginate_list(_sorted_view(history.list(), query, HISTORY_TABLE), params)


@app.get("/history/export", summary="Export the filtered history as CSV", tags=["History"])
def export_history(
    query: TableQuery = Depends(table_params),
    history: TransactionHistoryRepository = Depends(get_history),
) -> Response:
    rows = _sorted_view(history.list(), query, HISTORY_TABLE)
    return _csv_response(export_history_csv(rows), "transactions.csv")


@app.delete("/history", status_code=status.HTTP_204_NO_CONTENT, summary="Clear prediction history", tags=["History"])
def clear_history(history: TransactionHistoryRepository = Depends(get_history)) -> Response:
    history.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
