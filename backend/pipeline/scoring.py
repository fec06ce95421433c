"""Scoring clients: one request per batch, one prediction per input row."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

import httpx
from pydantic import BaseModel, ValidationError

from backend.core import config
from backend.core.errors import ScoringError
from backend.core.schemas import CanonicalTransaction, ModelInfo, ScoredTransaction
from backend.ml.registry import get_model
from backend.ml.scorer import ScoringModel

logger = logging.getLogger("fraudshield.scoring")


class ScoringResponse(BaseModel):
    transactions: List[ScoredTransaction]
    model_info: Optional[ModelInfo] = None


class ScoringClient:
    """Base class. Implementations must preserve the order of ``batch``."""

    async def score_batch(self, batch: Sequence[CanonicalTransaction]) -> ScoringResponse:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


def _check_count(batch: Sequence[CanonicalTransaction], response: ScoringResponse) -> ScoringResponse:
    if len(response.transactions) != len(batch):
        raise ScoringError(
            f"scoring returned {len(response.transactions)} transactions for a batch of {len(batch)}"
        )
    return response


class LocalScoringClient(ScoringClient):
    """Scores in-process with a ``ScoringModel`` on a worker thread."""

    def __init__(self, model: ScoringModel) -> None:
        self.model = model

    async def score_batch(self, batch: Sequence[CanonicalTransaction]) -> ScoringResponse:
        scored = await asyncio.to_thread(self.model.score, batch)
        return _check_count(batch, ScoringResponse(transactions=scored, model_info=self.model.model_info))


class HttpScoringClient(ScoringClient):
    """Posts ``{"transactions": [...]}`` to a remote scoring endpoint."""

    def __init__(
        self,
        base_url: str,
        path: str = "/score",
        timeout_seconds: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.path = path
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds, transport=transport)

    async def score_batch(self, batch: Sequence[CanonicalTransaction]) -> ScoringResponse:
        body = {"transactions": [txn.model_dump(mode="json") for txn in batch]}
        try:
            resp = await self._client.post(self.path, json=body)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPStatusError as exc:
            raise ScoringError(f"scoring endpoint returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise ScoringError(f"scoring request failed: {exc}") from exc
        except ValueError as exc:
            raise ScoringError("scoring endpoint returned invalid JSON") from exc

        if not isinstance(payload, dict) or not isinstance(payload.get("transactions"), list):
            raise ScoringError("scoring endpoint returned invalid data")
        try:
            response = ScoringResponse.model_validate(payload)
        except ValidationError as exc:
            raise ScoringError(f"scoring endpoint returned malformed transactions: {exc.error_count()} errors") from exc
        return _check_count(batch, response)

    async def aclose(self) -> None:
        await self._client.aclose()


def build_scoring_client() -> ScoringClient:
    if config.SCORING_MODE == "http":
        logger.info("scoring via %s%s", config.SCORING_URL, config.SCORING_PATH)
        return HttpScoringClient(
            config.SCORING_URL,
            path=config.SCORING_PATH,
            timeout_seconds=config.SCORING_TIMEOUT_SECONDS,
        )
    logger.info("scoring in-process with %s", config.SCORING_MODEL)
    return LocalScoringClient(get_model(config.SCORING_MODEL, random_state=config.SCORING_SEED))
