"""Batch progress of the bulk upload currently being scored."""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Optional

from backend.core.schemas import UploadProgressOut

IDLE = "idle"
RUNNING = "running"
COMPLETED = "completed"
FAILED = "failed"


class UploadProgress:
    """Last reported ``(batch, total_batches)`` plus the upload status.

    Written by the upload request, read by ``GET /bulk/progress`` polls.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._status = IDLE
        self._batch = 0
        self._total = 0
        self._error: Optional[str] = None
        self._updated_at: Optional[datetime] = None

    def _set(self, status: str, batch: int, total: int, error: Optional[str] = None) -> None:
        with self._lock:
            self._status = status
            self._batch = batch
            self._total = total
            self._error = error
            self._updated_at = datetime.now(timezone.utc)

    def start(self) -> None:
        self._set(RUNNING, 0, 0)

    def update(self, batch: int, total: int) -> None:
        self._set(RUNNING, batch, total)

    def finish(self) -> None:
        self._set(COMPLETED, self._total, self._total)

    def fail(self, message: str) -> None:
        self._set(FAILED, self._batch, self._total, message)

    def snapshot(self) -> UploadProgressOut:
        with self._lock:
            return UploadProgressOut(
                status=self._status,
                batch=self._batch,
                total_batches=self._total,
                error=self._error,
                updated_at=self._updated_at.isoformat() if self._updated_at else None,
            )
