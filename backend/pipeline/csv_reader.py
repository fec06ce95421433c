"""CSV intake for bulk uploads: file checks, parsing and blank-row filtering."""

from __future__ import annotations

import io
import logging
import math
from typing import Any, Optional

import pandas as pd

from backend.core import config
from backend.core.errors import CsvParseError, InputError, UploadTooLargeError

logger = logging.getLogger("fraudshield.pipeline")

CSV_CONTENT_TYPES = {"text/csv", "application/csv", "application/vnd.ms-excel"}


def validate_upload(filename: Optional[str], content_type: Optional[str], size: int) -> None:
    name = (filename or "").lower()
    if not name.endswith(".csv") and (content_type or "").lower() not in CSV_CONTENT_TYPES:
        raise InputError("Please select a valid CSV file.")
    if size > config.MAX_UPLOAD_BYTES:
        raise UploadTooLargeError(
            f"File size too large. Please select a file smaller than {config.MAX_UPLOAD_MB}MB."
        )


def _clean(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def is_blank_row(row: dict[str, Any]) -> bool:
    return not any(value is not None and str(value).strip() != "" for value in row.values())


def read_csv_rows(text: str) -> list[dict[str, Any]]:
    """Parse CSV text into raw rows, dropping rows whose fields are all empty."""
    if not text or not text.strip():
        raise InputError("CSV file is empty or no valid data rows found")
    try:
        df = pd.read_csv(io.StringIO(text), dtype=str, skip_blank_lines=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise CsvParseError(f"CSV parsing failed: {exc}") from exc

    df.columns = [str(col).strip() for col in df.columns]
    rows = [
        {key: _clean(value) for key, value in record.items()}
        for record in df.to_dict(orient="records")
    ]
    usable = [row for row in rows if not is_blank_row(row)]
    logger.info(
        "csv parsed: %d rows, %d usable, columns=%s",
        len(rows),
        len(usable),
        ",".join(df.columns),
    )
    if not usable:
        raise InputError("CSV file is empty or no valid data rows found")
    return usable
