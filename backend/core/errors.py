"""Error taxonomy for the bulk upload pipeline."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for every failure that aborts an upload."""

    code = "pipeline_error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputError(PipelineError):
    """The file is unusable before any processing starts."""

    code = "input_error"
    status_code = 400


class UploadTooLargeError(InputError):
    code = "upload_too_large"
    status_code = 413


class CsvParseError(PipelineError):
    """The CSV parser rejected the file; the message is the parser's own."""

    code = "csv_parse_error"
    status_code = 400


class ScoringError(PipelineError):
    """A single scoring round-trip failed (transport, status or payload)."""

    code = "scoring_error"
    status_code = 502


class BatchFailure(PipelineError):
    """A batch failed and the whole upload was abandoned."""

    code = "batch_failure"
    status_code = 502

    def __init__(self, batch_index: int, total_batches: int, cause: Exception) -> None:
        self.batch_index = batch_index
        self.total_batches = total_batches
        self.cause = cause
        super().__init__(f"Batch {batch_index} failed: {cause}")
