"""Expose page renderers."""

from pathlib import Path
import sys

# Ensure project root is importable when pages are imported directly
ROOT_DIR = Path(__file__).resolve().parents[2]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from dashboard.pages import analytics
from dashboard.pages import bulk_upload
from dashboard.pages import transaction_form
from dashboard.pages import transaction_log

__all__ = [
    "analytics",
    "bulk_upload",
    "transaction_form",
    "transaction_log",
]
