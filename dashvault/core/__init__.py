"""Core utilities module."""

from .logging import setup_logging, get_logger
from .sql_utils import compute_result_id, wrap_with_preview_limit
from .values import normalize_value

__all__ = [
    "setup_logging",
    "get_logger",
    "compute_result_id",
    "wrap_with_preview_limit",
    "normalize_value",
]
