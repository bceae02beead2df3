"""Utilities module."""
from codebreaker.utils.datetime_helpers import ensure_utc, utc_now
from codebreaker.utils.transactions import run_in_transaction

__all__ = ["ensure_utc", "utc_now", "run_in_transaction"]
