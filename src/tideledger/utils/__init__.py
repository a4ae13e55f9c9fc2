"""Utility functions for tideledger."""

from tideledger.utils.date_parser import parse_date
from tideledger.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_amount"]
