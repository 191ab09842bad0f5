"""Utility functions for vatkit."""

from vatkit.utils.date_parser import parse_date
from vatkit.utils.amount_parser import parse_amount, parse_money

__all__ = ["parse_date", "parse_amount", "parse_money"]
