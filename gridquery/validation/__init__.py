"""
Validation module for the gridquery data service.

This module checks DataTable requests and scopes against the table schema.
"""

from .rules import (
    _assert_columns_allowed,
    _assert_conditions_allowed,
    _cap_page_size,
)

__all__ = [
    "_assert_columns_allowed",
    "_assert_conditions_allowed",
    "_cap_page_size",
]
