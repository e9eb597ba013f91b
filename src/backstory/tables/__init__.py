"""
Backstory tables and row selection.

This module provides:
- Table types (BackstoryTable, TableEntry) and key normalization
- The TableStore with JSON loading and data checks
- Row selection by uniform choice or dice range, and lookup by outcome
- Named handlers for the {{extra}} placeholder
"""

from backstory.tables.table_types import (
    RANDOM_STRATEGY,
    BackstoryTable,
    TableEntry,
    to_key,
)

from backstory.tables.table_manager import (
    DEFAULT_DATA_DIR,
    LoadResult,
    TableStore,
    UnknownTableError,
    find_coverage_issues,
    load_default_store,
    parse_table,
)

from backstory.tables.row_selector import (
    RowNotFoundError,
    find_row,
    select_row,
)

from backstory.tables.extra_text import (
    get_extra_handler,
    register_extra_handler,
)

__all__ = [
    # Table types
    "RANDOM_STRATEGY",
    "BackstoryTable",
    "TableEntry",
    "to_key",
    # Table store
    "DEFAULT_DATA_DIR",
    "LoadResult",
    "TableStore",
    "UnknownTableError",
    "find_coverage_issues",
    "load_default_store",
    "parse_table",
    # Row selection
    "RowNotFoundError",
    "find_row",
    "select_row",
    # Extra text
    "get_extra_handler",
    "register_extra_handler",
]
