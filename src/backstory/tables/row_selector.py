"""
Row selection for backstory tables.

Picks exactly one entry from a table, either uniformly at random or by rolling
the table's dice and matching the total against each entry's range, and looks
entries up by their outcome value for deterministic fetches.
"""

import logging
from typing import Optional

from backstory.data_models import (
    BackstoryError,
    DiceResult,
    DiceRoller,
    substitute_modifier,
)
from backstory.tables.table_types import (
    RANDOM_STRATEGY,
    BackstoryTable,
    OutcomeValue,
    TableEntry,
)

logger = logging.getLogger(__name__)


class RowNotFoundError(BackstoryError):
    """Raised when a roll total matches no entry of a table."""

    def __init__(self, table_key: str, total: Optional[int] = None):
        self.table_key = table_key
        self.total = total
        if total is None:
            message = f"Table '{table_key}' has no outcomes to choose from"
        else:
            message = f"No row in table '{table_key}' covers a roll of {total}"
        super().__init__(message)


def select_row(
    table: BackstoryTable,
    roll_modifier: Optional[int] = None,
    strategy: Optional[str] = None,
) -> tuple[TableEntry, Optional[DiceResult]]:
    """
    Select one entry from a table.

    Args:
        table: Table to select from
        roll_modifier: Value substituted for MOD in the dice expression
        strategy: Overrides the table's own roll strategy when given

    Returns:
        Tuple of (entry, dice result). The dice result is None for
        uniform random selection.

    Raises:
        RowNotFoundError: If the table is empty or no range covers the total
        InvalidDiceExpression: If the strategy is not a valid dice expression
    """
    strategy = strategy or table.roll

    if strategy == RANDOM_STRATEGY:
        if not table.outcomes:
            raise RowNotFoundError(table.key)
        index = DiceRoller.choice_index(len(table.outcomes), f"random row: {table.key}")
        return table.outcomes[index], None

    dice = substitute_modifier(strategy, roll_modifier)
    result = DiceRoller.roll(dice, f"table roll: {table.key}")

    for entry in table.outcomes:
        if entry.matches_roll(result.total):
            return entry, result

    logger.debug(f"Roll {result} matched no row of '{table.key}'")
    raise RowNotFoundError(table.key, result.total)


def _as_int(value: OutcomeValue) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def find_row(table: BackstoryTable, value: OutcomeValue) -> Optional[TableEntry]:
    """
    Find an entry by its outcome value.

    Numeric outcomes match any value that parses as the same integer. Text
    outcomes must equal a string value exactly.

    Returns:
        The first matching entry, or None
    """
    number = _as_int(value)

    for entry in table.outcomes:
        if isinstance(entry.outcome, int) and not isinstance(entry.outcome, bool):
            if number is not None and entry.outcome == number:
                return entry
        elif isinstance(value, str) and entry.outcome == value:
            return entry

    return None
