"""
Named handlers for the {{extra}} placeholder.

Table data is plain JSON, so a row names its extra-text handler and the loader
binds the name to a callable from this registry. A handler receives the row's
original template string and returns the replacement text.
"""

import logging
from typing import Optional

from backstory.data_models import DiceRoller
from backstory.tables.table_types import ExtraTextFn

logger = logging.getLogger(__name__)


_HANDLERS: dict[str, ExtraTextFn] = {}


def register_extra_handler(name: str, handler: ExtraTextFn) -> None:
    """Register (or replace) a named extra-text handler."""
    _HANDLERS[name] = handler
    logger.debug(f"Registered extra-text handler: {name}")


def get_extra_handler(name: str) -> Optional[ExtraTextFn]:
    """Look up a handler by name."""
    return _HANDLERS.get(name)


def coin_purse(template: str) -> str:
    """A purse of 2d6 x 10 gold pieces."""
    coins = DiceRoller.roll("2d6", "extra: coin purse").total * 10
    return f"{coins} gp"


def years_ago(template: str) -> str:
    """How long ago an event happened, for life events."""
    years = DiceRoller.roll("1d10", "extra: years ago").total
    return "a year ago" if years == 1 else f"{years} years ago"


register_extra_handler("coin-purse", coin_purse)
register_extra_handler("years-ago", years_ago)
