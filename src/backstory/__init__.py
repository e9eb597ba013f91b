"""
Backstory Generator

Procedurally generates character backstories by rolling on lookup tables and
expanding {{placeholder}} references between them.
"""

from backstory.data_models import (
    BackstoryError,
    DiceResult,
    DiceRoller,
    InvalidDiceExpression,
)
from backstory.tables import (
    BackstoryTable,
    TableEntry,
    TableStore,
    UnknownTableError,
    RowNotFoundError,
    load_default_store,
)
from backstory.attributes import (
    AttributeOptions,
    CharacterAttribute,
    InvalidOptionsError,
    ResolutionDepthError,
    expand,
    resolve_attribute,
)
from backstory.character import BackstoryBuilder, CharacterBackstory

__version__ = "0.1.0"

__all__ = [
    "BackstoryError",
    "DiceResult",
    "DiceRoller",
    "InvalidDiceExpression",
    "BackstoryTable",
    "TableEntry",
    "TableStore",
    "UnknownTableError",
    "RowNotFoundError",
    "load_default_store",
    "AttributeOptions",
    "CharacterAttribute",
    "InvalidOptionsError",
    "ResolutionDepthError",
    "expand",
    "resolve_attribute",
    "BackstoryBuilder",
    "CharacterBackstory",
]
