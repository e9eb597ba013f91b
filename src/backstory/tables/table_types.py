"""
Table types for backstory generation.

A table is an ordered set of possible outcomes plus the strategy used to pick
one: either a uniform random choice or a dice roll matched against each
entry's inclusive range. Tables are immutable once built.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Union
import re


RANDOM_STRATEGY = "random"

PLACEHOLDER_PATTERN = re.compile(r"{{(.*?)}}")


def to_key(name: str) -> str:
    """
    Convert a table name to key format.

    Whitespace becomes dashes and everything is lowercased, so
    "Family Lifestyle" and "family-lifestyle" name the same table.
    """
    return re.sub(r"\s", "-", name).lower()


OutcomeValue = Union[str, int]
ExtraTextFn = Callable[[str], str]


@dataclass(frozen=True)
class TableEntry:
    """
    A single entry in a backstory table.

    The outcome is the display value used when no template is present and the
    value matched by explicit lookups. A translate template supersedes the
    outcome for display and may contain {{keyword}} placeholders.
    """
    outcome: OutcomeValue

    # Roll range (inclusive), only meaningful for dice tables
    min: int = 0
    max: int = 0

    translate: Optional[str] = None       # Template with {{keyword}} placeholders
    extra: Optional[ExtraTextFn] = field(default=None, compare=False)

    # Consumer data attached to the row (life event dice, lifestyle modifier, ...)
    meta: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "meta", MappingProxyType(dict(self.meta)))

    def matches_roll(self, roll: int) -> bool:
        """Check if a roll value falls within this entry's range."""
        return self.min <= roll <= self.max

    @property
    def has_template(self) -> bool:
        return bool(self.translate)

    def placeholders(self) -> list[str]:
        """Keywords referenced by this entry's template, in order."""
        if not self.translate:
            return []
        return [m.strip() for m in PLACEHOLDER_PATTERN.findall(self.translate)]

    def __str__(self) -> str:
        return str(self.outcome)


@dataclass(frozen=True)
class BackstoryTable:
    """
    A backstory table for random determination.

    The roll is either "random" (uniform choice over the outcomes) or a dice
    expression such as "1d100" or "1d100+MOD"; MOD is replaced by the caller's
    modifier before rolling.
    """
    key: str
    roll: str = RANDOM_STRATEGY
    outcomes: tuple[TableEntry, ...] = ()
    name: str = ""
    description: str = ""

    # Smallest and largest modifier callers are expected to pass for MOD
    modifier_range: tuple[int, int] = (0, 0)

    def __post_init__(self):
        object.__setattr__(self, "key", to_key(self.key))
        object.__setattr__(self, "outcomes", tuple(self.outcomes))
        object.__setattr__(self, "modifier_range", tuple(self.modifier_range))
        if not self.name:
            object.__setattr__(self, "name", self.key.replace("-", " ").title())

    @property
    def is_random(self) -> bool:
        """True if rows are picked uniformly rather than by dice range."""
        return self.roll == RANDOM_STRATEGY

    @property
    def uses_modifier(self) -> bool:
        """True if the dice expression expects a MOD substitution."""
        return "MOD" in self.roll

    def referenced_keys(self) -> set[str]:
        """All placeholder keywords used by this table's templates."""
        keys = set()
        for entry in self.outcomes:
            keys.update(to_key(k) for k in entry.placeholders())
        return keys

    def __len__(self) -> int:
        return len(self.outcomes)
