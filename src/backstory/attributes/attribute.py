"""
Character attributes resolved from backstory tables.

A CharacterAttribute is created for one table key and resolves itself as soon
as it is constructed: it selects a row (or adopts an explicitly requested
one), expands the row's template, and is read-only from then on. Generating a
new value means creating a new attribute.
"""

from dataclasses import dataclass
from typing import Any, Optional
import logging

from backstory.attributes.placeholders import (
    DEFAULT_MAX_DEPTH,
    ResolutionDepthError,
    expand,
)
from backstory.data_models import (
    BackstoryError,
    DiceResult,
    is_dice_expression,
    substitute_modifier,
)
from backstory.observability.run_log import get_run_log
from backstory.tables.row_selector import find_row, select_row
from backstory.tables.table_manager import TableStore
from backstory.tables.table_types import (
    RANDOM_STRATEGY,
    BackstoryTable,
    OutcomeValue,
    TableEntry,
)

logger = logging.getLogger(__name__)


class InvalidOptionsError(BackstoryError, ValueError):
    """Raised when attribute options are malformed."""

    pass


@dataclass(frozen=True)
class AttributeOptions:
    """
    Options for resolving a single attribute.

    Attributes:
        fetch: "random" to select normally, or an explicit outcome value to
            look up verbatim (numbers match numeric outcomes)
        roll_modifier: Value substituted for MOD in the table's dice, or
            None for no modifier
        strategy: Overrides the table's roll strategy ("random" or dice)
    """
    fetch: OutcomeValue = RANDOM_STRATEGY
    roll_modifier: Optional[int] = None
    strategy: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.fetch, bool) or not isinstance(self.fetch, (str, int)):
            raise InvalidOptionsError(f"fetch must be a string or integer, got {self.fetch!r}")
        if isinstance(self.fetch, str) and not self.fetch.strip():
            raise InvalidOptionsError("fetch must not be empty")

        if self.roll_modifier is not None and (
            isinstance(self.roll_modifier, bool) or not isinstance(self.roll_modifier, int)
        ):
            raise InvalidOptionsError(f"roll_modifier must be an integer, got {self.roll_modifier!r}")

        if self.strategy is not None and self.strategy != RANDOM_STRATEGY:
            if not is_dice_expression(substitute_modifier(self.strategy, 0)):
                raise InvalidOptionsError(f"strategy must be 'random' or a dice expression, got {self.strategy!r}")

    @property
    def is_random(self) -> bool:
        return self.fetch == RANDOM_STRATEGY

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "AttributeOptions":
        """
        Build options from a plain configuration mapping.

        Raises:
            InvalidOptionsError: On keys other than fetch, roll_modifier, strategy
        """
        unknown = set(config) - {"fetch", "roll_modifier", "strategy"}
        if unknown:
            raise InvalidOptionsError(f"Unknown attribute options: {', '.join(sorted(unknown))}")
        return cls(**config)


class CharacterAttribute:
    """
    A character attribute that pulls its value from a backstory table.

    The value is resolved during construction. Dice tables record the roll
    used to pick the row in roll_result; uniform picks and explicit fetches
    leave it as None.
    """

    def __init__(
        self,
        store: TableStore,
        table_key: str,
        options: Optional[AttributeOptions] = None,
        *,
        depth: int = 0,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        """
        Resolve an attribute.

        Args:
            store: Table store to read tables from
            table_key: Table name or key ("Family Lifestyle" or "family-lifestyle")
            options: Fetch mode, roll modifier and strategy override
            depth: Nesting depth when created for a placeholder
            max_depth: Deepest nesting allowed before giving up

        Raises:
            UnknownTableError: If the table is not in the store
            RowNotFoundError: If the roll total matches no row
            InvalidDiceExpression: If a dice expression is malformed
            ResolutionDepthError: If placeholders nest deeper than max_depth
        """
        self._options = options or AttributeOptions()
        self._table: BackstoryTable = store.get_table(table_key)
        if depth > max_depth:
            raise ResolutionDepthError(self._table.key, max_depth)

        self._depth = depth
        self._roll_result: Optional[DiceResult] = None
        self._row: Optional[TableEntry] = None

        self._generate(store, max_depth)

    def _generate(self, store: TableStore, max_depth: int) -> None:
        """Pick the row, then expand its template."""
        if not self._options.is_random:
            self._row = find_row(self._table, self._options.fetch)
            if self._row is None:
                logger.debug(
                    f"No outcome {self._options.fetch!r} in '{self._table.key}', selecting normally"
                )

        if self._row is None:
            self._row, self._roll_result = select_row(
                self._table,
                roll_modifier=self._options.roll_modifier,
                strategy=self._options.strategy,
            )

        get_run_log().log_table_lookup(
            table_key=self._table.key,
            table_name=self._table.name,
            roll_total=self._roll_result.total if self._roll_result else None,
            result_text=str(self._row.outcome),
            modifier_applied=self._options.roll_modifier or 0,
            depth=self._depth,
        )

        if self._row.translate:
            self._text = expand(
                self._row.translate,
                store,
                extra=self._row.extra,
                depth=self._depth,
                max_depth=max_depth,
            )
        else:
            self._text = str(self._row.outcome)

        logger.debug(f"Resolved '{self._table.key}' -> {self._text!r}")

    @property
    def table_key(self) -> str:
        return self._table.key

    @property
    def table(self) -> BackstoryTable:
        return self._table

    @property
    def selection_strategy(self) -> str:
        """The strategy actually used: the override if given, else the table's."""
        return self._options.strategy or self._table.roll

    @property
    def fetch(self) -> OutcomeValue:
        return self._options.fetch

    @property
    def roll_modifier(self) -> Optional[int]:
        return self._options.roll_modifier

    @property
    def roll_result(self) -> Optional[DiceResult]:
        """The dice roll used to pick the row, if any."""
        return self._roll_result

    @property
    def row(self) -> TableEntry:
        return self._row

    @property
    def outcome(self) -> OutcomeValue:
        """The raw outcome value of the chosen row."""
        return self._row.outcome

    @property
    def meta(self):
        """Consumer data attached to the chosen row."""
        return self._row.meta

    @property
    def text(self) -> str:
        return self._text

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        roll = None
        if self._roll_result:
            roll = {
                "notation": self._roll_result.notation,
                "rolls": list(self._roll_result.rolls),
                "modifier": self._roll_result.modifier,
                "total": self._roll_result.total,
            }
        return {
            "table": self._table.key,
            "outcome": self._row.outcome,
            "text": self._text,
            "roll": roll,
        }

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"CharacterAttribute({self._table.key!r}, {self._text!r})"


def resolve_attribute(
    store: TableStore,
    table_key: str,
    options: Optional[AttributeOptions] = None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    **kwargs: Any,
) -> CharacterAttribute:
    """
    Resolve an attribute from a table.

    Options can be given either as an AttributeOptions record or as keyword
    arguments (fetch, roll_modifier, strategy), not both.

    Example:
        resolve_attribute(store, "childhood-home", roll_modifier=10)
    """
    if options is not None and kwargs:
        raise InvalidOptionsError("Pass either an AttributeOptions or keyword options, not both")
    if options is None:
        options = AttributeOptions.from_dict(kwargs)
    return CharacterAttribute(store, table_key, options, max_depth=max_depth)
