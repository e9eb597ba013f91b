"""
Table store for the backstory generator.

Provides read-only access to all backstory tables by normalized key, loads
table definitions from JSON, and checks table data for the gaps, overlaps and
dangling references that would make resolution fail later.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Optional, Union
import json
import logging

from backstory.data_models import (
    BackstoryError,
    DiceRoller,
    InvalidDiceExpression,
    is_dice_expression,
    substitute_modifier,
)
from backstory.tables.extra_text import get_extra_handler
from backstory.tables.table_types import (
    RANDOM_STRATEGY,
    BackstoryTable,
    TableEntry,
    to_key,
)

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent / "data"


class UnknownTableError(BackstoryError, KeyError):
    """Raised when a table key has no definition in the store."""

    def __init__(self, table_key: str):
        self.table_key = table_key
        super().__init__(table_key)

    def __str__(self) -> str:
        return f"Unknown table: '{self.table_key}'"


@dataclass
class LoadResult:
    """Result of a loading operation."""
    success: bool
    loaded: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def merge(self, other: "LoadResult") -> None:
        self.success = self.success and other.success
        self.loaded += other.loaded
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)


class TableStore:
    """
    Read-only mapping from table key to table definition.

    The store is populated once, before any attribute is resolved, and only
    read afterwards. Keys are normalized with to_key() on the way in and out.
    """

    def __init__(self, tables: Optional[list[BackstoryTable]] = None):
        # Tables indexed by key
        self._tables: dict[str, BackstoryTable] = {}

        for table in tables or []:
            self.register_table(table)

    def register_table(self, table: BackstoryTable) -> None:
        """
        Register a table with the store.

        Args:
            table: The table to register. A table with the same key is replaced.
        """
        if table.key in self._tables:
            logger.warning(f"Replacing existing table '{table.key}'")
        self._tables[table.key] = table

    def get_table(self, table_key: str) -> BackstoryTable:
        """
        Get a table by key.

        Raises:
            UnknownTableError: If no table is registered under the key
        """
        key = to_key(table_key)
        table = self._tables.get(key)
        if table is None:
            raise UnknownTableError(key)
        return table

    def has_table(self, table_key: str) -> bool:
        return to_key(table_key) in self._tables

    def __contains__(self, table_key: object) -> bool:
        return isinstance(table_key, str) and self.has_table(table_key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)

    def keys(self) -> list[str]:
        """All table keys, sorted."""
        return sorted(self._tables)

    def list_outcomes(self, table_key: str) -> frozenset[str]:
        """
        Every distinct outcome value defined for a table.

        Weighting is ignored; this is meant for populating choices such as
        dropdowns, not for sampling.
        """
        table = self.get_table(table_key)
        return frozenset(str(entry.outcome) for entry in table.outcomes)

    # =========================================================================
    # LOADING
    # =========================================================================

    def load_tables_from_json(self, file_path: Path) -> LoadResult:
        """
        Load tables from a JSON file.

        Args:
            file_path: Path to JSON file containing table definitions

        Returns:
            LoadResult with the number of tables loaded and any problems
        """
        result = LoadResult(success=True)
        file_path = Path(file_path)

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            result.success = False
            result.errors.append(f"{file_path.name}: {e}")
            logger.error(f"Error reading table file {file_path}: {e}")
            return result

        tables_data = data.get("tables", [data]) if isinstance(data, dict) else data
        if not isinstance(tables_data, list):
            result.success = False
            result.errors.append(f"{file_path.name}: expected a list of tables, got {type(tables_data).__name__}")
            logger.error(f"Error reading table file {file_path}: {result.errors[-1]}")
            return result

        for table_data in tables_data:
            try:
                table = parse_table(table_data)
            except (KeyError, TypeError, ValueError) as e:
                result.success = False
                result.errors.append(f"{file_path.name}: {e}")
                logger.error(f"Error parsing table in {file_path}: {e}")
                continue

            for issue in find_coverage_issues(table):
                result.warnings.append(f"{file_path.name}: {issue}")
                logger.warning(issue)

            self.register_table(table)
            result.loaded += 1

        logger.info(f"Loaded {result.loaded} tables from {file_path.name}")
        return result

    def load_directory(self, directory: Path) -> LoadResult:
        """
        Load every *.json table file in a directory, in name order.

        Cross-table references are checked once all files are loaded.
        """
        directory = Path(directory)
        result = LoadResult(success=True)

        if not directory.is_dir():
            result.success = False
            result.errors.append(f"Table directory not found: {directory}")
            logger.error(result.errors[-1])
            return result

        for file_path in sorted(directory.glob("*.json")):
            result.merge(self.load_tables_from_json(file_path))

        for issue in self.find_reference_issues():
            result.warnings.append(issue)
            logger.warning(issue)

        return result

    def find_reference_issues(self) -> list[str]:
        """
        Check placeholders across the whole store.

        Reports keywords that are neither a known table, "extra", nor a dice
        expression, and chains of table references that loop back on
        themselves (which would recurse until the depth limit).
        """
        issues = []
        graph: dict[str, set[str]] = {}

        for key, table in self._tables.items():
            graph[key] = set()
            for entry in table.outcomes:
                for keyword in entry.placeholders():
                    if to_key(keyword) in self._tables:
                        graph[key].add(to_key(keyword))
                    elif keyword == "extra":
                        if entry.extra is None:
                            issues.append(f"Table '{key}' uses {{{{extra}}}} on '{entry.outcome}' without a handler")
                    elif not is_dice_expression(keyword):
                        issues.append(f"Table '{key}' references unknown keyword '{keyword}'")

        for cycle in _find_cycles(graph):
            issues.append("Table reference cycle: " + " -> ".join(cycle))

        return issues


def _find_cycles(graph: dict[str, set[str]]) -> list[list[str]]:
    """Depth-first search for reference cycles, one report per cycle start."""
    cycles = []
    visited: set[str] = set()

    def visit(node: str, path: list[str]) -> None:
        if node in path:
            cycles.append(path[path.index(node):] + [node])
            return
        if node in visited:
            return
        visited.add(node)
        for target in sorted(graph.get(node, ())):
            visit(target, path + [node])

    for start in sorted(graph):
        visit(start, [])

    return cycles


def parse_entry(data: dict[str, Any]) -> TableEntry:
    """Parse a table entry from JSON data."""
    if not isinstance(data, dict):
        raise TypeError(f"entry must be an object, got {type(data).__name__}")
    if "outcome" not in data:
        raise KeyError(f"entry missing 'outcome': {data}")
    outcome = data["outcome"]
    if isinstance(outcome, bool) or not isinstance(outcome, (str, int)):
        raise TypeError(f"outcome must be a string or integer, got {outcome!r}")

    translate = data.get("translate")
    if translate is not None and not isinstance(translate, str):
        raise TypeError(f"translate for '{outcome}' must be a string")

    roll = data.get("roll")
    roll_min = data.get("min", roll if roll is not None else 0)
    roll_max = data.get("max", roll if roll is not None else roll_min)

    extra = None
    extra_name = data.get("extra")
    if extra_name:
        extra = get_extra_handler(extra_name)
        if extra is None:
            raise ValueError(f"unknown extra-text handler '{extra_name}'")

    return TableEntry(
        outcome=outcome,
        min=int(roll_min),
        max=int(roll_max),
        translate=translate,
        extra=extra,
        meta=data.get("meta", {}),
    )


def parse_table(data: dict[str, Any]) -> BackstoryTable:
    """
    Parse a table from JSON data.

    Raises:
        TypeError: If the table or its outcomes are not JSON objects and lists
        KeyError: If the table has no key
        ValueError: If the roll strategy is neither "random" nor valid dice,
            or the modifier range is not a pair of integers
    """
    if not isinstance(data, dict):
        raise TypeError(f"table must be an object, got {type(data).__name__}")

    key = data.get("key") or data.get("name")
    if not key:
        raise KeyError("table missing 'key'")
    if not isinstance(key, str):
        raise TypeError(f"table key must be a string, got {key!r}")

    roll = data.get("roll", RANDOM_STRATEGY)
    if not isinstance(roll, str):
        raise TypeError(f"table '{key}' roll must be a string, got {roll!r}")
    if roll != RANDOM_STRATEGY and not is_dice_expression(substitute_modifier(roll, 0)):
        raise InvalidDiceExpression(roll)

    outcomes = data.get("outcomes", [])
    if not isinstance(outcomes, list):
        raise TypeError(f"table '{key}' outcomes must be a list")

    modifier_range = data.get("modifier_range", (0, 0))
    if (
        not isinstance(modifier_range, (list, tuple))
        or len(modifier_range) != 2
        or not all(isinstance(v, int) and not isinstance(v, bool) for v in modifier_range)
    ):
        raise ValueError(f"table '{key}' modifier_range must be two integers, got {modifier_range!r}")

    return BackstoryTable(
        key=key,
        roll=roll,
        outcomes=tuple(parse_entry(e) for e in outcomes),
        name=data.get("name", ""),
        description=data.get("description", ""),
        modifier_range=tuple(modifier_range),
    )


def find_coverage_issues(table: BackstoryTable) -> list[str]:
    """
    Check that a dice table's ranges cover every achievable total once.

    Achievable totals span the dice minimum to maximum, widened by the
    table's declared modifier range. Random tables are only checked for
    being empty and for duplicate outcome values.

    Returns:
        Human-readable descriptions of gaps, overlaps and duplicates
    """
    issues = []

    if not table.outcomes:
        return [f"Table '{table.key}' has no outcomes"]

    seen: set[str] = set()
    for entry in table.outcomes:
        value = str(entry.outcome)
        if value in seen:
            issues.append(f"Table '{table.key}' has duplicate outcome '{value}'")
        seen.add(value)

    if table.is_random:
        return issues

    low_mod, high_mod = table.modifier_range
    num_dice, die_size, _ = DiceRoller.parse(substitute_modifier(table.roll, 0))
    base_low = num_dice + _fixed_modifier(table.roll, low_mod)
    base_high = num_dice * die_size + _fixed_modifier(table.roll, high_mod)
    low, high = min(base_low, base_high), max(base_low, base_high)

    gaps = []
    for total in range(low, high + 1):
        matches = [e for e in table.outcomes if e.matches_roll(total)]
        if not matches:
            gaps.append(total)
        elif len(matches) > 1:
            issues.append(f"Table '{table.key}' has overlapping rows at {total}")

    for start, end in _collapse(gaps):
        span = str(start) if start == end else f"{start}-{end}"
        issues.append(f"Table '{table.key}' has no row for totals {span}")

    return issues


def _fixed_modifier(roll: str, modifier: int) -> int:
    """Total flat modifier of an expression once MOD is substituted."""
    return DiceRoller.parse(substitute_modifier(roll, modifier))[2]


def _collapse(values: list[int]) -> list[tuple[int, int]]:
    spans: list[tuple[int, int]] = []
    for value in values:
        if spans and spans[-1][1] == value - 1:
            spans[-1] = (spans[-1][0], value)
        else:
            spans.append((value, value))
    return spans


def load_default_store(data_dir: Optional[Union[str, Path]] = None) -> TableStore:
    """
    Build a fresh store from a directory of JSON table files.

    Args:
        data_dir: Directory to load; the bundled backstory tables when None

    Raises:
        BackstoryError: If any table file fails to load
    """
    store = TableStore()
    result = store.load_directory(Path(data_dir) if data_dir else DEFAULT_DATA_DIR)
    if not result.success:
        raise BackstoryError("Failed to load tables: " + "; ".join(result.errors))
    return store
