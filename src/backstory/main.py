"""
Backstory Generator - Main Entry Point

Command-line front end for the backstory tables. Generates a complete
character backstory by default, or rolls a single table on request.
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from backstory.attributes.attribute import AttributeOptions, CharacterAttribute
from backstory.attributes.placeholders import DEFAULT_MAX_DEPTH
from backstory.character.character_builder import BackstoryBuilder
from backstory.data_models import BackstoryError, DiceRoller
from backstory.observability.run_log import get_run_log, reset_run_log
from backstory.tables.table_manager import TableStore, load_default_store
from backstory.tables.table_types import RANDOM_STRATEGY


# Configure logging
def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class GeneratorConfig:
    """Configuration for a generator run."""

    data_dir: Optional[Path] = None  # None uses the bundled tables
    seed: Optional[int] = None
    max_depth: int = DEFAULT_MAX_DEPTH

    # Output
    output_json: bool = False
    show_rolls: bool = False
    verbose: bool = False

    def __post_init__(self):
        if self.data_dir is not None and not isinstance(self.data_dir, Path):
            self.data_dir = Path(self.data_dir)
        if self.max_depth < 0:
            raise ValueError(f"max_depth must not be negative, got {self.max_depth}")


def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="backstory",
        description="Backstory Generator - random character histories from lookup tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m backstory.main                              # Generate a full backstory
  python -m backstory.main --seed 42 --json             # Reproducible JSON output
  python -m backstory.main --race random-full           # Any race, equally likely
  python -m backstory.main --table life-events --count 3
  python -m backstory.main --table childhood-home --modifier -20
  python -m backstory.main --list-outcomes race-full
        """
    )

    # General options
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory of table JSON files (default: bundled tables)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible results",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Deepest placeholder nesting allowed (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    # Backstory options
    backstory_group = parser.add_argument_group("Backstory Options")
    backstory_group.add_argument(
        "--race",
        type=str,
        default=RANDOM_STRATEGY,
        help="'random', 'random-full', or a specific race (default: random)",
    )

    # Single table options
    table_group = parser.add_argument_group("Table Options")
    table_group.add_argument(
        "--table",
        type=str,
        help="Roll on a single table instead of generating a backstory",
    )
    table_group.add_argument(
        "--fetch",
        type=str,
        default=RANDOM_STRATEGY,
        help="Outcome to look up instead of rolling (default: random)",
    )
    table_group.add_argument(
        "--modifier",
        type=int,
        default=None,
        help="Value substituted for MOD in the table's dice",
    )
    table_group.add_argument(
        "--count",
        type=int,
        default=1,
        help="Number of times to roll the table (default: 1)",
    )
    table_group.add_argument(
        "--list-outcomes",
        type=str,
        metavar="TABLE",
        help="List the outcomes of a table and exit",
    )
    table_group.add_argument(
        "--list-tables",
        action="store_true",
        help="List available tables and exit",
    )

    # Output options
    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )
    output_group.add_argument(
        "--show-rolls",
        action="store_true",
        help="Print every dice roll and table lookup after the results",
    )

    return parser.parse_args(argv)


def create_config_from_args(args: argparse.Namespace) -> GeneratorConfig:
    """Create GeneratorConfig from parsed arguments."""
    return GeneratorConfig(
        data_dir=args.data_dir,
        seed=args.seed,
        max_depth=args.max_depth,
        output_json=args.json,
        show_rolls=args.show_rolls,
        verbose=args.verbose,
    )


def _parse_fetch(value: str) -> Union[str, int]:
    """Numeric fetch values look up numeric outcomes."""
    try:
        return int(value)
    except ValueError:
        return value


# =============================================================================
# COMMANDS
# =============================================================================
# Each command returns (payload, text): the JSON-serializable result and its
# plain-text rendering.

def list_tables(store: TableStore) -> tuple[Any, str]:
    tables = [store.get_table(key) for key in store.keys()]
    payload = {table.key: table.roll for table in tables}
    text = "\n".join(f"{table.key:<24} {table.roll:<12} {table.name}" for table in tables)
    return payload, text


def list_outcomes(store: TableStore, table_key: str) -> tuple[Any, str]:
    outcomes = sorted(store.list_outcomes(table_key))
    return outcomes, "\n".join(outcomes)


def roll_table(store: TableStore, args: argparse.Namespace, config: GeneratorConfig) -> tuple[Any, str]:
    """Roll a single table --count times."""
    if args.count < 1:
        raise BackstoryError(f"--count must be at least 1, got {args.count}")

    options = AttributeOptions(fetch=_parse_fetch(args.fetch), roll_modifier=args.modifier)
    attributes = [
        CharacterAttribute(store, args.table, options, max_depth=config.max_depth)
        for _ in range(args.count)
    ]

    lines = []
    for attr in attributes:
        roll = attr.roll_result
        prefix = f"[{roll}] " if roll else ""
        lines.append(f"{prefix}{attr}")
    return [attr.to_dict() for attr in attributes], "\n".join(lines)


def generate_backstory(store: TableStore, args: argparse.Namespace, config: GeneratorConfig) -> tuple[Any, str]:
    builder = BackstoryBuilder(store, max_depth=config.max_depth)
    backstory = builder.build(race_fetch=args.race)
    return backstory.to_dict(), backstory.format_text()


def print_results(payload: Any, text: str, config: GeneratorConfig) -> None:
    """Print a command's results, with the run log when --show-rolls is set."""
    run_log = get_run_log()

    if config.output_json:
        if config.show_rolls:
            payload = {"result": payload, "run_log": run_log.to_dict()}
        print(json.dumps(payload, indent=2))
        return

    print(text)
    if config.show_rolls:
        print()
        print(run_log.format_log())


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI usage."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)

    try:
        config = create_config_from_args(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    reset_run_log()
    DiceRoller.clear_roll_log()
    if config.seed is not None:
        DiceRoller.set_seed(config.seed)

    try:
        store = load_default_store(config.data_dir)

        if args.list_tables:
            payload, text = list_tables(store)
        elif args.list_outcomes:
            payload, text = list_outcomes(store, args.list_outcomes)
        elif args.table:
            payload, text = roll_table(store, args, config)
        else:
            payload, text = generate_backstory(store, args, config)
    except BackstoryError as e:
        logger.debug(f"Generation failed: {e!r}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print_results(payload, text, config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
