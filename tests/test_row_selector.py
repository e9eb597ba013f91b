"""
Tests for row selection and outcome lookup.
"""

from collections import Counter
from unittest.mock import patch

import pytest

from backstory.data_models import DiceResult, DiceRoller, InvalidDiceExpression
from backstory.tables.row_selector import RowNotFoundError, find_row, select_row
from backstory.tables.table_types import BackstoryTable, TableEntry


def _fixed_roll(total):
    """Patch the roller so the next table roll comes out at the given total."""
    return patch.object(
        DiceRoller,
        "roll",
        return_value=DiceResult(notation="1d100", rolls=(total,), modifier=0, total=total),
    )


class TestDiceSelection:
    """Selecting rows by matching a dice total against row ranges."""

    def test_low_half(self, background_table):
        with _fixed_roll(37):
            entry, roll = select_row(background_table)
        assert entry.outcome == "Peasant"
        assert roll.total == 37

    def test_upper_bound_inclusive(self, background_table):
        with _fixed_roll(100):
            entry, _ = select_row(background_table)
        assert entry.outcome == "Noble"

    def test_lower_bound_inclusive(self, background_table):
        with _fixed_roll(51):
            entry, _ = select_row(background_table)
        assert entry.outcome == "Noble"

    @pytest.mark.parametrize("total", [0, 101])
    def test_uncovered_total(self, background_table, total):
        with _fixed_roll(total):
            with pytest.raises(RowNotFoundError) as excinfo:
                select_row(background_table)
        assert excinfo.value.table_key == "background"
        assert excinfo.value.total == total

    def test_first_matching_row_wins(self):
        table = BackstoryTable(
            key="overlap",
            roll="1d100",
            outcomes=(
                TableEntry(outcome="First", min=1, max=60),
                TableEntry(outcome="Second", min=40, max=100),
            ),
        )
        with _fixed_roll(50):
            entry, _ = select_row(table)
        assert entry.outcome == "First"

    def test_modifier_substituted_before_rolling(self, modifier_table):
        with patch.object(DiceRoller, "roll", wraps=DiceRoller.roll) as roll:
            select_row(modifier_table, roll_modifier=-2)
        assert roll.call_args[0][0] == "1d6-2"

    def test_missing_modifier_rolls_plus_zero(self, modifier_table):
        with patch.object(DiceRoller, "roll", wraps=DiceRoller.roll) as roll:
            select_row(modifier_table)
        assert roll.call_args[0][0] == "1d6+0"

    def test_modified_results_stay_covered(self, seeded_dice, modifier_table):
        for modifier in (-2, 0, 2):
            for _ in range(50):
                entry, roll = select_row(modifier_table, roll_modifier=modifier)
                assert entry.matches_roll(roll.total)

    def test_strategy_override(self, seeded_dice, background_table):
        """A dice override on a dice table replaces the table's own dice."""
        for _ in range(50):
            entry, roll = select_row(background_table, strategy="1d50")
            assert entry.outcome == "Peasant"
            assert roll.notation == "1d50"

    def test_invalid_strategy(self, background_table):
        with pytest.raises(InvalidDiceExpression):
            select_row(background_table, strategy="lots")


class TestRandomSelection:
    """Uniform selection over a table's rows."""

    def test_returns_no_roll(self, seeded_dice, relationship_table):
        entry, roll = select_row(relationship_table)
        assert entry in relationship_table.outcomes
        assert roll is None

    def test_roughly_uniform(self, seeded_dice, relationship_table):
        """Each of three rows comes up about a third of the time."""
        counts = Counter(
            select_row(relationship_table)[0].outcome for _ in range(1000)
        )
        assert set(counts) == {"Friend", "Rival", "Stranger"}
        for outcome, count in counts.items():
            assert 250 <= count <= 420, f"{outcome} chosen {count} times"

    def test_random_override_on_dice_table(self, seeded_dice, background_table):
        entry, roll = select_row(background_table, strategy="random")
        assert entry.outcome in ("Peasant", "Noble")
        assert roll is None

    def test_empty_table(self):
        with pytest.raises(RowNotFoundError) as excinfo:
            select_row(BackstoryTable(key="empty"))
        assert excinfo.value.total is None

    def test_empty_dice_table(self, seeded_dice):
        with pytest.raises(RowNotFoundError):
            select_row(BackstoryTable(key="empty", roll="1d6"))


class TestFindRow:
    """Looking rows up by their outcome value."""

    def test_finds_text_outcome(self, background_table):
        entry = find_row(background_table, "Noble")
        assert entry is background_table.outcomes[1]

    def test_case_sensitive(self, background_table):
        assert find_row(background_table, "noble") is None

    def test_no_match(self, relationship_table):
        assert find_row(relationship_table, "Enemy") is None

    def test_numeric_outcomes(self):
        table = BackstoryTable(
            key="charisma",
            roll="3d6",
            outcomes=(
                TableEntry(outcome=-1, min=3, max=9),
                TableEntry(outcome=0, min=10, max=11),
                TableEntry(outcome=1, min=12, max=18),
            ),
        )
        assert find_row(table, 1) is table.outcomes[2]
        assert find_row(table, "-1") is table.outcomes[0]
        assert find_row(table, 5) is None

    def test_number_does_not_match_text(self):
        table = BackstoryTable(key="t", outcomes=(TableEntry(outcome="3"),))
        assert find_row(table, 3) is None

    def test_left_inverse(self, table_store):
        for key in table_store:
            table = table_store.get_table(key)
            for entry in table.outcomes:
                assert find_row(table, entry.outcome) is entry
