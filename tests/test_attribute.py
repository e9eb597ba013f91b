"""
Tests for CharacterAttribute, AttributeOptions and resolve_attribute.
"""

from unittest.mock import patch

import pytest

from backstory.attributes.attribute import (
    AttributeOptions,
    CharacterAttribute,
    InvalidOptionsError,
    resolve_attribute,
)
from backstory.attributes.placeholders import ResolutionDepthError
from backstory.data_models import DiceResult, DiceRoller
from backstory.observability.run_log import get_run_log
from backstory.tables.table_manager import UnknownTableError


class TestAttributeOptions:
    """Validation of attribute options."""

    def test_defaults(self):
        options = AttributeOptions()
        assert options.fetch == "random"
        assert options.roll_modifier is None
        assert options.strategy is None
        assert options.is_random

    @pytest.mark.parametrize("fetch", [None, 1.5, True, "", "   ", ["Noble"]])
    def test_invalid_fetch(self, fetch):
        with pytest.raises(InvalidOptionsError):
            AttributeOptions(fetch=fetch)

    @pytest.mark.parametrize("modifier", ["2", 1.0, False])
    def test_invalid_modifier(self, modifier):
        with pytest.raises(InvalidOptionsError):
            AttributeOptions(roll_modifier=modifier)

    def test_invalid_strategy(self):
        with pytest.raises(InvalidOptionsError):
            AttributeOptions(strategy="sometimes")

    def test_strategy_with_mod_accepted(self):
        assert AttributeOptions(strategy="1d6+MOD").strategy == "1d6+MOD"

    def test_options_error_is_value_error(self):
        with pytest.raises(ValueError):
            AttributeOptions(roll_modifier="lots")

    def test_from_dict(self):
        options = AttributeOptions.from_dict({"fetch": "Noble", "roll_modifier": 2})
        assert options == AttributeOptions(fetch="Noble", roll_modifier=2)

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(InvalidOptionsError) as excinfo:
            AttributeOptions.from_dict({"fetch": "Noble", "colour": "blue"})
        assert "colour" in str(excinfo.value)


class TestRandomResolution:
    """Attributes resolved by rolling."""

    def test_dice_table_records_roll(self, seeded_dice, table_store):
        attr = CharacterAttribute(table_store, "background")
        assert str(attr) in ("Peasant", "Noble")
        assert isinstance(attr.roll_result, DiceResult)
        assert attr.row.matches_roll(attr.roll_result.total)

    def test_forced_roll(self, table_store):
        result = DiceResult(notation="1d100", rolls=(37,), modifier=0, total=37)
        with patch.object(DiceRoller, "roll", return_value=result):
            attr = CharacterAttribute(table_store, "background")
        assert str(attr) == "Peasant"
        assert attr.roll_result is result

    def test_random_table_has_no_roll(self, seeded_dice, table_store):
        attr = CharacterAttribute(table_store, "relationship")
        assert attr.roll_result is None
        assert attr.selection_strategy == "random"

    def test_template_expanded(self, seeded_dice, table_store):
        attr = CharacterAttribute(table_store, "upbringing")
        assert attr.text == "Raised by a Modest household"
        assert attr.outcome == "Household"

    def test_lookup_by_name(self, seeded_dice, table_store):
        attr = CharacterAttribute(table_store, "Family Lifestyle")
        assert attr.table_key == "family-lifestyle"
        assert attr.meta["modifier"] == 0

    def test_roll_modifier_applied(self, seeded_dice, table_store):
        for _ in range(30):
            attr = CharacterAttribute(
                table_store, "fortune", AttributeOptions(roll_modifier=-2)
            )
            assert attr.roll_result.notation == "1d6-2"
            assert -1 <= attr.roll_result.total <= 4
            assert attr.roll_modifier == -2

    def test_strategy_override(self, seeded_dice, table_store):
        attr = CharacterAttribute(
            table_store, "background", AttributeOptions(strategy="random")
        )
        assert attr.roll_result is None
        assert attr.selection_strategy == "random"

    def test_unknown_table(self, table_store):
        with pytest.raises(UnknownTableError) as excinfo:
            CharacterAttribute(table_store, "dragons")
        assert "dragons" in str(excinfo.value)

    def test_unknown_table_is_key_error(self, table_store):
        with pytest.raises(KeyError):
            resolve_attribute(table_store, "dragons")

    def test_lookup_logged(self, seeded_dice, table_store):
        attr = CharacterAttribute(table_store, "background")
        lookups = get_run_log().get_table_lookups()
        assert len(lookups) == 1
        assert lookups[0].table_key == "background"
        assert lookups[0].roll_total == attr.roll_result.total
        assert lookups[0].result_text == str(attr)

    def test_depth_checked_on_construction(self, table_store):
        with pytest.raises(ResolutionDepthError):
            CharacterAttribute(table_store, "relationship", depth=5, max_depth=4)

    def test_cycle_detected(self, seeded_dice, cyclic_store):
        with pytest.raises(ResolutionDepthError):
            resolve_attribute(cyclic_store, "chicken")


class TestExplicitFetch:
    """Attributes that adopt a requested outcome."""

    def test_fetch_existing_outcome(self, clean_dice, table_store):
        attr = CharacterAttribute(table_store, "background", AttributeOptions(fetch="Noble"))
        assert str(attr) == "Noble"
        assert attr.roll_result is None
        assert attr.fetch == "Noble"
        assert clean_dice.get_roll_log() == []

    def test_fetch_expands_template(self, seeded_dice, table_store):
        attr = resolve_attribute(table_store, "upbringing", fetch="Household")
        assert str(attr) == "Raised by a Modest household"

    def test_unmatched_fetch_falls_back_to_selection(self, seeded_dice, table_store):
        attr = resolve_attribute(table_store, "background", fetch="Pirate")
        assert str(attr) in ("Peasant", "Noble")
        assert attr.roll_result is not None


class TestResolveAttribute:
    """The convenience entry point."""

    def test_keyword_options(self, seeded_dice, table_store):
        attr = resolve_attribute(table_store, "fortune", roll_modifier=2)
        assert attr.roll_result.notation == "1d6+2"

    def test_options_record(self, table_store):
        attr = resolve_attribute(table_store, "relationship", AttributeOptions(fetch="Rival"))
        assert str(attr) == "Rival"

    def test_both_forms_rejected(self, table_store):
        with pytest.raises(InvalidOptionsError):
            resolve_attribute(table_store, "relationship", AttributeOptions(), fetch="Rival")

    def test_unknown_keyword_rejected(self, table_store):
        with pytest.raises(InvalidOptionsError):
            resolve_attribute(table_store, "relationship", modifier=2)

    def test_seeded_reproducibility(self, bundled_store):
        def roll_races():
            DiceRoller.set_seed(2024)
            return [str(resolve_attribute(bundled_store, "race")) for _ in range(20)]

        assert roll_races() == roll_races()

    def test_max_depth_passed_through(self, seeded_dice, table_store):
        with pytest.raises(ResolutionDepthError):
            resolve_attribute(table_store, "upbringing", max_depth=0)


class TestSerialization:
    """String forms and dictionaries."""

    def test_to_dict_with_roll(self, table_store):
        result = DiceResult(notation="1d100", rolls=(88,), modifier=0, total=88)
        with patch.object(DiceRoller, "roll", return_value=result):
            attr = CharacterAttribute(table_store, "background")

        assert attr.to_dict() == {
            "table": "background",
            "outcome": "Noble",
            "text": "Noble",
            "roll": {"notation": "1d100", "rolls": [88], "modifier": 0, "total": 88},
        }

    def test_to_dict_without_roll(self, table_store):
        attr = resolve_attribute(table_store, "relationship", fetch="Friend")
        assert attr.to_dict()["roll"] is None

    def test_repr(self, table_store):
        attr = resolve_attribute(table_store, "relationship", fetch="Friend")
        assert repr(attr) == "CharacterAttribute('relationship', 'Friend')"
