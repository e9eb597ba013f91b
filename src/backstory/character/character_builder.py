"""
Character backstory builder.

Rolls a complete backstory (origins, family, siblings and life events) by
resolving attributes from the table store. The builder only instantiates
attributes and wires modifiers between them; all table logic lives in the
attribute resolver.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from backstory.attributes.attribute import AttributeOptions, CharacterAttribute
from backstory.attributes.placeholders import DEFAULT_MAX_DEPTH
from backstory.data_models import BackstoryError, DiceRoller, is_dice_expression
from backstory.tables.table_manager import TableStore
from backstory.tables.table_types import RANDOM_STRATEGY

logger = logging.getLogger(__name__)

# Picks uniformly from the full race list instead of the weighted short table
RANDOM_FULL = "random-full"


class BackstoryBuildError(BackstoryError):
    """Raised when table data cannot drive a backstory, such as a non-numeric count."""

    pass


def _as_number(value: Any, source: str) -> int:
    """Read a count or modifier produced by a table row."""
    if isinstance(value, bool):
        raise BackstoryBuildError(f"{source} must be a number, got {value!r}")
    try:
        return int(str(value).strip())
    except ValueError:
        raise BackstoryBuildError(f"{source} must be a number, got {value!r}") from None


@dataclass
class SiblingBackstory:
    """One sibling of the character."""
    occupation: CharacterAttribute
    alignment: CharacterAttribute
    status: CharacterAttribute
    relationship: CharacterAttribute
    birth_order: CharacterAttribute

    def to_dict(self) -> dict[str, str]:
        return {
            "occupation": str(self.occupation),
            "alignment": str(self.alignment),
            "status": str(self.status),
            "relationship": str(self.relationship),
            "birth_order": str(self.birth_order),
        }


@dataclass
class FamilyBackstory:
    """Who raised the character and how."""
    family: CharacterAttribute
    lifestyle: CharacterAttribute
    childhood_home: CharacterAttribute
    childhood_memory: CharacterAttribute
    parents: CharacterAttribute
    num_siblings: int = 0
    parental_fate: list[CharacterAttribute] = field(default_factory=list)
    siblings: list[SiblingBackstory] = field(default_factory=list)

    def has_absent_parent(self) -> bool:
        return bool(self.parental_fate)

    def has_siblings(self) -> bool:
        return self.num_siblings > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "family": str(self.family),
            "lifestyle": str(self.lifestyle),
            "childhood_home": str(self.childhood_home),
            "childhood_memory": str(self.childhood_memory),
            "parents": str(self.parents),
            "parental_fate": [str(fate) for fate in self.parental_fate],
            "num_siblings": self.num_siblings,
            "siblings": [sibling.to_dict() for sibling in self.siblings],
        }


@dataclass
class CharacterBackstory:
    """
    A complete generated backstory.

    Every field holds the resolved attribute, so callers can show the text
    and, where useful, the roll behind it.
    """
    character_class: CharacterAttribute
    race: CharacterAttribute
    background: CharacterAttribute
    charisma: CharacterAttribute
    age: CharacterAttribute
    class_decision: CharacterAttribute
    background_decision: CharacterAttribute
    birthplace: CharacterAttribute
    family: FamilyBackstory
    events: list[CharacterAttribute] = field(default_factory=list)

    @property
    def charisma_modifier(self) -> int:
        return _as_number(self.charisma.outcome, "charisma outcome")

    @property
    def charisma_score(self) -> Optional[int]:
        roll = self.charisma.roll_result
        return roll.total if roll else None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "class": str(self.character_class),
            "race": str(self.race),
            "background": str(self.background),
            "charisma_score": self.charisma_score,
            "charisma_modifier": self.charisma_modifier,
            "age": str(self.age),
            "class_decision": str(self.class_decision),
            "background_decision": str(self.background_decision),
            "birthplace": str(self.birthplace),
            "family": self.family.to_dict(),
            "life_events": [str(event) for event in self.events],
        }

    def format_text(self) -> str:
        """Render the backstory as plain text."""
        score = self.charisma_score
        charisma = f"{self.charisma_modifier:+d}"
        if score is not None:
            charisma = f"{score} ({charisma})"

        lines = [
            f"Class: {self.character_class}",
            f"Race: {self.race}",
            f"Background: {self.background}",
            f"Charisma: {charisma}",
            f"Age: {self.age}",
            "",
            f"I became a {str(self.character_class).lower()} because: {self.class_decision}",
            f"I became a {str(self.background).lower()} because: {self.background_decision}",
            "",
            "ORIGINS",
            f"Birthplace: {self.birthplace}",
            f"Raised by: {self.family.family}",
            f"Family lifestyle: {self.family.lifestyle}",
            f"Childhood home: {self.family.childhood_home}",
            f"Childhood memory: {self.family.childhood_memory}",
            "",
            "PARENTS",
            str(self.family.parents),
        ]
        for fate in self.family.parental_fate:
            lines.append(f"Absent parent fate: {fate}")

        lines.extend(["", "SIBLINGS", f"Number of siblings: {self.family.num_siblings}"])
        for number, sibling in enumerate(self.family.siblings, 1):
            lines.append(
                f"  {number}. {sibling.birth_order} sibling - "
                f"Occupation: {sibling.occupation}; Alignment: {sibling.alignment}; "
                f"Status: {sibling.status}; Relationship: {sibling.relationship}"
            )

        lines.extend(["", "LIFE EVENTS"])
        for event in self.events:
            lines.append(f"- {event}")

        return "\n".join(lines)


class BackstoryBuilder:
    """
    Builds complete character backstories from a table store.

    Modifiers flow between attributes the way the tables expect: the
    charisma modifier feeds the childhood memories roll, the family
    lifestyle modifier feeds the childhood home roll, and the age row
    decides how many life events to roll.
    """

    def __init__(self, store: TableStore, max_depth: int = DEFAULT_MAX_DEPTH):
        self.store = store
        self.max_depth = max_depth

    def attribute(
        self,
        table_key: str,
        fetch: Any = RANDOM_STRATEGY,
        roll_modifier: Optional[int] = None,
    ) -> CharacterAttribute:
        """Resolve a single attribute with this builder's store and depth limit."""
        return CharacterAttribute(
            self.store,
            table_key,
            AttributeOptions(fetch=fetch, roll_modifier=roll_modifier),
            max_depth=self.max_depth,
        )

    def resolve_race(self, fetch: Any = RANDOM_STRATEGY) -> CharacterAttribute:
        """
        Resolve the character's race.

        "random" rolls the weighted race table; "random-full" picks
        uniformly from the full race list; any other value is looked up
        in the full race list.
        """
        if fetch == RANDOM_STRATEGY:
            return self.attribute("race")
        if fetch == RANDOM_FULL:
            return self.attribute("race-full")
        return self.attribute("race-full", fetch=fetch)

    def build(self, race_fetch: Any = RANDOM_STRATEGY) -> CharacterBackstory:
        """
        Generate a complete backstory.

        Args:
            race_fetch: "random", "random-full", or a specific race

        Returns:
            CharacterBackstory with every attribute resolved
        """
        character_class = self.attribute("class")
        background = self.attribute("background")
        charisma = self.attribute("charisma")
        age = self.attribute("age")

        backstory = CharacterBackstory(
            character_class=character_class,
            race=self.resolve_race(race_fetch),
            background=background,
            charisma=charisma,
            age=age,
            class_decision=self.attribute("class-decision"),
            background_decision=self.attribute("background-decision"),
            birthplace=self.attribute("birthplace"),
            family=self.build_family(_as_number(charisma.outcome, "charisma outcome")),
        )
        backstory.events = self.roll_life_events(age)

        logger.info(
            f"Generated backstory: {backstory.race} {backstory.character_class} "
            f"({backstory.background}), {len(backstory.events)} life events"
        )
        return backstory

    def build_family(self, charisma_modifier: int = 0) -> FamilyBackstory:
        """Roll family, upbringing, parents and siblings."""
        family = self.attribute("family")
        lifestyle = self.attribute("family-lifestyle")

        result = FamilyBackstory(
            family=family,
            lifestyle=lifestyle,
            childhood_home=self.attribute(
                "childhood-home",
                roll_modifier=_as_number(lifestyle.meta.get("modifier", 0), "family lifestyle modifier"),
            ),
            childhood_memory=self.attribute(
                "childhood-memories", roll_modifier=charisma_modifier
            ),
            parents=self.attribute("parents"),
        )

        absent = _as_number(family.meta.get("absent_parents", 0), "family absent_parents")
        result.parental_fate = [self.attribute("absent-parent") for _ in range(absent)]

        result.num_siblings = _as_number(self.attribute("siblings"), "number of siblings")
        result.siblings = [self.build_sibling() for _ in range(result.num_siblings)]

        return result

    def build_sibling(self) -> SiblingBackstory:
        return SiblingBackstory(
            occupation=self.attribute("occupation"),
            alignment=self.attribute("alignment"),
            status=self.attribute("status"),
            relationship=self.attribute("relationship"),
            birth_order=self.attribute("birth-order"),
        )

    def roll_life_events(self, age: CharacterAttribute) -> list[CharacterAttribute]:
        """Roll as many life events as the age row calls for."""
        dice = age.meta.get("life_events", "1d1")
        if not isinstance(dice, str) or not is_dice_expression(dice):
            logger.warning(f"Age '{age}' has no valid life event dice: {dice!r}")
            dice = "1d1"

        count = DiceRoller.roll(dice, "number of life events").total
        return [self.attribute("life-events") for _ in range(count)]
