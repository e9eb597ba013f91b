"""
Shared data structures for the backstory generator.

Holds the centralized dice roller and its result type. Every random draw made
while resolving tables goes through DiceRoller so that a single seed makes a
whole generation reproducible.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
import random
import re

from backstory.observability.run_log import get_run_log


# =============================================================================
# ERRORS
# =============================================================================


class BackstoryError(Exception):
    """Base class for all backstory generation errors."""

    pass


class InvalidDiceExpression(BackstoryError, ValueError):
    """Raised when a dice expression does not match <count>d<faces>[+|-<mod>]."""

    def __init__(self, expression: str):
        self.expression = expression
        super().__init__(f"Invalid dice expression: {expression!r}")


# =============================================================================
# DICE AND RANDOMIZATION
# =============================================================================


DICE_PATTERN = re.compile(r"^\s*(\d*)\s*[dD]\s*(\d+)\s*(?:([+-])\s*(\d+))?\s*$")
MODIFIER_TOKEN = re.compile(r"([+-])?\s*MOD")

# Number of recent rolls DiceRoller keeps in memory
ROLL_LOG_LIMIT = 1000


def substitute_modifier(expression: str, modifier: Optional[int]) -> str:
    """
    Replace the MOD token of a dice expression with a signed integer.

    The sign written before MOD is folded into the value, so "1d6+MOD" with a
    modifier of -2 becomes "1d6-2". A missing modifier counts as zero.

    Args:
        expression: Dice expression, possibly containing MOD
        modifier: Modifier to substitute, or None for no modifier

    Returns:
        The expression with every MOD token replaced
    """
    value = modifier or 0

    def _replace(match: re.Match) -> str:
        signed = -value if match.group(1) == "-" else value
        return f"{signed:+d}"

    return MODIFIER_TOKEN.sub(_replace, expression)


def is_dice_expression(expression: str) -> bool:
    """Check whether a string is a valid dice expression."""
    return DICE_PATTERN.match(expression) is not None


class DiceRoller:
    """
    Centralized randomization interface.
    All dice rolls must go through this class for reproducibility and logging.
    """

    _instance = None
    _seed: Optional[int] = None
    _roll_log: deque = deque(maxlen=ROLL_LOG_LIMIT)

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def set_seed(cls, seed: int) -> None:
        """Set random seed for reproducibility."""
        cls._seed = seed
        random.seed(seed)
        get_run_log().set_seed(seed)

    @classmethod
    def get_seed(cls) -> Optional[int]:
        """Get the last seed set, if any."""
        return cls._seed

    @classmethod
    def parse(cls, dice: str) -> tuple[int, int, int]:
        """
        Parse dice notation into (count, faces, modifier).

        Raises:
            InvalidDiceExpression: If the notation is malformed
        """
        match = DICE_PATTERN.match(dice)
        if not match:
            raise InvalidDiceExpression(dice)

        count_str, faces_str, sign, mod_str = match.groups()
        num_dice = int(count_str) if count_str else 1
        die_size = int(faces_str)
        if num_dice < 1 or die_size < 1:
            raise InvalidDiceExpression(dice)

        modifier = int(mod_str) if mod_str else 0
        if sign == "-":
            modifier = -modifier
        return num_dice, die_size, modifier

    @classmethod
    def roll(cls, dice: str, reason: str = "") -> "DiceResult":
        """
        Roll dice using standard notation (e.g., '2d6', '1d20+5', '3d6-2').

        Args:
            dice: Dice notation string
            reason: Why this roll is being made (for logging)

        Returns:
            DiceResult with individual rolls and total

        Raises:
            InvalidDiceExpression: If the notation is malformed
        """
        num_dice, die_size, modifier = cls.parse(dice)

        rolls = tuple(random.randint(1, die_size) for _ in range(num_dice))
        total = sum(rolls) + modifier

        result = DiceResult(
            notation=dice.strip(),
            rolls=rolls,
            modifier=modifier,
            total=total,
            reason=reason,
        )

        cls._roll_log.append(result)
        get_run_log().log_roll(
            notation=result.notation,
            rolls=list(rolls),
            modifier=modifier,
            total=total,
            reason=reason,
        )
        return result

    @classmethod
    def randint(cls, a: int, b: int, reason: str = "") -> int:
        """Return a random integer in [a, b] through the logged roller."""
        if b < a:
            raise ValueError(f"Empty range: {a}..{b}")
        return cls.roll(f"1d{b - a + 1}", reason).total + a - 1

    @classmethod
    def choice_index(cls, length: int, reason: str = "") -> int:
        """Pick a uniform zero-based index into a sequence of the given length."""
        if length < 1:
            raise IndexError("Cannot choose from an empty sequence")
        return cls.randint(0, length - 1, reason)

    @classmethod
    def get_roll_log(cls) -> list:
        """Get the most recent rolls, oldest first."""
        return list(cls._roll_log)

    @classmethod
    def clear_roll_log(cls) -> None:
        """Clear the roll log."""
        cls._roll_log = deque(maxlen=ROLL_LOG_LIMIT)


@dataclass(frozen=True)
class DiceResult:
    """Result of a dice roll with full information."""
    notation: str
    rolls: tuple[int, ...]
    modifier: int
    total: int
    reason: str = ""
    timestamp: datetime = field(default_factory=datetime.now, compare=False)

    @property
    def natural_total(self) -> int:
        """Sum of the dice before the modifier."""
        return sum(self.rolls)

    def __str__(self) -> str:
        rolls = list(self.rolls)
        if self.modifier > 0:
            return f"{self.notation}: {rolls} + {self.modifier} = {self.total}"
        elif self.modifier < 0:
            return f"{self.notation}: {rolls} - {abs(self.modifier)} = {self.total}"
        return f"{self.notation}: {rolls} = {self.total}"
