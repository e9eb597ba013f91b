"""
Placeholder expansion for outcome templates.

A template such as "Raised by a {{family-lifestyle}} household" is scanned
left to right for {{keyword}} markers. Each keyword becomes the resolved text
of another table, the output of the row's extra-text handler, or the total of
a dice roll. Replacement text is never scanned again.
"""

import logging
from typing import TYPE_CHECKING, Optional

from backstory.data_models import BackstoryError, DiceRoller
from backstory.tables.table_types import PLACEHOLDER_PATTERN, ExtraTextFn

if TYPE_CHECKING:
    from backstory.tables.table_manager import TableStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 32

EXTRA_KEYWORD = "extra"


class ResolutionDepthError(BackstoryError):
    """Raised when nested table references go deeper than the allowed limit."""

    def __init__(self, table_key: str, max_depth: int):
        self.table_key = table_key
        self.max_depth = max_depth
        super().__init__(
            f"Resolving '{table_key}' exceeded {max_depth} levels of nested "
            f"table references; the table data probably references itself"
        )


def expand(
    template: str,
    store: "TableStore",
    extra: Optional[ExtraTextFn] = None,
    depth: int = 0,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> str:
    """
    Expand every {{keyword}} marker in a template.

    Args:
        template: Text containing zero or more {{keyword}} markers
        store: Table store used to recognise and resolve table keywords
        extra: Handler for the {{extra}} keyword, called with the template
        depth: Nesting depth of the attribute that owns the template
        max_depth: Deepest nesting allowed for sub-table attributes

    Returns:
        The template with each marker replaced, in order

    Raises:
        InvalidDiceExpression: If a keyword is not a table, not "extra" and
            not a valid dice expression
        ResolutionDepthError: If sub-table resolution nests too deeply
    """
    # Lazy import: attributes depend on this module for their own expansion
    from backstory.attributes.attribute import AttributeOptions, CharacterAttribute

    parts = []
    position = 0

    for match in PLACEHOLDER_PATTERN.finditer(template):
        keyword = match.group(1).strip()

        if store.has_table(keyword):
            replacement = str(
                CharacterAttribute(
                    store,
                    keyword,
                    AttributeOptions(),
                    depth=depth + 1,
                    max_depth=max_depth,
                )
            )
        elif keyword == EXTRA_KEYWORD and extra is not None:
            replacement = extra(template)
        else:
            replacement = str(DiceRoller.roll(keyword, f"placeholder: {keyword}").total)

        logger.debug(f"Expanded {{{{{keyword}}}}} -> {replacement!r}")
        parts.append(template[position:match.start()])
        parts.append(replacement)
        position = match.end()

    if not parts:
        return template

    parts.append(template[position:])
    return "".join(parts)
