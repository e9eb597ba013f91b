"""
Attribute resolution for the backstory generator.

This module provides:
- CharacterAttribute: a table outcome resolved at construction
- AttributeOptions: fetch mode, roll modifier and strategy override
- resolve_attribute: convenience entry point
- expand: {{placeholder}} expansion for outcome templates
"""

from backstory.attributes.attribute import (
    AttributeOptions,
    CharacterAttribute,
    InvalidOptionsError,
    resolve_attribute,
)
from backstory.attributes.placeholders import (
    DEFAULT_MAX_DEPTH,
    ResolutionDepthError,
    expand,
)

__all__ = [
    "AttributeOptions",
    "CharacterAttribute",
    "InvalidOptionsError",
    "resolve_attribute",
    "DEFAULT_MAX_DEPTH",
    "ResolutionDepthError",
    "expand",
]
