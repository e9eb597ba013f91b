"""
Character backstory generation.

This module provides:
- BackstoryBuilder: rolls a complete backstory from a table store
- CharacterBackstory, FamilyBackstory, SiblingBackstory: the generated records
"""

from backstory.character.character_builder import (
    RANDOM_FULL,
    BackstoryBuildError,
    BackstoryBuilder,
    CharacterBackstory,
    FamilyBackstory,
    SiblingBackstory,
)

__all__ = [
    "RANDOM_FULL",
    "BackstoryBuildError",
    "BackstoryBuilder",
    "CharacterBackstory",
    "FamilyBackstory",
    "SiblingBackstory",
]
