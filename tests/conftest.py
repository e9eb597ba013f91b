"""
Pytest fixtures for the backstory generator test suite.

Provides seeded dice, a clean run log, small hand-built table stores and the
bundled table store.
"""

import pytest

from backstory.data_models import DiceRoller
from backstory.observability.run_log import reset_run_log
from backstory.tables.table_manager import TableStore, load_default_store
from backstory.tables.table_types import BackstoryTable, TableEntry


# =============================================================================
# DICE FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def clean_run_log():
    """Every test starts with an empty run log."""
    reset_run_log()
    yield
    reset_run_log()


@pytest.fixture
def seeded_dice():
    """Provide a seeded DiceRoller for reproducible tests."""
    DiceRoller.clear_roll_log()
    DiceRoller.set_seed(42)
    yield DiceRoller()
    DiceRoller.clear_roll_log()


@pytest.fixture
def clean_dice():
    """Provide a clean DiceRoller without seed."""
    DiceRoller.clear_roll_log()
    yield DiceRoller()
    DiceRoller.clear_roll_log()


# =============================================================================
# TABLE FIXTURES
# =============================================================================


@pytest.fixture
def relationship_table():
    """Three equally likely outcomes."""
    return BackstoryTable(
        key="relationship",
        roll="random",
        outcomes=(
            TableEntry(outcome="Friend"),
            TableEntry(outcome="Rival"),
            TableEntry(outcome="Stranger"),
        ),
    )


@pytest.fixture
def background_table():
    """Two halves of a percentile roll."""
    return BackstoryTable(
        key="background",
        roll="1d100",
        outcomes=(
            TableEntry(outcome="Peasant", min=1, max=50),
            TableEntry(outcome="Noble", min=51, max=100),
        ),
    )


@pytest.fixture
def lifestyle_table():
    return BackstoryTable(
        key="family-lifestyle",
        name="Family Lifestyle",
        roll="random",
        outcomes=(
            TableEntry(outcome="Modest", meta={"modifier": 0}),
        ),
    )


@pytest.fixture
def upbringing_table():
    """Single row whose template references the lifestyle table."""
    return BackstoryTable(
        key="upbringing",
        roll="random",
        outcomes=(
            TableEntry(
                outcome="Household",
                translate="Raised by a {{family-lifestyle}} household",
            ),
        ),
    )


@pytest.fixture
def modifier_table():
    """A 1d6+MOD table covering every total reachable with modifiers -2..2."""
    return BackstoryTable(
        key="fortune",
        roll="1d6+MOD",
        modifier_range=(-2, 2),
        outcomes=(
            TableEntry(outcome="Bad", min=-1, max=2),
            TableEntry(outcome="Fair", min=3, max=5),
            TableEntry(outcome="Good", min=6, max=8),
        ),
    )


@pytest.fixture
def table_store(
    relationship_table,
    background_table,
    lifestyle_table,
    upbringing_table,
    modifier_table,
):
    """Small store built by hand."""
    return TableStore([
        relationship_table,
        background_table,
        lifestyle_table,
        upbringing_table,
        modifier_table,
    ])


@pytest.fixture
def cyclic_store():
    """Two tables that reference each other forever."""
    return TableStore([
        BackstoryTable(
            key="chicken",
            outcomes=(TableEntry(outcome="Chicken", translate="came from an {{egg}}"),),
        ),
        BackstoryTable(
            key="egg",
            outcomes=(TableEntry(outcome="Egg", translate="laid by a {{chicken}}"),),
        ),
    ])


@pytest.fixture(scope="session")
def bundled_store():
    """The tables shipped with the package."""
    return load_default_store()
