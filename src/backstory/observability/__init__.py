"""
Observability for the backstory generator.

Records every dice roll and table lookup made during a generation so results
can be explained and audited.
"""

from backstory.observability.run_log import (
    RunLog,
    LogEvent,
    EventType,
    RollEvent,
    TableLookupEvent,
    get_run_log,
    reset_run_log,
)

__all__ = [
    "RunLog",
    "LogEvent",
    "EventType",
    "RollEvent",
    "TableLookupEvent",
    "get_run_log",
    "reset_run_log",
]
