"""
Run log for a single generation.

Every dice roll and table lookup made while resolving attributes is recorded
here, so a generated backstory can be explained after the fact ("rolled 73
on 1d100, Childhood Home: Large house").
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Optional
import logging

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Kinds of recorded events."""

    ROLL = "roll"
    TABLE_LOOKUP = "table_lookup"


@dataclass
class LogEvent:
    """Fields shared by every recorded event."""

    event_type: ClassVar[EventType]
    timestamp: datetime = field(default_factory=datetime.now)
    sequence_number: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "sequence_number": self.sequence_number,
        }


@dataclass
class RollEvent(LogEvent):
    """One dice roll, with the individual dice kept."""

    event_type: ClassVar[EventType] = EventType.ROLL

    notation: str = ""  # e.g. "1d100", "3d6-2"
    rolls: list[int] = field(default_factory=list)
    modifier: int = 0
    total: int = 0
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            notation=self.notation,
            rolls=self.rolls,
            modifier=self.modifier,
            total=self.total,
            reason=self.reason,
        )
        return data

    def __str__(self) -> str:
        arithmetic = f"{self.rolls}"
        if self.modifier:
            sign = "+" if self.modifier > 0 else "-"
            arithmetic += f" {sign} {abs(self.modifier)}"
        return f"[{self.sequence_number}] ROLL {self.notation}: {arithmetic} = {self.total} ({self.reason})"


@dataclass
class TableLookupEvent(LogEvent):
    """A row chosen from a table, indented by how deeply it was nested."""

    event_type: ClassVar[EventType] = EventType.TABLE_LOOKUP

    table_key: str = ""
    table_name: str = ""
    roll_total: Optional[int] = None  # None for uniform picks and explicit fetches
    result_text: str = ""
    modifier_applied: int = 0
    depth: int = 0

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            table_key=self.table_key,
            table_name=self.table_name,
            roll_total=self.roll_total,
            result_text=self.result_text,
            modifier_applied=self.modifier_applied,
            depth=self.depth,
        )
        return data

    def __str__(self) -> str:
        indent = "  " * self.depth
        roll_str = "-" if self.roll_total is None else str(self.roll_total)
        mod_str = f" (mod: {self.modifier_applied:+d})" if self.modifier_applied else ""
        return f"[{self.sequence_number}] {indent}TABLE {self.table_name} [{roll_str}{mod_str}]: {self.result_text}"


class RunLog:
    """
    Ordered record of the rolls and lookups behind one generation.

    Singleton; use get_run_log() to access and reset_run_log() between runs.
    """

    _instance: Optional["RunLog"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._initialized = True
        self.reset()

    def reset(self) -> None:
        """Forget all events and the seed."""
        self._events: list[LogEvent] = []
        self._seed: Optional[int] = None
        self._session_start: datetime = datetime.now()
        logger.debug("RunLog reset")

    def set_seed(self, seed: int) -> None:
        self._seed = seed
        logger.debug(f"RunLog seed set: {seed}")

    def get_seed(self) -> Optional[int]:
        return self._seed

    def _record(self, event: LogEvent) -> LogEvent:
        event.sequence_number = len(self._events) + 1
        self._events.append(event)
        return event

    def log_roll(
        self,
        notation: str,
        rolls: list[int],
        modifier: int,
        total: int,
        reason: str = "",
    ) -> RollEvent:
        """Record a dice roll."""
        return self._record(
            RollEvent(notation=notation, rolls=rolls, modifier=modifier, total=total, reason=reason)
        )

    def log_table_lookup(
        self,
        table_key: str,
        table_name: str,
        roll_total: Optional[int],
        result_text: str,
        modifier_applied: int = 0,
        depth: int = 0,
    ) -> TableLookupEvent:
        """Record the row chosen from a table."""
        return self._record(
            TableLookupEvent(
                table_key=table_key,
                table_name=table_name,
                roll_total=roll_total,
                result_text=result_text,
                modifier_applied=modifier_applied,
                depth=depth,
            )
        )

    def get_rolls(self) -> list[RollEvent]:
        return [e for e in self._events if isinstance(e, RollEvent)]

    def get_table_lookups(self) -> list[TableLookupEvent]:
        return [e for e in self._events if isinstance(e, TableLookupEvent)]

    def to_dict(self) -> dict[str, Any]:
        """Serialize the whole log, events in the order they happened."""
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "rolls": len(self.get_rolls()),
            "table_lookups": len(self.get_table_lookups()),
            "events": [e.to_dict() for e in self._events],
        }

    def format_log(self) -> str:
        """Render the log as text, one event per line."""
        lines = [
            "=== Run Log ===",
            f"Session: {self._session_start.isoformat()}",
            f"Seed: {self._seed if self._seed is not None else 'not set'}",
            f"Rolls: {len(self.get_rolls())}, Table lookups: {len(self.get_table_lookups())}",
            "",
        ]
        lines.extend(str(event) for event in self._events)
        return "\n".join(lines)


_run_log: Optional[RunLog] = None


def get_run_log() -> RunLog:
    """Get the global RunLog instance."""
    global _run_log
    if _run_log is None:
        _run_log = RunLog()
    return _run_log


def reset_run_log() -> RunLog:
    """Reset and return the global RunLog instance."""
    log = get_run_log()
    log.reset()
    return log
