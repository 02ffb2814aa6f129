from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

from .ids import EventId


@dataclass
class LogEntry:
    type: str
    day: int
    event_id: Optional[EventId] = None
    reason: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class EventLog:
    def __init__(self):
        self.entries: List[LogEntry] = []

    def add_entry(
        self,
        type: str,
        day: int,
        event_id: Optional[EventId] = None,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        entry = LogEntry(
            type=type,
            day=day,
            event_id=event_id,
            reason=reason,
            details=details or {},
        )
        self.entries.append(entry)

    def of_type(self, type: str) -> List[LogEntry]:
        return [entry for entry in self.entries if entry.type == type]
