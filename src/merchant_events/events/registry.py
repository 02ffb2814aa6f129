import logging
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.calendar import CalendarTime, Season
from ..core.ids import EventId
from .conditions import check_all
from .errors import DuplicateEventIdError, EventNotFoundError
from .load import load_event_catalog
from .model import EventDefinition, EventNotification
from .schedule import RandomSchedule, SeasonalSchedule

logger = logging.getLogger(__name__)


class EventRegistry:
    """
    Catalog of event definitions and the calendar-side queries over it.

    A single reentrant lock guards the catalog. Reads from UI threads and the
    game loop's dispatch path both take it, so queries always see a whole catalog.
    """

    def __init__(self):
        self._events: Dict[EventId, EventDefinition] = {} # insertion order = registration order
        self._lock = threading.RLock()

    def load_from_yaml(self, path: Path) -> List[EventDefinition]:
        """Registers a catalog whose follow-ups may chain to already registered events."""
        with self._lock:
            definitions = load_event_catalog(path, known_ids=set(self._events))
            for definition in definitions:
                if definition.id in self._events:
                    raise DuplicateEventIdError(definition.id)
            for definition in definitions:
                self.register(definition)
        logger.info("Loaded %d events from %s", len(definitions), path)
        return definitions

    def register(self, definition: EventDefinition, replace: bool = False):
        with self._lock:
            if definition.id in self._events and not replace:
                raise DuplicateEventIdError(definition.id)
            self._events[definition.id] = definition
        logger.debug("Registered event '%s' (%s)", definition.id, definition.priority.name)

    def get(self, event_id: str) -> Optional[EventDefinition]:
        with self._lock:
            return self._events.get(EventId(event_id))

    def require(self, event_id: str) -> EventDefinition:
        definition = self.get(event_id)
        if definition is None:
            raise EventNotFoundError(event_id)
        return definition

    def all_events(self) -> List[EventDefinition]:
        with self._lock:
            return list(self._events.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def __contains__(self, event_id) -> bool:
        with self._lock:
            return event_id in self._events

    def set_active(self, event_id: str, active: bool):
        with self._lock:
            self.require(event_id).active = active

    def events_for_season(self, season: Season) -> List[EventDefinition]:
        with self._lock:
            return [
                event for event in self._events.values()
                if isinstance(event.schedule, SeasonalSchedule) and event.schedule.season == season
            ]

    def random_pool(self) -> List[EventDefinition]:
        """Active events whose firing is left to the frequency engine."""
        with self._lock:
            return [
                event for event in self._events.values()
                if event.active and isinstance(event.schedule, RandomSchedule)
            ]

    def due_events(self, now: CalendarTime, context: Mapping[str, Any]) -> List[EventDefinition]:
        """
        Active events whose schedule fires at `now` and whose conditions pass,
        highest priority first. sorted() is stable, so equal priorities keep
        registration order.
        """
        with self._lock:
            due = [
                event for event in self._events.values()
                if event.active
                and event.schedule is not None
                and event.schedule.should_trigger(now)
                and check_all(event.conditions, context)
            ]
        return sorted(due, key=lambda event: event.priority, reverse=True)

    # --- Upcoming / notifications ---

    @staticmethod
    def days_until(definition: EventDefinition, now: CalendarTime, horizon: int) -> Optional[int]:
        """First offset in 0..horizon on which the schedule fires; 0 means today."""
        if definition.schedule is None:
            return None
        day = now
        for offset in range(horizon + 1):
            if definition.schedule.should_trigger(day):
                return offset
            day = day.next_day()
        return None

    def get_upcoming(self, now: CalendarTime, days_ahead: int) -> List[EventDefinition]:
        with self._lock:
            return [
                event for event in self._events.values()
                if event.active
                and event.schedule is not None
                and self.days_until(event, now, days_ahead) is not None
            ]

    def get_notifications(self, now: CalendarTime) -> List[EventNotification]:
        notifications: List[EventNotification] = []
        with self._lock:
            for event in self._events.values():
                if not event.active or event.schedule is None or event.notification_lead_days <= 0:
                    continue
                days_until = self.days_until(event, now, event.notification_lead_days)
                if days_until is None:
                    continue
                notifications.append(
                    EventNotification(
                        event_id=event.id,
                        event_name=event.name,
                        days_until=days_until,
                        message=event.description,
                    )
                )
        return notifications
