class EventError(Exception):
    """Base class for event engine errors."""
    pass


class EventNotFoundError(EventError, LookupError):
    """Raised (or carried in a trigger result) for an unregistered event id."""

    def __init__(self, event_id: str):
        super().__init__(f"Event with ID '{event_id}' not found.")
        self.event_id = event_id


class DuplicateEventIdError(EventError, ValueError):
    """Raised when registering an id that is already in the registry."""

    def __init__(self, event_id: str):
        super().__init__(f"Event with ID '{event_id}' is already registered.")
        self.event_id = event_id


class EffectApplicationError(EventError):
    """Carried by an EffectResult whose effect could not be applied."""
    pass


class EventCatalogError(EventError):
    """Schema or consistency problem in event content or frequency config."""
    pass
