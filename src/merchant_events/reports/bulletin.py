from typing import List

from ..core.calendar import CalendarTime
from ..core.log import EventLog
from ..events.model import EventNotification


def generate_bulletin(log: EventLog, now: CalendarTime) -> str:
    """
    Generates a concise town bulletin from a tick's EventLog.
    """
    lines = [f"== {now} =="]
    for entry in log.entries:
        reason = entry.reason or ""
        if reason:
            lines.append(f"[{entry.type}] {reason}")
        else:
            lines.append(f"[{entry.type}]")
    return "\n".join(lines) + "\n"


def generate_notice_board(notifications: List[EventNotification], now: CalendarTime) -> str:
    """Lists upcoming events soonest first."""
    lines = [f"--- Notice Board, {now} ---"]
    if not notifications:
        lines.append("Nothing announced.")
    for notification in sorted(notifications, key=lambda n: (n.days_until, n.event_id)):
        when = "today" if notification.days_until == 0 else f"in {notification.days_until} day(s)"
        line = f"{notification.event_name} {when}"
        if notification.message:
            line += f": {notification.message}"
        lines.append(line)
    return "\n".join(lines) + "\n"
