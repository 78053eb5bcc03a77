"""Due-date labels for task lists."""

from datetime import date
from typing import Optional


def due_label(due: date, today: Optional[date] = None) -> str:
    """
    Human label for a due date, compared by calendar day.

    ``today`` defaults to the local date of the machine running the
    client.
    """
    today = today or date.today()
    delta = (due - today).days

    if delta == 0:
        return "Today"
    if delta == 1:
        return "Tomorrow"
    if delta == -1:
        return "Yesterday"
    return f"{due:%b} {due.day}, {due.year}"
