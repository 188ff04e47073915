"""Monthly snapshot scheduling."""

from datetime import date, timedelta
from typing import Optional


def is_last_day_of_month(day: date) -> bool:
    """True if the following day falls in a different month."""
    return (day + timedelta(days=1)).month != day.month


class SnapshotSchedule:
    """Decides when a monthly snapshot is due.
    
    A snapshot is due on the last calendar day of a month, at most once per
    date for the life of the process.
    """
    
    def __init__(self):
        self.last_snapshot_date: Optional[date] = None
    
    def is_due(self, today: date) -> bool:
        return is_last_day_of_month(today) and self.last_snapshot_date != today
    
    def mark_done(self, today: date) -> None:
        self.last_snapshot_date = today
