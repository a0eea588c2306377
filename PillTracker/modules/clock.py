"""
Clock objects that supply "now" and "today" to the tracker.

The tracker and the history pages never read the wall clock themselves; they
are handed one of these so tests can pin time to a known moment.
"""
# pilltracker/modules/clock.py

from datetime import datetime, timedelta


class SystemClock:
    """Reads the local wall clock."""

    def now(self) -> datetime:
        return datetime.now()

    def today(self):
        return self.now().date()


class FixedClock:
    """A clock stopped at a given moment until it is moved explicitly."""

    def __init__(self, moment: datetime):
        self._moment = moment

    def now(self) -> datetime:
        return self._moment

    def today(self):
        return self._moment.date()

    def advance(self, **kwargs):
        """Moves the clock forward by the given `timedelta` keyword arguments."""
        self._moment = self._moment + timedelta(**kwargs)
