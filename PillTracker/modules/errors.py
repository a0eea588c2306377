"""
Error types shared by the PillTracker modules.

Tracker operations never let these escape to the UI. They are caught at the
operation boundary and handed back inside an `Outcome` so the page can decide
what to show; the in-memory state is left exactly as it was before the call.
"""
# pilltracker/modules/errors.py


class PillTrackerError(Exception):
    """Base class for every error raised by the PillTracker modules."""


class NotFound(PillTrackerError):
    """The referenced medication or log does not exist or is not active."""


class StoreError(PillTrackerError):
    """The adherence store failed to complete a read or write."""


class Forbidden(PillTrackerError):
    """The acting identity's role does not allow the page or action."""


class CascadeError(PillTrackerError):
    """A medication was deleted but cleaning up its logs failed.

    The medication deletion is not undone; some orphan logs may remain.
    """

    def __init__(self, medication_id, cause=None):
        super().__init__(f"Medication {medication_id} was deleted but its logs could not be removed: {cause}")
        self.medication_id = medication_id
        self.cause = cause
