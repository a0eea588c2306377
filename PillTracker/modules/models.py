"""
This module defines the primary data models for the PillTracker application.

These classes describe the entities managed by the `AdherenceTracker` and
persisted by the adherence store: medications with their daily dose slots,
the adherence logs recorded against those slots, and the identity of whoever
is acting in the current session. Derived values that are never persisted
(dose slot instances, dose statuses, operation outcomes) live here as well so
every module shares one vocabulary.
"""
# pilltracker/modules/models.py

from enum import Enum


class Period(str, Enum):
    """Coarse time-of-day grouping of a dose slot."""
    MORNING = 'morning'
    AFTERNOON = 'afternoon'
    EVENING = 'evening'


class DoseStatus(str, Enum):
    """Adherence status of one dose slot on one day."""
    TAKEN = 'taken'
    NOT_TAKEN = 'not_taken'
    UNLOGGED = 'unlogged'


class User:
    """Represents a registered account.

    Attributes:
        email (str): The login identity, also stamped on logs as the reporter.
        password_hash (str): Salted SHA-256 hash of the password.
        salt (str): The per-account random salt.
        is_admin (bool): True if the account holds the administrator role.
    """
    def __init__(self, email, password_hash, salt, is_admin=False):
        self.email = email
        self.password_hash = password_hash
        self.salt = salt
        self.is_admin = is_admin


class Medication:
    """A medication taken at fixed times every day.

    Attributes:
        medication_id (str): Store-assigned identifier.
        name (str): Display name.
        dosage (str): Free-text dosage, e.g. "100mg".
        frequency (int): Intended number of daily doses.
        time_slots (list[str]): Daily due times as "HH:MM" strings, in order.
        notes (str): Optional free-text notes.
        is_active (bool): Inactive medications are left out of the schedule.
        created_at (str): ISO timestamp used to order medications.
    """
    def __init__(self, medication_id, name, dosage, frequency, time_slots, notes='', is_active=True, created_at=None):
        self.medication_id = medication_id
        self.name = name
        self.dosage = dosage
        self.frequency = frequency
        self.time_slots = list(time_slots)
        self.notes = notes or ''
        self.is_active = is_active
        self.created_at = created_at

    def __repr__(self):
        return f"Medication({self.medication_id!r}, {self.name!r}, slots={self.time_slots!r}, active={self.is_active})"


class AdherenceLog:
    """Whether one dose slot of one medication was taken on one day.

    The medication name, dosage and reporter are copied onto the log when it
    is written so the history keeps reading correctly after the medication is
    edited.

    Attributes:
        log_id (str): Store-assigned identifier.
        medication_id (str): The medication the log refers to.
        timestamp (datetime): The day of the dose combined with the slot time.
        taken (bool): True if the dose was taken, False if it was skipped.
        medication_name (str): Medication name at write time.
        medication_dosage (str): Medication dosage at write time.
        reporter (str): Identity that recorded the log.
    """
    def __init__(self, log_id, medication_id, timestamp, taken, medication_name, medication_dosage, reporter):
        self.log_id = log_id
        self.medication_id = medication_id
        self.timestamp = timestamp
        self.taken = taken
        self.medication_name = medication_name
        self.medication_dosage = medication_dosage
        self.reporter = reporter

    def __repr__(self):
        return f"AdherenceLog({self.log_id!r}, {self.medication_id!r}, {self.timestamp.isoformat()}, taken={self.taken})"


class DoseSlotInstance:
    """A medication paired with one of its daily slots. Never persisted."""
    def __init__(self, medication, time_slot, period):
        self.medication = medication
        self.time_slot = time_slot
        self.period = period

    @property
    def medication_id(self):
        return self.medication.medication_id

    def __repr__(self):
        return f"DoseSlotInstance({self.medication.name!r}, {self.time_slot!r}, {self.period.value})"


class Session:
    """The result of asking the auth collaborator who is signed in."""
    def __init__(self, identity, authenticated):
        self.identity = identity
        self.authenticated = authenticated


class IdentityContext:
    """Who is acting and whether they are an administrator.

    Consumed read-only by the tracker to scope visibility and to stamp the
    reporter on new logs.
    """
    def __init__(self, reporter, is_administrator=False):
        self.reporter = reporter
        self.is_administrator = is_administrator


class Outcome:
    """Result of a tracker operation: either a value or an error.

    Attributes:
        value: The operation's result when it succeeded.
        error (PillTrackerError): The failure, or None on success.
    """
    def __init__(self, value=None, error=None):
        self.value = value
        self.error = error

    @property
    def ok(self):
        return self.error is None

    def __repr__(self):
        if self.ok:
            return f"Outcome(value={self.value!r})"
        return f"Outcome(error={self.error!r})"
