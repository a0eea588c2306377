"""
This module provides the core of PillTracker: the `AdherenceTracker`.

The tracker holds the medications and the adherence logs visible to the
acting identity and is responsible for:
- Loading both collections from the adherence store, scoped by role.
- Recording a dose as taken or not taken for today, keeping exactly one log
  per (medication, day, slot) by searching before it inserts.
- Deleting single logs and clearing all of the acting identity's logs.
- Managing medications (administrators only), including the cascading delete.
- Serving today's schedule and the per-day history.

Every write goes to the store first. The in-memory collections are only
changed once the store call has succeeded, so a failed action leaves them
exactly as they were. Failures are logged and returned in an `Outcome`.
"""
# pilltracker/modules/tracker.py

import logging

from modules.access import Capabilities
from modules.clock import SystemClock
from modules.errors import CascadeError, Forbidden, NotFound, PillTrackerError
from modules.history import ALL_IDENTITIES, available_identities, logs_for_day
from modules.models import Outcome
from modules.schedule import (
    ALL_PERIODS,
    MAX_DAILY_DOSES,
    default_time_slots,
    expand_schedule,
    find_log,
    group_by_period,
    parse_time_slot,
    resolve_status,
    slot_timestamp,
)

logger = logging.getLogger(__name__)


def build_medication_fields(name, dosage, frequency, time_slots=None, notes=''):
    """Validates medication form input and returns persisted record fields.

    When no time slots are given, evenly spaced defaults for the frequency are
    used. Given slots are only checked for format; their count is not checked
    against the frequency.

    Raises:
        ValueError: If a field is missing or malformed.
    """
    name = (name or '').strip()
    dosage = (dosage or '').strip()
    if not name or not dosage:
        raise ValueError("Medication name and dosage are required.")
    frequency = int(frequency)
    if not 1 <= frequency <= MAX_DAILY_DOSES:
        raise ValueError(f"Frequency must be between 1 and {MAX_DAILY_DOSES} times per day.")
    if time_slots is None:
        time_slots = default_time_slots(frequency)
    slots = []
    for slot in time_slots:
        parse_time_slot(slot)
        slots.append(slot.strip())
    return {
        'name': name,
        'dosage': dosage,
        'frequency': frequency,
        'time_slots': slots,
        'notes': (notes or '').strip(),
    }


class AdherenceTracker:
    """Schedule, adherence logging and history for one acting identity."""

    def __init__(self, store, context, clock=None):
        """Initializes the tracker. Call `load()` to fill the collections.

        Args:
            store: An `AdherenceStore`.
            context (IdentityContext): The acting identity and its role.
            clock: Supplies now and today; defaults to the system clock.
        """
        self._store = store
        self.context = context
        self.capabilities = Capabilities.for_context(context)
        self.clock = clock or SystemClock()
        self.medications = []
        self.logs = []

    def load(self) -> Outcome:
        """Loads medications and the logs this identity may see."""
        try:
            medications = self._store.list_medications()
            logs = self._store.list_logs(self.capabilities.log_scope())
        except PillTrackerError as e:
            logger.error("Error loading tracker data for %s: %s", self.context.reporter, e)
            return Outcome(error=e)
        self.medications = medications
        self.logs = logs
        return Outcome(value=len(logs))

    def _find_medication(self, medication_id):
        return next((m for m in self.medications if m.medication_id == medication_id), None)

    def active_medications(self) -> list:
        return [m for m in self.medications if m.is_active]

    # Schedule

    def todays_schedule(self, period_filter=ALL_PERIODS) -> dict:
        """Returns today's dose slots grouped by period, each with its status.

        Returns:
            dict: Period -> list of (DoseSlotInstance, DoseStatus) pairs.
        """
        today = self.clock.today()
        grouped = group_by_period(expand_schedule(self.active_medications()), period_filter)
        return {
            period: [(instance, resolve_status(instance, self.logs, today)) for instance in instances]
            for period, instances in grouped.items()
        }

    def mark_dose(self, medication_id, time_slot, taken, acting_identity=None) -> Outcome:
        """Records today's dose of a medication slot as taken or not taken.

        Re-marking the same slot on the same day updates the existing log
        instead of adding another one. Only today can be marked.

        Args:
            medication_id (str): The medication to mark.
            time_slot (str): The "HH:MM" slot being marked.
            taken (bool): True for taken, False for not taken.
            acting_identity (str, optional): Reporter stamped on a new log;
                                             defaults to the tracker's identity.

        Returns:
            Outcome: The created or updated log, or NotFound/StoreError.
        """
        medication = self._find_medication(medication_id)
        if medication is None or not medication.is_active:
            return Outcome(error=NotFound(f"Medication {medication_id} is not an active medication."))

        reporter = acting_identity or self.context.reporter
        target = slot_timestamp(self.clock.today(), time_slot)
        existing = find_log(self.logs, medication_id, target)

        if existing is not None:
            try:
                self._store.update_log(existing.log_id, taken)
            except PillTrackerError as e:
                logger.error("Error updating log %s: %s", existing.log_id, e)
                return Outcome(error=e)
            existing.taken = taken
            logger.debug("Updated log %s for %s at %s to taken=%s", existing.log_id, medication.name, time_slot, taken)
            return Outcome(value=existing)

        fields = {
            'medication_id': medication_id,
            'timestamp': target.isoformat(),
            'taken': taken,
            'user_email': reporter,
            'medication_name': medication.name,
            'medication_dosage': medication.dosage,
        }
        try:
            log = self._store.insert_log(fields)
        except PillTrackerError as e:
            logger.error("Error creating log for %s at %s: %s", medication_id, time_slot, e)
            return Outcome(error=e)
        self.logs.append(log)
        logger.info("Logged %s %s at %s for %s", medication.name, "taken" if taken else "not taken", time_slot, reporter)
        return Outcome(value=log)

    # Logs

    def delete_log(self, log_id) -> Outcome:
        """Deletes one log. The slot it covered reverts to unlogged."""
        try:
            self._store.delete_log(log_id)
        except PillTrackerError as e:
            logger.error("Error deleting log %s: %s", log_id, e)
            return Outcome(error=e)
        self.logs = [log for log in self.logs if log.log_id != log_id]
        return Outcome(value=log_id)

    def clear_all_logs(self) -> Outcome:
        """Deletes every log reported by the acting identity, whatever its role."""
        identity = self.capabilities.clear_all_target()
        try:
            self._store.delete_all_logs(identity)
        except PillTrackerError as e:
            logger.error("Error clearing all logs for %s: %s", identity, e)
            return Outcome(error=e)
        self.logs = [log for log in self.logs if log.reporter != identity]
        return Outcome(value=identity)

    # History

    def history(self, day, identity_filter=ALL_IDENTITIES) -> list:
        """Returns the visible logs of a calendar day, oldest first.

        The identity filter only applies to administrators. Standard users'
        collections are already limited to their own logs by the store.
        """
        if not self.capabilities.can_filter_by_identity:
            identity_filter = ALL_IDENTITIES
        return logs_for_day(self.logs, day, identity_filter)

    def identities(self) -> list:
        return available_identities(self.logs)

    # Medications

    def save_medication(self, name, dosage, frequency, time_slots=None, notes='', medication_id=None) -> Outcome:
        """Adds a medication, or edits it when `medication_id` is given.

        New medications start active and editing keeps the active flag. When an
        edit changes the frequency without supplying slots, the slots are
        regenerated so they match the new frequency.

        Raises:
            ValueError: If the form input is invalid.
        """
        try:
            self.capabilities.require_medication_management()
        except Forbidden as e:
            return Outcome(error=e)

        existing = None
        if medication_id is not None:
            existing = self._find_medication(medication_id)
            if existing is None:
                return Outcome(error=NotFound(f"Medication {medication_id} does not exist."))
            if time_slots is None and int(frequency) == existing.frequency:
                time_slots = existing.time_slots

        fields = build_medication_fields(name, dosage, frequency, time_slots, notes)
        if existing is None:
            fields['is_active'] = True
        else:
            fields['id'] = medication_id

        try:
            medication = self._store.upsert_medication(fields)
        except PillTrackerError as e:
            logger.error("Error saving medication %s: %s", name, e)
            return Outcome(error=e)

        if existing is None:
            self.medications.append(medication)
        else:
            self.medications = [medication if m.medication_id == medication_id else m for m in self.medications]
        return Outcome(value=medication)

    def toggle_medication(self, medication_id) -> Outcome:
        """Switches a medication between active and inactive."""
        try:
            self.capabilities.require_medication_management()
        except Forbidden as e:
            return Outcome(error=e)
        medication = self._find_medication(medication_id)
        if medication is None:
            return Outcome(error=NotFound(f"Medication {medication_id} does not exist."))

        try:
            updated = self._store.upsert_medication({'id': medication_id, 'is_active': not medication.is_active})
        except PillTrackerError as e:
            logger.error("Error updating medication %s: %s", medication_id, e)
            return Outcome(error=e)
        self.medications = [updated if m.medication_id == medication_id else m for m in self.medications]
        return Outcome(value=updated)

    def delete_medication(self, medication_id) -> Outcome:
        """Deletes a medication and all of its logs.

        If the medication is deleted but its logs are not, the medication is
        still removed here and a `CascadeError` is returned; the remaining logs
        stay in the collection because they still exist in the store.
        """
        try:
            self.capabilities.require_medication_management()
        except Forbidden as e:
            return Outcome(error=e)

        try:
            self._store.delete_medication(medication_id)
        except CascadeError as e:
            logger.error("Error deleting medication logs: %s", e)
            self.medications = [m for m in self.medications if m.medication_id != medication_id]
            return Outcome(error=e)
        except PillTrackerError as e:
            logger.error("Error deleting medication %s: %s", medication_id, e)
            return Outcome(error=e)

        self.medications = [m for m in self.medications if m.medication_id != medication_id]
        self.logs = [log for log in self.logs if log.medication_id != medication_id]
        return Outcome(value=medication_id)
