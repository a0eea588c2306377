"""
System-level tests for the PillTracker application.

These tests walk through complete workflows across the auth service, the
tracker, the history filter and the encrypted store, checking the state of
the system after each step.
"""
from datetime import date, datetime

from modules.access import Capabilities, LogScope, Role
from modules.auth import AuthService
from modules.clock import FixedClock
from modules.history import logs_for_day
from modules.models import DoseStatus
from modules.schedule import expand_schedule, resolve_status
from modules.tracker import AdherenceTracker

PASSWORD = "V4lid!Pass"
DAY = date(2024, 1, 1)


def _instance(tracker, medication_id, time_slot):
    medication = next(m for m in tracker.medications if m.medication_id == medication_id)
    return next(i for i in expand_schedule([medication]) if i.time_slot == time_slot)


def test_scenarios_mark_toggle_and_delete(store, clock, make_tracker, aspirin):
    """
    Scenario A: taking the 09:00 Aspirin makes that slot taken and leaves 21:00 unlogged.
    Scenario B: re-marking 09:00 as not taken flips it without adding a row.
    Scenario C: deleting the medication removes it and the 09:00 log from the history.
    """
    alice = make_tracker("alice@x.com")
    morning = _instance(alice, aspirin.medication_id, "09:00")
    evening = _instance(alice, aspirin.medication_id, "21:00")

    assert alice.mark_dose(aspirin.medication_id, "09:00", True, "alice@x.com").ok
    assert resolve_status(morning, alice.logs, DAY) == DoseStatus.TAKEN
    assert resolve_status(evening, alice.logs, DAY) == DoseStatus.UNLOGGED

    assert alice.mark_dose(aspirin.medication_id, "09:00", False, "alice@x.com").ok
    assert resolve_status(morning, alice.logs, DAY) == DoseStatus.NOT_TAKEN
    aspirin_rows = [log for log in store.list_logs(LogScope(False, None)) if log.medication_id == aspirin.medication_id]
    assert len(aspirin_rows) == 1

    admin = make_tracker("admin@x.com", is_admin=True)
    assert len(admin.history(DAY)) == 1
    assert admin.delete_medication(aspirin.medication_id).ok
    assert aspirin.medication_id not in [m.medication_id for m in store.list_medications()]
    assert admin.history(DAY) == []
    assert logs_for_day(store.list_logs(LogScope(False, None)), DAY) == []


def test_scenario_history_for_one_person(store, clock, make_tracker, aspirin):
    """
    Scenario D: with two logs from alice and one from bob on the same day,
    filtering on alice returns exactly her two logs, oldest first.
    """
    alice = make_tracker("alice@x.com")
    bob = make_tracker("bob@y.com")
    alice.mark_dose(aspirin.medication_id, "21:00", True)
    bob.mark_dose(aspirin.medication_id, "09:00", True)
    alice.mark_dose(aspirin.medication_id, "09:00", False)

    admin = make_tracker("admin@x.com", is_admin=True)
    alice_logs = admin.history(DAY, "alice@x.com")

    assert [(log.reporter, log.timestamp) for log in alice_logs] == [
        ("alice@x.com", datetime(2024, 1, 1, 9, 0)),
        ("alice@x.com", datetime(2024, 1, 1, 21, 0)),
    ]
    assert admin.identities() == ["alice@x.com", "bob@y.com"]
    assert len(admin.history(DAY)) == 3


def test_standard_scope_never_exposes_other_reporters(store, make_tracker, aspirin):
    """A standard user's collection and history only ever contain their own logs."""
    make_tracker("tom@t.com").mark_dose(aspirin.medication_id, "09:00", True)
    make_tracker("sam@s.com").mark_dose(aspirin.medication_id, "21:00", True)

    scoped = store.list_logs(Capabilities("sam@s.com", Role.STANDARD).log_scope())
    assert {log.reporter for log in scoped} == {"sam@s.com"}

    sam = make_tracker("sam@s.com")
    for identity_filter in ("all", "tom@t.com", "sam@s.com"):
        assert {log.reporter for log in sam.history(DAY, identity_filter)} == {"sam@s.com"}


def test_end_to_end_accounts_schedule_and_history(store):
    """
    Registers an administrator and a standard user, sets up medications, logs
    doses over two days and browses the history, finishing with clear-all.
    """
    clock = FixedClock(datetime(2024, 1, 1, 8, 15))
    auth = AuthService(store)
    assert auth.register("admin@x.com", PASSWORD) is True
    assert auth.register("alice@x.com", PASSWORD) is True

    auth.login("admin@x.com", PASSWORD)
    admin = AdherenceTracker(store, auth.identity_context(), clock)
    assert admin.load().ok
    aspirin = admin.save_medication("Aspirin", "100mg", 2, ["09:00", "21:00"]).value
    vitamin = admin.save_medication("Vitamin D", "1000 IU", 1).value
    auth.logout()

    auth.login("alice@x.com", PASSWORD)
    context = auth.identity_context()
    assert context.is_administrator is False
    alice = AdherenceTracker(store, context, clock)
    alice.load()
    assert [m.name for m in alice.active_medications()] == ["Aspirin", "Vitamin D"]
    alice.mark_dose(vitamin.medication_id, "08:00", True)
    alice.mark_dose(aspirin.medication_id, "09:00", True)

    clock.advance(days=1)
    alice.mark_dose(aspirin.medication_id, "09:00", False)
    alice.mark_dose(aspirin.medication_id, "09:00", True)
    assert len(alice.logs) == 3

    statuses = {
        (instance.medication.name, instance.time_slot): status
        for entries in alice.todays_schedule().values()
        for instance, status in entries
    }
    assert statuses == {
        ("Vitamin D", "08:00"): DoseStatus.UNLOGGED,
        ("Aspirin", "09:00"): DoseStatus.TAKEN,
        ("Aspirin", "21:00"): DoseStatus.UNLOGGED,
    }

    admin.load()
    first_day = admin.history(DAY, "alice@x.com")
    assert [log.medication_name for log in first_day] == ["Vitamin D", "Aspirin"]
    assert len(admin.history(date(2024, 1, 2))) == 1

    assert alice.clear_all_logs().ok
    admin.load()
    assert admin.logs == []
