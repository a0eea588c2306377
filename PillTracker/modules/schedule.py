"""
This module turns medications into a day's dose schedule and works out the
adherence status of each dose.

It is responsible for:
- Parsing and categorizing "HH:MM" time slots into morning, afternoon and evening.
- Expanding medications into one `DoseSlotInstance` per daily slot.
- Grouping those instances by period for display.
- Generating evenly spaced default slots when a medication's frequency changes.
- Matching adherence logs to a (medication, day, slot) and resolving the
  tri-state `DoseStatus`.

Everything here is pure: no store access, no clock reads.
"""
# pilltracker/modules/schedule.py

from datetime import datetime, time

from modules.models import DoseSlotInstance, DoseStatus, Period

ALL_PERIODS = 'all'
PERIOD_ORDER = (Period.MORNING, Period.AFTERNOON, Period.EVENING)
MAX_DAILY_DOSES = 4


def parse_time_slot(time_slot: str) -> time:
    """Parses a 24-hour "HH:MM" string.

    Raises:
        ValueError: If the string is not a valid 24-hour time.
    """
    try:
        hours, minutes = time_slot.strip().split(':')
        return time(int(hours), int(minutes))
    except (AttributeError, ValueError, TypeError) as e:
        raise ValueError(f"Invalid time slot {time_slot!r}; expected HH:MM") from e


def categorize_time_slot(time_slot: str) -> Period:
    """Maps a time slot to its period using the hour only.

    05:00-11:59 is morning, 12:00-16:59 is afternoon, everything else is evening.
    """
    hour = int(time_slot.split(':')[0])
    if 5 <= hour < 12:
        return Period.MORNING
    if 12 <= hour < 17:
        return Period.AFTERNOON
    return Period.EVENING


def expand_schedule(medications) -> list:
    """Expands medications into one dose slot instance per time slot.

    The caller decides which medications to pass; inactive ones are not
    filtered out here. Medication order and slot order are preserved.
    """
    return [
        DoseSlotInstance(medication, time_slot, categorize_time_slot(time_slot))
        for medication in medications
        for time_slot in medication.time_slots
    ]


def group_by_period(instances, period_filter=ALL_PERIODS) -> dict:
    """Groups dose slot instances by period, in morning, afternoon, evening order.

    With the "all" filter, periods without any instance are omitted. With a
    single period filter only that period is returned, even when empty.
    """
    if period_filter != ALL_PERIODS:
        period = Period(period_filter)
        return {period: [i for i in instances if i.period == period]}

    grouped = {}
    for period in PERIOD_ORDER:
        members = [i for i in instances if i.period == period]
        if members:
            grouped[period] = members
    return grouped


def default_time_slots(frequency: int) -> list:
    """Returns evenly spaced default slots for a daily frequency, starting at 08:00.

    Hours past midnight wrap around, so four doses a day are 08:00, 14:00,
    20:00 and 02:00.
    """
    if frequency < 1:
        raise ValueError("Frequency must be at least 1.")
    return [f"{(8 + (i * 24) // frequency) % 24:02d}:00" for i in range(frequency)]


def slot_timestamp(day, time_slot: str) -> datetime:
    """Combines a calendar day with a slot's hour and minute."""
    return datetime.combine(day, parse_time_slot(time_slot))


def same_slot(log, medication_id, target: datetime) -> bool:
    """True if a log belongs to the medication and the target's day, hour and minute.

    Seconds and sub-second parts of the log's timestamp are ignored.
    """
    stamp = log.timestamp
    return (
        log.medication_id == medication_id
        and stamp.date() == target.date()
        and stamp.hour == target.hour
        and stamp.minute == target.minute
    )


def find_log(logs, medication_id, target: datetime):
    """Returns the first log matching the medication and slot, or None.

    If the collection ever holds more than one matching log, the one that
    comes first in the collection's iteration order wins.
    """
    return next((log for log in logs if same_slot(log, medication_id, target)), None)


def resolve_status(instance, logs, for_day) -> DoseStatus:
    """Resolves whether a dose slot instance was taken, skipped or not logged on a day."""
    target = slot_timestamp(for_day, instance.time_slot)
    log = find_log(logs, instance.medication_id, target)
    if log is None:
        return DoseStatus.UNLOGGED
    return DoseStatus.TAKEN if log.taken else DoseStatus.NOT_TAKEN
