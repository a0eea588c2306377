"""
Read path over the adherence log collection for the history page.

Selects the logs of one calendar day, optionally narrowed to one reporter,
and provides the day navigation used by the page. This module does not
enforce who may see which logs; the collection it is given has already been
scoped by the store.
"""
# pilltracker/modules/history.py

from datetime import timedelta

import pandas as pd

ALL_IDENTITIES = 'all'


def logs_for_day(logs, day, identity_filter=ALL_IDENTITIES) -> list:
    """Returns the logs recorded for a calendar day, oldest first.

    Args:
        logs: The adherence log collection to search.
        day (date): The calendar day to select.
        identity_filter (str): A reporter identity, or `ALL_IDENTITIES`.

    Returns:
        list: Matching logs sorted ascending by timestamp. Logs with identical
              timestamps keep their collection order.
    """
    selected = [
        log for log in logs
        if log.timestamp.date() == day
        and (identity_filter == ALL_IDENTITIES or log.reporter == identity_filter)
    ]
    return sorted(selected, key=lambda log: log.timestamp)


def available_identities(logs) -> list:
    """Returns the distinct reporter identities in the collection, sorted."""
    return sorted({log.reporter for log in logs})


def previous_day(day):
    return day - timedelta(days=1)


def next_day(day, today):
    """Returns the following day, or `day` itself when it is already today."""
    if day >= today:
        return day
    return day + timedelta(days=1)


def is_today(day, today) -> bool:
    return day == today


def history_frame(logs) -> pd.DataFrame:
    """Builds a table of logs for display and CSV export."""
    rows = [
        {
            "Time": log.timestamp.strftime('%Y-%m-%d %H:%M'),
            "Medication": log.medication_name,
            "Dosage": log.medication_dosage,
            "Status": "Taken" if log.taken else "Not taken",
            "Reported by": log.reporter,
        }
        for log in logs
    ]
    return pd.DataFrame(rows, columns=["Time", "Medication", "Dosage", "Status", "Reported by"])
