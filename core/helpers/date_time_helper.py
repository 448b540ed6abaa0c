"""
date_time_helper.py

Helpers for UTC timestamps (event log) and the local signing-date label that is
stamped next to a signature.
"""

from datetime import date, datetime, timezone
from typing import Optional, Union


def utc_to_local_str(utc_iso: str) -> str:
    """
    Formats a UTC ISO8601 timestamp in the machine's local timezone.

    :param utc_iso: UTC time as ISO string (from DB/logs)
    :return: String in format "YYYY-MM-DD HH:MM:SS" (local time)
    """
    dt_utc = datetime.fromisoformat(utc_iso)
    if dt_utc.tzinfo is None:
        dt_utc = dt_utc.replace(tzinfo=timezone.utc)
    return dt_utc.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def signing_date_label(fmt: str = "%m/%d/%Y", today: Optional[Union[date, datetime]] = None) -> str:
    """Local calendar date of the signing action, e.g. '03/14/2025'."""
    return (today or datetime.now()).strftime(fmt)
