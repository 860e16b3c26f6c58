"""
Lead turnaround-time (TAT) classification.

A lead's follow-up timestamp is its closing_date. Open leads whose follow-up
is more than TAT_HOURS in the past are Lost. Timestamps without an offset
are read as UTC.
"""
from datetime import datetime
from typing import Optional

from crm_backend.models.base import utcnow
from crm_backend.models.lead import CLOSED_STAGES
from crm_backend.schemas.common import to_utc

TAT_HOURS = 72


class TatStatus:
    NONE = ""
    NO_DATE = "No Date"
    LOST = "Lost"
    IN_TAT = "In TAT"

    ALL = (IN_TAT, LOST, NO_DATE)


def classify_lead_status(
    stage: Optional[str],
    follow_up_at: Optional[datetime],
    now: Optional[datetime] = None
) -> str:
    """Derive the TAT label for a lead. Never persisted."""
    if stage in CLOSED_STAGES:
        return TatStatus.NONE
    if follow_up_at is None:
        return TatStatus.NO_DATE

    now = to_utc(now) if now else utcnow()
    elapsed_hours = (now - to_utc(follow_up_at)).total_seconds() / 3600
    if elapsed_hours > TAT_HOURS:
        return TatStatus.LOST
    return TatStatus.IN_TAT
