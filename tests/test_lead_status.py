from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import DateTime
from sqlmodel import SQLModel

import crm_backend.models  # noqa: F401
from crm_backend.schemas.lead import LeadPayload
from crm_backend.services.lead_status import TAT_HOURS, TatStatus, classify_lead_status

NOW = datetime(2026, 10, 18, 12, 0, 0)


@pytest.mark.parametrize("stage", ["WON", "DROP"])
def test_closed_stages_have_no_status(stage):
    assert classify_lead_status(stage, NOW - timedelta(days=30), NOW) == TatStatus.NONE
    assert classify_lead_status(stage, None, NOW) == ""


def test_missing_follow_up_date():
    assert classify_lead_status("New", None, NOW) == "No Date"


def test_exactly_at_threshold_is_still_in_tat():
    follow_up = NOW - timedelta(hours=TAT_HOURS)
    assert classify_lead_status("Qualify", follow_up, NOW) == "In TAT"


def test_just_past_threshold_is_lost():
    follow_up = NOW - timedelta(hours=TAT_HOURS, seconds=1)
    assert classify_lead_status("Proposal", follow_up, NOW) == "Lost"


def test_future_follow_up_is_in_tat():
    assert classify_lead_status("Review", NOW + timedelta(days=2), NOW) == "In TAT"


def test_expired_stage_is_still_tracked():
    assert classify_lead_status("Expired", NOW - timedelta(days=10), NOW) == "Lost"


def test_aware_timestamps_are_compared_in_utc():
    ist = timezone(timedelta(hours=5, minutes=30))
    # 71 hours before NOW, expressed in +05:30
    follow_up = (NOW - timedelta(hours=71)).replace(tzinfo=timezone.utc).astimezone(ist)
    assert classify_lead_status("New", follow_up, NOW) == "In TAT"

    aware_now = NOW.replace(tzinfo=timezone.utc)
    assert classify_lead_status("New", NOW - timedelta(hours=73), aware_now) == "Lost"


def test_payload_dates_are_normalised_to_utc():
    payload = LeadPayload(assignment_name="Hosting", closing_date="2026-10-18T17:30:00+05:30")
    assert payload.closing_date == datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
    assert payload.closing_date.utcoffset() == timedelta(0)

    naive = LeadPayload(assignment_name="Hosting", closing_date="2026-10-18T12:00:00")
    assert naive.closing_date.tzinfo is not None
    assert classify_lead_status("New", naive.closing_date, NOW) == "In TAT"


def test_timestamp_columns_are_timezone_aware():
    columns = [
        column
        for table in SQLModel.metadata.sorted_tables
        for column in table.columns
        if isinstance(column.type, DateTime)
    ]
    assert columns
    naive = [f"{column.table.name}.{column.name}" for column in columns if not column.type.timezone]
    assert naive == []
