"""
Unit tests for the proposed-date ledger.

Tests insert, replace-all, mark-selected and ordered listing.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from case_scheduler.models import EventRequest
from case_scheduler.services import ledger
from case_scheduler.services.ledger import TimeWindow


@pytest.fixture
async def event_request(db_session) -> EventRequest:
    request = EventRequest(
        law_firm_id=uuid.uuid4(),
        client_id=uuid.uuid4(),
        event_type="consultation",
        title="Case review",
    )
    db_session.add(request)
    await db_session.flush()
    return request


def _window(day: int, hour: int = 9) -> TimeWindow:
    start = datetime(2026, 11, day, hour, 0, tzinfo=timezone.utc)
    return TimeWindow(start, start + timedelta(hours=1))


class TestInsertDates:
    """Test ledger.insert_dates()."""

    async def test_insert_assigns_ids(self, db_session, event_request):
        rows = await ledger.insert_dates(
            db_session, event_request.id, [_window(3), _window(4)], proposed_by="provider"
        )

        assert len(rows) == 2
        assert all(isinstance(row.id, uuid.UUID) for row in rows)
        assert all(row.offered_by_provider for row in rows)
        assert not any(row.is_selected for row in rows)


class TestReplaceDates:
    """Test ledger.replace_dates()."""

    async def test_replace_removes_previous_set(self, db_session, event_request):
        old = await ledger.insert_dates(db_session, event_request.id, [_window(3)])
        old_id = old[0].id

        await ledger.replace_dates(
            db_session, event_request.id, [_window(5), _window(6), _window(7)]
        )
        dates = await ledger.list_dates(db_session, event_request.id)

        assert len(dates) == 3
        assert old_id not in {d.id for d in dates}
        assert all(d.proposed_by is None for d in dates)


class TestListDates:
    """Test ledger.list_dates()."""

    async def test_sorted_by_start(self, db_session, event_request):
        await ledger.insert_dates(
            db_session, event_request.id, [_window(9), _window(2), _window(5, hour=8)]
        )

        dates = await ledger.list_dates(db_session, event_request.id)

        assert [d.start_time.day for d in dates] == [2, 5, 9]

    async def test_only_this_request(self, db_session, event_request):
        other = EventRequest(
            medical_provider_id=uuid.uuid4(),
            patient_id=uuid.uuid4(),
            event_type="checkup",
            title="Follow-up",
        )
        db_session.add(other)
        await db_session.flush()
        await ledger.insert_dates(db_session, other.id, [_window(3)])

        assert await ledger.list_dates(db_session, event_request.id) == []


class TestGetAndMarkSelected:
    """Test ledger.get_date() and ledger.mark_selected()."""

    async def test_get_date_scoped_to_request(self, db_session, event_request):
        rows = await ledger.insert_dates(db_session, event_request.id, [_window(3)])

        assert await ledger.get_date(db_session, event_request.id, rows[0].id) is not None
        assert await ledger.get_date(db_session, uuid.uuid4(), rows[0].id) is None
        assert await ledger.get_date(db_session, event_request.id, uuid.uuid4()) is None

    async def test_mark_selected_flips_one_row(self, db_session, event_request):
        rows = await ledger.insert_dates(
            db_session, event_request.id, [_window(3), _window(4), _window(5)]
        )

        updated = await ledger.mark_selected(db_session, event_request.id, rows[1].id)
        dates = await ledger.list_dates(db_session, event_request.id)

        assert updated == 1
        assert [d.is_selected for d in dates] == [False, True, False]

    async def test_mark_selected_foreign_date_is_noop(self, db_session, event_request):
        assert await ledger.mark_selected(db_session, event_request.id, uuid.uuid4()) == 0

    async def test_mark_selected_clears_previous_selection(self, db_session, event_request):
        """At most one window on a ledger is ever selected."""
        rows = await ledger.insert_dates(
            db_session, event_request.id, [_window(3), _window(4), _window(5)]
        )
        await ledger.mark_selected(db_session, event_request.id, rows[0].id)

        await ledger.mark_selected(db_session, event_request.id, rows[2].id)
        dates = await ledger.list_dates(db_session, event_request.id)

        assert [d.is_selected for d in dates] == [False, False, True]

    async def test_foreign_date_keeps_existing_selection(self, db_session, event_request):
        rows = await ledger.insert_dates(db_session, event_request.id, [_window(3), _window(4)])
        await ledger.mark_selected(db_session, event_request.id, rows[1].id)

        await ledger.mark_selected(db_session, event_request.id, uuid.uuid4())
        dates = await ledger.list_dates(db_session, event_request.id)

        assert [d.is_selected for d in dates] == [False, True]


class TestTimeWindow:
    """Test TimeWindow normalization to UTC."""

    def test_naive_values_are_utc(self):
        window = TimeWindow(datetime(2026, 11, 2, 9, 0), datetime(2026, 11, 2, 10, 0))

        assert window.start_time == datetime(2026, 11, 2, 9, 0, tzinfo=timezone.utc)
        assert window.end_time.tzinfo is timezone.utc

    def test_offset_values_are_converted(self):
        plus_five = timezone(timedelta(hours=5))
        window = TimeWindow(
            datetime(2026, 11, 2, 9, 0, tzinfo=plus_five),
            datetime(2026, 11, 2, 10, 0, tzinfo=plus_five),
        )

        assert window.start_time == datetime(2026, 11, 2, 4, 0, tzinfo=timezone.utc)
        assert window.start_time.utcoffset() == timedelta(0)

    def test_mixed_naive_and_offset_values_compare(self):
        window = TimeWindow(
            datetime(2026, 11, 2, 9, 0, tzinfo=timezone.utc),
            datetime(2026, 11, 2, 8, 0),
        )

        assert window.end_time < window.start_time

    async def test_offset_instant_survives_storage(self, db_session, event_request):
        plus_five = timezone(timedelta(hours=5))
        window = TimeWindow(
            datetime(2026, 11, 2, 9, 0, tzinfo=plus_five),
            datetime(2026, 11, 2, 10, 0, tzinfo=plus_five),
        )
        await ledger.insert_dates(db_session, event_request.id, [window])
        await db_session.commit()
        db_session.expire_all()

        (stored,) = await ledger.list_dates(db_session, event_request.id)

        assert stored.start_time == datetime(2026, 11, 2, 4, 0, tzinfo=timezone.utc)
        assert stored.start_time.tzinfo is not None
