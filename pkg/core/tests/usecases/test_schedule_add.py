"""
Tests for schedule creation.

Covers the ordered create checks, reference-timezone handling of dates and
start times, uniqueness per streamer and date, and the CREATE history row.
"""

import pytest
from sqlalchemy import func, select

from castboard.domain.entities import Schedule, ScheduleHistory
from castboard.domain.interfaces import StreamerDirectory
from castboard.infra.exceptions import AlreadyExistsError, NotFoundError, ValidationError
from castboard.shared.types import ErrorKind
from castboard.usecases.schedule_add import add_schedule
from castboard.usecases.schedule_delete import delete_schedule
from castboard.usecases.schedule_history import list_schedule_history


def _count(db, model) -> int:
    return db.execute(select(func.count()).select_from(model)).scalar_one()


class TestAddSchedule:
    def test_create_starts_at_version_one_with_create_history(self, db, create_schedule):
        result = create_schedule()

        assert result["version"] == 1
        assert result["status"] == "SCHEDULED"
        assert result["schedule_date"] == "2025-03-10"
        assert result["start_time"] == "2025-03-10T10:00:00Z"
        assert result["like_count"] == 0
        assert result["streamer"]["name"] == "Aurora"
        assert result["created_by"]["nickname"] == "viewer"
        assert result["deleted_at"] is None

        history = list_schedule_history(db, schedule_identifier=result["uuid"])
        assert history["total"] == 1
        entry = history["history"][0]
        assert entry["action"] == "CREATE"
        assert entry["previous_snapshot"] is None
        assert entry["current_snapshot"] == result

    def test_naive_start_time_is_reference_wall_time(self, create_schedule):
        # 19:00 in Seoul is 10:00 UTC
        result = create_schedule(start_time="2025-03-10T19:00:00")
        assert result["start_time"] == "2025-03-10T10:00:00Z"

    def test_title_is_trimmed(self, create_schedule):
        result = create_schedule(title="  Morning chat  ")
        assert result["title"] == "Morning chat"

    def test_duplicate_streamer_and_date_rejected(self, db, create_schedule):
        create_schedule()
        with pytest.raises(AlreadyExistsError) as exc:
            create_schedule(status="BREAK", start_time=None)
        assert exc.value.code == "ALREADY_EXISTS"
        assert exc.value.kind is ErrorKind.ALREADY_EXISTS
        assert _count(db, Schedule) == 1
        assert _count(db, ScheduleHistory) == 1

    def test_slot_is_free_again_after_soft_delete(self, db, clock, admin_actor, create_schedule):
        first = create_schedule()
        delete_schedule(db, actor=admin_actor, schedule_identifier=first["uuid"], clock=clock)

        second = create_schedule(title="Rescheduled")
        assert second["uuid"] != first["uuid"]
        assert second["version"] == 1

    def test_other_streamer_same_date_allowed(self, make_streamer, create_schedule):
        create_schedule()
        other = make_streamer("Borealis")
        result = create_schedule(streamer_identifier=other)
        assert result["streamer"]["name"] == "Borealis"

    def test_unverified_streamer_rejected(self, make_streamer, create_schedule):
        pending = make_streamer("Newcomer", verified=False)
        with pytest.raises(ValidationError) as exc:
            create_schedule(streamer_identifier=pending)
        assert exc.value.code == "NOT_VERIFIED"

    def test_inactive_streamer_not_found(self, make_streamer, create_schedule):
        retired = make_streamer("Retired", active=False)
        with pytest.raises(NotFoundError) as exc:
            create_schedule(streamer_identifier=retired)
        assert exc.value.code == "STREAMER_NOT_FOUND"

    def test_unknown_streamer_not_found(self, create_schedule):
        with pytest.raises(NotFoundError) as exc:
            create_schedule(streamer_identifier="00000000-0000-0000-0000-000000000000")
        assert exc.value.code == "STREAMER_NOT_FOUND"

    def test_unknown_actor_not_found(self, create_schedule):
        from uuid import uuid4

        from castboard.domain.actors import Actor

        with pytest.raises(NotFoundError) as exc:
            create_schedule(actor=Actor(uuid=uuid4()))
        assert exc.value.code == "USER_NOT_FOUND"

    def test_past_date_rejected(self, create_schedule):
        with pytest.raises(ValidationError) as exc:
            create_schedule(schedule_date="2025-02-28", status="TIME_TBD", start_time=None)
        assert exc.value.code == "PAST_DATE_NOT_ALLOWED"

    def test_today_in_reference_timezone_allowed(self, create_schedule):
        # Clock reads 2025-03-01 09:00 in Seoul
        result = create_schedule(schedule_date="2025-03-01", status="TIME_TBD", start_time=None)
        assert result["schedule_date"] == "2025-03-01"

    def test_scheduled_needs_time(self, create_schedule):
        with pytest.raises(ValidationError) as exc:
            create_schedule(start_time=None)
        assert exc.value.code == "SCHEDULED_NEEDS_TIME"

    @pytest.mark.parametrize("status", ["TIME_TBD", "BREAK"])
    def test_time_only_for_scheduled(self, create_schedule, status):
        with pytest.raises(ValidationError) as exc:
            create_schedule(status=status)
        assert exc.value.code == "TIME_ONLY_FOR_SCHEDULED"

    def test_start_time_must_fall_on_schedule_date(self, create_schedule):
        # 16:00 UTC on the 10th is 01:00 on the 11th in Seoul
        with pytest.raises(ValidationError) as exc:
            create_schedule(start_time="2025-03-10T16:00:00Z")
        assert exc.value.code == "DATE_TIME_MISMATCH"

    def test_invalid_status(self, create_schedule):
        with pytest.raises(ValidationError) as exc:
            create_schedule(status="LIVE")
        assert exc.value.code == "INVALID_STATUS"

    @pytest.mark.parametrize("title", ["", "   ", "x" * 201])
    def test_title_length(self, create_schedule, title):
        with pytest.raises(ValidationError) as exc:
            create_schedule(title=title)
        assert exc.value.code == "INVALID_TITLE"

    def test_description_length(self, create_schedule):
        with pytest.raises(ValidationError) as exc:
            create_schedule(description="d" * 1001)
        assert exc.value.code == "INVALID_DESCRIPTION"

    def test_verification_checked_before_date_rules(self, make_streamer, create_schedule):
        pending = make_streamer("Newcomer", verified=False)
        with pytest.raises(ValidationError) as exc:
            create_schedule(streamer_identifier=pending, schedule_date="2025-02-01", start_time=None)
        assert exc.value.code == "NOT_VERIFIED"

    def test_rejected_create_writes_nothing(self, db, create_schedule):
        with pytest.raises(ValidationError):
            create_schedule(start_time="2025-03-10T16:00:00Z")
        assert _count(db, Schedule) == 0
        assert _count(db, ScheduleHistory) == 0

    def test_injected_streamer_directory_is_used(self, db, clock, user_actor, streamer):
        class EmptyDirectory(StreamerDirectory):
            def lookup(self, db, identifier):
                return None

        with pytest.raises(NotFoundError) as exc:
            add_schedule(
                db,
                actor=user_actor,
                streamer_identifier=streamer,
                title="Evening stream",
                schedule_date="2025-03-10",
                status="TIME_TBD",
                clock=clock,
                streamers=EmptyDirectory(),
            )
        assert exc.value.code == "STREAMER_NOT_FOUND"
