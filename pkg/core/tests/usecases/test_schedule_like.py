"""
Tests for schedule likes and the like_count counter.
"""

import pytest
from sqlalchemy import func, select, update

from castboard.domain.entities import Schedule, ScheduleLike
from castboard.infra.exceptions import AlreadyExistsError, InternalError, NotFoundError
from castboard.usecases.counters import apply_counter_delta
from castboard.usecases.schedule_delete import delete_schedule
from castboard.usecases.schedule_like import has_liked, like_schedule, unlike_schedule
from castboard.usecases.schedule_show import show_schedule


class TestScheduleLikes:
    def test_like_increments_counter(self, db, user_actor, admin_actor, create_schedule):
        created = create_schedule()

        first = like_schedule(db, actor=user_actor, schedule_identifier=created["uuid"])
        second = like_schedule(db, actor=admin_actor, schedule_identifier=created["uuid"])

        assert first == {"status": "ok", "schedule_uuid": created["uuid"], "liked": True, "like_count": 1}
        assert second["like_count"] == 2
        assert show_schedule(db, schedule_identifier=created["uuid"])["like_count"] == 2

    def test_like_leaves_version_and_updated_at_alone(self, db, user_actor, create_schedule):
        created = create_schedule()
        like_schedule(db, actor=user_actor, schedule_identifier=created["uuid"])

        current = show_schedule(db, schedule_identifier=created["uuid"])
        assert current["version"] == created["version"]
        assert current["updated_at"] == created["updated_at"]

    def test_second_like_rejected(self, db, user_actor, create_schedule):
        created = create_schedule()
        like_schedule(db, actor=user_actor, schedule_identifier=created["uuid"])

        with pytest.raises(AlreadyExistsError) as exc:
            like_schedule(db, actor=user_actor, schedule_identifier=created["uuid"])
        assert exc.value.code == "ALREADY_LIKED"

        assert show_schedule(db, schedule_identifier=created["uuid"])["like_count"] == 1
        assert db.execute(select(func.count()).select_from(ScheduleLike)).scalar_one() == 1

    def test_has_liked(self, db, user_actor, admin_actor, create_schedule):
        created = create_schedule()
        like_schedule(db, actor=user_actor, schedule_identifier=created["uuid"])

        assert has_liked(db, actor=user_actor, schedule_identifier=created["uuid"]) is True
        assert has_liked(db, actor=admin_actor, schedule_identifier=created["uuid"]) is False

    def test_unlike_decrements_counter(self, db, user_actor, create_schedule):
        created = create_schedule()
        like_schedule(db, actor=user_actor, schedule_identifier=created["uuid"])

        result = unlike_schedule(db, actor=user_actor, schedule_identifier=created["uuid"])

        assert result["liked"] is False
        assert result["like_count"] == 0
        assert has_liked(db, actor=user_actor, schedule_identifier=created["uuid"]) is False

    def test_unlike_without_like(self, db, user_actor, create_schedule):
        created = create_schedule()
        with pytest.raises(NotFoundError) as exc:
            unlike_schedule(db, actor=user_actor, schedule_identifier=created["uuid"])
        assert exc.value.code == "LIKE_NOT_FOUND"

    def test_counter_never_goes_negative(self, db, user_actor, create_schedule):
        created = create_schedule()
        like_schedule(db, actor=user_actor, schedule_identifier=created["uuid"])
        # Counter drifted to zero behind the relation table
        db.execute(update(Schedule.__table__).where(Schedule.__table__.c.id == created["id"]).values(like_count=0))
        db.commit()

        result = unlike_schedule(db, actor=user_actor, schedule_identifier=created["uuid"])
        assert result["like_count"] == 0

    def test_like_again_after_unlike(self, db, user_actor, create_schedule):
        created = create_schedule()
        like_schedule(db, actor=user_actor, schedule_identifier=created["uuid"])
        unlike_schedule(db, actor=user_actor, schedule_identifier=created["uuid"])

        again = like_schedule(db, actor=user_actor, schedule_identifier=created["uuid"])
        assert again["like_count"] == 1

    def test_unknown_schedule(self, db, user_actor):
        with pytest.raises(NotFoundError) as exc:
            like_schedule(db, actor=user_actor, schedule_identifier="00000000-0000-0000-0000-000000000000")
        assert exc.value.code == "SCHEDULE_NOT_FOUND"

    def test_deleted_schedule_cannot_be_unliked(self, db, clock, user_actor, admin_actor, create_schedule):
        created = create_schedule()
        like_schedule(db, actor=user_actor, schedule_identifier=created["uuid"])
        delete_schedule(db, actor=admin_actor, schedule_identifier=created["uuid"], clock=clock)

        with pytest.raises(NotFoundError) as exc:
            unlike_schedule(db, actor=user_actor, schedule_identifier=created["uuid"])
        assert exc.value.code == "SCHEDULE_NOT_FOUND"


class TestCounterDelta:
    def test_missing_row(self, db):
        with pytest.raises(InternalError) as exc:
            apply_counter_delta(db, Schedule.__table__, "like_count", 9999, +1)
        assert exc.value.code == "COUNTER_UPDATE_FAILED"

