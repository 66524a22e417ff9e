"""
Tests for streamer follows, follow_count and the follow log.
"""

import uuid

import pytest
from sqlalchemy import select

from castboard.domain.entities import Streamer, StreamerFollow
from castboard.infra.exceptions import (
    AlreadyExistsError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from castboard.usecases.streamer_follow import (
    batch_update_follow_status,
    follow_streamer,
    is_following,
    list_streamer_follow_history,
    list_user_follow_history,
    unfollow_streamer,
)


def _follow_count(db, streamer_uuid: str) -> int:
    db.expire_all()
    return db.execute(
        select(Streamer.follow_count).where(Streamer.uuid == uuid.UUID(streamer_uuid))
    ).scalar_one()


class TestFollowStreamer:
    def test_follow_and_unfollow(self, db, clock, user_actor, streamer):
        followed = follow_streamer(db, actor=user_actor, streamer_identifier=streamer, clock=clock)
        assert followed == {"status": "ok", "streamer_uuid": streamer, "following": True, "follow_count": 1}
        assert is_following(db, actor=user_actor, streamer_identifier=streamer) is True

        clock.advance(5)
        unfollowed = unfollow_streamer(db, actor=user_actor, streamer_identifier=streamer, clock=clock)
        assert unfollowed["following"] is False
        assert unfollowed["follow_count"] == 0
        assert is_following(db, actor=user_actor, streamer_identifier=streamer) is False

    def test_counter_tracks_each_follower(self, db, clock, user_actor, admin_actor, streamer):
        follow_streamer(db, actor=user_actor, streamer_identifier=streamer, clock=clock)
        follow_streamer(db, actor=admin_actor, streamer_identifier=streamer, clock=clock)
        assert _follow_count(db, streamer) == 2

    def test_second_follow_rejected(self, db, clock, user_actor, streamer):
        follow_streamer(db, actor=user_actor, streamer_identifier=streamer, clock=clock)
        with pytest.raises(AlreadyExistsError) as exc:
            follow_streamer(db, actor=user_actor, streamer_identifier=streamer, clock=clock)
        assert exc.value.code == "ALREADY_FOLLOWING"
        assert _follow_count(db, streamer) == 1
        assert list_user_follow_history(db, actor=user_actor)["total"] == 1

    def test_unfollow_without_follow(self, db, clock, user_actor, streamer):
        with pytest.raises(NotFoundError) as exc:
            unfollow_streamer(db, actor=user_actor, streamer_identifier=streamer, clock=clock)
        assert exc.value.code == "FOLLOW_NOT_FOUND"
        assert list_user_follow_history(db, actor=user_actor)["total"] == 0

    @pytest.mark.parametrize("identifier", ["00000000-0000-0000-0000-000000000000", "not-a-uuid"])
    def test_unknown_streamer(self, db, clock, user_actor, identifier):
        with pytest.raises(NotFoundError) as exc:
            follow_streamer(db, actor=user_actor, streamer_identifier=identifier, clock=clock)
        assert exc.value.code == "STREAMER_NOT_FOUND"

    def test_inactive_streamer_cannot_be_followed(self, db, clock, user_actor, make_streamer):
        retired = make_streamer("Retired", active=False)
        with pytest.raises(NotFoundError):
            follow_streamer(db, actor=user_actor, streamer_identifier=retired, clock=clock)

    def test_unverified_streamer_can_be_followed(self, db, clock, user_actor, make_streamer):
        pending = make_streamer("Newcomer", verified=False)
        result = follow_streamer(db, actor=user_actor, streamer_identifier=pending, clock=clock)
        assert result["follow_count"] == 1


class TestFollowHistory:
    def test_user_history_newest_first(self, db, clock, user_actor, streamer, make_streamer):
        other = make_streamer("Borealis")
        follow_streamer(db, actor=user_actor, streamer_identifier=streamer, clock=clock)
        clock.advance(1)
        follow_streamer(db, actor=user_actor, streamer_identifier=other, clock=clock)
        clock.advance(1)
        unfollow_streamer(db, actor=user_actor, streamer_identifier=streamer, clock=clock)

        history = list_user_follow_history(db, actor=user_actor)
        assert history["total"] == 3
        assert [(h["action"], h["streamer"]["name"]) for h in history["history"]] == [
            ("UNFOLLOW", "Aurora"),
            ("FOLLOW", "Borealis"),
            ("FOLLOW", "Aurora"),
        ]
        assert history["history"][0]["created_at"] == "2025-03-01T00:00:02Z"
        assert history["history"][0]["user"]["nickname"] == "viewer"

    def test_user_history_limit(self, db, clock, user_actor, streamer):
        for _ in range(3):
            follow_streamer(db, actor=user_actor, streamer_identifier=streamer, clock=clock)
            unfollow_streamer(db, actor=user_actor, streamer_identifier=streamer, clock=clock)

        assert list_user_follow_history(db, actor=user_actor, limit=4)["total"] == 4
        with pytest.raises(ValidationError) as exc:
            list_user_follow_history(db, actor=user_actor, limit=0)
        assert exc.value.code == "INVALID_LIMIT"

    def test_streamer_history_is_admin_only(self, db, clock, user_actor, admin_actor, streamer):
        follow_streamer(db, actor=user_actor, streamer_identifier=streamer, clock=clock)
        follow_streamer(db, actor=admin_actor, streamer_identifier=streamer, clock=clock)

        with pytest.raises(ForbiddenError) as exc:
            list_streamer_follow_history(db, actor=user_actor, streamer_identifier=streamer)
        assert exc.value.code == "ADMIN_ONLY"

        history = list_streamer_follow_history(db, actor=admin_actor, streamer_identifier=streamer)
        assert history["streamer_uuid"] == streamer
        assert [h["user"]["nickname"] for h in history["history"]] == ["moderator", "viewer"]


class TestBatchFollowStatus:
    def test_mutes_known_follows_and_skips_the_rest(self, db, clock, user_actor, streamer, make_streamer):
        other = make_streamer("Borealis")
        stranger = make_streamer("Cassiopeia")
        follow_streamer(db, actor=user_actor, streamer_identifier=streamer, clock=clock)
        follow_streamer(db, actor=user_actor, streamer_identifier=other, clock=clock)

        result = batch_update_follow_status(
            db,
            actor=user_actor,
            updates=[(streamer, False), (other, True), (stranger, False), ("garbage", False)],
            clock=clock,
        )
        assert result == {"status": "ok", "requested": 4, "updated": 2, "skipped": 2}

        rows = db.execute(select(StreamerFollow).order_by(StreamerFollow.id)).scalars().all()
        assert [row.is_active for row in rows] == [False, True]

    def test_muted_follow_still_counts(self, db, clock, user_actor, streamer):
        follow_streamer(db, actor=user_actor, streamer_identifier=streamer, clock=clock)
        batch_update_follow_status(db, actor=user_actor, updates=[(streamer, False)], clock=clock)

        assert is_following(db, actor=user_actor, streamer_identifier=streamer) is True
        assert _follow_count(db, streamer) == 1
        assert list_user_follow_history(db, actor=user_actor)["total"] == 1

    def test_empty_batch(self, db, clock, user_actor):
        result = batch_update_follow_status(db, actor=user_actor, updates=[], clock=clock)
        assert result["requested"] == 0
        assert result["updated"] == 0
