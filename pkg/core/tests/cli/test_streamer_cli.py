"""
CLI-facing tests for the `streamer` and `user` command groups.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from castboard.cli.commands.streamer import _parse_toggle
from castboard.cli.main import app
from castboard.domain.actors import Actor
from castboard.infra.exceptions import ForbiddenError, ValidationError
from castboard.shared.types import UserRole

ACTOR_UUID = "4f1c1b1e-8a43-4d0e-9f3b-1f0f5b0c2a11"
STREAMER_UUID = "c0ffee00-1234-4abc-8def-001122334455"
OTHER_UUID = "0badcafe-0000-4000-8000-000000000001"


def _streamer(**overrides):
    streamer = {
        "id": 1,
        "uuid": STREAMER_UUID,
        "name": "Aurora",
        "description": None,
        "is_verified": False,
        "is_active": True,
        "follow_count": 0,
        "created_at": "2025-03-01T00:00:00Z",
        "updated_at": "2025-03-01T00:00:00Z",
    }
    streamer.update(overrides)
    return streamer


class TestStreamerCli:
    def setup_method(self):
        self.runner = CliRunner()
        self.actor = Actor.of(ACTOR_UUID, UserRole.ADMIN)

    def test_add(self):
        with (
            patch("castboard.cli.commands.streamer.session") as mock_session,
            patch("castboard.cli.commands.streamer.resolve_actor", return_value=self.actor),
            patch("castboard.usecases.streamer_add.add_streamer", return_value=_streamer()) as mock_add,
        ):
            mock_session.return_value.__enter__.return_value = MagicMock()
            result = self.runner.invoke(
                app, ["streamer", "add", "--actor", ACTOR_UUID, "--name", "Aurora"]
            )

        assert result.exit_code == 0
        assert "Streamer created:" in result.stdout
        assert "Verified: false" in result.stdout
        assert mock_add.call_args.kwargs["name"] == "Aurora"

    def test_verify_and_revoke(self):
        with (
            patch("castboard.cli.commands.streamer.session") as mock_session,
            patch("castboard.cli.commands.streamer.resolve_actor", return_value=self.actor),
            patch(
                "castboard.usecases.streamer_verify.verify_streamer",
                return_value=_streamer(is_verified=False),
            ) as mock_verify,
        ):
            mock_session.return_value.__enter__.return_value = MagicMock()
            result = self.runner.invoke(
                app, ["streamer", "verify", STREAMER_UUID, "--actor", ACTOR_UUID, "--revoke"]
            )

        assert result.exit_code == 0
        assert "Streamer verification revoked:" in result.stdout
        assert mock_verify.call_args.kwargs["verified"] is False

    def test_verify_forbidden(self):
        error = ForbiddenError("ADMIN_ONLY", "Only an admin can verify streamers")
        with (
            patch("castboard.cli.commands.streamer.session") as mock_session,
            patch("castboard.cli.commands.streamer.resolve_actor", return_value=Actor.of(ACTOR_UUID)),
            patch("castboard.usecases.streamer_verify.verify_streamer", side_effect=error),
        ):
            mock_session.return_value.__enter__.return_value = MagicMock()
            result = self.runner.invoke(
                app, ["streamer", "verify", STREAMER_UUID, "--actor", ACTOR_UUID, "--json"]
            )

        assert result.exit_code == 1
        assert json.loads(result.stdout)["kind"] == "FORBIDDEN"

    def test_follows_batch_parses_toggles(self):
        summary = {"status": "ok", "requested": 2, "updated": 1, "skipped": 1}
        with (
            patch("castboard.cli.commands.streamer.session") as mock_session,
            patch("castboard.cli.commands.streamer.resolve_actor", return_value=self.actor),
            patch(
                "castboard.usecases.streamer_follow.batch_update_follow_status", return_value=summary
            ) as mock_batch,
        ):
            mock_session.return_value.__enter__.return_value = MagicMock()
            result = self.runner.invoke(
                app,
                [
                    "streamer", "follows-batch",
                    "--actor", ACTOR_UUID,
                    "--set", f"{STREAMER_UUID}=false",
                    "--set", f"{OTHER_UUID}=true",
                ],
            )

        assert result.exit_code == 0
        assert "Updated: 1" in result.stdout
        assert mock_batch.call_args.kwargs["updates"] == [(STREAMER_UUID, False), (OTHER_UUID, True)]

    def test_follows_batch_rejects_bad_toggle(self):
        with (
            patch("castboard.cli.commands.streamer.session") as mock_session,
            patch("castboard.usecases.streamer_follow.batch_update_follow_status") as mock_batch,
        ):
            mock_session.return_value.__enter__.return_value = MagicMock()
            result = self.runner.invoke(
                app, ["streamer", "follows-batch", "--actor", ACTOR_UUID, "--set", STREAMER_UUID]
            )

        assert result.exit_code == 1
        assert "INVALID_TOGGLE" in result.output
        mock_batch.assert_not_called()

    def test_follow_history_defaults_to_own_log(self):
        history = {"status": "ok", "total": 0, "history": []}
        with (
            patch("castboard.cli.commands.streamer.session") as mock_session,
            patch("castboard.cli.commands.streamer.resolve_actor", return_value=self.actor),
            patch(
                "castboard.usecases.streamer_follow.list_user_follow_history", return_value=history
            ) as mock_own,
            patch("castboard.usecases.streamer_follow.list_streamer_follow_history") as mock_streamer,
        ):
            mock_session.return_value.__enter__.return_value = MagicMock()
            result = self.runner.invoke(app, ["streamer", "follow-history", "--actor", ACTOR_UUID])

        assert result.exit_code == 0
        assert "No follow history" in result.stdout
        assert mock_own.call_args.kwargs["limit"] == 20
        mock_streamer.assert_not_called()


@pytest.mark.parametrize(
    "value, expected",
    [
        (f"{STREAMER_UUID}=true", (STREAMER_UUID, True)),
        (f"{STREAMER_UUID}=OFF", (STREAMER_UUID, False)),
        (f" {STREAMER_UUID} = 1", (STREAMER_UUID, True)),
    ],
)
def test_parse_toggle(value, expected):
    assert _parse_toggle(value) == expected


@pytest.mark.parametrize("value", [STREAMER_UUID, f"{STREAMER_UUID}=maybe"])
def test_parse_toggle_rejects(value):
    with pytest.raises(ValidationError) as exc:
        _parse_toggle(value)
    assert exc.value.code == "INVALID_TOGGLE"


class TestUserCli:
    def setup_method(self):
        self.runner = CliRunner()

    def test_add_user_json(self):
        created = {
            "id": 1,
            "uuid": ACTOR_UUID,
            "nickname": "moderator",
            "role": "ADMIN",
            "is_active": True,
            "created_at": "2025-03-01T00:00:00Z",
            "updated_at": "2025-03-01T00:00:00Z",
        }
        with (
            patch("castboard.cli.commands.user.session") as mock_session,
            patch("castboard.usecases.user_add.add_user", return_value=created) as mock_add,
        ):
            mock_session.return_value.__enter__.return_value = MagicMock()
            result = self.runner.invoke(
                app, ["user", "add", "--nickname", "moderator", "--role", "admin", "--json"]
            )

        assert result.exit_code == 0
        assert json.loads(result.stdout) == created
        assert mock_add.call_args.kwargs["role"] == "admin"

    def test_add_user_invalid_role(self):
        error = ValidationError("INVALID_ROLE", "Role must be USER or ADMIN")
        with (
            patch("castboard.cli.commands.user.session") as mock_session,
            patch("castboard.usecases.user_add.add_user", side_effect=error),
        ):
            mock_session.return_value.__enter__.return_value = MagicMock()
            result = self.runner.invoke(app, ["user", "add", "--nickname", "x", "--role", "owner"])

        assert result.exit_code == 1
        assert "VALIDATION/INVALID_ROLE" in result.output
