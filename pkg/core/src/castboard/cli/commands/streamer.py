from __future__ import annotations

import typer

from ...infra.exceptions import CastboardError, ValidationError
from ...infra.uow import session
from ...usecases import streamer_add as _uc_streamer_add
from ...usecases import streamer_follow as _uc_streamer_follow
from ...usecases import streamer_verify as _uc_streamer_verify
from ._ops import emit_error, emit_result, resolve_actor

app = typer.Typer(name="streamer", help="Streamer and follow operations")


def _streamer_lines(header: str, result: dict) -> list[str]:
    return [
        header,
        f"  UUID: {result['uuid']}",
        f"  Name: {result['name']}",
        f"  Verified: {str(bool(result['is_verified'])).lower()}",
        f"  Active: {str(bool(result['is_active'])).lower()}",
        f"  Followers: {result['follow_count']}",
    ]


def _parse_toggle(value: str) -> tuple[str, bool]:
    """Parse ``UUID=true|false`` from --set."""
    identifier, sep, flag = value.partition("=")
    normalized = flag.strip().lower()
    if not sep or normalized not in ("true", "false", "on", "off", "1", "0"):
        raise ValidationError("INVALID_TOGGLE", f"--set expects UUID=true|false, got '{value}'")
    return identifier.strip(), normalized in ("true", "on", "1")


@app.command("add")
def add_streamer(
    actor: str = typer.Option(..., "--actor", help="UUID of the acting user"),
    name: str = typer.Option(..., "--name", help="Streamer name"),
    description: str | None = typer.Option(None, "--description", help="Optional description"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Register a streamer (starts unverified)."""
    with session() as db:
        try:
            result = _uc_streamer_add.add_streamer(
                db, actor=resolve_actor(db, actor), name=name, description=description
            )
        except CastboardError as e:
            emit_error(e, json_output)
            raise typer.Exit(1)
    emit_result(result, json_output, _streamer_lines("Streamer created:", result))


@app.command("verify")
def verify_streamer(
    streamer: str = typer.Argument(..., help="Streamer UUID"),
    actor: str = typer.Option(..., "--actor", help="UUID of the acting admin"),
    revoke: bool = typer.Option(False, "--revoke", help="Remove verification instead"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Verify a streamer so schedules can be created for it (admin only)."""
    with session() as db:
        try:
            result = _uc_streamer_verify.verify_streamer(
                db,
                actor=resolve_actor(db, actor),
                streamer_identifier=streamer,
                verified=not revoke,
            )
        except CastboardError as e:
            emit_error(e, json_output)
            raise typer.Exit(1)
    header = "Streamer verification revoked:" if revoke else "Streamer verified:"
    emit_result(result, json_output, _streamer_lines(header, result))


@app.command("follow")
def follow_streamer(
    streamer: str = typer.Argument(..., help="Streamer UUID"),
    actor: str = typer.Option(..., "--actor", help="UUID of the acting user"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Follow a streamer."""
    with session() as db:
        try:
            result = _uc_streamer_follow.follow_streamer(
                db, actor=resolve_actor(db, actor), streamer_identifier=streamer
            )
        except CastboardError as e:
            emit_error(e, json_output)
            raise typer.Exit(1)
    emit_result(
        result, json_output, [f"Following {result['streamer_uuid']} (followers: {result['follow_count']})"]
    )


@app.command("unfollow")
def unfollow_streamer(
    streamer: str = typer.Argument(..., help="Streamer UUID"),
    actor: str = typer.Option(..., "--actor", help="UUID of the acting user"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Unfollow a streamer."""
    with session() as db:
        try:
            result = _uc_streamer_follow.unfollow_streamer(
                db, actor=resolve_actor(db, actor), streamer_identifier=streamer
            )
        except CastboardError as e:
            emit_error(e, json_output)
            raise typer.Exit(1)
    emit_result(
        result, json_output, [f"Unfollowed {result['streamer_uuid']} (followers: {result['follow_count']})"]
    )


@app.command("follows-batch")
def batch_follow_status(
    actor: str = typer.Option(..., "--actor", help="UUID of the acting user"),
    toggles: list[str] = typer.Option(..., "--set", help="UUID=true|false (repeatable)"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Mute or unmute several follows at once. Unknown follows are skipped."""
    with session() as db:
        try:
            updates = [_parse_toggle(value) for value in toggles]
            result = _uc_streamer_follow.batch_update_follow_status(
                db, actor=resolve_actor(db, actor), updates=updates
            )
        except CastboardError as e:
            emit_error(e, json_output)
            raise typer.Exit(1)
    emit_result(
        result,
        json_output,
        [f"Requested: {result['requested']}  Updated: {result['updated']}  Skipped: {result['skipped']}"],
    )


@app.command("follow-history")
def follow_history(
    streamer: str | None = typer.Argument(None, help="Streamer UUID (admin view); omit for your own log"),
    actor: str = typer.Option(..., "--actor", help="UUID of the acting user"),
    limit: int | None = typer.Option(None, "--limit", help="Maximum entries"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Show follow/unfollow history, newest first."""
    with session() as db:
        try:
            acting = resolve_actor(db, actor)
            if streamer:
                result = _uc_streamer_follow.list_streamer_follow_history(
                    db,
                    actor=acting,
                    streamer_identifier=streamer,
                    limit=limit or _uc_streamer_follow.STREAMER_HISTORY_LIMIT,
                )
            else:
                result = _uc_streamer_follow.list_user_follow_history(
                    db, actor=acting, limit=limit or _uc_streamer_follow.USER_HISTORY_LIMIT
                )
        except CastboardError as e:
            emit_error(e, json_output)
            raise typer.Exit(1)

    lines = [
        f"  {entry['created_at']}  {entry['action']:<8}  {entry['user']['nickname']} -> {entry['streamer']['name']}"
        for entry in result["history"]
    ] or ["No follow history"]
    emit_result(result, json_output, lines)
