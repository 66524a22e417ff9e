from __future__ import annotations

import typer

from ...infra.exceptions import CastboardError
from ...infra.uow import session
from ...usecases import schedule_add as _uc_schedule_add
from ...usecases import schedule_delete as _uc_schedule_delete
from ...usecases import schedule_history as _uc_schedule_history
from ...usecases import schedule_like as _uc_schedule_like
from ...usecases import schedule_list as _uc_schedule_list
from ...usecases import schedule_show as _uc_schedule_show
from ...usecases import schedule_update as _uc_schedule_update
from ._ops import PendingScheduleDelete, emit_error, emit_result, evaluate_confirmation, resolve_actor

app = typer.Typer(name="schedule", help="Broadcast schedule operations")


def _schedule_lines(header: str, result: dict) -> list[str]:
    lines = [
        header,
        f"  UUID: {result['uuid']}",
        f"  Title: {result['title']}",
        f"  Streamer: {result['streamer']['name']} ({result['streamer']['uuid']})",
        f"  Date: {result['schedule_date']}",
        f"  Status: {result['status']}",
    ]
    if result.get("start_time"):
        lines.append(f"  Start: {result['start_time']}")
    if result.get("description"):
        lines.append(f"  Description: {result['description']}")
    if result.get("external_notice_url"):
        lines.append(f"  Notice: {result['external_notice_url']}")
    lines.append(f"  Likes: {result['like_count']}")
    lines.append(f"  Version: {result['version']}")
    lines.append(f"  Updated: {result['updated_at']}")
    if result.get("deleted_at"):
        lines.append(f"  Deleted: {result['deleted_at']}")
    return lines


@app.command("add")
def add_schedule(
    actor: str = typer.Option(..., "--actor", help="UUID of the acting user"),
    streamer: str = typer.Option(..., "--streamer", help="Streamer UUID"),
    title: str = typer.Option(..., "--title", help="Schedule title (1-200 characters)"),
    schedule_date: str = typer.Option(..., "--date", help="Broadcast date (YYYY-MM-DD, reference timezone)"),
    status: str = typer.Option(..., "--status", help="SCHEDULED, TIME_TBD or BREAK"),
    start_time: str | None = typer.Option(
        None, "--start-time", help="ISO-8601 start; no offset means reference-timezone wall time"
    ),
    description: str | None = typer.Option(None, "--description", help="Optional description"),
    notice_url: str | None = typer.Option(None, "--notice-url", help="Link to the streamer's own notice"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Create a schedule for a verified streamer."""
    with session() as db:
        try:
            result = _uc_schedule_add.add_schedule(
                db,
                actor=resolve_actor(db, actor),
                streamer_identifier=streamer,
                title=title,
                schedule_date=schedule_date,
                status=status.upper(),
                start_time=start_time,
                description=description,
                external_notice_url=notice_url,
            )
        except CastboardError as e:
            emit_error(e, json_output)
            raise typer.Exit(1)
    emit_result(result, json_output, _schedule_lines("Schedule created:", result))


@app.command("show")
def show_schedule(
    schedule: str = typer.Argument(..., help="Schedule UUID or id"),
    include_deleted: bool = typer.Option(False, "--include-deleted", help="Also show deleted schedules"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Show one schedule."""
    with session() as db:
        try:
            result = _uc_schedule_show.show_schedule(
                db, schedule_identifier=schedule, include_deleted=include_deleted
            )
        except CastboardError as e:
            emit_error(e, json_output)
            raise typer.Exit(1)
    emit_result(result, json_output, _schedule_lines("Schedule:", result))


@app.command("update")
def update_schedule(
    schedule: str = typer.Argument(..., help="Schedule UUID or id"),
    actor: str = typer.Option(..., "--actor", help="UUID of the acting user"),
    last_updated_at: str = typer.Option(
        ..., "--last-updated-at", help="updated_at as last seen (concurrency token)"
    ),
    title: str | None = typer.Option(None, "--title", help="New title"),
    status: str | None = typer.Option(None, "--status", help="New status"),
    start_time: str | None = typer.Option(None, "--start-time", help="New ISO-8601 start"),
    description: str | None = typer.Option(None, "--description", help="New description ('' clears)"),
    notice_url: str | None = typer.Option(None, "--notice-url", help="New notice link ('' clears)"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Update a schedule. Fails with CONFLICT if it changed since --last-updated-at."""
    with session() as db:
        try:
            result = _uc_schedule_update.update_schedule(
                db,
                actor=resolve_actor(db, actor),
                schedule_identifier=schedule,
                last_updated_at=last_updated_at,
                title=title,
                status=status.upper() if status else None,
                start_time=start_time,
                description=description,
                external_notice_url=notice_url,
            )
        except CastboardError as e:
            emit_error(e, json_output)
            raise typer.Exit(1)
    emit_result(result, json_output, _schedule_lines("Schedule updated:", result))


@app.command("delete")
def delete_schedule(
    schedule: str = typer.Argument(..., help="Schedule UUID or id"),
    actor: str = typer.Option(..., "--actor", help="UUID of the acting admin"),
    last_updated_at: str | None = typer.Option(
        None, "--last-updated-at", help="Optional concurrency token"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Soft-delete a schedule (admin only)."""
    with session() as db:
        try:
            acting = resolve_actor(db, actor)
            current = _uc_schedule_show.show_schedule(db, schedule_identifier=schedule)
            summary = PendingScheduleDelete(
                schedule_uuid=current["uuid"],
                title=current["title"],
                streamer_name=current["streamer"]["name"],
                schedule_date=current["schedule_date"],
                like_count=current["like_count"],
            )
            proceed, prompt = evaluate_confirmation(summary, yes=yes or json_output)
            if not proceed:
                response = typer.prompt(prompt, default="", show_default=False)
                proceed, message = evaluate_confirmation(summary, user_response=response)
                if not proceed:
                    typer.echo(message)
                    raise typer.Exit(0)

            result = _uc_schedule_delete.delete_schedule(
                db,
                actor=acting,
                schedule_identifier=schedule,
                last_updated_at=last_updated_at,
            )
        except CastboardError as e:
            emit_error(e, json_output)
            raise typer.Exit(1)
    emit_result(result, json_output, _schedule_lines("Schedule deleted:", result))


@app.command("list")
def list_schedules(
    streamer: list[str] | None = typer.Option(None, "--streamer", help="Streamer UUID (repeatable)"),
    start_date: str | None = typer.Option(None, "--from", help="Earliest date (YYYY-MM-DD)"),
    end_date: str | None = typer.Option(None, "--to", help="Latest date (YYYY-MM-DD)"),
    title: str | None = typer.Option(None, "--title", help="Title contains (at least 2 characters)"),
    status: list[str] | None = typer.Option(None, "--status", help="Status (repeatable)"),
    cursor: str | None = typer.Option(None, "--cursor", help="next_token from the previous page"),
    limit: int | None = typer.Option(None, "--limit", help="Page size (1-100)"),
    sort_order: str = typer.Option("ASC", "--sort", help="ASC or DESC", show_default=True),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """List live schedules, one page at a time."""
    with session() as db:
        try:
            result = _uc_schedule_list.list_schedules(
                db,
                streamer_identifiers=streamer or None,
                start_date=start_date,
                end_date=end_date,
                title=title,
                statuses=[s.upper() for s in status] if status else None,
                cursor=cursor,
                limit=limit,
                sort_order=sort_order,
            )
        except CastboardError as e:
            emit_error(e, json_output)
            raise typer.Exit(1)

    lines = []
    for item in result["data"]:
        when = item["start_time"] or "-"
        lines.append(
            f"{item['schedule_date']}  {item['status']:<9}  {when:<20}  "
            f"{item['streamer']['name']}: {item['title']}  ({item['uuid']})"
        )
    if not result["data"]:
        lines.append("No schedules found")
    if result["page"]["has_more"]:
        lines.append(f"More: --cursor {result['page']['next_token']}")
    emit_result(result, json_output, lines)


@app.command("history")
def schedule_history(
    schedule: str = typer.Argument(..., help="Schedule UUID or id"),
    version: int | None = typer.Option(None, "--version", help="Show the full state at this version"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Show a schedule's change history, or its state at one version."""
    with session() as db:
        try:
            if version is not None:
                snapshot = _uc_schedule_history.reconstruct_schedule(
                    db, schedule_identifier=schedule, version=version
                )
                emit_result(snapshot, json_output, _schedule_lines(f"Version {version}:", snapshot))
                return
            result = _uc_schedule_history.list_schedule_history(db, schedule_identifier=schedule)
        except CastboardError as e:
            emit_error(e, json_output)
            raise typer.Exit(1)

    lines = [f"History of {result['schedule_uuid']} ({result['total']} entries):"]
    for entry in result["history"]:
        current = entry["current_snapshot"] or {}
        lines.append(
            f"  {entry['created_at']}  {entry['action']:<6}  v{current.get('version', '?')}  "
            f"by {entry['modified_by']}"
        )
    emit_result(result, json_output, lines)


@app.command("like")
def like_schedule(
    schedule: str = typer.Argument(..., help="Schedule UUID or id"),
    actor: str = typer.Option(..., "--actor", help="UUID of the acting user"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Like a schedule."""
    with session() as db:
        try:
            result = _uc_schedule_like.like_schedule(
                db, actor=resolve_actor(db, actor), schedule_identifier=schedule
            )
        except CastboardError as e:
            emit_error(e, json_output)
            raise typer.Exit(1)
    emit_result(result, json_output, [f"Liked {result['schedule_uuid']} (likes: {result['like_count']})"])


@app.command("unlike")
def unlike_schedule(
    schedule: str = typer.Argument(..., help="Schedule UUID or id"),
    actor: str = typer.Option(..., "--actor", help="UUID of the acting user"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Remove a like from a schedule."""
    with session() as db:
        try:
            result = _uc_schedule_like.unlike_schedule(
                db, actor=resolve_actor(db, actor), schedule_identifier=schedule
            )
        except CastboardError as e:
            emit_error(e, json_output)
            raise typer.Exit(1)
    emit_result(
        result, json_output, [f"Unliked {result['schedule_uuid']} (likes: {result['like_count']})"]
    )
