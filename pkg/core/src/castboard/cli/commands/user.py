from __future__ import annotations

import typer

from ...infra.exceptions import CastboardError
from ...infra.uow import session
from ...usecases import user_add as _uc_user_add
from ._ops import emit_error, emit_result

app = typer.Typer(name="user", help="User registration operations")


@app.command("add")
def add_user(
    nickname: str = typer.Option(..., "--nickname", help="Display name"),
    role: str = typer.Option("USER", "--role", help="USER or ADMIN", show_default=True),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Register a user. Pass its UUID as --actor to other commands."""
    with session() as db:
        try:
            result = _uc_user_add.add_user(db, nickname=nickname, role=role)
        except CastboardError as e:
            emit_error(e, json_output)
            raise typer.Exit(1)
    emit_result(
        result,
        json_output,
        [
            "User created:",
            f"  UUID: {result['uuid']}",
            f"  Nickname: {result['nickname']}",
            f"  Role: {result['role']}",
        ],
    )
