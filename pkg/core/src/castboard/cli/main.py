"""
Main CLI application using Typer with router-based command dispatch.

This module provides the operator command-line interface for Castboard,
calling usecases and outputting JSON when requested.

All command groups are registered through the centralized CliRouter.
"""

from __future__ import annotations

import typer

from ..infra.logging import configure_logging
from .commands import schedule, streamer, user
from .router import get_router

app = typer.Typer(help="Castboard operator CLI")

# Initialize router and register all command groups
router = get_router(app)

router.register(
    "schedule",
    schedule.app,
    help_text="Broadcast schedule operations",
)

router.register(
    "streamer",
    streamer.app,
    help_text="Streamer, verification and follow operations",
)

router.register(
    "user",
    user.app,
    help_text="User registration operations",
)


@app.callback()
def main(ctx: typer.Context):
    """Castboard - streamer broadcast schedule board."""
    ctx.ensure_object(dict)
    configure_logging()


def cli():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    cli()
