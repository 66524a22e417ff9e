"""
Application usecases for the schedule board.

CLI commands call functions from here; each takes an open Session and returns
a plain dict shaped for JSON output.
"""

# Import modules to make them available at package level
# Note: Import order matters - schedule_show must come before schedule_history,
# and both before schedule_add, which schedule_update/schedule_delete/schedule_list
# and the like/follow usecases build on.
from . import schedule_show  # noqa: I001
from . import schedule_history  # noqa: I001  # Depends on schedule_show
from . import schedule_add  # noqa: I001  # Depends on schedule_show and schedule_history
from . import schedule_update  # noqa: I001  # Depends on schedule_add
from . import schedule_delete  # noqa: I001  # Depends on schedule_add and schedule_update
from . import schedule_list  # noqa: I001
from . import counters  # noqa: I001
from . import schedule_like  # noqa: I001
from . import streamer_follow  # noqa: I001
from . import streamer_add  # noqa: I001
from . import streamer_verify  # noqa: I001  # Depends on streamer_add and streamer_follow
from . import user_add  # noqa: I001

__all__ = [
    "counters",
    "schedule_add",
    "schedule_delete",
    "schedule_history",
    "schedule_like",
    "schedule_list",
    "schedule_show",
    "schedule_update",
    "streamer_add",
    "streamer_follow",
    "streamer_verify",
    "user_add",
]
