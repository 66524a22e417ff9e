"""
Operations package shared by CLI command groups.

Modules:
- actor: resolve ``--actor`` into an Actor and render usecase errors
- confirmation: interactive confirmation before a schedule is deleted
"""

from .actor import emit_error, emit_result, resolve_actor
from .confirmation import PendingScheduleDelete, build_confirmation_prompt, evaluate_confirmation

__all__ = [
    "PendingScheduleDelete",
    "build_confirmation_prompt",
    "emit_error",
    "emit_result",
    "evaluate_confirmation",
    "resolve_actor",
]
