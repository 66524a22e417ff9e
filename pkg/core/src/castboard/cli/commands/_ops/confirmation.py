"""
Confirmation logic for ``schedule delete``.

The helpers here never touch stdin/stdout; the command wraps them with IO so
tests can call them directly.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class PendingScheduleDelete:
    """What a pending soft delete will hide."""

    schedule_uuid: str
    title: str
    streamer_name: str
    schedule_date: str
    like_count: int


def build_confirmation_prompt(summary: PendingScheduleDelete) -> str:
    """Build the prompt text. Always ends with "Type 'yes' to confirm:"."""
    return f"""WARNING: This will delete the following schedule:
   - Schedule: "{summary.title}" (ID: {summary.schedule_uuid})
   - Streamer: {summary.streamer_name} on {summary.schedule_date}
   - Likes: {summary.like_count}

The schedule disappears from listings; its history is kept. Type 'yes' to confirm:"""


def evaluate_confirmation(
    summary: PendingScheduleDelete,
    yes: bool = False,
    user_response: str | None = None,
) -> tuple[bool, str | None]:
    """
    Decide whether the delete may proceed.

    Returns:
        (True, None) to proceed; (False, prompt) when the caller must ask the
        user; (False, "Deletion cancelled") when the answer was not exactly "yes".
    """
    if yes:
        return True, None
    if user_response is None:
        return False, build_confirmation_prompt(summary)
    if user_response.strip() == "yes":
        return True, None
    return False, "Deletion cancelled"
