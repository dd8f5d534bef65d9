from __future__ import annotations

from datetime import datetime


class SystemClock:
    """Clock adapter that returns the current local time."""

    def now(self) -> datetime:
        """Return the current local timestamp."""
        return datetime.now().astimezone()
