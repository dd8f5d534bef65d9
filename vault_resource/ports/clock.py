"""Clock Port Interface.

Contract: Provides the current local wall-clock time used to stamp lease
expirations as secret versions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Return the current local time (datetime, tz-aware)."""
        ...
