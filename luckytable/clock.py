"""Time source for transaction timestamps and the daily-bonus calendar day."""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        # Local calendar date, midnight to midnight
        return datetime.now().date()
