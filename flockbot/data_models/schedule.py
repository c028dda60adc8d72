"""
Battle schedule data models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class TickResult:
    """Outcome of one scheduler tick. Failures are reported here, never raised."""
    created: bool = False
    advanced: bool = False
    battle_id: Optional[str] = None
    next_battle_start: Optional[datetime] = None
    skipped_reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BattleWindow:
    """A scheduled battle window with aware UTC instants."""
    battle_id: str
    start_instant: datetime
    end_instant: datetime
    created_by: Optional[int] = None
    notes: Optional[str] = None

    @property
    def is_automatic(self) -> bool:
        return self.created_by is None


@dataclass(frozen=True)
class BattleScheduleInfo:
    """Current and upcoming battle windows for display."""
    current_window: Optional[BattleWindow]
    next_window: Optional[BattleWindow]
    next_battle_start_date: datetime
    available_windows: List[BattleWindow] = field(default_factory=list)
