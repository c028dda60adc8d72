"""
Trend report data models.

Each series point is keyed by a battle identifier, or by a month identifier
when the report is aggregated monthly.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class FlockPowerPoint:
    date: str
    battle_id: str
    total_fp: float
    baseline_fp: float
    month_id: Optional[str] = None


@dataclass(frozen=True)
class RatioPoint:
    date: str
    battle_id: str
    ratio: float
    average_ratio: float
    month_id: Optional[str] = None


@dataclass(frozen=True)
class ParticipationPoint:
    date: str
    battle_id: str
    nonplaying_fp_ratio: float
    reserve_fp_ratio: float
    participation_rate: float
    player_count: int
    nonplaying_count: int
    month_id: Optional[str] = None


@dataclass(frozen=True)
class MarginPoint:
    date: str
    battle_id: str
    margin_ratio: float
    result: int
    is_win: bool
    is_loss: bool
    is_tie: bool
    score: float
    opponent_score: float
    month_id: Optional[str] = None


@dataclass(frozen=True)
class FpTrend:
    start: float = 0
    end: float = 0
    change: float = 0
    change_percent: float = 0.0


@dataclass(frozen=True)
class RangeTrend:
    average: float = 0.0
    min: float = 0.0
    max: float = 0.0


@dataclass(frozen=True)
class WinLossSummary:
    wins: int = 0
    losses: int = 0
    ties: int = 0
    win_rate: float = 0.0
    avg_win_margin: float = 0.0
    avg_loss_margin: float = 0.0


@dataclass(frozen=True)
class TrendSummary:
    battle_count: int = 0
    start_date: str = ''
    end_date: str = ''
    fp_trend: FpTrend = field(default_factory=FpTrend)
    ratio_trend: RangeTrend = field(default_factory=RangeTrend)
    participation_trend: RangeTrend = field(default_factory=RangeTrend)
    win_loss: WinLossSummary = field(default_factory=WinLossSummary)


@dataclass(frozen=True)
class TrendReport:
    """Series and summary returned by a trend computation."""
    flock_power: List[FlockPowerPoint] = field(default_factory=list)
    ratio: List[RatioPoint] = field(default_factory=list)
    participation: List[ParticipationPoint] = field(default_factory=list)
    margin: List[MarginPoint] = field(default_factory=list)
    summary: TrendSummary = field(default_factory=TrendSummary)
