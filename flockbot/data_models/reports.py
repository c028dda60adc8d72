"""
Player performance and matchup report data models.
"""

from dataclasses import dataclass, field
from typing import List, Optional

TREND_IMPROVING = 'improving'
TREND_DECLINING = 'declining'
TREND_STABLE = 'stable'


@dataclass(frozen=True)
class PlayerPerformancePoint:
    """One battle the player played, next to the clan's figures for it."""
    date: str
    battle_id: str
    opponent_name: Optional[str]
    player_ratio: float
    clan_ratio: float
    clan_average_ratio: float
    rank: int
    ratio_rank: int
    score: int
    fp: int


@dataclass(frozen=True)
class PlayerPerformanceSummary:
    total_battles: int = 0
    battles_played: int = 0
    participation_rate: float = 0.0
    average_ratio: float = 0.0
    min_ratio: float = 0.0
    max_ratio: float = 0.0
    clan_average_ratio: float = 0.0
    comparison_to_clan: float = 0.0
    trend: str = TREND_STABLE


@dataclass(frozen=True)
class PlayerPerformanceReport:
    player_id: int
    player_name: str
    is_active: bool
    performance: List[PlayerPerformancePoint] = field(default_factory=list)
    summary: PlayerPerformanceSummary = field(default_factory=PlayerPerformanceSummary)


@dataclass(frozen=True)
class MatchupBattle:
    battle_id: str
    date: str
    result: int
    score: int
    opponent_score: int
    fp_diff: int


@dataclass(frozen=True)
class OpponentRecord:
    """Head-to-head record against one opponent clan."""
    name: str
    country: str
    battles: int
    wins: int
    losses: int
    ties: int
    win_rate: float
    average_fp_diff: int
    is_rival: bool
    recent_battles: List[MatchupBattle] = field(default_factory=list)


@dataclass(frozen=True)
class CountryRecord:
    country: str
    battles: int
    wins: int
    losses: int
    ties: int
    win_rate: float
    percentage: float


@dataclass(frozen=True)
class MatchupSummary:
    total_battles: int = 0
    unique_opponents: int = 0
    unique_countries: int = 0
    rivals: int = 0


@dataclass(frozen=True)
class MatchupReport:
    """Opponents most faced first, then countries most faced first."""
    opponents: List[OpponentRecord] = field(default_factory=list)
    countries: List[CountryRecord] = field(default_factory=list)
    summary: MatchupSummary = field(default_factory=MatchupSummary)
