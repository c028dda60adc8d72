"""
Battle data models - raw battle entry input and its calculated form.

Provides immutable data transfer objects passed between the battle service
and the statistics layer.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from flockbot.constants import BattleResult


@dataclass(frozen=True)
class PlayerStatInput:
    """Raw result for one player who played the battle."""
    player_id: int
    rank: int
    score: int
    fp: int


@dataclass(frozen=True)
class NonplayerStatInput:
    """Roster member who did not play. Reserves are tracked separately."""
    player_id: int
    fp: int
    reserve: bool = False


@dataclass(frozen=True)
class BattleEntry:
    """Raw inputs for one clan's result in a battle window."""
    battle_id: str
    score: int
    baseline_fp: int
    opponent_score: int
    opponent_fp: int
    opponent_name: Optional[str] = None
    opponent_country: Optional[str] = None
    player_stats: List[PlayerStatInput] = field(default_factory=list)
    nonplayer_stats: List[NonplayerStatInput] = field(default_factory=list)


@dataclass(frozen=True)
class CalculatedPlayerStat:
    """Player result with derived ratio fields."""
    player_id: int
    rank: int
    score: int
    fp: int
    ratio: float
    ratio_rank: int


@dataclass(frozen=True)
class CalculatedBattle:
    """Every derived field of a battle, computed from one BattleEntry."""
    result: BattleResult
    score: int
    fp: int
    baseline_fp: int
    opponent_score: int
    opponent_fp: int
    ratio: float
    average_ratio: float
    projected_score: float
    margin_ratio: float
    fp_margin: float
    nonplaying_count: int
    nonplaying_fp_ratio: float
    reserve_count: int
    reserve_fp_ratio: float
    player_stats: List[CalculatedPlayerStat]
