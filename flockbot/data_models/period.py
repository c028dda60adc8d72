"""
Period summary data models for monthly and yearly statistics.
"""

from dataclasses import dataclass

from flockbot.constants import StatsConstants


@dataclass(frozen=True)
class PeriodClanPerformance:
    """Clan-level averages over the battles of a month or year."""
    battle_count: int
    won_count: int
    lost_count: int
    tied_count: int
    average_fp: float
    average_baseline_fp: float
    average_ratio: float
    average_margin_ratio: float
    average_fp_margin: float
    average_nonplaying_count: float
    average_nonplaying_fp_ratio: float
    average_reserve_count: float
    average_reserve_fp_ratio: float

    @classmethod
    def empty(cls) -> 'PeriodClanPerformance':
        """Explicit zero-filled summary for a period with no battles."""
        return cls(
            battle_count=0, won_count=0, lost_count=0, tied_count=0,
            average_fp=0.0, average_baseline_fp=0.0, average_ratio=0.0,
            average_margin_ratio=0.0, average_fp_margin=0.0,
            average_nonplaying_count=0.0, average_nonplaying_fp_ratio=0.0,
            average_reserve_count=0.0, average_reserve_fp_ratio=0.0,
        )

    @property
    def win_rate(self) -> float:
        if self.battle_count == 0:
            return 0.0
        return (self.won_count / self.battle_count) * StatsConstants.PERCENTAGE_MULTIPLIER


@dataclass(frozen=True)
class PeriodIndividualPerformance:
    """One player's averages over a period."""
    player_id: int
    battles_played: int
    average_score: float
    average_fp: float
    average_ratio: float
    average_rank: float
    average_ratio_rank: float
