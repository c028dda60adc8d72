"""
Period summary calculations for monthly and yearly statistics.

Inputs are duck-typed: any object exposing the battle fields (a ClanBattle
row or a CalculatedBattle) or player fields (a ClanBattlePlayerStats row or
a CalculatedPlayerStat) can be summarized.
"""

from collections import OrderedDict
from typing import Dict, Iterable, List, Sequence

from flockbot.constants import BattleResult, StatsConstants
from flockbot.data_models.period import PeriodClanPerformance, PeriodIndividualPerformance
from flockbot.utils.calculations import average
from flockbot.utils.exceptions import EmptyPeriodError


class PeriodCalculator:
    """Aggregates battle and player records over a month or year"""

    @staticmethod
    def clan_period_summary(battles: Sequence, period: str = None) -> PeriodClanPerformance:
        """
        Summarize a clan's battles over a period

        Args:
            battles: Non-empty sequence of battle records
            period: Optional month/year identifier used in the error message

        Returns:
            Result counts and the mean of every derived battle metric

        Raises:
            EmptyPeriodError: If no battles are supplied. Callers wanting a
                zero-filled summary should use PeriodClanPerformance.empty()
        """
        battles = list(battles)
        if not battles:
            raise EmptyPeriodError(period)

        def mean_of(attribute: str) -> float:
            return average([getattr(b, attribute) for b in battles])

        results = [BattleResult(b.result) for b in battles]

        return PeriodClanPerformance(
            battle_count=len(battles),
            won_count=results.count(BattleResult.WIN),
            lost_count=results.count(BattleResult.LOSS),
            tied_count=results.count(BattleResult.TIE),
            average_fp=mean_of('fp'),
            average_baseline_fp=mean_of('baseline_fp'),
            average_ratio=mean_of('ratio'),
            average_margin_ratio=mean_of('margin_ratio'),
            average_fp_margin=mean_of('fp_margin'),
            average_nonplaying_count=mean_of('nonplaying_count'),
            average_nonplaying_fp_ratio=mean_of('nonplaying_fp_ratio'),
            average_reserve_count=mean_of('reserve_count'),
            average_reserve_fp_ratio=mean_of('reserve_fp_ratio'),
        )

    @staticmethod
    def group_by_player(player_records: Iterable) -> Dict[int, List]:
        """Group records by player_id, keeping first-appearance order"""
        grouped: Dict[int, List] = OrderedDict()
        for record in player_records:
            grouped.setdefault(record.player_id, []).append(record)
        return grouped

    @staticmethod
    def individual_period_summaries(player_records: Iterable) -> List[PeriodIndividualPerformance]:
        """
        Per-player averages for players with enough battles in the period

        Players with fewer than MIN_BATTLES_FOR_STATS records are left out;
        exactly MIN_BATTLES_FOR_STATS qualifies.

        Args:
            player_records: Player records from every battle in the period

        Returns:
            One summary per qualifying player, in first-appearance order
        """
        summaries = []
        for player_id, records in PeriodCalculator.group_by_player(player_records).items():
            if len(records) < StatsConstants.MIN_BATTLES_FOR_STATS:
                continue

            summaries.append(PeriodIndividualPerformance(
                player_id=player_id,
                battles_played=len(records),
                average_score=average([r.score for r in records]),
                average_fp=average([r.fp for r in records]),
                average_ratio=average([r.ratio for r in records]),
                average_rank=average([r.rank for r in records]),
                average_ratio_rank=average([r.ratio_rank for r in records]),
            ))
        return summaries
