from typing import Iterable, List, Sequence

from flockbot.constants import BattleResult, StatsConstants
from flockbot.data_models.battle import BattleEntry, CalculatedBattle, CalculatedPlayerStat
from flockbot.utils.exceptions import ZeroDenominatorError


class BattleCalculator:
    """Handles per-battle and per-player statistics for clan battles"""

    @staticmethod
    def result(score: int, opponent_score: int) -> BattleResult:
        """
        Decide the battle outcome from both clans' scores

        Args:
            score: Clan's total score
            opponent_score: Opponent's total score

        Returns:
            BattleResult.WIN, LOSS or TIE
        """
        if score > opponent_score:
            return BattleResult.WIN
        if score < opponent_score:
            return BattleResult.LOSS
        return BattleResult.TIE

    @staticmethod
    def _ratio(score: float, fp: float, field: str) -> float:
        if fp == 0:
            raise ZeroDenominatorError(field)
        return (score / fp) * StatsConstants.RATIO_MULTIPLIER

    @staticmethod
    def clan_ratio(score: float, baseline_fp: float) -> float:
        """
        Official clan ratio: (score / baseline_fp) * RATIO_MULTIPLIER

        Raises:
            ZeroDenominatorError: If baseline_fp is 0
        """
        return BattleCalculator._ratio(score, baseline_fp, 'baseline_fp')

    @staticmethod
    def average_ratio(score: float, fp: float) -> float:
        """
        Ratio against the actual FP of the non-reserve roster

        Raises:
            ZeroDenominatorError: If fp is 0
        """
        return BattleCalculator._ratio(score, fp, 'fp')

    @staticmethod
    def player_ratio(score: float, fp: float) -> float:
        """
        Player ratio: (score / fp) * RATIO_MULTIPLIER

        Raises:
            ZeroDenominatorError: If the player's fp is 0
        """
        return BattleCalculator._ratio(score, fp, 'fp')

    @staticmethod
    def margin_ratio(score: float, opponent_score: float) -> float:
        """
        Score margin as a percentage of our score. Negative when we lost.

        Raises:
            ZeroDenominatorError: If score is 0
        """
        if score == 0:
            raise ZeroDenominatorError('score')
        return ((score - opponent_score) / score) * StatsConstants.PERCENTAGE_MULTIPLIER

    @staticmethod
    def fp_margin(baseline_fp: float, opponent_fp: float) -> float:
        """
        Baseline FP advantage as a percentage of our baseline FP

        Raises:
            ZeroDenominatorError: If baseline_fp is 0
        """
        if baseline_fp == 0:
            raise ZeroDenominatorError('baseline_fp')
        return ((baseline_fp - opponent_fp) / baseline_fp) * StatsConstants.PERCENTAGE_MULTIPLIER

    # Participation ratios return 0 on an empty base instead of raising:
    # no eligible FP is a valid zero-participation state.

    @staticmethod
    def nonplaying_fp_ratio(nonplaying_fp: float, fp: float) -> float:
        """Share of the non-reserve FP held by members who did not play, in percent"""
        if fp == 0:
            return 0.0
        return (nonplaying_fp / fp) * StatsConstants.PERCENTAGE_MULTIPLIER

    @staticmethod
    def reserve_fp_ratio(reserve_fp: float, fp: float) -> float:
        """Share of the whole roster's FP (fp + reserve_fp) held by reserves, in percent"""
        total_fp = fp + reserve_fp
        if total_fp == 0:
            return 0.0
        return (reserve_fp / total_fp) * StatsConstants.PERCENTAGE_MULTIPLIER

    @staticmethod
    def projected_score(score: float, nonplaying_fp_ratio: float) -> float:
        """Score the clan would have posted had every non-reserve member played"""
        return (1 + nonplaying_fp_ratio / StatsConstants.PERCENTAGE_MULTIPLIER) * score

    @staticmethod
    def ratio_ranks(ratios: Sequence[float]) -> List[int]:
        """
        Rank ratios from highest (rank 1) to lowest

        Equal ratios get distinct consecutive ranks in input order, so
        [10, 30, 30, 20] ranks as [4, 1, 2, 3].

        Args:
            ratios: Ratios in input order

        Returns:
            Ranks aligned with the input order
        """
        order = sorted(range(len(ratios)), key=lambda index: -ratios[index])
        ranks = [0] * len(ratios)
        for position, index in enumerate(order, start=1):
            ranks[index] = position
        return ranks

    @staticmethod
    def total_fp(player_stats: Iterable, nonplayer_stats: Iterable) -> int:
        """
        Clan FP for the battle: every player plus non-reserve nonplayers

        Reserves are left out on purpose; parking members in reserve lowers
        the clan's effective power for matchmaking.
        """
        nonplayer_stats = list(nonplayer_stats)
        return sum(p.fp for p in player_stats) + BattleCalculator.nonplaying_fp(nonplayer_stats)

    @staticmethod
    def nonplaying_count(nonplayer_stats: Iterable) -> int:
        return sum(1 for np in nonplayer_stats if not np.reserve)

    @staticmethod
    def reserve_count(nonplayer_stats: Iterable) -> int:
        return sum(1 for np in nonplayer_stats if np.reserve)

    @staticmethod
    def nonplaying_fp(nonplayer_stats: Iterable) -> int:
        return sum(np.fp for np in nonplayer_stats if not np.reserve)

    @staticmethod
    def reserve_fp(nonplayer_stats: Iterable) -> int:
        return sum(np.fp for np in nonplayer_stats if np.reserve)

    @staticmethod
    def calculate_battle(entry: BattleEntry) -> CalculatedBattle:
        """
        Derive every battle and player statistic from raw battle inputs

        Args:
            entry: Raw battle entry

        Returns:
            CalculatedBattle with player stats in input order

        Raises:
            ZeroDenominatorError: If baseline_fp, total fp, score or a player's fp is 0
        """
        player_ratios = [
            BattleCalculator.player_ratio(p.score, p.fp) for p in entry.player_stats
        ]
        ratio_ranks = BattleCalculator.ratio_ranks(player_ratios)

        player_stats = [
            CalculatedPlayerStat(
                player_id=p.player_id,
                rank=p.rank,
                score=p.score,
                fp=p.fp,
                ratio=ratio,
                ratio_rank=ratio_rank,
            )
            for p, ratio, ratio_rank in zip(entry.player_stats, player_ratios, ratio_ranks)
        ]

        fp = BattleCalculator.total_fp(entry.player_stats, entry.nonplayer_stats)
        nonplaying_fp_ratio = BattleCalculator.nonplaying_fp_ratio(
            BattleCalculator.nonplaying_fp(entry.nonplayer_stats), fp
        )
        reserve_fp_ratio = BattleCalculator.reserve_fp_ratio(
            BattleCalculator.reserve_fp(entry.nonplayer_stats), fp
        )

        return CalculatedBattle(
            result=BattleCalculator.result(entry.score, entry.opponent_score),
            score=entry.score,
            fp=fp,
            baseline_fp=entry.baseline_fp,
            opponent_score=entry.opponent_score,
            opponent_fp=entry.opponent_fp,
            ratio=BattleCalculator.clan_ratio(entry.score, entry.baseline_fp),
            average_ratio=BattleCalculator.average_ratio(entry.score, fp),
            projected_score=BattleCalculator.projected_score(entry.score, nonplaying_fp_ratio),
            margin_ratio=BattleCalculator.margin_ratio(entry.score, entry.opponent_score),
            fp_margin=BattleCalculator.fp_margin(entry.baseline_fp, entry.opponent_fp),
            nonplaying_count=BattleCalculator.nonplaying_count(entry.nonplayer_stats),
            nonplaying_fp_ratio=nonplaying_fp_ratio,
            reserve_count=BattleCalculator.reserve_count(entry.nonplayer_stats),
            reserve_fp_ratio=reserve_fp_ratio,
            player_stats=player_stats,
        )


def average(values: Sequence[float]) -> float:
    """Arithmetic mean. Raises ValueError on an empty sequence."""
    if not values:
        raise ValueError("Cannot average an empty sequence")
    return sum(values) / len(values)


def round_to(value: float, decimals: int = StatsConstants.REPORT_DECIMALS) -> float:
    return round(value, decimals)
