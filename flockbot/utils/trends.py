"""
Trend calculations for clan performance reports.

Turns an ordered list of battle records into four series (flock power,
ratio, participation, margin) plus a summary. Series can be per battle or
rolled up per month.
"""

import math
from collections import OrderedDict
from typing import List, Sequence

from flockbot.constants import BattleResult, StatsConstants
from flockbot.data_models.trends import (
    FlockPowerPoint, FpTrend, MarginPoint, ParticipationPoint, RangeTrend,
    RatioPoint, TrendReport, TrendSummary, WinLossSummary
)
from flockbot.utils.battle_id import decode_battle_id, month_id_of
from flockbot.utils.calculations import average, round_to

AGGREGATION_BATTLE = 'battle'
AGGREGATION_MONTHLY = 'monthly'
AGGREGATIONS = (AGGREGATION_BATTLE, AGGREGATION_MONTHLY)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def participation_rate(player_count: int, nonplaying_count: int) -> float:
    """Players as a percentage of the active (non-reserve) roster; 0 with no active members."""
    active_members = player_count + nonplaying_count
    if active_members == 0:
        return 0.0
    return (player_count / active_members) * StatsConstants.PERCENTAGE_MULTIPLIER


class TrendCalculator:
    """Builds trend series and summaries from battle records"""

    @staticmethod
    def compute_trends(battles: Sequence, aggregation: str = AGGREGATION_BATTLE) -> TrendReport:
        """
        Compute trend series for a clan's battles

        Args:
            battles: Battle records ordered by start date ascending. Each needs
                battle_id, fp, baseline_fp, ratio, average_ratio,
                nonplaying_fp_ratio, reserve_fp_ratio, margin_ratio, result,
                score, opponent_score, player_count and nonplaying_count
            aggregation: 'battle' for one point per battle, 'monthly' for one
                point per month

        Returns:
            TrendReport; an empty input yields empty series and a zero summary

        Raises:
            ValueError: If aggregation is not recognised
        """
        if aggregation not in AGGREGATIONS:
            raise ValueError(f"Unknown aggregation '{aggregation}', expected one of {AGGREGATIONS}")

        battles = list(battles)
        if not battles:
            return TrendReport()

        flock_power, ratio, participation, margin = TrendCalculator._battle_points(battles)
        summary = TrendCalculator._summary(battles, participation)

        if aggregation == AGGREGATION_MONTHLY:
            flock_power, ratio, participation, margin = TrendCalculator._monthly_points(
                flock_power, ratio, participation, margin
            )

        return TrendReport(
            flock_power=flock_power,
            ratio=ratio,
            participation=participation,
            margin=margin,
            summary=summary,
        )

    @staticmethod
    def _battle_points(battles: List):
        flock_power, ratio, participation, margin = [], [], [], []

        for battle in battles:
            month_id = month_id_of(battle.battle_id)
            date_str = decode_battle_id(battle.battle_id).isoformat()
            result = BattleResult(battle.result)

            flock_power.append(FlockPowerPoint(
                date=date_str,
                battle_id=battle.battle_id,
                total_fp=battle.fp,
                baseline_fp=battle.baseline_fp,
                month_id=month_id,
            ))
            ratio.append(RatioPoint(
                date=date_str,
                battle_id=battle.battle_id,
                ratio=battle.ratio,
                average_ratio=battle.average_ratio,
                month_id=month_id,
            ))
            participation.append(ParticipationPoint(
                date=date_str,
                battle_id=battle.battle_id,
                nonplaying_fp_ratio=battle.nonplaying_fp_ratio,
                reserve_fp_ratio=battle.reserve_fp_ratio,
                participation_rate=participation_rate(battle.player_count, battle.nonplaying_count),
                player_count=battle.player_count,
                nonplaying_count=battle.nonplaying_count,
                month_id=month_id,
            ))
            margin.append(MarginPoint(
                date=date_str,
                battle_id=battle.battle_id,
                margin_ratio=battle.margin_ratio,
                result=int(result),
                is_win=result == BattleResult.WIN,
                is_loss=result == BattleResult.LOSS,
                is_tie=result == BattleResult.TIE,
                score=battle.score,
                opponent_score=battle.opponent_score,
                month_id=month_id,
            ))

        return flock_power, ratio, participation, margin

    @staticmethod
    def _monthly_points(flock_power, ratio, participation, margin):
        """
        Roll battle points up into one point per month

        Count-like fields are averaged then rounded to an integer, ratio and
        percentage fields to 2 decimals. The monthly result is a majority vote
        of wins against losses, not an average of result codes.
        """
        groups = OrderedDict()
        for index, point in enumerate(flock_power):
            groups.setdefault(point.month_id, []).append(index)

        monthly_fp, monthly_ratio, monthly_participation, monthly_margin = [], [], [], []

        for month_id, indexes in groups.items():
            fp_group = [flock_power[i] for i in indexes]
            ratio_group = [ratio[i] for i in indexes]
            part_group = [participation[i] for i in indexes]
            margin_group = [margin[i] for i in indexes]
            first_date = fp_group[0].date

            monthly_fp.append(FlockPowerPoint(
                date=first_date,
                battle_id=month_id,
                total_fp=round_half_up(average([p.total_fp for p in fp_group])),
                baseline_fp=round_half_up(average([p.baseline_fp for p in fp_group])),
                month_id=month_id,
            ))
            monthly_ratio.append(RatioPoint(
                date=first_date,
                battle_id=month_id,
                ratio=round_to(average([p.ratio for p in ratio_group])),
                average_ratio=round_to(average([p.average_ratio for p in ratio_group])),
                month_id=month_id,
            ))
            monthly_participation.append(ParticipationPoint(
                date=first_date,
                battle_id=month_id,
                nonplaying_fp_ratio=round_to(average([p.nonplaying_fp_ratio for p in part_group])),
                reserve_fp_ratio=round_to(average([p.reserve_fp_ratio for p in part_group])),
                participation_rate=round_to(average([p.participation_rate for p in part_group])),
                player_count=round_half_up(average([p.player_count for p in part_group])),
                nonplaying_count=round_half_up(average([p.nonplaying_count for p in part_group])),
                month_id=month_id,
            ))

            wins = sum(1 for p in margin_group if p.is_win)
            losses = sum(1 for p in margin_group if p.is_loss)
            ties = sum(1 for p in margin_group if p.is_tie)
            if wins > losses:
                result = BattleResult.WIN
            elif losses > wins:
                result = BattleResult.LOSS
            else:
                result = BattleResult.TIE

            monthly_margin.append(MarginPoint(
                date=first_date,
                battle_id=month_id,
                margin_ratio=round_to(average([p.margin_ratio for p in margin_group])),
                result=int(result),
                is_win=wins > 0,
                is_loss=losses > 0,
                is_tie=ties > 0,
                score=round_half_up(average([p.score for p in margin_group])),
                opponent_score=round_half_up(average([p.opponent_score for p in margin_group])),
                month_id=month_id,
            ))

        return monthly_fp, monthly_ratio, monthly_participation, monthly_margin

    @staticmethod
    def _summary(battles: List, participation: List[ParticipationPoint]) -> TrendSummary:
        first, last = battles[0], battles[-1]
        start_fp, end_fp = first.baseline_fp, last.baseline_fp
        fp_change = end_fp - start_fp
        fp_change_percent = (fp_change / start_fp) * StatsConstants.PERCENTAGE_MULTIPLIER if start_fp > 0 else 0.0

        ratios = [b.ratio for b in battles]
        rates = [p.participation_rate for p in participation]

        results = [BattleResult(b.result) for b in battles]
        win_margins = [b.margin_ratio for b, r in zip(battles, results) if r == BattleResult.WIN]
        loss_margins = [b.margin_ratio for b, r in zip(battles, results) if r == BattleResult.LOSS]
        win_rate = (len(win_margins) / len(battles)) * StatsConstants.PERCENTAGE_MULTIPLIER

        return TrendSummary(
            battle_count=len(battles),
            start_date=decode_battle_id(first.battle_id).isoformat(),
            end_date=decode_battle_id(last.battle_id).isoformat(),
            fp_trend=FpTrend(
                start=start_fp,
                end=end_fp,
                change=fp_change,
                change_percent=round_to(fp_change_percent),
            ),
            ratio_trend=RangeTrend(
                average=round_to(average(ratios)),
                min=round_to(min(ratios)),
                max=round_to(max(ratios)),
            ),
            participation_trend=RangeTrend(
                average=round_to(average(rates)),
                min=round_to(min(rates)),
                max=round_to(max(rates)),
            ),
            win_loss=WinLossSummary(
                wins=len(win_margins),
                losses=len(loss_margins),
                ties=results.count(BattleResult.TIE),
                win_rate=round_to(win_rate),
                avg_win_margin=round_to(average(win_margins)) if win_margins else 0.0,
                avg_loss_margin=round_to(average(loss_margins)) if loss_margins else 0.0,
            ),
        )
