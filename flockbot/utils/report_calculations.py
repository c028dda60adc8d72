"""
Player performance and matchup calculations for clan reports.

Both calculators take battle records ordered by start date ascending, the
order Database.list_clan_battles returns them in.
"""

from collections import OrderedDict
from typing import List, Sequence

from flockbot.constants import BattleResult, StatsConstants
from flockbot.data_models.reports import (
    CountryRecord, MatchupBattle, MatchupReport, MatchupSummary, OpponentRecord,
    PlayerPerformancePoint, PlayerPerformanceReport, PlayerPerformanceSummary,
    TREND_DECLINING, TREND_IMPROVING, TREND_STABLE
)
from flockbot.utils.battle_id import decode_battle_id
from flockbot.utils.calculations import average, round_to
from flockbot.utils.trends import round_half_up


def _percent(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return round_to((part / whole) * StatsConstants.PERCENTAGE_MULTIPLIER)


class PlayerReportCalculator:
    """One player's performance over time compared with the clan"""

    @staticmethod
    def performance_trend(ratios: Sequence[float]) -> str:
        """
        Compare the average ratio of the first and last third of battles

        Fewer than MIN_BATTLES_FOR_STATS ratios, or a zero starting average,
        is reported as stable.
        """
        if len(ratios) < StatsConstants.MIN_BATTLES_FOR_STATS:
            return TREND_STABLE

        third = len(ratios) // 3
        first_average = average(ratios[:third])
        last_average = average(ratios[-third:])
        if first_average == 0:
            return TREND_STABLE

        change = ((last_average - first_average) / first_average) * StatsConstants.PERCENTAGE_MULTIPLIER
        if change > StatsConstants.PLAYER_TREND_THRESHOLD_PERCENT:
            return TREND_IMPROVING
        if change < -StatsConstants.PLAYER_TREND_THRESHOLD_PERCENT:
            return TREND_DECLINING
        return TREND_STABLE

    @staticmethod
    def player_performance(player, battles: Sequence) -> PlayerPerformanceReport:
        """
        Build a player's performance report

        Args:
            player: Roster member with id, name and is_active
            battles: The clan's battle records with player_stats loaded

        Returns:
            PlayerPerformanceReport with one point per battle the player played
        """
        battles = list(battles)
        points = []
        for battle in battles:
            stat = next((s for s in battle.player_stats if s.player_id == player.id), None)
            if stat is None:
                continue
            points.append(PlayerPerformancePoint(
                date=decode_battle_id(battle.battle_id).isoformat(),
                battle_id=battle.battle_id,
                opponent_name=battle.opponent_name,
                player_ratio=stat.ratio,
                clan_ratio=battle.ratio,
                clan_average_ratio=battle.average_ratio,
                rank=stat.rank,
                ratio_rank=stat.ratio_rank,
                score=stat.score,
                fp=stat.fp,
            ))

        ratios = [p.player_ratio for p in points]
        player_average = average(ratios) if ratios else 0.0
        clan_average = average([b.ratio for b in battles]) if battles else 0.0

        comparison = 0.0
        if ratios and clan_average > 0:
            comparison = (player_average / clan_average - 1) * StatsConstants.PERCENTAGE_MULTIPLIER

        summary = PlayerPerformanceSummary(
            total_battles=len(battles),
            battles_played=len(points),
            participation_rate=_percent(len(points), len(battles)),
            average_ratio=round_to(player_average),
            min_ratio=round_to(min(ratios)) if ratios else 0.0,
            max_ratio=round_to(max(ratios)) if ratios else 0.0,
            clan_average_ratio=round_to(clan_average),
            comparison_to_clan=round_to(comparison),
            trend=PlayerReportCalculator.performance_trend(ratios),
        )

        return PlayerPerformanceReport(
            player_id=player.id,
            player_name=player.name,
            is_active=bool(player.is_active),
            performance=points,
            summary=summary,
        )


class MatchupCalculator:
    """Win/loss records grouped by opponent clan and by opponent country"""

    @staticmethod
    def _tally(record: dict, result: BattleResult):
        record['battles'] += 1
        if result == BattleResult.WIN:
            record['wins'] += 1
        elif result == BattleResult.LOSS:
            record['losses'] += 1
        else:
            record['ties'] += 1

    @staticmethod
    def matchups(battles: Sequence) -> MatchupReport:
        """
        Aggregate a clan's battles by opponent and by opponent country

        Opponents faced RIVAL_MIN_BATTLES times or more are rivals. Each
        opponent keeps its RECENT_MATCHUPS_LIMIT most recent battles, newest
        first. Missing opponent names or countries are grouped as 'Unknown'.
        """
        battles = list(battles)
        if not battles:
            return MatchupReport()

        opponents = OrderedDict()
        countries = OrderedDict()

        # Newest first, so recent battle lists and first-seen order favour recent opponents
        for battle in reversed(battles):
            result = BattleResult(battle.result)
            name = battle.opponent_name or StatsConstants.UNKNOWN_OPPONENT
            country = battle.opponent_country or StatsConstants.UNKNOWN_OPPONENT
            fp_diff = battle.baseline_fp - battle.opponent_fp

            opponent = opponents.setdefault(name, {
                'country': country, 'battles': 0, 'wins': 0, 'losses': 0, 'ties': 0,
                'fp_diff': 0, 'recent': [],
            })
            MatchupCalculator._tally(opponent, result)
            opponent['fp_diff'] += fp_diff
            opponent['recent'].append(MatchupBattle(
                battle_id=battle.battle_id,
                date=decode_battle_id(battle.battle_id).isoformat(),
                result=int(result),
                score=battle.score,
                opponent_score=battle.opponent_score,
                fp_diff=fp_diff,
            ))

            country_record = countries.setdefault(country, {'battles': 0, 'wins': 0, 'losses': 0, 'ties': 0})
            MatchupCalculator._tally(country_record, result)

        opponent_records: List[OpponentRecord] = [
            OpponentRecord(
                name=name,
                country=data['country'],
                battles=data['battles'],
                wins=data['wins'],
                losses=data['losses'],
                ties=data['ties'],
                win_rate=_percent(data['wins'], data['battles']),
                average_fp_diff=round_half_up(data['fp_diff'] / data['battles']),
                is_rival=data['battles'] >= StatsConstants.RIVAL_MIN_BATTLES,
                recent_battles=data['recent'][:StatsConstants.RECENT_MATCHUPS_LIMIT],
            )
            for name, data in opponents.items()
        ]
        opponent_records.sort(key=lambda o: -o.battles)

        country_records: List[CountryRecord] = [
            CountryRecord(
                country=country,
                battles=data['battles'],
                wins=data['wins'],
                losses=data['losses'],
                ties=data['ties'],
                win_rate=_percent(data['wins'], data['battles']),
                percentage=_percent(data['battles'], len(battles)),
            )
            for country, data in countries.items()
        ]
        country_records.sort(key=lambda c: -c.battles)

        return MatchupReport(
            opponents=opponent_records,
            countries=country_records,
            summary=MatchupSummary(
                total_battles=len(battles),
                unique_opponents=len(opponent_records),
                unique_countries=len(country_records),
                rivals=sum(1 for o in opponent_records if o.is_rival),
            ),
        )
