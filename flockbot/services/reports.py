"""
Clan report service.

Loads a clan's battles over an inclusive identifier range and hands them to
the pure report calculators.
"""

from typing import List

from flockbot.data_models.reports import MatchupReport, PlayerPerformanceReport
from flockbot.data_models.trends import TrendReport
from flockbot.database.database import Database
from flockbot.database.models import ClanBattle
from flockbot.utils.battle_id import decode_battle_id
from flockbot.utils.exceptions import NotFoundError
from flockbot.utils.logger import setup_logger
from flockbot.utils.report_calculations import MatchupCalculator, PlayerReportCalculator
from flockbot.utils.trends import AGGREGATION_BATTLE, TrendCalculator

logger = setup_logger(__name__)


class ReportService:
    """Trend, player and matchup reports over a clan's recorded battles."""

    def __init__(self, db: Database):
        self.db = db

    async def _load_battles(self, clan_id: int, start_battle_id: str = None,
                            end_battle_id: str = None) -> List[ClanBattle]:
        """
        Raises:
            InvalidFormatError / InvalidCalendarDateError: If a bound is malformed
        """
        for bound in (start_battle_id, end_battle_id):
            if bound:
                decode_battle_id(bound)
        return await self.db.list_clan_battles(clan_id, start_battle_id, end_battle_id)

    async def get_trends(self, clan_id: int, start_battle_id: str = None, end_battle_id: str = None,
                         aggregation: str = AGGREGATION_BATTLE) -> TrendReport:
        """
        Trend series for a clan over an inclusive identifier range

        Raises:
            InvalidFormatError / InvalidCalendarDateError: If a bound is malformed
            ValueError: If aggregation is not 'battle' or 'monthly'
        """
        battles = await self._load_battles(clan_id, start_battle_id, end_battle_id)
        logger.debug(f"Computing {aggregation} trends for clan {clan_id} over {len(battles)} battles")
        return TrendCalculator.compute_trends(battles, aggregation)

    async def get_player_report(self, clan_id: int, player_id: int, start_battle_id: str = None,
                                end_battle_id: str = None) -> PlayerPerformanceReport:
        """
        One roster member's performance compared with the clan average

        Raises:
            NotFoundError: If the player is not on this clan's roster
            InvalidFormatError / InvalidCalendarDateError: If a bound is malformed
        """
        player = await self.db.get_roster_member(player_id)
        if player is None or player.clan_id != clan_id:
            raise NotFoundError("Roster member", player_id)

        battles = await self._load_battles(clan_id, start_battle_id, end_battle_id)
        logger.debug(f"Computing performance of player {player_id} over {len(battles)} battles")
        return PlayerReportCalculator.player_performance(player, battles)

    async def get_matchups(self, clan_id: int, start_battle_id: str = None,
                           end_battle_id: str = None) -> MatchupReport:
        """
        Win/loss record by opponent and by opponent country

        Raises:
            InvalidFormatError / InvalidCalendarDateError: If a bound is malformed
        """
        battles = await self._load_battles(clan_id, start_battle_id, end_battle_id)
        return MatchupCalculator.matchups(battles)
