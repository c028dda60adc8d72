"""
Monthly and yearly statistics for a clan.

Summaries are recomputed from the stored battle records on every request.
"""

from typing import List, Tuple

from flockbot.data_models.period import PeriodClanPerformance, PeriodIndividualPerformance
from flockbot.database.database import Database
from flockbot.utils.battle_id import (
    battle_id_bounds_for_month, battle_id_bounds_for_year, month_id_of, year_id_of
)
from flockbot.utils.period_calculations import PeriodCalculator
from flockbot.utils.logger import setup_logger

logger = setup_logger(__name__)


class PeriodStatsService:
    """Clan and individual summaries over a month (YYYYMM) or year (YYYY)."""

    def __init__(self, db: Database):
        self.db = db

    async def _clan_summary(self, clan_id: int, period: str, bounds: Tuple[str, str]) -> PeriodClanPerformance:
        battles = await self.db.list_clan_battles(clan_id, *bounds)
        if not battles:
            logger.debug(f"No battles for clan {clan_id} in {period}, returning empty summary")
            return PeriodClanPerformance.empty()
        return PeriodCalculator.clan_period_summary(battles, period)

    async def _player_summaries(self, clan_id: int, bounds: Tuple[str, str]) -> List[PeriodIndividualPerformance]:
        records = await self.db.list_player_stats(clan_id, *bounds)
        summaries = PeriodCalculator.individual_period_summaries(records)
        return sorted(summaries, key=lambda s: s.average_ratio, reverse=True)

    async def get_monthly_clan_summary(self, clan_id: int, month_id: str) -> PeriodClanPerformance:
        """
        Raises:
            InvalidFormatError: If month_id is not a valid YYYYMM identifier
        """
        return await self._clan_summary(clan_id, month_id, battle_id_bounds_for_month(month_id))

    async def get_yearly_clan_summary(self, clan_id: int, year_id: str) -> PeriodClanPerformance:
        return await self._clan_summary(clan_id, year_id, battle_id_bounds_for_year(year_id))

    async def get_monthly_player_summaries(self, clan_id: int, month_id: str) -> List[PeriodIndividualPerformance]:
        """Players with at least three battles in the month, best average ratio first"""
        return await self._player_summaries(clan_id, battle_id_bounds_for_month(month_id))

    async def get_yearly_player_summaries(self, clan_id: int, year_id: str) -> List[PeriodIndividualPerformance]:
        return await self._player_summaries(clan_id, battle_id_bounds_for_year(year_id))

    async def list_months(self, clan_id: int) -> List[str]:
        """Months with at least one battle, newest first"""
        battle_ids = await self.db.list_clan_battle_ids(clan_id)
        return sorted({month_id_of(b) for b in battle_ids}, reverse=True)

    async def list_years(self, clan_id: int) -> List[str]:
        battle_ids = await self.db.list_clan_battle_ids(clan_id)
        return sorted({year_id_of(b) for b in battle_ids}, reverse=True)
