"""
Battle recording service.

Stores a clan's battle result together with every derived statistic. Derived
fields are always recomputed from the raw inputs being written, so a record
never carries statistics that disagree with its inputs.
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from flockbot.data_models.battle import BattleEntry, CalculatedBattle
from flockbot.database.database import Database
from flockbot.database.models import (
    Clan, ClanBattle, ClanBattleNonplayerStats, ClanBattlePlayerStats, MasterBattle
)
from flockbot.services.base import BaseService
from flockbot.utils.battle_id import decode_battle_id
from flockbot.utils.calculations import BattleCalculator
from flockbot.utils.exceptions import AlreadyExistsError, NotFoundError
from flockbot.utils.logger import setup_logger

logger = setup_logger(__name__)


def _apply_calculation(battle: ClanBattle, entry: BattleEntry, calculated: CalculatedBattle):
    battle.score = entry.score
    battle.baseline_fp = entry.baseline_fp
    battle.opponent_name = entry.opponent_name
    battle.opponent_country = entry.opponent_country
    battle.opponent_score = entry.opponent_score
    battle.opponent_fp = entry.opponent_fp

    battle.result = int(calculated.result)
    battle.fp = calculated.fp
    battle.ratio = calculated.ratio
    battle.average_ratio = calculated.average_ratio
    battle.projected_score = calculated.projected_score
    battle.margin_ratio = calculated.margin_ratio
    battle.fp_margin = calculated.fp_margin
    battle.nonplaying_count = calculated.nonplaying_count
    battle.nonplaying_fp_ratio = calculated.nonplaying_fp_ratio
    battle.reserve_count = calculated.reserve_count
    battle.reserve_fp_ratio = calculated.reserve_fp_ratio

    battle.player_stats.extend(
        ClanBattlePlayerStats(
            player_id=p.player_id,
            rank=p.rank,
            score=p.score,
            fp=p.fp,
            ratio=p.ratio,
            ratio_rank=p.ratio_rank,
        )
        for p in calculated.player_stats
    )
    battle.nonplayer_stats.extend(
        ClanBattleNonplayerStats(player_id=np.player_id, fp=np.fp, reserve=np.reserve)
        for np in entry.nonplayer_stats
    )


class BattleService(BaseService):
    """Records and updates clan battle results."""

    def __init__(self, db: Database):
        super().__init__(db.session_factory)
        self.db = db

    async def record_battle(self, clan_id: int, entry: BattleEntry) -> ClanBattle:
        """
        Record a clan's result for a battle window

        Args:
            clan_id: Clan the result belongs to
            entry: Raw battle inputs

        Returns:
            The stored ClanBattle with player and nonplayer stats loaded

        Raises:
            InvalidFormatError / InvalidCalendarDateError: Bad battle identifier
            ZeroDenominatorError: A required-positive input is zero
            NotFoundError: The clan or master battle does not exist
            AlreadyExistsError: The clan already has a result for this battle
        """
        decode_battle_id(entry.battle_id)
        calculated = BattleCalculator.calculate_battle(entry)

        async with self.get_session() as session:
            master_battle = await session.get(MasterBattle, entry.battle_id)
            if master_battle is None:
                raise NotFoundError("Master battle", entry.battle_id)
            if await session.get(Clan, clan_id) is None:
                raise NotFoundError("Clan", clan_id)

            existing = await session.execute(
                select(ClanBattle.id)
                .where(ClanBattle.clan_id == clan_id)
                .where(ClanBattle.battle_id == entry.battle_id)
            )
            if existing.scalar_one_or_none() is not None:
                raise AlreadyExistsError("Clan battle", entry.battle_id)

            battle = ClanBattle(
                clan_id=clan_id,
                battle_id=entry.battle_id,
                start_date=master_battle.start_timestamp,
                end_date=master_battle.end_timestamp,
                player_stats=[],
                nonplayer_stats=[],
            )
            _apply_calculation(battle, entry, calculated)
            session.add(battle)
            try:
                await session.flush()
            except IntegrityError as e:
                raise AlreadyExistsError("Clan battle", entry.battle_id) from e

        logger.info(
            f"Recorded battle {entry.battle_id} for clan {clan_id}: "
            f"{calculated.result.display_name}, ratio {calculated.ratio:.2f}"
        )
        return await self.get_battle(clan_id, entry.battle_id)

    async def update_battle(self, clan_id: int, entry: BattleEntry) -> ClanBattle:
        """
        Replace a recorded battle's raw inputs and recompute every derived field

        Raises:
            NotFoundError: If the clan has no result for this battle
            ZeroDenominatorError: A required-positive input is zero
        """
        decode_battle_id(entry.battle_id)
        calculated = BattleCalculator.calculate_battle(entry)

        async with self.get_session() as session:
            result = await session.execute(
                select(ClanBattle)
                .options(
                    selectinload(ClanBattle.player_stats),
                    selectinload(ClanBattle.nonplayer_stats)
                )
                .where(ClanBattle.clan_id == clan_id)
                .where(ClanBattle.battle_id == entry.battle_id)
            )
            battle = result.scalar_one_or_none()
            if battle is None:
                raise NotFoundError("Clan battle", entry.battle_id)

            # Remove the old rows first so the per-player unique constraints hold
            battle.player_stats.clear()
            battle.nonplayer_stats.clear()
            await session.flush()

            _apply_calculation(battle, entry, calculated)

        logger.info(f"Updated battle {entry.battle_id} for clan {clan_id}")
        return await self.get_battle(clan_id, entry.battle_id)

    async def get_battle(self, clan_id: int, battle_id: str) -> ClanBattle:
        """
        Raises:
            NotFoundError: If the clan has no result for this battle
        """
        battle = await self.db.get_clan_battle(clan_id, battle_id)
        if battle is None:
            raise NotFoundError("Clan battle", battle_id)
        return battle

    async def list_battles(self, clan_id: int, start_battle_id: str = None,
                           end_battle_id: str = None) -> List[ClanBattle]:
        return await self.db.list_clan_battles(clan_id, start_battle_id, end_battle_id)
