from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from flockbot.config import Config
from flockbot.constants import ScheduleConstants
from flockbot.database.models import (
    Base, Clan, RosterMember, MasterBattle, ClanBattle, ClanBattlePlayerStats
)
from flockbot.utils.exceptions import AlreadyExistsError
from flockbot.utils.logger import setup_logger
from flockbot.utils.official_time import to_utc_naive


class Database:
    def __init__(self, database_url: str = None):
        self.logger = setup_logger(__name__)
        self.database_url = database_url or Config.get_async_database_url()
        if self.database_url.startswith('sqlite:///'):
            self.database_url = self.database_url.replace('sqlite:///', 'sqlite+aiosqlite:///')
        self.engine = None
        self.async_session = None

    async def initialize(self):
        """Initialize the database connection and create tables"""
        self.logger.info("Initializing database...")

        self.engine = create_async_engine(
            self.database_url,
            echo=Config.DEBUG,
            future=True
        )

        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        self.logger.info("Database initialized successfully")

    @property
    def session_factory(self) -> async_sessionmaker:
        """Session factory handed to the service layer"""
        if self.async_session is None:
            raise RuntimeError("Database.initialize() must be awaited before use")
        return self.async_session

    @asynccontextmanager
    async def get_session(self):
        """Get a database session"""
        async with self.async_session() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    @asynccontextmanager
    async def transaction(self):
        """
        Create a transaction boundary for atomic operations.

        Everything done with the yielded session commits together on success
        or rolls back together on failure. Exceptions must propagate out of
        the context for rollback to occur.
        """
        async with self.async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def close(self):
        """Close the database connection"""
        if self.engine:
            await self.engine.dispose()
            self.logger.info("Database connection closed")

    # Master battle operations
    async def get_master_battle(self, battle_id: str) -> Optional[MasterBattle]:
        """Find a battle window by identifier"""
        async with self.get_session() as session:
            result = await session.execute(
                select(MasterBattle).where(MasterBattle.battle_id == battle_id)
            )
            return result.scalar_one_or_none()

    async def create_master_battle(self, battle_id: str, start_instant: datetime, end_instant: datetime,
                                   created_by: int = None, notes: str = None) -> MasterBattle:
        """
        Create a battle window

        Raises:
            AlreadyExistsError: If a window with this identifier exists, including
                when a concurrent insert wins the race and the primary key fires
        """
        async with self.get_session() as session:
            existing = await session.get(MasterBattle, battle_id)
            if existing is not None:
                raise AlreadyExistsError("Master battle", battle_id)

            master_battle = MasterBattle(
                battle_id=battle_id,
                start_timestamp=to_utc_naive(start_instant),
                end_timestamp=to_utc_naive(end_instant),
                created_by=created_by,
                notes=notes
            )
            session.add(master_battle)
            try:
                await session.commit()
            except IntegrityError as e:
                raise AlreadyExistsError("Master battle", battle_id) from e
            await session.refresh(master_battle)

            self.logger.info(
                f"Created master battle {battle_id} "
                f"({'automatic' if created_by is None else f'by {created_by}'})"
            )
            return master_battle

    async def get_current_master_battle(self, now: datetime) -> Optional[MasterBattle]:
        """The window containing now; the latest-starting one if windows overlap"""
        now_utc = to_utc_naive(now)
        async with self.get_session() as session:
            result = await session.execute(
                select(MasterBattle)
                .where(MasterBattle.start_timestamp <= now_utc)
                .where(MasterBattle.end_timestamp >= now_utc)
                .order_by(MasterBattle.start_timestamp.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def get_available_master_battles(self, now: datetime,
                                           limit: int = ScheduleConstants.AVAILABLE_BATTLES_LIMIT) -> List[MasterBattle]:
        """Windows that have already started, newest first"""
        async with self.get_session() as session:
            result = await session.execute(
                select(MasterBattle)
                .where(MasterBattle.start_timestamp <= to_utc_naive(now))
                .order_by(MasterBattle.start_timestamp.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    async def get_recent_master_battles(self, limit: int = 10) -> List[MasterBattle]:
        async with self.get_session() as session:
            result = await session.execute(
                select(MasterBattle)
                .order_by(MasterBattle.start_timestamp.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    async def get_master_battles_page(self, page: int = 1, page_size: int = 20) -> Tuple[List[MasterBattle], int]:
        """One page of windows, newest first, with the total count"""
        page = max(page, 1)
        async with self.get_session() as session:
            total = await session.scalar(select(func.count()).select_from(MasterBattle))
            result = await session.execute(
                select(MasterBattle)
                .order_by(MasterBattle.start_timestamp.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            return list(result.scalars().all()), total or 0

    # Clan operations
    async def create_clan(self, name: str, country: str = None) -> Clan:
        async with self.get_session() as session:
            clan = Clan(name=name, country=country, is_active=True)
            session.add(clan)
            try:
                await session.commit()
            except IntegrityError as e:
                raise AlreadyExistsError("Clan", name) from e
            await session.refresh(clan)
            return clan

    async def get_clan(self, clan_id: int) -> Optional[Clan]:
        async with self.get_session() as session:
            return await session.get(Clan, clan_id)

    async def get_clan_by_name(self, name: str) -> Optional[Clan]:
        """Get a clan by name (case insensitive)"""
        async with self.get_session() as session:
            result = await session.execute(
                select(Clan).where(func.lower(Clan.name) == func.lower(name))
            )
            return result.scalar_one_or_none()

    async def create_roster_member(self, clan_id: int, name: str) -> RosterMember:
        async with self.get_session() as session:
            member = RosterMember(clan_id=clan_id, name=name, is_active=True)
            session.add(member)
            try:
                await session.commit()
            except IntegrityError as e:
                raise AlreadyExistsError("Roster member", name) from e
            await session.refresh(member)
            return member

    async def get_roster(self, clan_id: int, active_only: bool = True) -> List[RosterMember]:
        async with self.get_session() as session:
            query = select(RosterMember).where(RosterMember.clan_id == clan_id)
            if active_only:
                query = query.where(RosterMember.is_active == True)
            result = await session.execute(query.order_by(RosterMember.name))
            return list(result.scalars().all())

    async def get_roster_member(self, member_id: int) -> Optional[RosterMember]:
        async with self.get_session() as session:
            return await session.get(RosterMember, member_id)

    async def get_roster_member_by_name(self, clan_id: int, name: str) -> Optional[RosterMember]:
        """Get a clan's roster member by name (case insensitive)"""
        async with self.get_session() as session:
            result = await session.execute(
                select(RosterMember)
                .where(RosterMember.clan_id == clan_id)
                .where(func.lower(RosterMember.name) == func.lower(name))
            )
            return result.scalar_one_or_none()

    async def set_roster_member_active(self, member_id: int, active: bool) -> Optional[RosterMember]:
        async with self.get_session() as session:
            member = await session.get(RosterMember, member_id)
            if member is None:
                return None
            member.is_active = active
            await session.commit()
            await session.refresh(member)
            return member

    # Clan battle operations
    async def get_clan_battle(self, clan_id: int, battle_id: str) -> Optional[ClanBattle]:
        """Get a clan's battle record with its player and nonplayer stats"""
        async with self.get_session() as session:
            result = await session.execute(
                select(ClanBattle)
                .options(
                    selectinload(ClanBattle.player_stats),
                    selectinload(ClanBattle.nonplayer_stats)
                )
                .where(ClanBattle.clan_id == clan_id)
                .where(ClanBattle.battle_id == battle_id)
            )
            return result.scalar_one_or_none()

    async def list_clan_battles(self, clan_id: int, start_battle_id: str = None,
                                end_battle_id: str = None) -> List[ClanBattle]:
        """
        A clan's battle records, ordered by start date ascending

        Identifier bounds are inclusive; identifiers sort chronologically so
        plain string comparison selects the range.
        """
        async with self.get_session() as session:
            query = (
                select(ClanBattle)
                .options(
                    selectinload(ClanBattle.player_stats),
                    selectinload(ClanBattle.nonplayer_stats)
                )
                .where(ClanBattle.clan_id == clan_id)
            )
            if start_battle_id:
                query = query.where(ClanBattle.battle_id >= start_battle_id)
            if end_battle_id:
                query = query.where(ClanBattle.battle_id <= end_battle_id)

            result = await session.execute(query.order_by(ClanBattle.start_date.asc()))
            return list(result.scalars().all())

    async def list_player_stats(self, clan_id: int, start_battle_id: str = None,
                                end_battle_id: str = None) -> List[ClanBattlePlayerStats]:
        """Player records from a clan's battles in an identifier range, oldest battle first"""
        async with self.get_session() as session:
            query = (
                select(ClanBattlePlayerStats)
                .join(ClanBattle, ClanBattlePlayerStats.clan_battle_id == ClanBattle.id)
                .where(ClanBattle.clan_id == clan_id)
            )
            if start_battle_id:
                query = query.where(ClanBattle.battle_id >= start_battle_id)
            if end_battle_id:
                query = query.where(ClanBattle.battle_id <= end_battle_id)

            result = await session.execute(
                query.order_by(ClanBattle.start_date.asc(), ClanBattlePlayerStats.ratio_rank.asc())
            )
            return list(result.scalars().all())

    async def list_clan_battle_ids(self, clan_id: int) -> List[str]:
        """Identifiers of every battle a clan has recorded, ascending"""
        async with self.get_session() as session:
            result = await session.execute(
                select(ClanBattle.battle_id)
                .where(ClanBattle.clan_id == clan_id)
                .order_by(ClanBattle.battle_id.asc())
            )
            return list(result.scalars().all())
