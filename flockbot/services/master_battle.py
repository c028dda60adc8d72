"""
Master battle schedule API used by the command layer.

Administrative operations propagate FlockBotException subclasses so the
caller can turn them into user-facing replies.
"""

from datetime import date, datetime, timedelta
from typing import Callable, List, Tuple, Union

from flockbot.constants import ScheduleConstants
from flockbot.data_models.schedule import BattleScheduleInfo, BattleWindow
from flockbot.database.database import Database
from flockbot.services.settings import SettingsService
from flockbot.utils.battle_id import encode_battle_id, decode_battle_id
from flockbot.utils.exceptions import (
    AlreadyExistsError, FlockBotException, MustBeFutureError, NotConfiguredError, NotFoundError
)
from flockbot.utils.official_time import (
    battle_end_instant, battle_start_instant, format_official, now_official,
    parse_official_datetime
)
from flockbot.utils.logger import setup_logger

logger = setup_logger(__name__)


class MasterBattleService:
    """Schedule queries and administrative schedule changes."""

    def __init__(self, db: Database, settings: SettingsService,
                 now_provider: Callable[[], datetime] = now_official):
        self.db = db
        self.settings = settings
        self.now_provider = now_provider

    async def get_schedule_info(self) -> BattleScheduleInfo:
        """
        Current window, next window and playable windows for display

        When the next start date is not configured or cannot be read it
        defaults to one cycle from now.
        """
        now = self.now_provider()

        current = await self.db.get_current_master_battle(now)

        try:
            next_start = await self.get_next_battle_date()
        except NotConfiguredError:
            next_start = now + timedelta(days=ScheduleConstants.BATTLE_CYCLE_DAYS)
        except FlockBotException as e:
            logger.warning(f"Stored next battle start date is unreadable, showing the default: {e}")
            next_start = now + timedelta(days=ScheduleConstants.BATTLE_CYCLE_DAYS)

        next_battle = await self.db.get_master_battle(encode_battle_id(next_start.date()))
        available = await self.db.get_available_master_battles(now)

        return BattleScheduleInfo(
            current_window=current.to_window() if current else None,
            next_window=next_battle.to_window() if next_battle else None,
            next_battle_start_date=next_start,
            available_windows=[b.to_window() for b in available],
        )

    async def get_next_battle_date(self) -> datetime:
        """
        Raises:
            NotConfiguredError: If nextBattleStartDate has never been set
            InvalidFormatError: If the stored value is unreadable
        """
        raw = await self.settings.get(ScheduleConstants.NEXT_BATTLE_START_DATE_KEY)
        if raw is None:
            raise NotConfiguredError(ScheduleConstants.NEXT_BATTLE_START_DATE_KEY)
        return parse_official_datetime(raw)

    async def update_next_battle_date(self, value: Union[str, date, datetime], actor_id: int) -> datetime:
        """
        Set the next battle start date

        Args:
            value: New start date; values without an offset are Official Time
            actor_id: Discord ID of the admin, recorded in the audit log

        Returns:
            The stored start date in Official Time

        Raises:
            InvalidFormatError: If value cannot be parsed
            MustBeFutureError: If value is not after the current time
        """
        next_start = parse_official_datetime(value)
        if next_start <= self.now_provider():
            raise MustBeFutureError(format_official(next_start))

        await self.settings.upsert(
            ScheduleConstants.NEXT_BATTLE_START_DATE_KEY,
            next_start.isoformat(),
            user_id=actor_id,
        )
        logger.info(f"Next battle start date set to {format_official(next_start)} by {actor_id}")
        return next_start

    async def create_master_battle(self, start_date: Union[str, date, datetime], actor_id: int,
                                   notes: str = None) -> BattleWindow:
        """
        Create a battle window on behalf of an admin

        Raises:
            InvalidFormatError: If start_date cannot be parsed
            AlreadyExistsError: If a window already exists for that date
        """
        start_day = parse_official_datetime(start_date).date()
        battle_id = encode_battle_id(start_day)

        if await self.db.get_master_battle(battle_id) is not None:
            raise AlreadyExistsError("Master battle", battle_id)

        master_battle = await self.db.create_master_battle(
            battle_id=battle_id,
            start_instant=battle_start_instant(start_day),
            end_instant=battle_end_instant(start_day),
            created_by=actor_id,
            notes=notes,
        )
        return master_battle.to_window()

    async def get_available_battles(self, limit: int = ScheduleConstants.AVAILABLE_BATTLES_LIMIT) -> List[BattleWindow]:
        """Windows whose start is in the past, newest first"""
        battles = await self.db.get_available_master_battles(self.now_provider(), limit)
        return [b.to_window() for b in battles]

    async def get_battle_by_id(self, battle_id: str) -> BattleWindow:
        """
        Raises:
            InvalidFormatError / InvalidCalendarDateError: If battle_id is malformed
            NotFoundError: If no window has this identifier
        """
        decode_battle_id(battle_id)
        master_battle = await self.db.get_master_battle(battle_id)
        if master_battle is None:
            raise NotFoundError("Master battle", battle_id)
        return master_battle.to_window()

    async def get_recent_battles(self, limit: int = 10) -> List[BattleWindow]:
        return [b.to_window() for b in await self.db.get_recent_master_battles(limit)]

    async def get_all_battles(self, page: int = 1, page_size: int = 20) -> Tuple[List[BattleWindow], int]:
        battles, total = await self.db.get_master_battles_page(page, page_size)
        return [b.to_window() for b in battles], total
