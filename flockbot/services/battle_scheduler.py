"""
Battle schedule state machine.

Behaviour is derived on every tick from two persisted settings,
``schedulerEnabled`` and ``nextBattleStartDate``:

    Disabled -> skip entirely
    Pending  -> now < next start, skip
    Due      -> create the window (unless it exists), advance one cycle

The tick is invoked by an external periodic trigger and never raises; the
outcome is reported through a TickResult and the logs. Only one scheduler
instance may tick against a given database at a time.
"""

from datetime import date, datetime, timedelta
from typing import Callable, Optional, Union

from flockbot.constants import ScheduleConstants
from flockbot.data_models.schedule import BattleWindow, TickResult
from flockbot.database.database import Database
from flockbot.database.models import MasterBattle
from flockbot.services.settings import SettingsService
from flockbot.utils.battle_id import encode_battle_id
from flockbot.utils.exceptions import AlreadyExistsError, FlockBotException
from flockbot.utils.logger import setup_logger
from flockbot.utils.official_time import (
    battle_end_instant, battle_start_instant, format_official, now_official,
    parse_official_datetime
)

logger = setup_logger(__name__)

_FALSE_STRINGS = ('false', '0', 'no', 'off')


class BattleSchedulerService:
    """Creates battle windows on schedule and advances the next start date."""

    def __init__(self, db: Database, settings: SettingsService,
                 now_provider: Callable[[], datetime] = now_official):
        """
        Args:
            db: Persistence collaborator for battle windows
            settings: Key/value store holding the schedule settings
            now_provider: Returns the current aware instant; injectable for tests
        """
        self.db = db
        self.settings = settings
        self.now_provider = now_provider

    async def is_scheduler_enabled(self) -> bool:
        """Missing setting means enabled."""
        value = await self.settings.get(ScheduleConstants.SCHEDULER_ENABLED_KEY)
        if value is None:
            return True
        if isinstance(value, str):
            return value.strip().lower() not in _FALSE_STRINGS
        return bool(value)

    async def set_scheduler_enabled(self, enabled: bool, actor_id: int = None):
        await self.settings.upsert(ScheduleConstants.SCHEDULER_ENABLED_KEY, bool(enabled), user_id=actor_id)
        logger.info(f"Battle scheduler {'enabled' if enabled else 'disabled'} by {actor_id}")

    async def get_next_battle_start_date(self) -> Optional[datetime]:
        """
        Stored next start date in Official Time, or None when not configured.

        Raises:
            InvalidFormatError: If the stored value cannot be parsed
        """
        raw = await self.settings.get(ScheduleConstants.NEXT_BATTLE_START_DATE_KEY)
        if raw is None:
            return None
        return parse_official_datetime(raw)

    async def check_and_create_battle(self) -> TickResult:
        """
        Run one scheduler tick

        Returns:
            TickResult describing what happened. Errors are logged and
            returned in TickResult.error; nothing is raised, and the next tick
            retries from the same persisted state.
        """
        try:
            if not await self.is_scheduler_enabled():
                logger.info("Battle scheduler disabled, skipping tick")
                return TickResult(skipped_reason='disabled')

            raw_next = await self.settings.get(ScheduleConstants.NEXT_BATTLE_START_DATE_KEY)
            if raw_next is None:
                logger.warning(
                    f"Setting '{ScheduleConstants.NEXT_BATTLE_START_DATE_KEY}' is not configured, skipping tick"
                )
                return TickResult(skipped_reason='not_configured')

            try:
                next_start = parse_official_datetime(raw_next)
            except FlockBotException as e:
                logger.error(f"Could not parse next battle start date {raw_next!r}: {e}")
                return TickResult(error=str(e))

            now = self.now_provider()
            if now < next_start:
                logger.debug(f"Next battle starts {format_official(next_start)}, nothing to do")
                return TickResult(skipped_reason='pending', next_battle_start=next_start)

            start_day = next_start.date()
            battle_id = encode_battle_id(start_day)
            created = False

            existing = await self.db.get_master_battle(battle_id)
            if existing is not None:
                logger.warning(f"Master battle {battle_id} already exists, not creating a duplicate")
            else:
                try:
                    await self._create_window(start_day)
                    created = True
                except AlreadyExistsError:
                    logger.warning(f"Master battle {battle_id} was created concurrently, not creating a duplicate")

            new_next = next_start + timedelta(days=ScheduleConstants.BATTLE_CYCLE_DAYS)
            await self.settings.upsert(ScheduleConstants.NEXT_BATTLE_START_DATE_KEY, new_next.isoformat())
            logger.info(
                f"Battle {battle_id} {'created' if created else 'confirmed'}; "
                f"next battle start advanced to {format_official(new_next)}"
            )

            return TickResult(
                created=created,
                advanced=True,
                battle_id=battle_id,
                next_battle_start=new_next,
            )
        except Exception as e:
            logger.error(f"Battle scheduler tick failed: {e}", exc_info=True)
            return TickResult(error=str(e))

    async def manually_create_battle(self, start_date: Union[str, date, datetime]) -> BattleWindow:
        """
        Create the window for a date directly, ignoring nextBattleStartDate

        Used for backfill. The window is recorded as system-created and the
        schedule setting is left untouched.

        Raises:
            InvalidFormatError: If start_date cannot be parsed
            AlreadyExistsError: If the window already exists
        """
        start_day = parse_official_datetime(start_date).date()
        master_battle = await self._create_window(start_day)
        return master_battle.to_window()

    async def _create_window(self, start_day: date, created_by: int = None,
                             notes: str = ScheduleConstants.SCHEDULER_NOTES) -> MasterBattle:
        return await self.db.create_master_battle(
            battle_id=encode_battle_id(start_day),
            start_instant=battle_start_instant(start_day),
            end_instant=battle_end_instant(start_day),
            created_by=created_by,
            notes=notes,
        )
