"""
Bot-wide constants for the clan battle tracker.

This module contains the business rules and magic numbers used throughout
the codebase. Tests pin these values down, so they must not be inlined.
"""

from enum import IntEnum


class BattleResult(IntEnum):
    """Outcome of a clan battle, stored as an integer code."""
    WIN = 1
    LOSS = -1
    TIE = 0

    @property
    def display_name(self) -> str:
        return self.name.title()


class ScheduleConstants:
    """Constants for the battle schedule."""

    # Days between successive battle start dates
    BATTLE_CYCLE_DAYS = 3

    # A window ends this many days after its start date, at END_OF_DAY
    BATTLE_DURATION_DAYS = 2
    END_OF_DAY = (23, 59, 59)

    # Official Time is UTC-5 all year, never daylight-saving adjusted
    OFFICIAL_UTC_OFFSET_MINUTES = -5 * 60

    # SystemSetting keys owned by the scheduler
    NEXT_BATTLE_START_DATE_KEY = 'nextBattleStartDate'
    SCHEDULER_ENABLED_KEY = 'schedulerEnabled'

    # Maximum number of playable windows returned by schedule queries
    AVAILABLE_BATTLES_LIMIT = 100

    # Notes stored on windows the scheduler creates
    SCHEDULER_NOTES = 'Automatically created by scheduler'


class IdentifierConstants:
    """Fixed-width identifier lengths."""

    BATTLE_ID_LENGTH = 8   # YYYYMMDD
    MONTH_ID_LENGTH = 6    # YYYYMM
    YEAR_ID_LENGTH = 4     # YYYY


class StatsConstants:
    """Constants for ratio and period statistics."""

    # Ratio scores are (score / fp) * RATIO_MULTIPLIER
    RATIO_MULTIPLIER = 1000
    PERCENTAGE_MULTIPLIER = 100

    # Players need this many battles in a period to get an individual summary
    MIN_BATTLES_FOR_STATS = 3

    # Decimal places for ratio and percentage outputs in reports
    REPORT_DECIMALS = 2

    # Player report: change between first and last third of battles, in percent
    PLAYER_TREND_THRESHOLD_PERCENT = 5.0

    # Matchup report
    RIVAL_MIN_BATTLES = 3
    RECENT_MATCHUPS_LIMIT = 5
    UNKNOWN_OPPONENT = 'Unknown'


class UIConstants:
    """Constants for Discord UI elements."""

    DEFAULT_EMBED_COLOR = 0x3498db  # Blue
    ERROR_COLOR = 0xe74c3c          # Red
    SUCCESS_COLOR = 0x2ecc71        # Green
    WIN_EMOJI = "🏆"
    LOSS_EMOJI = "💀"
    TIE_EMOJI = "🤝"

    # Maximum individual rows shown in a stats embed
    MAX_PLAYER_ROWS = 15
