import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Bot configuration settings"""

    # Discord settings
    DISCORD_TOKEN = os.getenv('DISCORD_TOKEN')
    DISCORD_GUILD_ID = int(os.getenv('DISCORD_GUILD_ID', 0))
    DISCORD_GUILD_IDS = os.getenv('DISCORD_GUILD_IDS', '')  # Comma-separated for multi-guild support
    OWNER_DISCORD_ID = int(os.getenv('OWNER_DISCORD_ID', 0))

    # Database settings
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///flockbot.db')

    # Bot settings
    COMMAND_PREFIX = os.getenv('COMMAND_PREFIX', '!')
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    LOG_DIR = os.getenv('LOG_DIR', 'logs')

    # Battle scheduler settings
    # Process-level kill switch; the persisted schedulerEnabled setting is checked on every tick
    BATTLE_SCHEDULER_ENABLED = _env_flag('BATTLE_SCHEDULER_ENABLED', 'true')
    SCHEDULER_INTERVAL_HOURS = int(os.getenv('SCHEDULER_INTERVAL_HOURS', 1))
    SCHEDULER_RUN_ON_STARTUP = _env_flag('SCHEDULER_RUN_ON_STARTUP', 'false')

    @classmethod
    def get_guild_ids(cls):
        """Get list of guild IDs for command syncing"""
        if cls.DISCORD_GUILD_IDS:
            try:
                return [int(guild_id.strip()) for guild_id in cls.DISCORD_GUILD_IDS.split(',') if guild_id.strip()]
            except ValueError:
                raise ValueError("DISCORD_GUILD_IDS must be comma-separated integers")
        elif cls.DISCORD_GUILD_ID:
            return [cls.DISCORD_GUILD_ID]
        else:
            # Global sync
            return []

    @classmethod
    def get_async_database_url(cls) -> str:
        """Return DATABASE_URL rewritten for the async sqlite driver when needed"""
        database_url = cls.DATABASE_URL
        if database_url.startswith('sqlite:///'):
            database_url = database_url.replace('sqlite:///', 'sqlite+aiosqlite:///')
        return database_url

    @classmethod
    def validate(cls):
        """Validate that required configuration is present"""
        if not cls.DISCORD_TOKEN:
            raise ValueError("DISCORD_TOKEN is required")
        if not cls.OWNER_DISCORD_ID:
            raise ValueError("OWNER_DISCORD_ID is required")
        if cls.SCHEDULER_INTERVAL_HOURS <= 0:
            raise ValueError("SCHEDULER_INTERVAL_HOURS must be a positive integer")
