"""
Settings service for the clan battle tracker.

A small key/value store backed by the system_settings table. Values are
JSON-encoded; every write is recorded in the audit log. Reads always go to
the database so the scheduler sees values changed by other processes.
"""

import json
from typing import Any, Dict

from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from flockbot.database.models import AuditLog, SystemSetting
from flockbot.services.base import BaseService
from flockbot.utils.logger import setup_logger

logger = setup_logger(__name__)


def _decode(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        # Hand back the raw text; callers parsing it will report the problem
        logger.warning(f"Invalid JSON for setting '{key}', returning raw value")
        return raw


class SettingsService(BaseService):
    """Reads and writes persisted settings with an audit trail."""

    async def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value by key.

        Args:
            key: Setting key (e.g., 'nextBattleStartDate')
            default: Returned when the key is absent

        Returns:
            Decoded value or default
        """
        async with self.get_session() as session:
            setting = await session.get(SystemSetting, key)
            if setting is None:
                return default
            return _decode(key, setting.value)

    async def upsert(self, key: str, value: Any, user_id: int = None, description: str = None):
        """
        Create or update a setting in a single read-modify-write transaction.

        Args:
            key: Setting key
            value: Setting value (will be JSON-encoded)
            user_id: Discord user ID for the audit trail; None for system writes
            description: Optional human description stored with the setting
        """
        async def _write():
            async with self.get_session() as session:
                result = await session.execute(
                    select(SystemSetting).where(SystemSetting.key == key)
                )
                setting = result.scalar_one_or_none()

                if setting:
                    old_value = _decode(key, setting.value)
                    setting.value = json.dumps(value)
                    if description is not None:
                        setting.description = description
                else:
                    old_value = None
                    session.add(SystemSetting(
                        key=key,
                        value=json.dumps(value),
                        description=description
                    ))

                session.add(AuditLog(
                    user_id=user_id,
                    action='setting_upsert',
                    details=json.dumps({
                        'key': key,
                        'old_value': old_value,
                        'new_value': value
                    })
                ))

        _write.__name__ = f"upsert_{key}"
        await self.execute_with_retry(_write, retry_on=(OperationalError,))
        logger.info(f"Setting '{key}' updated by {user_id if user_id is not None else 'system'}")

    async def get_all(self) -> Dict[str, Any]:
        """Return every setting as a key -> decoded value mapping."""
        async with self.get_session() as session:
            result = await session.execute(select(SystemSetting).order_by(SystemSetting.key))
            return {s.key: _decode(s.key, s.value) for s in result.scalars().all()}
