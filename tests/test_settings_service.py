import json

import pytest
from sqlalchemy import select

from flockbot.database.models import AuditLog, SystemSetting


@pytest.mark.asyncio
async def test_get_missing_returns_default(settings):
    assert await settings.get("missing") is None
    assert await settings.get("missing", default=5) == 5


@pytest.mark.asyncio
async def test_upsert_creates_then_updates(settings):
    await settings.upsert("schedulerEnabled", True, user_id=1, description="Automatic battle creation")
    await settings.upsert("schedulerEnabled", False, user_id=2)

    assert await settings.get("schedulerEnabled") is False
    assert await settings.get_all() == {"schedulerEnabled": False}


@pytest.mark.asyncio
async def test_upsert_writes_audit_trail(db, settings):
    await settings.upsert("nextBattleStartDate", "2025-01-15", user_id=7)
    await settings.upsert("nextBattleStartDate", "2025-01-18")

    async with db.get_session() as session:
        entries = (await session.execute(select(AuditLog).order_by(AuditLog.id))).scalars().all()
        setting = await session.get(SystemSetting, "nextBattleStartDate")

    assert [e.user_id for e in entries] == [7, None]
    assert json.loads(entries[1].details) == {
        "key": "nextBattleStartDate",
        "old_value": "2025-01-15",
        "new_value": "2025-01-18",
    }
    assert json.loads(setting.value) == "2025-01-18"


@pytest.mark.asyncio
async def test_invalid_json_is_returned_raw(db, settings):
    async with db.transaction() as session:
        session.add(SystemSetting(key="legacy", value="2025-01-15 not json"))

    assert await settings.get("legacy") == "2025-01-15 not json"
