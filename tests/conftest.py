"""Pytest configuration and fixtures for flockbot tests.

Database-backed tests get a fresh sqlite file per test. The scheduler and
schedule services take an injected clock so time-dependent behaviour is
deterministic.
"""

import os
import tempfile
from datetime import date, timedelta

# Keep test log files out of the working tree; must run before flockbot imports
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "flockbot-test-logs"))

import pytest
import pytest_asyncio

from flockbot.data_models.battle import BattleEntry, NonplayerStatInput, PlayerStatInput
from flockbot.database.database import Database
from flockbot.services.settings import SettingsService
from flockbot.utils.official_time import official_datetime


class FixedClock:
    """Callable clock returning a settable aware Official Time instant."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    # Thursday 2025-01-16, noon Official Time
    return FixedClock(official_datetime(date(2025, 1, 16), 12, 0, 0))


@pytest_asyncio.fixture
async def db(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'flockbot_test.db'}")
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture
def settings(db):
    return SettingsService(db.session_factory)


@pytest_asyncio.fixture
async def clan(db):
    return await db.create_clan("Falcons", "United States")


@pytest_asyncio.fixture
async def roster(db, clan):
    return [await db.create_roster_member(clan.id, name) for name in ("Ava", "Ben", "Cal", "Dee")]


def make_entry(battle_id, players, score=None, baseline_fp=1000, opponent_score=None,
               opponent_fp=900, nonplayers=(), opponent_name="Hawks", opponent_country="Canada"):
    """
    Build a BattleEntry from (player_id, score, fp) tuples.

    Clan score defaults to the sum of player scores; opponent score defaults
    to 90% of it so the battle is a win.
    """
    player_stats = [
        PlayerStatInput(player_id=player_id, rank=rank, score=p_score, fp=fp)
        for rank, (player_id, p_score, fp) in enumerate(
            sorted(players, key=lambda p: -p[1]), start=1
        )
    ]
    if score is None:
        score = sum(p[1] for p in players)
    if opponent_score is None:
        opponent_score = int(score * 0.9)
    return BattleEntry(
        battle_id=battle_id,
        score=score,
        baseline_fp=baseline_fp,
        opponent_score=opponent_score,
        opponent_fp=opponent_fp,
        opponent_name=opponent_name,
        opponent_country=opponent_country,
        player_stats=player_stats,
        nonplayer_stats=[NonplayerStatInput(player_id=pid, fp=fp, reserve=reserve)
                         for pid, fp, reserve in nonplayers],
    )


@pytest.fixture
def entry_factory():
    return make_entry
