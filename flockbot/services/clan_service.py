"""
Clan and roster management.
"""

from typing import List

from flockbot.database.database import Database
from flockbot.database.models import Clan, RosterMember
from flockbot.utils.exceptions import AlreadyExistsError, InvalidFormatError, NotFoundError
from flockbot.utils.logger import setup_logger

logger = setup_logger(__name__)


def _clean_name(value: str, what: str) -> str:
    name = (value or '').strip()
    if not name:
        raise InvalidFormatError(value, f"a non-empty {what}")
    return name


class ClanService:
    """Registers clans and keeps their rosters."""

    def __init__(self, db: Database):
        self.db = db

    async def register_clan(self, name: str, country: str = None, actor_id: int = None) -> Clan:
        """
        Raises:
            InvalidFormatError: If the name is blank
            AlreadyExistsError: If a clan with this name (any case) exists
        """
        name = _clean_name(name, "clan name")
        if await self.db.get_clan_by_name(name) is not None:
            raise AlreadyExistsError("Clan", name)

        clan = await self.db.create_clan(name, country.strip() if country else None)
        logger.info(f"Clan {clan.name} (id {clan.id}) registered by {actor_id}")
        return clan

    async def get_clan_by_name(self, name: str) -> Clan:
        """
        Raises:
            NotFoundError: If no clan has this name
        """
        clan = await self.db.get_clan_by_name(name.strip())
        if clan is None:
            raise NotFoundError("Clan", name)
        return clan

    async def get_member_by_name(self, clan_name: str, member_name: str) -> RosterMember:
        """
        Raises:
            NotFoundError: If the clan or the member does not exist
        """
        clan = await self.get_clan_by_name(clan_name)
        member = await self.db.get_roster_member_by_name(clan.id, member_name.strip())
        if member is None:
            raise NotFoundError("Roster member", member_name)
        return member

    async def add_member(self, clan_name: str, member_name: str, actor_id: int = None) -> RosterMember:
        """
        Add a member to a clan's roster; a former member is reactivated

        Raises:
            NotFoundError: If the clan does not exist
            InvalidFormatError: If the name is blank
            AlreadyExistsError: If an active member already has this name
        """
        clan = await self.get_clan_by_name(clan_name)
        member_name = _clean_name(member_name, "player name")

        existing = await self.db.get_roster_member_by_name(clan.id, member_name)
        if existing is not None:
            if existing.is_active:
                raise AlreadyExistsError("Roster member", existing.name)
            member = await self.db.set_roster_member_active(existing.id, True)
            logger.info(f"Roster member {member.name} reactivated in {clan.name} by {actor_id}")
            return member

        member = await self.db.create_roster_member(clan.id, member_name)
        logger.info(f"Roster member {member.name} added to {clan.name} by {actor_id}")
        return member

    async def deactivate_member(self, clan_name: str, member_name: str, actor_id: int = None) -> RosterMember:
        """
        Mark a member as no longer on the roster; recorded battles keep their stats

        Raises:
            NotFoundError: If the clan or the member does not exist
        """
        member = await self.get_member_by_name(clan_name, member_name)
        member = await self.db.set_roster_member_active(member.id, False)
        logger.info(f"Roster member {member.name} deactivated by {actor_id}")
        return member

    async def get_roster(self, clan_id: int, active_only: bool = True) -> List[RosterMember]:
        return await self.db.get_roster(clan_id, active_only=active_only)
