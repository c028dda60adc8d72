"""
Parsing of battle results typed into slash commands.

Players are listed in rank order as ``name:score:fp``; non-players as
``name:fp`` or ``name:fp:reserve``. Names containing spaces must be quoted,
e.g. ``"Big Cal":800:200``. Spacing around the colons is ignored.
"""

import re
import shlex
from typing import Dict, Iterable, List, Optional

from flockbot.data_models.battle import BattleEntry, NonplayerStatInput, PlayerStatInput
from flockbot.utils.battle_id import decode_battle_id
from flockbot.utils.exceptions import InvalidFormatError, NotFoundError

PLAYER_FORMAT = "`name:score:fp` entries in rank order"
NONPLAYER_FORMAT = "`name:fp` or `name:fp:reserve` entries"
RESERVE_MARKERS = ('reserve', 'r')

_COLON_SPACING = re.compile(r'\s*:\s*')


def _split_entries(text: Optional[str]) -> List[str]:
    if not text or not text.strip():
        return []
    normalized = _COLON_SPACING.sub(':', text.strip())
    try:
        return shlex.split(normalized)
    except ValueError as e:
        raise InvalidFormatError(text, "names with balanced quotes") from e


def _parse_count(value: str, name: str, field: str) -> int:
    expected = f"a whole number for {name}'s {field}"
    try:
        number = int(value)
    except ValueError as e:
        raise InvalidFormatError(value, expected) from e
    if number < 0:
        raise InvalidFormatError(value, expected)
    return number


def _roster_index(roster: Iterable) -> Dict[str, object]:
    return {member.name.lower(): member for member in roster}


def _lookup(index: Dict[str, object], name: str):
    member = index.get(name.strip().lower())
    if member is None:
        raise NotFoundError("Roster member", name)
    return member


def parse_player_stats(text: str, roster: Iterable) -> List[PlayerStatInput]:
    """
    Parse ``name:score:fp`` entries; the first entry is rank 1

    Raises:
        InvalidFormatError: Malformed entry or number
        NotFoundError: Name not on the roster
    """
    index = _roster_index(roster)
    players = []
    for rank, token in enumerate(_split_entries(text), start=1):
        parts = token.rsplit(':', 2)
        if len(parts) != 3 or not parts[0]:
            raise InvalidFormatError(token, PLAYER_FORMAT)
        name, score, fp = parts
        member = _lookup(index, name)
        players.append(PlayerStatInput(
            player_id=member.id,
            rank=rank,
            score=_parse_count(score, name, "score"),
            fp=_parse_count(fp, name, "FP"),
        ))
    return players


def parse_nonplayer_stats(text: str, roster: Iterable) -> List[NonplayerStatInput]:
    """
    Parse ``name:fp`` and ``name:fp:reserve`` entries

    Raises:
        InvalidFormatError: Malformed entry or number
        NotFoundError: Name not on the roster
    """
    index = _roster_index(roster)
    nonplayers = []
    for token in _split_entries(text):
        reserve = False
        head, _, marker = token.rpartition(':')
        if head and marker.lower() in RESERVE_MARKERS:
            reserve = True
            token = head

        parts = token.rsplit(':', 1)
        if len(parts) != 2 or not parts[0]:
            raise InvalidFormatError(token, NONPLAYER_FORMAT)
        name, fp = parts
        member = _lookup(index, name)
        nonplayers.append(NonplayerStatInput(
            player_id=member.id,
            fp=_parse_count(fp, name, "FP"),
            reserve=reserve,
        ))
    return nonplayers


def _check_listed_once(players: List[PlayerStatInput], nonplayers: List[NonplayerStatInput],
                       roster: Iterable):
    names = {member.id: member.name for member in roster}
    seen = set()
    for player_id in [p.player_id for p in players] + [n.player_id for n in nonplayers]:
        if player_id in seen:
            raise InvalidFormatError(names.get(player_id, player_id), "each roster member listed once")
        seen.add(player_id)


def build_battle_entry(battle_id: str, score: int, baseline_fp: int, opponent_score: int,
                       opponent_fp: int, players: str, roster: Iterable,
                       nonplayers: str = None, opponent_name: str = None,
                       opponent_country: str = None) -> BattleEntry:
    """
    Build a BattleEntry from command arguments

    Args:
        battle_id: Battle identifier (YYYYMMDD)
        players: Player entries, see PLAYER_FORMAT
        roster: Roster members the names are resolved against
        nonplayers: Optional non-player entries, see NONPLAYER_FORMAT

    Raises:
        InvalidFormatError / InvalidCalendarDateError: Bad identifier or entry
        NotFoundError: A name is not on the roster
    """
    decode_battle_id(battle_id)
    roster = list(roster)

    player_stats = parse_player_stats(players, roster)
    if not player_stats:
        raise InvalidFormatError(players, f"at least one player as {PLAYER_FORMAT}")
    nonplayer_stats = parse_nonplayer_stats(nonplayers, roster)
    _check_listed_once(player_stats, nonplayer_stats, roster)

    return BattleEntry(
        battle_id=battle_id,
        score=score,
        baseline_fp=baseline_fp,
        opponent_score=opponent_score,
        opponent_fp=opponent_fp,
        opponent_name=opponent_name.strip() if opponent_name else None,
        opponent_country=opponent_country.strip() if opponent_country else None,
        player_stats=player_stats,
        nonplayer_stats=nonplayer_stats,
    )
