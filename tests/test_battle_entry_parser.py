from types import SimpleNamespace

import pytest

from flockbot.utils.battle_entry_parser import (
    build_battle_entry, parse_nonplayer_stats, parse_player_stats
)
from flockbot.utils.exceptions import InvalidCalendarDateError, InvalidFormatError, NotFoundError

ROSTER = [
    SimpleNamespace(id=1, name="Ava"),
    SimpleNamespace(id=2, name="Ben"),
    SimpleNamespace(id=3, name="Big Cal"),
    SimpleNamespace(id=4, name="Dee"),
]


def build(players="Ava:300:100 Ben:200:100", nonplayers=None, battle_id="20250115", **overrides):
    arguments = dict(
        battle_id=battle_id, score=500, baseline_fp=250, opponent_score=400, opponent_fp=240,
        players=players, roster=ROSTER, nonplayers=nonplayers,
    )
    arguments.update(overrides)
    return build_battle_entry(**arguments)


def test_players_are_ranked_in_listed_order():
    stats = parse_player_stats("Ben:100:50 Ava:300:100", ROSTER)
    assert [(s.player_id, s.rank, s.score, s.fp) for s in stats] == [(2, 1, 100, 50), (1, 2, 300, 100)]


def test_quoted_names_case_and_colon_spacing():
    stats = parse_player_stats('"big cal" : 800 : 200  ava:1:1', ROSTER)
    assert [(s.player_id, s.score, s.fp) for s in stats] == [(3, 800, 200), (1, 1, 1)]


def test_nonplayers_with_reserve_marker():
    stats = parse_nonplayer_stats('Dee:40 "Big Cal":60:reserve Ben:10:R', ROSTER)
    assert [(s.player_id, s.fp, s.reserve) for s in stats] == [(4, 40, False), (3, 60, True), (2, 10, True)]


@pytest.mark.parametrize("text", ["Ava:300", "Ava:x:100", "Ava:-5:100", ":300:100", '"Ava:300:100'])
def test_malformed_player_entries(text):
    with pytest.raises(InvalidFormatError):
        parse_player_stats(text, ROSTER)


@pytest.mark.parametrize("text", ["Dee", "Dee:lots", "Dee:-1", ":40"])
def test_malformed_nonplayer_entries(text):
    with pytest.raises(InvalidFormatError):
        parse_nonplayer_stats(text, ROSTER)


def test_unknown_name_is_not_found():
    with pytest.raises(NotFoundError):
        parse_player_stats("Zed:100:100", ROSTER)


def test_build_battle_entry():
    entry = build(nonplayers="Dee:50:r", opponent_name=" Hawks ", opponent_country="Canada")

    assert entry.battle_id == "20250115"
    assert entry.score == 500 and entry.opponent_fp == 240
    assert entry.opponent_name == "Hawks"
    assert [s.player_id for s in entry.player_stats] == [1, 2]
    assert entry.nonplayer_stats[0].reserve


def test_build_battle_entry_without_opponent_details():
    entry = build()
    assert entry.opponent_name is None and entry.opponent_country is None
    assert entry.nonplayer_stats == []


def test_build_battle_entry_rejects_bad_input():
    with pytest.raises(InvalidFormatError):
        build(players="  ")
    with pytest.raises(InvalidFormatError):
        build(players="Ava:300:100 ava:1:1")
    with pytest.raises(InvalidFormatError):
        build(nonplayers="Ben:10")
    with pytest.raises(InvalidFormatError):
        build(battle_id="2025-01-15")
    with pytest.raises(InvalidCalendarDateError):
        build(battle_id="20250230")
