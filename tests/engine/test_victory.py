from __future__ import annotations

from riskengine.victory import active_players, get_winner, is_eliminated, newly_eliminated
from tests.helpers.factories import make_players, make_territories


def test_player_without_territories_is_eliminated() -> None:
    territories = make_territories({"A": ("p0", 2), "B": ("p0", 1)})
    assert is_eliminated("p1", territories)
    assert not is_eliminated("p0", territories)


def test_winner_when_one_player_remains() -> None:
    players = make_players(3)
    territories = make_territories({"A": ("p0", 2), "B": ("p0", 1)})
    winner = get_winner(players, territories)
    assert winner is not None and winner.player_id == "p0"


def test_no_winner_while_two_hold_land() -> None:
    players = make_players(2)
    territories = make_territories({"A": ("p0", 2), "B": ("p1", 1)})
    assert get_winner(players, territories) is None


def test_no_winner_when_nobody_remains() -> None:
    assert get_winner(make_players(2), []) is None


def test_flagged_players_are_ignored_even_with_territories() -> None:
    p0, p1 = make_players(2)
    players = [p0, p1.eliminated()]
    territories = make_territories({"A": ("p0", 2), "B": ("p1", 1)})
    assert [p.player_id for p in active_players(players, territories)] == ["p0"]
    assert get_winner(players, territories).player_id == "p0"


def test_newly_eliminated_skips_already_flagged() -> None:
    p0, p1, p2 = make_players(3)
    players = [p0, p1.eliminated(), p2]
    territories = make_territories({"A": ("p0", 2)})
    assert [p.player_id for p in newly_eliminated(players, territories)] == ["p2"]
