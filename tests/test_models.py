from datetime import date

from bingo_stats.models import DEFAULT_PLAYER_COLOR, parse_match, parse_matches

from conftest import match_doc


def test_parse_match_nested_rows():
    doc = match_doc("m1", "2025-02-01", ["ana", "bo"], "bo", time_taken="1h 10m")
    doc["match_players"].reverse()  # store order isn't guaranteed
    doc["board"] = {"id": "b1", "image_url": "https://x/b.png", "width": "800"}

    m = parse_match(doc)

    assert m.played_at == date(2025, 2, 1)
    assert [mp.player_id for mp in m.match_players] == ["ana", "bo"]
    assert [mp.player.name for mp in m.winners()] == ["Bo"]
    assert m.minutes == 70
    assert m.board.width == 800


def test_parse_match_is_lenient():
    m = parse_match({"id": "x", "outcome": "WEIRD", "metadata": "oops", "match_players": [None, {"player_id": "p"}]})

    assert m.title == "Untitled match"
    assert m.outcome == "bingo"
    assert m.played_at is None
    assert m.minutes == 0
    assert len(m.match_players) == 1
    assert m.match_players[0].player.color == DEFAULT_PLAYER_COLOR


def test_null_winner_flag_is_not_a_win():
    doc = match_doc("m1", "2025-02-01", ["ana"])
    doc["match_players"][0]["is_winner"] = None

    m = parse_match(doc)

    assert m.match_players[0].is_winner is None
    assert m.winners() == []


def test_blank_metadata_fields_read_as_missing():
    m = parse_match({"id": "x", "metadata": {"time_taken": "  ", "notes": ""}})
    assert m.time_taken is None
    assert m.notes is None


def test_parse_matches_skips_non_mappings():
    assert [m.id for m in parse_matches([match_doc("a", None, []), "junk", None])] == ["a"]
    assert parse_matches(None) == []
