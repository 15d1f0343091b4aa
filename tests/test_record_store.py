import asyncio

import pytest

from record_store import RecordStore, RecordStoreError, build_match_metadata

from conftest import build_match, match_doc


class FakeResponse:
    def __init__(self, status=200, payload=None, text=""):
        self.status = status
        self.reason = "OK" if status < 400 else "Error"
        self._payload = payload
        self._text = text

    async def json(self, content_type=None):
        return self._payload

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    closed = False

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        return self.responses.pop(0)


def _store(*responses):
    session = FakeSession(*responses)
    return RecordStore("https://db.example/", "key", session=session), session


def test_fetch_matches_builds_query_and_parses():
    store, session = _store(FakeResponse(payload=[match_doc("m1", "2025-01-01", ["ana", "bo"], "ana")]))

    matches = asyncio.run(store.fetch_matches(limit=10, offset=20))

    method, url, kw = session.calls[0]
    assert method == "GET"
    assert url == "https://db.example/rest/v1/matches"
    assert kw["params"]["order"] == "played_at.desc"
    assert kw["params"]["limit"] == "10"
    assert kw["params"]["offset"] == "20"
    assert "match_players(*,player:players(*))" in kw["params"]["select"]
    assert kw["headers"]["apikey"] == "key"
    assert [m.id for m in matches] == ["m1"]


def test_http_error_carries_status_and_snippet():
    store, _ = _store(FakeResponse(status=500, text="boom" * 500))

    with pytest.raises(RecordStoreError) as ei:
        asyncio.run(store.fetch_all_matches())

    assert ei.value.status == 500
    assert len(ei.value.body) == 600


def test_unconfigured_store_never_calls_out():
    session = FakeSession()
    store = RecordStore("", "", session=session)

    with pytest.raises(RecordStoreError, match="not configured"):
        asyncio.run(store.fetch_player("p1"))
    assert session.calls == []


def test_find_player_by_name_is_case_insensitive_exact():
    store, session = _store(FakeResponse(payload=[{"id": "p1", "name": "Ana"}]))

    player = asyncio.run(store.find_player_by_name("  ANA  "))

    assert player.id == "p1"
    assert session.calls[0][2]["params"]["name"] == "ilike.ANA"


def test_search_players_uses_substring_match():
    store, session = _store(FakeResponse(payload=[{"id": "p1", "name": "Ana"}]))

    asyncio.run(store.search_players("an*", limit=5))

    params = session.calls[0][2]["params"]
    assert params["name"] == "ilike.*an*"
    assert params["limit"] == "5"


def test_fetch_player_matches_unwraps_nested_match():
    rows = [
        {"id": "mp1", "player_id": "ana", "match": match_doc("m1", "2025-01-01", ["ana"], "ana")},
        {"id": "mp2", "player_id": "ana", "match": None},
    ]
    store, session = _store(FakeResponse(payload=rows))

    matches = asyncio.run(store.fetch_player_matches("ana"))

    assert session.calls[0][1].endswith("/match_players")
    assert session.calls[0][2]["params"]["player_id"] == "eq.ana"
    assert [m.id for m in matches] == ["m1"]


def test_fetch_match_sorts_comments():
    doc = match_doc("m1", "2025-01-01", ["ana"], "ana")
    doc["comments"] = [
        {"id": "c2", "author_name": "Bo", "content": "second", "created_at": "2025-01-02T10:00:00Z"},
        {"id": "c1", "author_name": "Ana", "content": "first", "created_at": "2025-01-01T10:00:00Z"},
    ]
    store, _ = _store(FakeResponse(payload=[doc]))

    m = asyncio.run(store.fetch_match("m1"))

    assert [c.id for c in m.comments] == ["c1", "c2"]


def test_fetch_match_missing():
    store, _ = _store(FakeResponse(payload=[]))
    assert asyncio.run(store.fetch_match("nope")) is None


def test_submit_match_flow():
    store, session = _store(
        FakeResponse(201, [{"id": "b1"}]),
        FakeResponse(201, [{"id": "m1"}]),
        FakeResponse(200, []),
        FakeResponse(201, [{"id": "p1", "name": "Ana"}]),
        FakeResponse(201, [{"id": "mp1"}]),
        FakeResponse(200, []),
        FakeResponse(201, [{"id": "p2", "name": "Bo"}]),
        FakeResponse(201, [{"id": "mp2"}]),
    )

    match_id = asyncio.run(store.submit_match(
        title="Friday night",
        played_at="2025-01-03",
        outcome="bingo",
        players=[
            {"name": "Ana", "color": "#9b59b6", "is_winner": True},
            {"name": "   ", "color": "#e74c3c"},
            {"name": "Bo", "color": "#5dade2"},
        ],
        image_url="https://img/board.png",
        image_path="boards/board.png",
        time_taken="1h 5m",
        notes="",
    ))

    assert match_id == "m1"
    tables = [url.rsplit("/", 1)[-1] for _, url, _ in session.calls]
    assert tables == [
        "boards", "matches",
        "players", "players", "match_players",
        "players", "players", "match_players",
    ]

    match_body = session.calls[1][2]["json"]
    assert match_body["board_id"] == "b1"
    assert match_body["metadata"] == {"time_taken": "1h 5m"}

    lookup = session.calls[2]
    assert lookup[0] == "GET"
    assert lookup[2]["params"]["name"] == "ilike.Ana"

    upsert = session.calls[3][2]
    assert upsert["params"] == {"on_conflict": "name"}
    assert "merge-duplicates" in upsert["headers"]["Prefer"]

    mp_rows = [session.calls[i][2]["json"] for i in (4, 7)]
    assert [(r["player_id"], r["position"], r["is_winner"]) for r in mp_rows] == [
        ("p1", 0, True),
        ("p2", 1, False),
    ]


def test_build_match_metadata_drops_blanks():
    assert build_match_metadata(" 45m ", "  ") == {"time_taken": "45m"}
    assert build_match_metadata(None, None) == {}


def test_upload_board_image_returns_public_url():
    store, session = _store(FakeResponse(200, {"Key": "boards/x.jpg"}))

    uploaded = asyncio.run(store.upload_board_image(b"\x89PNG", "Board.JPG", "image/jpeg"))

    method, url, kw = session.calls[0]
    assert method == "POST"
    assert url.startswith("https://db.example/storage/v1/object/boards/boards/")
    assert url.endswith(".jpg")
    assert kw["headers"]["Content-Type"] == "image/jpeg"
    assert kw["data"] == b"\x89PNG"
    assert uploaded["path"].startswith("boards/")
    assert uploaded["url"] == f"https://db.example/storage/v1/object/public/boards/{uploaded['path']}"


def test_edit_match_patches_only_what_changed():
    m = build_match("m1", "2025-01-01", ["ana", "bo"], "ana", time_taken="1h")
    store, session = _store(*(FakeResponse(200, [{"id": "x"}]) for _ in range(4)))

    asyncio.run(store.edit_match(
        m,
        time_taken="",
        notes=" gg ",
        winner_player_id="bo",
        renames={"bo": "Bobby", "ana": "Ana"},
    ))

    calls = [(url.rsplit("/", 1)[-1], kw["params"]["id"], kw["json"]) for _, url, kw in session.calls]
    assert calls[0] == ("matches", "eq.m1", {
        "title": "Match m1",
        "played_at": "2025-01-01",
        "outcome": "bingo",
        "metadata": {"notes": "gg"},
    })
    assert calls[1:] == [
        ("match_players", "eq.m1-ana", {"is_winner": False}),
        ("players", "eq.bo", {"name": "Bobby"}),
        ("match_players", "eq.m1-bo", {"is_winner": True}),
    ]


def _one_player_submit(store, name):
    return store.submit_match(
        title="Rematch",
        played_at="2025-01-04",
        outcome="bingo",
        players=[{"name": name, "color": "#5dade2", "is_winner": True}],
        image_url="https://img/board.png",
    )


def test_submit_match_reuses_existing_player_regardless_of_case():
    store, session = _store(
        FakeResponse(201, [{"id": "b1"}]),
        FakeResponse(201, [{"id": "m1"}]),
        FakeResponse(200, [{"id": "p1", "name": "Ana", "color": "#9b59b6"}]),
        FakeResponse(201, [{"id": "mp1"}]),
    )

    asyncio.run(_one_player_submit(store, "ana"))

    methods = [(method, url.rsplit("/", 1)[-1]) for method, url, _ in session.calls]
    assert methods == [("POST", "boards"), ("POST", "matches"), ("GET", "players"), ("POST", "match_players")]
    assert session.calls[3][2]["json"]["player_id"] == "p1"


def test_submit_match_logs_orphans_and_reraises(monkeypatch):
    logged = []
    monkeypatch.setattr("record_store.log_error", logged.append)
    store, _ = _store(
        FakeResponse(201, [{"id": "b1"}]),
        FakeResponse(201, [{"id": "m1"}]),
        FakeResponse(503, text="down"),
    )

    with pytest.raises(RecordStoreError):
        asyncio.run(_one_player_submit(store, "Ana"))

    assert len(logged) == 1
    assert "board=b1" in logged[0]
    assert "match=m1" in logged[0]


def test_find_player_by_name_treats_underscore_literally():
    store, session = _store(FakeResponse(payload=[{"id": "p1", "name": "abc"}]))

    assert asyncio.run(store.find_player_by_name("a_c")) is None
    assert session.calls[0][2]["params"]["name"] == "ilike.a\\_c"


def test_find_player_by_name_picks_the_exact_row():
    rows = [{"id": "p1", "name": "a%c"}, {"id": "p2", "name": "A%C"}]
    store, session = _store(FakeResponse(payload=rows))

    player = asyncio.run(store.find_player_by_name("a%c"))

    assert player.id == "p1"
    assert session.calls[0][2]["params"]["name"] == "ilike.a\\%c"
