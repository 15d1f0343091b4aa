import asyncio

import pytest

from bingo_stats import StatsService
from bingo_stats.models import parse_player
from record_store import RecordStoreError

from conftest import player_doc


def _fetcher(batches):
    calls = {"n": 0}

    async def fetch():
        calls["n"] += 1
        return batches[min(calls["n"], len(batches)) - 1]

    return fetch, calls


def test_get_caches_until_stale(make_series):
    fetch, calls = _fetcher([make_series("ana", "bo", "WL")])
    svc = StatsService(fetch, ttl_seconds=600)

    async def run():
        a = await svc.get()
        b = await svc.get()
        return a, b

    a, b = asyncio.run(run())

    assert a is b
    assert calls["n"] == 1
    assert a.total_matches == 2


def test_force_refresh_and_invalidate(make_series):
    fetch, calls = _fetcher([make_series("ana", "bo", "W"), make_series("ana", "bo", "WWL")])
    svc = StatsService(fetch, ttl_seconds=600)

    async def run():
        first = await svc.get()
        forced = await svc.get(force_refresh=True)
        svc.invalidate()
        again = await svc.get()
        return first, forced, again

    first, forced, again = asyncio.run(run())

    assert first.total_matches == 1
    assert forced.total_matches == 3
    assert again is not forced
    assert calls["n"] == 3


def test_zero_ttl_always_refreshes(make_series):
    fetch, calls = _fetcher([make_series("ana", "bo", "W")])
    svc = StatsService(fetch, ttl_seconds=0)

    async def run():
        await svc.get()
        await svc.get()

    asyncio.run(run())
    assert calls["n"] == 2


def test_latest_started_refresh_wins(make_series):
    old = make_series("ana", "bo", "W")
    new = make_series("ana", "bo", "WW")

    async def run():
        gate = asyncio.Event()
        calls = {"n": 0}

        async def fetch():
            calls["n"] += 1
            if calls["n"] == 1:
                await gate.wait()
                return old
            return new

        svc = StatsService(fetch, ttl_seconds=600)
        slow = asyncio.create_task(svc.refresh())
        await asyncio.sleep(0)  # slow refresh is now parked in fetch()

        fast_result = await svc.refresh()
        gate.set()
        slow_result = await slow
        return svc, slow_result, fast_result

    svc, slow_result, fast_result = asyncio.run(run())

    assert slow_result.total_matches == 1
    assert fast_result.total_matches == 2
    assert svc.result is fast_result
    assert len(svc.matches) == 2


def test_fetch_error_keeps_previous_snapshot(make_series):
    state = {"fail": False}

    async def fetch():
        if state["fail"]:
            raise RecordStoreError("503 Service Unavailable", status=503)
        return make_series("ana", "bo", "W")

    svc = StatsService(fetch, ttl_seconds=600)

    async def run():
        good = await svc.get()
        state["fail"] = True
        with pytest.raises(RecordStoreError):
            await svc.refresh()
        return good

    good = asyncio.run(run())
    assert svc.result is good


def test_player_profile(make_series):
    matches = make_series("ana", "bo", "WWW")
    ana = parse_player(player_doc("ana"))

    async def fetch_player(pid):
        return ana if pid == "ana" else None

    async def fetch_player_matches(pid):
        return matches

    async def no_matches():
        return []

    svc = StatsService(no_matches)

    async def run():
        found = await svc.player_profile("ana", fetch_player, fetch_player_matches)
        missing = await svc.player_profile("zed", fetch_player, fetch_player_matches)
        return found, missing

    found, missing = asyncio.run(run())

    assert missing is None
    assert found.stats.wins == 3
    assert "hot-streak" in [u.achievement.id for u in found.achievements]


def test_get_without_snapshot_surfaces_fetch_error():
    async def fetch():
        raise RecordStoreError("502 Bad Gateway", status=502)

    svc = StatsService(fetch, ttl_seconds=600)

    with pytest.raises(RecordStoreError):
        asyncio.run(svc.get())
    assert svc.result is None
