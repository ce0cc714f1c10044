import asyncio

import pytest

from forkcheck.errors import SubmissionFailedError
from forkcheck.operator.badge_watcher import BadgeState, BadgeWatcher
from forkcheck.schemas.checklist import BadgeResult


class FakeLookup:
    """Lookup whose latency depends on the badge, so answers can arrive out of order"""

    def __init__(self, results, latency=None, ignore_cancel=False):
        self.results = results
        self.latency = latency or {}
        self.ignore_cancel = ignore_cancel
        self.calls = []

    async def __call__(self, badge):
        self.calls.append(badge)
        delay = self.latency.get(badge, 0)
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            # Keeps running after cancellation, like a request already on the wire
            if not self.ignore_cancel:
                raise
            await asyncio.sleep(delay)
        return self.results.get(badge, BadgeResult(authorized=False))


@pytest.mark.anyio
async def test_short_badge_stays_unknown_without_lookup():
    lookup = FakeLookup({})
    watcher = BadgeWatcher(lookup, delay=0, min_length=2)

    watcher.update("1")
    await watcher.wait()

    assert watcher.state == BadgeState.unknown
    assert lookup.calls == []


@pytest.mark.anyio
async def test_debounce_only_looks_up_last_value():
    lookup = FakeLookup({"123": BadgeResult(authorized=True, display_name="J. Smith")})
    watcher = BadgeWatcher(lookup, delay=0.05, min_length=2)

    for badge in ("1", "12", "123"):
        watcher.update(badge)
    assert watcher.state == BadgeState.checking
    await watcher.wait()

    assert lookup.calls == ["123"]
    assert watcher.state == BadgeState.valid
    assert watcher.display_name == "J. Smith"


@pytest.mark.anyio
async def test_stale_result_never_overwrites_latest():
    lookup = FakeLookup(
        {
            "12": BadgeResult(authorized=True, display_name="Wrong Person"),
            "123": BadgeResult(authorized=False),
        },
        latency={"12": 0.2, "123": 0.0},
    )
    watcher = BadgeWatcher(lookup, delay=0, min_length=2)

    watcher.update("12")
    await asyncio.sleep(0.01)  # lookup for "12" is now in flight
    watcher.update("123")
    await watcher.wait()
    assert watcher.state == BadgeState.invalid

    await asyncio.sleep(0.3)
    assert watcher.state == BadgeState.invalid
    assert watcher.display_name is None


@pytest.mark.anyio
async def test_generation_check_drops_uncancellable_stale_result():
    lookup = FakeLookup(
        {"12": BadgeResult(authorized=True, display_name="Stale")},
        latency={"12": 0.1, "123": 0.0},
        ignore_cancel=True,
    )
    watcher = BadgeWatcher(lookup, delay=0, min_length=2)

    watcher.update("12")
    await asyncio.sleep(0.01)
    watcher.update("123")
    await watcher.wait()
    await asyncio.sleep(0.2)

    assert watcher.badge == "123"
    assert watcher.state == BadgeState.invalid


@pytest.mark.anyio
async def test_shortening_badge_resets_to_unknown():
    lookup = FakeLookup({"44": BadgeResult(authorized=True, display_name="A")})
    watcher = BadgeWatcher(lookup, delay=0, min_length=2)

    watcher.update("44")
    await watcher.wait()
    assert watcher.is_valid

    watcher.update("4")
    assert watcher.state == BadgeState.unknown
    assert watcher.display_name is None


@pytest.mark.anyio
async def test_lookup_failure_marks_invalid():
    async def failing(badge):
        raise SubmissionFailedError("offline")

    watcher = BadgeWatcher(failing, delay=0, min_length=2)
    watcher.update("4455")
    await watcher.wait()

    assert watcher.state == BadgeState.invalid
