from __future__ import annotations

import random
from typing import Callable

import pytest

from whoami.game.models import GameSettings
from whoami.game.service import GameService


START_MS = 1_700_000_000_000


class FakeClock:
    def __init__(self, start: int = START_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeTimer:
    def __init__(self, delay_sec: float, callback: Callable[[], None]) -> None:
        self.delay_sec = delay_sec
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        """Fire as a real timer would, ignoring whether it was cancelled.

        Models a callback that was already running when cancel() came in.
        """
        self.fired = True
        self.callback()


class FakeTimers:
    def __init__(self) -> None:
        self.created: list[FakeTimer] = []

    def __call__(self, delay_sec: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay_sec, callback)
        self.created.append(timer)
        return timer

    def pending(self) -> list[FakeTimer]:
        return [t for t in self.created if not t.cancelled and not t.fired]

    def fire_pending(self) -> None:
        (timer,) = self.pending()
        timer.fire()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timers() -> FakeTimers:
    return FakeTimers()


@pytest.fixture
def service(clock, timers):
    svc = GameService(
        settings=GameSettings(),
        clock=clock,
        timer_factory=timers,
        rng=random.Random(1234),
    )
    yield svc
    svc.shutdown()


@pytest.fixture
def lobby(service):
    """Factory: a LOBBY room hosted by the first id, joined by the rest."""

    def _make(*player_ids: str):
        ids = player_ids or ("A", "B", "C")
        room = service.create_room(ids[0], f"name-{ids[0]}")
        for pid in ids[1:]:
            service.join_room(room.code, pid, f"name-{pid}")
        return room

    return _make


@pytest.fixture
def assigned(service, lobby):
    """Factory: a room in ASSIGNMENT where every player has submitted.

    ``identities`` maps a player id to the ``(display_name, aliases)`` they
    should end up with; everyone else gets "Identity <id>".
    """

    def _make(*player_ids: str, identities: dict | None = None):
        room = lobby(*player_ids)
        service.start_assignment(room.host_id)
        identities = identities or {}
        for assigner in list(room.order):
            target = room.players[assigner].target_id
            name, aliases = identities.get(target, (f"Identity {target}", []))
            service.submit_assignment(assigner, name, aliases)
        return room

    return _make


@pytest.fixture
def playing(service, assigned):
    """Factory: a room in PLAYING; returns (room, first guesser id)."""

    def _make(*player_ids: str, identities: dict | None = None):
        room = assigned(*player_ids, identities=identities)
        _, advance = service.start_game(room.host_id)
        return room, advance.next_guesser_id

    return _make
