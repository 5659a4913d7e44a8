from __future__ import annotations

import logging
import threading
from typing import Callable, Protocol

from .models import Room, TurnState


logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


def thread_timer(delay_sec: float, callback: Callable[[], None]) -> TimerHandle:
    timer = threading.Timer(delay_sec, callback)
    timer.daemon = True
    timer.start()
    return timer


def is_eligible(room: Room, player_id: str) -> bool:
    p = room.players.get(player_id)
    return bool(p and p.is_connected and not p.has_guessed_correctly and not p.forfeited)


def next_eligible_guesser(room: Room) -> str | None:
    """First eligible player after the active guesser in turn order, wrapping.

    The active guesser is considered last, so a lone remaining player keeps
    the turn. Returns None when nobody is eligible.
    """
    order = room.order
    if not order:
        return None

    current = room.turn.active_guesser_id if room.turn else None
    start = order.index(current) if current in order else -1
    for step in range(1, len(order) + 1):
        pid = order[(start + step) % len(order)]
        if is_eligible(room, pid):
            return pid
    return None


def begin_turn(room: Room, guesser_id: str, now: int) -> TurnState:
    prev = room.turn.turn_number if room.turn else 0
    room.turn = TurnState(
        active_guesser_id=guesser_id,
        turn_number=prev + 1,
        started_at=now,
        duration_ms=room.settings.turn_duration_ms,
    )
    return room.turn


class TurnScheduler:
    """Keeps at most one pending turn timer per room.

    A firing timer reports ``(room_code, turn_number)``; the owner must check
    the turn is still current before acting on it, since cancellation can
    lose the race with a callback that already started.
    """

    def __init__(self, timer_factory: TimerFactory, on_fire: Callable[[str, int], None]) -> None:
        self._timer_factory = timer_factory
        self._on_fire = on_fire
        self._lock = threading.Lock()
        self._timers: dict[str, tuple[int, TimerHandle]] = {}

    def arm(self, room: Room) -> None:
        if room.turn is None:
            return
        code = room.code
        turn_number = room.turn.turn_number

        def _fire() -> None:
            with self._lock:
                entry = self._timers.get(code)
                if entry is not None and entry[0] == turn_number:
                    del self._timers[code]
            self._on_fire(code, turn_number)

        with self._lock:
            old = self._timers.pop(code, None)
            if old is not None:
                old[1].cancel()
            handle = self._timer_factory(room.turn.duration_ms / 1000, _fire)
            self._timers[code] = (turn_number, handle)

    def cancel(self, room_code: str) -> None:
        with self._lock:
            entry = self._timers.pop(room_code, None)
        if entry is not None:
            entry[1].cancel()

    def pending_turn(self, room_code: str) -> int | None:
        with self._lock:
            entry = self._timers.get(room_code)
        return entry[0] if entry else None

    def cancel_all(self) -> None:
        with self._lock:
            entries = list(self._timers.values())
            self._timers.clear()
        for _, handle in entries:
            handle.cancel()
