from __future__ import annotations

import dataclasses
import logging
import random
import time
import uuid
from contextlib import contextmanager
from threading import RLock
from typing import Any, Callable, Iterator

from .assignment import unlink_player
from .errors import GameError, InvalidPayload, NotInRoom, RoomAborted, RoomFull, RoomNotFound
from .guessing import check_can_pass, evaluate_guess, forfeit
from .models import (
    AdvanceOrigin,
    Departure,
    GameSettings,
    GuessResult,
    Identity,
    Player,
    Question,
    Reaction,
    Room,
    TurnAdvance,
    VoteType,
)
from .phases import MIN_CHAIN_PLAYERS, finish, require_phase, require_player, start_assignment, start_playing, submit_assignment
from .projection import project
from .questions import submit_question, submit_vote
from .ranking import rankings_payload
from .turns import TimerFactory, TurnScheduler, begin_turn, next_eligible_guesser, thread_timer


logger = logging.getLogger(__name__)

# No 0/O or 1/I.
ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 6


def now_ms() -> int:
    return int(time.time() * 1000)


TimeoutListener = Callable[[Room, TurnAdvance], None]


class GameService:
    """Owns every live room and serializes the actions applied to each one.

    Each room has its own re-entrant lock; the registry lock only guards the
    room table and the connection index and is never held while waiting on a
    room lock.
    """

    def __init__(
        self,
        settings: GameSettings | None = None,
        clock: Callable[[], int] = now_ms,
        timer_factory: TimerFactory = thread_timer,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings or GameSettings()
        self._clock = clock
        self._rng = rng or random.Random()
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}
        self._room_locks: dict[str, RLock] = {}
        self._player_rooms: dict[str, str] = {}
        self.scheduler = TurnScheduler(timer_factory, self._on_turn_timer)
        self.timeout_listener: TimeoutListener | None = None

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def _new_code(self) -> str:
        while True:
            code = "".join(self._rng.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))
            if code not in self._rooms:
                return code

    def get_room(self, code: str) -> Room | None:
        with self._lock:
            return self._rooms.get((code or "").strip().upper())

    def list_rooms(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def room_for_player(self, player_id: str) -> Room | None:
        with self._lock:
            code = self._player_rooms.get(player_id)
            return self._rooms.get(code) if code else None

    def create_room(self, host_id: str, host_name: str, avatar_url: str = "") -> Room:
        if self.room_for_player(host_id) is not None:
            self.leave(host_id)

        with self._lock:
            code = self._new_code()
            room = Room(code=code, host_id=host_id, settings=self.settings, created_at=self._clock())
            room.players[host_id] = Player(id=host_id, name=host_name, avatar_url=avatar_url)
            room.order.append(host_id)
            self._rooms[code] = room
            self._room_locks[code] = RLock()
            self._player_rooms[host_id] = code

        logger.info("room %s created by %s", code, host_id)
        return room

    def join_room(self, room_code: str, player_id: str, name: str, avatar_url: str = "") -> Room:
        current = self.room_for_player(player_id)
        if current is not None:
            self.leave(player_id)

        with self._locked(room_code) as room:
            require_phase(room, "LOBBY")
            if len(room.players) >= room.settings.max_players:
                raise RoomFull(room.settings.max_players)

            room.players[player_id] = Player(id=player_id, name=name, avatar_url=avatar_url)
            room.order.append(player_id)
            with self._lock:
                self._player_rooms[player_id] = room.code

            logger.info("%s joined room %s (%d players)", player_id, room.code, len(room.players))
            return room

    def leave(self, player_id: str) -> Departure | None:
        """Remove (or, mid-game, disconnect) a player. Returns None if they were in no room."""
        with self._lock:
            code = self._player_rooms.pop(player_id, None)
        if code is None:
            return None

        try:
            with self._locked(code) as room:
                return self._depart_locked(room, player_id)
        except RoomNotFound:
            return None

    def _depart_locked(self, room: Room, player_id: str) -> Departure | None:
        player = room.players.get(player_id)
        if player is None:
            return None

        old_order = list(room.order)
        advance = None
        finished = False
        if room.phase == "PLAYING":
            # Keep the entry so turn order and the target chain stay intact.
            player.is_connected = False
            if room.turn is not None and room.turn.active_guesser_id == player_id:
                advance = self._advance_locked(room, "disconnect")
        else:
            if room.phase == "ASSIGNMENT":
                unlink_player(room, player_id)
            del room.players[player_id]
            room.order = [pid for pid in room.order if pid != player_id]
            if room.phase == "ASSIGNMENT" and 0 < len(room.players) < MIN_CHAIN_PLAYERS:
                # Joins are closed, so a lone player could never start.
                self._finish_locked(room)
                finished = True

        new_host = None
        if room.host_id == player_id:
            new_host = _next_connected(room, old_order, player_id)
            if new_host is not None:
                room.host_id = new_host
                logger.info("room %s host moved %s -> %s", room.code, player_id, new_host)

        logger.info("%s left room %s during %s", player_id, room.code, room.phase)

        if (
            not room.players
            or (room.phase != "PLAYING" and not room.order)
            or not room.connected_players()
        ):
            self._delete_locked(room)
            return Departure(room_code=room.code, player_id=player_id, room=None, advance=advance)

        return Departure(
            room_code=room.code,
            player_id=player_id,
            room=room,
            new_host_id=new_host,
            advance=advance,
            finished=finished,
        )

    def _delete_locked(self, room: Room) -> None:
        self.scheduler.cancel(room.code)
        with self._lock:
            if self._rooms.get(room.code) is room:
                del self._rooms[room.code]
                self._room_locks.pop(room.code, None)
            for pid in [pid for pid, code in self._player_rooms.items() if code == room.code]:
                del self._player_rooms[pid]
        logger.info("room %s deleted", room.code)

    def shutdown(self) -> None:
        self.scheduler.cancel_all()
        with self._lock:
            self._rooms.clear()
            self._room_locks.clear()
            self._player_rooms.clear()

    # ------------------------------------------------------------------
    # Serialized access
    # ------------------------------------------------------------------

    @contextmanager
    def _locked(self, room_code: str) -> Iterator[Room]:
        code = (room_code or "").strip().upper()
        with self._lock:
            room = self._rooms.get(code)
            lock = self._room_locks.get(code)
        if room is None or lock is None:
            raise RoomNotFound()

        with lock:
            # Deleted while we waited for the lock.
            if self._rooms.get(code) is not room:
                raise RoomNotFound()
            try:
                yield room
            except GameError:
                raise
            except Exception as exc:
                logger.exception("room %s hit an internal error; closing it", code)
                self._abort_locked(room)
                raise RoomAborted() from exc

    @contextmanager
    def _locked_for_player(self, player_id: str) -> Iterator[Room]:
        with self._lock:
            code = self._player_rooms.get(player_id)
        if code is None:
            raise NotInRoom()
        with self._locked(code) as room:
            if player_id not in room.players:
                raise NotInRoom()
            yield room

    def _abort_locked(self, room: Room) -> None:
        room.phase = "FINISHED"
        room.turn = None
        self._delete_locked(room)

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def _finish_locked(self, room: Room) -> None:
        finish(room)
        room.turn = None
        self.scheduler.cancel(room.code)
        logger.info("room %s finished", room.code)

    def _advance_locked(self, room: Room, origin: AdvanceOrigin) -> TurnAdvance:
        previous = room.turn.active_guesser_id if room.turn else None
        nxt = next_eligible_guesser(room)
        if nxt is None:
            self._finish_locked(room)
            return TurnAdvance(origin=origin, previous_guesser_id=previous, next_guesser_id=None, turn=None)

        turn = begin_turn(room, nxt, self._clock())
        self.scheduler.arm(room)
        logger.info("room %s turn %d -> %s (%s)", room.code, turn.turn_number, nxt, origin)
        return TurnAdvance(origin=origin, previous_guesser_id=previous, next_guesser_id=nxt, turn=turn)

    def _on_turn_timer(self, room_code: str, turn_number: int) -> None:
        try:
            with self._locked(room_code) as room:
                if room.phase != "PLAYING" or room.turn is None or room.turn.turn_number != turn_number:
                    logger.debug("stale timer for room %s turn %d ignored", room_code, turn_number)
                    return

                advance = self._advance_locked(room, "timeout")
                listener = self.timeout_listener
                if listener is not None:
                    try:
                        listener(room, advance)
                    except Exception:
                        logger.exception("timeout listener failed for room %s", room_code)
        except RoomNotFound:
            logger.debug("timer fired for deleted room %s", room_code)
        except GameError as exc:
            logger.warning("turn timer for room %s dropped: %s", room_code, exc.code)

    # ------------------------------------------------------------------
    # Game actions
    # ------------------------------------------------------------------

    def start_assignment(self, player_id: str) -> Room:
        with self._locked_for_player(player_id) as room:
            start_assignment(room, player_id, self._rng)
            logger.info("room %s entered ASSIGNMENT", room.code)
            return room

    def submit_assignment(
        self,
        player_id: str,
        display_name: str,
        aliases: list[str] | None = None,
        image_url: str | None = None,
    ) -> tuple[Room, bool]:
        name = (display_name or "").strip()
        if not name:
            raise InvalidPayload("Display name is required")
        cleaned = [a.strip() for a in (aliases or []) if a and a.strip()]

        with self._locked_for_player(player_id) as room:
            identity = Identity(display_name=name, aliases=cleaned, image_url=image_url or None)
            all_submitted = submit_assignment(room, player_id, identity)
            if all_submitted:
                logger.info("room %s: all assignments submitted", room.code)
            return room, all_submitted

    def start_game(self, player_id: str) -> tuple[Room, TurnAdvance]:
        with self._locked_for_player(player_id) as room:
            turn = start_playing(room, player_id, self._clock())
            self.scheduler.arm(room)
            logger.info("room %s started playing, %s goes first", room.code, turn.active_guesser_id)
            return room, TurnAdvance(
                origin="start",
                previous_guesser_id=None,
                next_guesser_id=turn.active_guesser_id,
                turn=turn,
            )

    def ask_question(self, player_id: str, text: str) -> tuple[Room, Question]:
        if not (text or "").strip():
            raise InvalidPayload("Question text is required")
        with self._locked_for_player(player_id) as room:
            return room, submit_question(room, player_id, text, self._clock())

    def vote(self, player_id: str, question_id: str, vote: VoteType) -> tuple[Room, Question]:
        with self._locked_for_player(player_id) as room:
            return room, submit_vote(room, player_id, question_id, vote)

    def guess(self, player_id: str, text: str) -> tuple[Room, GuessResult]:
        if not (text or "").strip():
            raise InvalidPayload("Guess is required")

        with self._locked_for_player(player_id) as room:
            result = evaluate_guess(room, player_id, text, self._clock())
            logger.info("room %s: %s guessed (%s)", room.code, player_id, result.outcome)
            if not result.correct:
                return room, result

            if result.finished:
                self._finish_locked(room)
                return room, result

            advance = self._advance_locked(room, "guess")
            return room, dataclasses.replace(result, advance=advance, finished=advance.finished)

    def pass_turn(self, player_id: str) -> tuple[Room, TurnAdvance]:
        with self._locked_for_player(player_id) as room:
            check_can_pass(room, player_id)
            return room, self._advance_locked(room, "pass")

    def forfeit(self, player_id: str) -> tuple[Room, Identity | None, TurnAdvance]:
        with self._locked_for_player(player_id) as room:
            identity = forfeit(room, player_id)
            logger.info("room %s: %s forfeited (#%d)", room.code, player_id, room.forfeit_counter)
            return room, identity, self._advance_locked(room, "forfeit")

    def send_reaction(self, player_id: str, to_player_id: str, emoji: str) -> tuple[Room, Reaction]:
        with self._locked_for_player(player_id) as room:
            require_player(room, to_player_id)
            reaction = Reaction(
                id=str(uuid.uuid4()),
                from_player_id=player_id,
                to_player_id=to_player_id,
                emoji=emoji,
                created_at=self._clock(),
            )
            return room, reaction

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def results(self, room_code: str) -> dict[str, Any]:
        with self._locked(room_code) as room:
            return rankings_payload(room)

    def project(self, room_code: str, viewer_id: str | None) -> dict[str, Any]:
        with self._locked(room_code) as room:
            return project(room, viewer_id)

    def views(self, room_code: str) -> dict[str, dict[str, Any]]:
        """One tailored snapshot per connected player, taken atomically."""
        with self._locked(room_code) as room:
            return {p.id: project(room, p.id) for p in room.connected_players()}


def _next_connected(room: Room, order: list[str], departed_id: str) -> str | None:
    if departed_id not in order:
        return None
    start = order.index(departed_id)
    for step in range(1, len(order)):
        pid = order[(start + step) % len(order)]
        p = room.players.get(pid)
        if p is not None and p.is_connected:
            return pid
    return None
