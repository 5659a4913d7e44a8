from __future__ import annotations

import functools
import logging
import re
from typing import Any, Callable

from flask import request
from flask_socketio import SocketIO, emit, join_room, leave_room

from ..game.errors import GameError, InvalidPayload, RoomNotFound
from ..game.models import VOTE_TYPES, Departure, Room, TurnAdvance
from ..game.projection import identity_view, player_view, question_view, reaction_view, turn_view
from ..game.service import GameService, now_ms
from . import events


logger = logging.getLogger(__name__)


def _validate_text(text: str, max_len: int) -> bool:
    t = (text or "").strip()
    if not t:
        return False
    if len(t) > max_len:
        return False
    # No control characters.
    for ch in t:
        if ord(ch) < 32:
            return False
    return True


def _validate_label(text: str, max_len: int) -> bool:
    # Names are rendered everywhere; avoid obvious HTML/script injection.
    if "<" in (text or "") or ">" in (text or ""):
        return False
    return _validate_text(text, max_len)


def _validate_name(name: str) -> bool:
    return _validate_label(name, 16)


def _normalize_url(raw: Any) -> str:
    u = str(raw or "").strip()
    if len(u) <= 512 and re.match(r"^https?://[^\s<>\"']+$", u):
        return u
    return ""


def _acked(error_event: str) -> Callable:
    """Turn a GameError raised by a handler into an error event plus a failed ack."""

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(data=None):
            try:
                return fn(data or {})
            except GameError as exc:
                logger.debug("%s rejected for %s: %s", fn.__name__, request.sid, exc.code)
                emit(error_event, {"error": exc.code, "message": exc.message, **exc.extras()})
                return exc.to_payload()

        return wrapper

    return decorator


def register_socketio_handlers(socketio: SocketIO, service: GameService) -> None:
    def _broadcast_room_state(room_code: str) -> None:
        # Each player gets their own view: their own identity stays hidden.
        try:
            views = service.views(room_code)
        except RoomNotFound:
            return
        for pid, view in views.items():
            socketio.emit(events.ROOM_STATE, view, to=pid)

    def _announce_finished(room_code: str) -> None:
        socketio.emit(events.GAME_PHASE, {"roomCode": room_code, "phase": "FINISHED"}, to=room_code)
        try:
            socketio.emit(events.GAME_FINISHED, service.results(room_code), to=room_code)
        except RoomNotFound:
            return

    def _announce_advance(room_code: str, advance: TurnAdvance) -> None:
        if advance.finished:
            _announce_finished(room_code)
            return
        socketio.emit(events.TURN_STARTED, {"roomCode": room_code, **turn_view(advance.turn)}, to=room_code)

    def _on_turn_timeout(room: Room, advance: TurnAdvance) -> None:
        socketio.emit(
            events.TURN_TIMEOUT,
            {
                "roomCode": room.code,
                "previousGuesserId": advance.previous_guesser_id,
                "nextGuesserId": advance.next_guesser_id,
            },
            to=room.code,
        )
        _announce_advance(room.code, advance)
        _broadcast_room_state(room.code)

    service.timeout_listener = _on_turn_timeout

    def _handle_departure(departure: Departure | None, connected: bool = True) -> None:
        if departure is None:
            return
        if connected:
            leave_room(departure.room_code)
        if departure.room_deleted:
            return

        code = departure.room_code
        socketio.emit(events.PLAYER_LEFT, {"roomCode": code, "playerId": departure.player_id}, to=code)
        if departure.advance is not None:
            _announce_advance(code, departure.advance)
        elif departure.finished:
            _announce_finished(code)
        _broadcast_room_state(code)

    # ------------------------------------------------------------------
    # Lobby
    # ------------------------------------------------------------------

    @socketio.on(events.ROOM_CREATE)
    @_acked(events.ROOM_ERROR)
    def room_create(payload):
        name = str(payload.get("playerName", "")).strip()
        if not _validate_name(name):
            raise InvalidPayload("Player name is required")
        avatar = _normalize_url(payload.get("avatarUrl"))

        _handle_departure(service.leave(request.sid))
        room = service.create_room(request.sid, name, avatar_url=avatar)
        join_room(room.code)
        _broadcast_room_state(room.code)
        return {"ok": True, "roomCode": room.code, "playerId": request.sid}

    @socketio.on(events.ROOM_JOIN)
    @_acked(events.ROOM_ERROR)
    def room_join(payload):
        room_code = str(payload.get("roomCode", "")).strip().upper()
        name = str(payload.get("playerName", "")).strip()
        if not room_code:
            raise InvalidPayload("Room code is required")
        if not _validate_name(name):
            raise InvalidPayload("Player name is required")
        avatar = _normalize_url(payload.get("avatarUrl"))

        current = service.room_for_player(request.sid)
        if current is not None:
            _handle_departure(service.leave(request.sid))

        room = service.join_room(room_code, request.sid, name, avatar_url=avatar)
        join_room(room.code)

        player = room.players.get(request.sid)
        if player is not None:
            emit(events.PLAYER_JOINED, {"roomCode": room.code, **player_view(player)}, to=room.code, include_self=False)

        _broadcast_room_state(room.code)
        return {"ok": True, "roomCode": room.code, "playerId": request.sid}

    @socketio.on(events.ROOM_LEAVE)
    @_acked(events.ROOM_ERROR)
    def room_leave(payload):
        _handle_departure(service.leave(request.sid))
        return {"ok": True}

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    @socketio.on(events.GAME_START_ASSIGNMENT)
    @_acked(events.GAME_ERROR)
    def game_start_assignment(payload):
        room = service.start_assignment(request.sid)
        socketio.emit(events.GAME_PHASE, {"roomCode": room.code, "phase": "ASSIGNMENT"}, to=room.code)
        _broadcast_room_state(room.code)
        return {"ok": True}

    @socketio.on(events.ASSIGNMENT_SUBMIT)
    @_acked(events.GAME_ERROR)
    def assignment_submit(payload):
        display_name = str(payload.get("displayName", "")).strip()
        if not _validate_label(display_name, 64):
            raise InvalidPayload("Display name is required")

        aliases_raw = payload.get("allowedAliases")
        aliases: list[str] = []
        if isinstance(aliases_raw, list):
            for a in aliases_raw:
                if isinstance(a, str) and _validate_label(a, 64):
                    aliases.append(a.strip())

        image_url = _normalize_url(payload.get("imageUrl")) or None
        room, all_submitted = service.submit_assignment(request.sid, display_name, aliases, image_url)
        _broadcast_room_state(room.code)
        return {"ok": True, "allSubmitted": all_submitted}

    @socketio.on(events.GAME_START)
    @_acked(events.GAME_ERROR)
    def game_start(payload):
        room, advance = service.start_game(request.sid)
        socketio.emit(events.GAME_PHASE, {"roomCode": room.code, "phase": "PLAYING"}, to=room.code)
        _announce_advance(room.code, advance)
        _broadcast_room_state(room.code)
        return {"ok": True}

    # ------------------------------------------------------------------
    # Playing
    # ------------------------------------------------------------------

    @socketio.on(events.QUESTION_ASK)
    @_acked(events.GAME_ERROR)
    def question_ask(payload):
        text = str(payload.get("text", ""))
        if not _validate_text(text, 280):
            raise InvalidPayload("Question text is required")

        room, question = service.ask_question(request.sid, text)
        socketio.emit(events.QUESTION_ASKED, {"roomCode": room.code, **question_view(question)}, to=room.code)
        _broadcast_room_state(room.code)
        return {"ok": True, "questionId": question.id}

    @socketio.on(events.QUESTION_VOTE)
    @_acked(events.GAME_ERROR)
    def question_vote(payload):
        question_id = str(payload.get("questionId", "")).strip()
        vote = str(payload.get("vote", "")).strip().upper()
        if not question_id or vote not in VOTE_TYPES:
            raise InvalidPayload("Invalid vote")

        room, question = service.vote(request.sid, question_id, vote)  # type: ignore[arg-type]
        tally = question_view(question)["voteTally"]
        socketio.emit(
            events.QUESTION_VOTES,
            {"roomCode": room.code, "questionId": question.id, "voteTally": tally},
            to=room.code,
        )
        return {"ok": True, "voteTally": tally}

    @socketio.on(events.GUESS_SUBMIT)
    @_acked(events.GAME_ERROR)
    def guess_submit(payload):
        text = str(payload.get("guess", "")).strip()
        if not text:
            raise InvalidPayload("Guess is required")

        room, result = service.guess(request.sid, text)

        if result.outcome == "locked":
            return {
                "ok": False,
                "error": "guess_locked",
                "message": "You are locked from guessing",
                "correct": False,
                "lockUntil": result.lock_until,
            }

        if result.outcome == "incorrect":
            socketio.emit(
                events.GUESS_WRONG,
                {"roomCode": room.code, "playerId": request.sid, "lockUntil": result.lock_until},
                to=room.code,
            )
            _broadcast_room_state(room.code)
            return {"ok": True, "correct": False, "lockUntil": result.lock_until}

        socketio.emit(
            events.GUESS_CORRECT,
            {"roomCode": room.code, "playerId": request.sid, "identity": identity_view(result.identity)},
            to=room.code,
        )
        if result.advance is not None:
            _announce_advance(room.code, result.advance)
        elif result.finished:
            _announce_finished(room.code)
        _broadcast_room_state(room.code)
        return {"ok": True, "correct": True}

    @socketio.on(events.TURN_PASS)
    @_acked(events.GAME_ERROR)
    def turn_pass(payload):
        room, advance = service.pass_turn(request.sid)
        socketio.emit(
            events.TURN_PASSED,
            {"roomCode": room.code, "playerId": request.sid, "nextGuesserId": advance.next_guesser_id},
            to=room.code,
        )
        _announce_advance(room.code, advance)
        _broadcast_room_state(room.code)
        return {"ok": True}

    @socketio.on(events.TURN_FORFEIT)
    @_acked(events.GAME_ERROR)
    def turn_forfeit(payload):
        room, identity, advance = service.forfeit(request.sid)
        player = room.players.get(request.sid)
        socketio.emit(
            events.PLAYER_FORFEITED,
            {
                "roomCode": room.code,
                "playerId": request.sid,
                "playerName": player.name if player else "",
                "identity": identity_view(identity),
            },
            to=room.code,
        )
        _announce_advance(room.code, advance)
        _broadcast_room_state(room.code)
        return {"ok": True, "identity": identity_view(identity)}

    @socketio.on(events.REACTION_SEND)
    @_acked(events.GAME_ERROR)
    def reaction_send(payload):
        to_player_id = str(payload.get("toPlayerId", "")).strip()
        emoji = str(payload.get("emoji", "")).strip()
        if not to_player_id or not _validate_text(emoji, 8):
            raise InvalidPayload("Invalid reaction")

        room, reaction = service.send_reaction(request.sid, to_player_id, emoji)
        socketio.emit(events.REACTION_RECEIVED, {"roomCode": room.code, **reaction_view(reaction)}, to=room.code)
        return {"ok": True}

    @socketio.on(events.PING)
    def ping(data=None):
        return {"ok": True, "nowMs": now_ms()}

    @socketio.on("disconnect")
    def on_disconnect(*args):
        _handle_departure(service.leave(request.sid), connected=False)
