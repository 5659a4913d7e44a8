from __future__ import annotations

from .errors import NoIdentity, NotYourTurn
from .matcher import matches_any
from .models import GuessResult, Identity, Player, Room
from .phases import require_phase, require_player


def _require_active_guesser(room: Room, player_id: str) -> Player:
    require_phase(room, "PLAYING")
    player = require_player(room, player_id)
    if room.turn is None or room.turn.active_guesser_id != player_id:
        raise NotYourTurn()
    return player


def everyone_done(room: Room) -> bool:
    return all(p.has_guessed_correctly or p.forfeited for p in room.connected_players())


def evaluate_guess(room: Room, player_id: str, text: str, now: int) -> GuessResult:
    """Check ``text`` against the player's identity and apply the penalty lock.

    Turn advancing is left to the caller; this only settles the guesser.
    """
    player = _require_active_guesser(room, player_id)

    if now < player.guess_lock_until:
        return GuessResult(outcome="locked", lock_until=player.guess_lock_until)

    identity = player.assigned_identity
    if identity is None:
        raise NoIdentity()

    if matches_any(text, identity.candidate_names()):
        player.has_guessed_correctly = True
        return GuessResult(outcome="correct", identity=identity, finished=everyone_done(room))

    # A new lock replaces the old one.
    player.guess_lock_until = now + room.settings.guess_lock_duration_ms
    return GuessResult(outcome="incorrect", lock_until=player.guess_lock_until)


def forfeit(room: Room, player_id: str) -> Identity | None:
    player = _require_active_guesser(room, player_id)
    room.forfeit_counter += 1
    player.forfeit_order = room.forfeit_counter
    return player.assigned_identity


def check_can_pass(room: Room, player_id: str) -> None:
    _require_active_guesser(room, player_id)
