from __future__ import annotations

from typing import Any

from .models import Identity, Player, Question, Reaction, Room, TurnState


def identity_view(identity: Identity | None) -> dict[str, Any] | None:
    if identity is None:
        return None
    return {
        "displayName": identity.display_name,
        "allowedAliases": list(identity.aliases),
        "imageUrl": identity.image_url,
    }


def question_view(q: Question) -> dict[str, Any]:
    return {
        "id": q.id,
        "askerId": q.asker_id,
        "text": q.text,
        "votes": [{"playerId": v.player_id, "vote": v.vote} for v in q.votes],
        "voteTally": {"yes": q.tally.yes, "no": q.tally.no, "maybe": q.tally.maybe},
        "timestamp": q.created_at,
    }


def turn_view(turn: TurnState | None) -> dict[str, Any] | None:
    if turn is None:
        return None
    return {
        "activeGuesserId": turn.active_guesser_id,
        "turnNumber": turn.turn_number,
        "turnStartTime": turn.started_at,
        "turnDuration": turn.duration_ms,
        "turnEndsAt": turn.ends_at,
        "currentQuestion": question_view(turn.current_question) if turn.current_question else None,
    }


def reaction_view(r: Reaction) -> dict[str, Any]:
    return {
        "id": r.id,
        "fromPlayerId": r.from_player_id,
        "toPlayerId": r.to_player_id,
        "emoji": r.emoji,
        "timestamp": r.created_at,
    }


def _identity_visible(p: Player, viewer_id: str | None) -> bool:
    if p.has_guessed_correctly or p.forfeited:
        return True
    # Everyone except the player themselves may see it; anonymous readers may not.
    return viewer_id is not None and viewer_id != p.id


def player_view(p: Player, viewer_id: str | None = None) -> dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "avatarUrl": p.avatar_url or None,
        "targetPlayerId": p.target_id or None,
        "assignedIdentity": identity_view(p.assigned_identity) if _identity_visible(p, viewer_id) else None,
        "hasSubmittedAssignment": p.has_submitted_assignment,
        "hasGuessedCorrectly": p.has_guessed_correctly,
        "turnsToGuess": p.turns_to_guess,
        "isConnected": p.is_connected,
        "guessLockUntil": p.guess_lock_until,
        "forfeitOrder": p.forfeit_order,
    }


def project(room: Room, viewer_id: str | None) -> dict[str, Any]:
    """Room snapshot as seen by ``viewer_id``.

    The viewer's own identity stays hidden until they guess it (or give up).
    With no viewer every unrevealed identity is hidden.
    """
    s = room.settings
    return {
        "roomCode": room.code,
        "hostId": room.host_id,
        "phase": room.phase,
        "players": {pid: player_view(p, viewer_id) for pid, p in room.players.items()},
        "playerOrder": list(room.order),
        "turnState": turn_view(room.turn),
        "questionHistory": [question_view(q) for q in room.question_history],
        "createdAt": room.created_at,
        "settings": {
            "turnDuration": s.turn_duration_ms,
            "guessLockDuration": s.guess_lock_duration_ms,
            "minPlayers": s.min_players,
            "maxPlayers": s.max_players,
        },
    }
