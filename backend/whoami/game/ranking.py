from __future__ import annotations

from typing import Any

from .models import Player, Room


def _rank_key(p: Player) -> tuple[int, int, int, int]:
    if p.forfeited:
        return (1, p.forfeit_order, 0, 0)
    if p.has_guessed_correctly:
        return (0, 0, 0, p.turns_to_guess)
    return (0, 0, 1, 0)


def rank(room: Room) -> list[Player]:
    # sorted() is stable, so ties keep join order.
    return sorted(room.players.values(), key=_rank_key)


def rankings_payload(room: Room) -> dict[str, Any]:
    return {
        "roomCode": room.code,
        "rankings": [
            {
                "playerId": p.id,
                "playerName": p.name,
                "turnsToGuess": p.turns_to_guess,
                "guessedCorrectly": p.has_guessed_correctly,
                "forfeited": p.forfeited,
                "forfeitOrder": p.forfeit_order,
            }
            for p in rank(room)
        ],
    }
