from __future__ import annotations

import random

from .errors import InsufficientPlayers
from .models import Room


def assign_targets(room: Room, rng: random.Random) -> None:
    """Shuffle turn order and link each player to the next one, wrapping.

    The result is a single cycle over every player in the room.
    """
    if len(room.order) < room.settings.min_players:
        raise InsufficientPlayers(room.settings.min_players - len(room.order))

    order = list(room.order)
    rng.shuffle(order)
    room.order = order

    for idx, pid in enumerate(order):
        player = room.players[pid]
        player.target_id = order[(idx + 1) % len(order)]
        player.assigned_identity = None
        player.has_submitted_assignment = False


def predecessor_of(room: Room, player_id: str) -> str | None:
    for pid, p in room.players.items():
        if p.target_id == player_id and pid != player_id:
            return pid
    return None


def chain_is_cycle(room: Room) -> bool:
    """True when following targets from any player visits everyone exactly once."""
    ids = list(room.order)
    if len(ids) < 2 or set(ids) != set(room.players):
        return False

    seen: set[str] = set()
    cur = ids[0]
    for _ in range(len(ids)):
        if cur in seen or cur not in room.players:
            return False
        seen.add(cur)
        cur = room.players[cur].target_id
    return cur == ids[0] and len(seen) == len(ids)


def unlink_player(room: Room, player_id: str) -> str | None:
    """Splice a departing player out of the chain before they are removed.

    The predecessor inherits the leaver's target and has to submit again;
    any identity the leaver already handed to that target is withdrawn.
    Returns the predecessor id, if any.
    """
    leaver = room.players.get(player_id)
    if leaver is None or not leaver.target_id:
        return None

    target = room.players.get(leaver.target_id)
    if target is not None and leaver.has_submitted_assignment:
        target.assigned_identity = None

    pred_id = predecessor_of(room, player_id)
    if pred_id is None:
        return None

    pred = room.players[pred_id]
    pred.target_id = leaver.target_id if leaver.target_id != pred_id else ""
    pred.has_submitted_assignment = False
    return pred_id
