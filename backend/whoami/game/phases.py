from __future__ import annotations

import random

from .assignment import assign_targets, chain_is_cycle
from .errors import (
    AlreadySubmitted,
    AssignmentsPending,
    InsufficientPlayers,
    InvalidPayload,
    NotHost,
    NotInRoom,
    WrongPhase,
)
from .models import Identity, Phase, Player, Room, TurnState
from .turns import begin_turn


MIN_CHAIN_PLAYERS = 2


def require_phase(room: Room, phase: Phase) -> None:
    if room.phase != phase:
        raise WrongPhase(expected=phase, actual=room.phase)


def require_host(room: Room, requester_id: str) -> None:
    if room.host_id != requester_id:
        raise NotHost()


def require_player(room: Room, player_id: str) -> Player:
    player = room.players.get(player_id)
    if player is None:
        raise NotInRoom()
    return player


def start_assignment(room: Room, requester_id: str, rng: random.Random) -> None:
    require_host(room, requester_id)
    require_phase(room, "LOBBY")
    assign_targets(room, rng)
    room.phase = "ASSIGNMENT"


def submit_assignment(room: Room, player_id: str, identity: Identity) -> bool:
    """Give ``identity`` to the submitter's target. Returns True once everyone has submitted."""
    require_phase(room, "ASSIGNMENT")
    assigner = require_player(room, player_id)
    if assigner.has_submitted_assignment:
        raise AlreadySubmitted()

    target = room.players.get(assigner.target_id)
    if target is None:
        raise InvalidPayload("You have no target to assign")

    target.assigned_identity = identity
    assigner.has_submitted_assignment = True
    return all(p.has_submitted_assignment for p in room.players.values())


def start_playing(room: Room, requester_id: str, now: int) -> TurnState:
    require_host(room, requester_id)
    require_phase(room, "ASSIGNMENT")

    # Departures during ASSIGNMENT may shrink the room below min_players; a
    # 2-cycle is still a valid chain.
    missing = MIN_CHAIN_PLAYERS - len(room.players)
    if missing > 0:
        raise InsufficientPlayers(missing)

    pending = [pid for pid in room.order if not room.players[pid].has_submitted_assignment]
    if pending:
        raise AssignmentsPending(pending)

    if not chain_is_cycle(room):
        raise RuntimeError(f"target chain broken in room {room.code}")

    room.phase = "PLAYING"
    return begin_turn(room, room.order[0], now)


def finish(room: Room) -> None:
    room.phase = "FINISHED"
