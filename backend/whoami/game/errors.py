from __future__ import annotations

from typing import Any


class GameError(Exception):
    """Base for every rejected engine action.

    ``code`` is stable and goes over the wire; ``extras()`` carries any
    typed detail a client needs (missing player count, lock expiry, ...).
    """

    code = "game_error"
    message = "Action not allowed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message

    def extras(self) -> dict[str, Any]:
        return {}

    def to_payload(self) -> dict[str, Any]:
        return {"ok": False, "error": self.code, "message": self.message, **self.extras()}


class InvalidPayload(GameError):
    code = "invalid_payload"
    message = "Invalid payload"


class RoomNotFound(GameError):
    code = "room_not_found"
    message = "Room not found"


class NotInRoom(GameError):
    code = "not_in_room"
    message = "You are not in a room"


class RoomFull(GameError):
    code = "room_full"
    message = "Room is full"

    def __init__(self, max_players: int) -> None:
        super().__init__(f"Room is full ({max_players} players max)")
        self.max_players = max_players

    def extras(self) -> dict[str, Any]:
        return {"maxPlayers": self.max_players}


class WrongPhase(GameError):
    code = "wrong_phase"

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"Expected phase {expected}, room is in {actual}")
        self.expected = expected
        self.actual = actual

    def extras(self) -> dict[str, Any]:
        return {"expected": self.expected, "phase": self.actual}


class NotHost(GameError):
    code = "only_host"
    message = "Only the host can do that"


class InsufficientPlayers(GameError):
    code = "insufficient_players"

    def __init__(self, missing: int) -> None:
        super().__init__(f"Need {missing} more player(s)")
        self.missing = missing

    def extras(self) -> dict[str, Any]:
        return {"missing": self.missing}


class AssignmentsPending(GameError):
    code = "assignments_pending"

    def __init__(self, pending_ids: list[str]) -> None:
        super().__init__(f"{len(pending_ids)} player(s) still assigning")
        self.pending_ids = pending_ids

    def extras(self) -> dict[str, Any]:
        return {"pending": list(self.pending_ids)}


class AlreadySubmitted(GameError):
    code = "already_submitted"
    message = "Assignment already submitted"


class NotYourTurn(GameError):
    code = "not_your_turn"
    message = "It is not your turn"


class NoIdentity(GameError):
    code = "no_identity"
    message = "No identity has been assigned to you"


class VoteRejected(GameError):
    code = "vote_rejected"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Vote rejected: {reason}")
        self.reason = reason

    def extras(self) -> dict[str, Any]:
        return {"reason": self.reason}


class RoomAborted(GameError):
    code = "room_aborted"
    message = "The room hit an internal error and was closed"
