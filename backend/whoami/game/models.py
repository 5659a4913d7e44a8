from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping


Phase = Literal["LOBBY", "ASSIGNMENT", "PLAYING", "FINISHED"]
VoteType = Literal["YES", "NO", "MAYBE"]
AdvanceOrigin = Literal["start", "timeout", "guess", "pass", "forfeit", "disconnect"]
GuessOutcome = Literal["correct", "incorrect", "locked"]

VOTE_TYPES: tuple[VoteType, ...] = ("YES", "NO", "MAYBE")


@dataclass(frozen=True)
class GameSettings:
    turn_duration_ms: int = 45_000
    guess_lock_duration_ms: int = 10_000
    min_players: int = 3
    max_players: int = 12

    @classmethod
    def from_config(cls, config: Mapping[str, Any] | type) -> GameSettings:
        def read(key: str, default: int) -> int:
            if isinstance(config, Mapping):
                return int(config.get(key, default))
            return int(getattr(config, key, default))

        return cls(
            turn_duration_ms=read("TURN_DURATION_SEC", 45) * 1000,
            guess_lock_duration_ms=read("GUESS_LOCK_SEC", 10) * 1000,
            min_players=read("MIN_PLAYERS", 3),
            max_players=read("MAX_PLAYERS", 12),
        )


@dataclass
class Identity:
    display_name: str
    aliases: list[str] = field(default_factory=list)
    image_url: str | None = None

    def candidate_names(self) -> list[str]:
        return [self.display_name, *self.aliases]


@dataclass
class Player:
    id: str
    name: str
    avatar_url: str = ""
    target_id: str = ""
    assigned_identity: Identity | None = None
    has_submitted_assignment: bool = False
    has_guessed_correctly: bool = False
    turns_to_guess: int = 0
    is_connected: bool = True
    guess_lock_until: int = 0
    forfeit_order: int = 0

    @property
    def forfeited(self) -> bool:
        return self.forfeit_order > 0


@dataclass
class VoteTally:
    yes: int = 0
    no: int = 0
    maybe: int = 0

    def bump(self, vote: VoteType, delta: int) -> None:
        key = vote.lower()
        setattr(self, key, getattr(self, key) + delta)


@dataclass
class Vote:
    player_id: str
    vote: VoteType


@dataclass
class Question:
    id: str
    asker_id: str
    text: str
    created_at: int
    votes: list[Vote] = field(default_factory=list)
    tally: VoteTally = field(default_factory=VoteTally)


@dataclass(frozen=True)
class TurnState:
    active_guesser_id: str
    turn_number: int
    started_at: int
    duration_ms: int
    current_question: Question | None = None

    @property
    def ends_at(self) -> int:
        return self.started_at + self.duration_ms


@dataclass
class Room:
    code: str
    host_id: str
    settings: GameSettings
    created_at: int
    phase: Phase = "LOBBY"
    order: list[str] = field(default_factory=list)
    players: dict[str, Player] = field(default_factory=dict)
    turn: TurnState | None = None
    question_history: list[Question] = field(default_factory=list)
    forfeit_counter: int = 0

    def connected_players(self) -> list[Player]:
        return [p for p in self.players.values() if p.is_connected]


@dataclass(frozen=True)
class TurnAdvance:
    origin: AdvanceOrigin
    previous_guesser_id: str | None
    next_guesser_id: str | None
    turn: TurnState | None

    @property
    def finished(self) -> bool:
        return self.next_guesser_id is None


@dataclass(frozen=True)
class GuessResult:
    outcome: GuessOutcome
    lock_until: int = 0
    identity: Identity | None = None
    advance: TurnAdvance | None = None
    finished: bool = False

    @property
    def correct(self) -> bool:
        return self.outcome == "correct"


@dataclass(frozen=True)
class Reaction:
    id: str
    from_player_id: str
    to_player_id: str
    emoji: str
    created_at: int


@dataclass(frozen=True)
class Departure:
    room_code: str
    player_id: str
    room: Room | None
    new_host_id: str | None = None
    advance: TurnAdvance | None = None
    finished: bool = False

    @property
    def room_deleted(self) -> bool:
        return self.room is None
