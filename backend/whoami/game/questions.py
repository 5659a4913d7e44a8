from __future__ import annotations

import dataclasses
import uuid

from .errors import NotYourTurn, VoteRejected
from .models import VOTE_TYPES, Question, Room, Vote, VoteType
from .phases import require_phase, require_player


def submit_question(room: Room, player_id: str, text: str, now: int) -> Question:
    """Replace the turn's current question and record it in history.

    Pending votes on the previous question never block a new one.
    """
    require_phase(room, "PLAYING")
    asker = require_player(room, player_id)
    if room.turn is None or room.turn.active_guesser_id != player_id:
        raise NotYourTurn()

    question = Question(
        id=str(uuid.uuid4()),
        asker_id=player_id,
        text=text.strip(),
        created_at=now,
    )
    room.turn = dataclasses.replace(room.turn, current_question=question)
    room.question_history.append(question)
    asker.turns_to_guess += 1
    return question


def submit_vote(room: Room, player_id: str, question_id: str, vote: VoteType) -> Question:
    if room.phase != "PLAYING":
        raise VoteRejected("game_not_playing")
    require_player(room, player_id)
    if vote not in VOTE_TYPES:
        raise VoteRejected("invalid_vote")

    question = room.turn.current_question if room.turn else None
    if question is None:
        raise VoteRejected("no_question")
    if question.id != question_id:
        raise VoteRejected("stale_question")
    if question.asker_id == player_id:
        raise VoteRejected("own_question")

    for existing in question.votes:
        if existing.player_id == player_id:
            question.tally.bump(existing.vote, -1)
            existing.vote = vote
            break
    else:
        question.votes.append(Vote(player_id=player_id, vote=vote))
    question.tally.bump(vote, 1)
    return question
