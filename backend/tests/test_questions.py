import random

import pytest

from whoami.game.errors import InvalidPayload, NotYourTurn, VoteRejected, WrongPhase


def _tally(q):
    return {"yes": q.tally.yes, "no": q.tally.no, "maybe": q.tally.maybe}


def test_vote_tally_and_revote(service, playing):
    room, asker = playing("A", "B", "C", "D")
    voters = [pid for pid in room.order if pid != asker]

    _, question = service.ask_question(asker, "Am I real?")
    service.vote(voters[0], question.id, "YES")
    service.vote(voters[1], question.id, "YES")
    service.vote(voters[2], question.id, "NO")
    assert _tally(question) == {"yes": 2, "no": 1, "maybe": 0}

    service.vote(voters[0], question.id, "NO")
    assert _tally(question) == {"yes": 1, "no": 2, "maybe": 0}
    assert len(question.votes) == 3


def test_tally_matches_votes_for_any_sequence(service, playing):
    room, asker = playing("A", "B", "C", "D", "E")
    voters = [pid for pid in room.order if pid != asker]
    _, question = service.ask_question(asker, "Am I a musician?")

    rng = random.Random(5)
    for _ in range(60):
        service.vote(rng.choice(voters), question.id, rng.choice(["YES", "NO", "MAYBE"]))

        counted = {"yes": 0, "no": 0, "maybe": 0}
        for v in question.votes:
            counted[v.vote.lower()] += 1
        assert _tally(question) == counted
        assert len({v.player_id for v in question.votes}) == len(question.votes)


def test_cannot_vote_on_own_question(service, playing):
    _, asker = playing("A", "B", "C")
    _, question = service.ask_question(asker, "Am I alive?")
    with pytest.raises(VoteRejected) as info:
        service.vote(asker, question.id, "YES")
    assert info.value.reason == "own_question"
    assert question.votes == []


def test_vote_without_question(service, playing):
    room, asker = playing("A", "B", "C")
    with pytest.raises(VoteRejected) as info:
        service.vote(room.order[1], "nope", "YES")
    assert info.value.reason == "no_question"


def test_vote_on_replaced_question(service, playing):
    room, asker = playing("A", "B", "C")
    _, old = service.ask_question(asker, "Am I tall?")
    service.ask_question(asker, "Am I short?")
    with pytest.raises(VoteRejected) as info:
        service.vote(room.order[1], old.id, "NO")
    assert info.value.reason == "stale_question"


def test_vote_outside_playing(service, lobby):
    lobby("A", "B", "C")
    with pytest.raises(VoteRejected):
        service.vote("B", "whatever", "YES")


def test_only_active_guesser_asks(service, playing):
    room, asker = playing("A", "B", "C")
    with pytest.raises(NotYourTurn):
        service.ask_question(room.order[1], "Am I famous?")


def test_ask_outside_playing(service, lobby):
    lobby("A", "B", "C")
    with pytest.raises(WrongPhase):
        service.ask_question("A", "Am I famous?")


def test_blank_question_rejected(service, playing):
    _, asker = playing("A", "B", "C")
    with pytest.raises(InvalidPayload):
        service.ask_question(asker, "   ")


def test_new_question_replaces_current_without_waiting_for_votes(service, playing, clock):
    room, asker = playing("A", "B", "C")
    _, first = service.ask_question(asker, "  Am I an actor? ")
    service.vote(room.order[1], first.id, "MAYBE")

    clock.advance(1_000)
    _, second = service.ask_question(asker, "Am I a singer?")

    assert first.text == "Am I an actor?"
    assert room.turn.current_question is second
    assert room.question_history == [first, second]
    assert second.created_at == first.created_at + 1_000
    assert room.players[asker].turns_to_guess == 2
    # The replaced question keeps its votes in history.
    assert first.tally.maybe == 1


def test_turn_advance_clears_current_question(service, playing):
    room, asker = playing("A", "B", "C")
    service.ask_question(asker, "Am I a robot?")
    service.pass_turn(asker)

    assert room.turn.current_question is None
    assert len(room.question_history) == 1
