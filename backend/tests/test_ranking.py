from whoami.game.models import GameSettings, Player, Room
from whoami.game.ranking import rank, rankings_payload


def _room(players) -> Room:
    room = Room(code="RANKED", host_id=players[0].id, settings=GameSettings(), created_at=0, phase="FINISHED")
    for p in players:
        room.players[p.id] = p
        room.order.append(p.id)
    return room


def test_rank_order():
    room = _room(
        [
            Player(id="quit-late", name="q2", forfeit_order=2, turns_to_guess=1),
            Player(id="slow", name="s", has_guessed_correctly=True, turns_to_guess=7),
            Player(id="never", name="n", turns_to_guess=2),
            Player(id="quit-early", name="q1", forfeit_order=1, turns_to_guess=9),
            Player(id="fast", name="f", has_guessed_correctly=True, turns_to_guess=2),
        ]
    )
    assert [p.id for p in rank(room)] == ["fast", "slow", "never", "quit-early", "quit-late"]


def test_ties_keep_join_order():
    room = _room(
        [
            Player(id="x", name="x", has_guessed_correctly=True, turns_to_guess=3),
            Player(id="y", name="y"),
            Player(id="z", name="z", has_guessed_correctly=True, turns_to_guess=3),
            Player(id="w", name="w"),
        ]
    )
    assert [p.id for p in rank(room)] == ["x", "z", "y", "w"]


def test_rankings_payload_shape():
    room = _room([Player(id="a", name="Ann", has_guessed_correctly=True, turns_to_guess=4)])
    (entry,) = rankings_payload(room)["rankings"]
    assert entry == {
        "playerId": "a",
        "playerName": "Ann",
        "turnsToGuess": 4,
        "guessedCorrectly": True,
        "forfeited": False,
        "forfeitOrder": 0,
    }
