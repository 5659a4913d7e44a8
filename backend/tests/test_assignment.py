import random

import pytest

from whoami.game.assignment import assign_targets, chain_is_cycle, unlink_player
from whoami.game.errors import InsufficientPlayers
from whoami.game.models import GameSettings, Player, Room


def _room(n: int) -> Room:
    room = Room(code="ABCDEF", host_id="p0", settings=GameSettings(), created_at=0)
    for i in range(n):
        pid = f"p{i}"
        room.players[pid] = Player(id=pid, name=pid)
        room.order.append(pid)
    return room


def _walk(room: Room, start: str) -> list[str]:
    seen = [start]
    cur = room.players[start].target_id
    while cur != start and len(seen) <= len(room.players):
        seen.append(cur)
        cur = room.players[cur].target_id
    return seen


@pytest.mark.parametrize("n", [3, 4, 5, 8, 12])
@pytest.mark.parametrize("seed", [0, 1, 2, 99])
def test_targets_form_single_cycle(n, seed):
    room = _room(n)
    assign_targets(room, random.Random(seed))

    assert sorted(room.order) == sorted(room.players)
    assert chain_is_cycle(room)
    for pid, p in room.players.items():
        assert p.target_id != pid
        assert sorted(_walk(room, pid)) == sorted(room.players)


def test_target_is_next_in_shuffled_order():
    room = _room(5)
    assign_targets(room, random.Random(3))
    for idx, pid in enumerate(room.order):
        assert room.players[pid].target_id == room.order[(idx + 1) % 5]


def test_three_players_make_a_three_cycle():
    room = _room(3)
    assign_targets(room, random.Random(42))
    a, b, c = (room.players[p] for p in ("p0", "p1", "p2"))
    assert (a.target_id, b.target_id, c.target_id) in {("p1", "p2", "p0"), ("p2", "p0", "p1")}


def test_too_few_players_reports_missing_count():
    room = _room(2)
    before = list(room.order)
    with pytest.raises(InsufficientPlayers) as info:
        assign_targets(room, random.Random(0))
    assert info.value.missing == 1
    assert room.order == before
    assert all(p.target_id == "" for p in room.players.values())


def test_unlink_splices_chain_and_resets_predecessor():
    room = _room(4)
    room.order = ["p0", "p1", "p2", "p3"]
    for idx, pid in enumerate(room.order):
        room.players[pid].target_id = room.order[(idx + 1) % 4]
    for p in room.players.values():
        p.has_submitted_assignment = True

    pred = unlink_player(room, "p1")
    del room.players["p1"]
    room.order.remove("p1")

    assert pred == "p0"
    assert room.players["p0"].target_id == "p2"
    assert room.players["p0"].has_submitted_assignment is False
    # p1 had already named p2; that identity goes with them.
    assert room.players["p2"].assigned_identity is None
    assert chain_is_cycle(room)


def test_chain_is_cycle_rejects_sub_cycles():
    room = _room(4)
    room.players["p0"].target_id = "p1"
    room.players["p1"].target_id = "p0"
    room.players["p2"].target_id = "p3"
    room.players["p3"].target_id = "p2"
    assert not chain_is_cycle(room)
