import copy
import itertools
import json

import pytest

from skull_king.bonuses import BonusKind
from skull_king.config import GameConfig
from skull_king.engine import GameEngine
from skull_king.errors import SnapshotError, ValidationError
from skull_king.snapshot import from_snapshot, to_snapshot
from skull_king.state import GamePhase, RoundInput


def _make_played_engine(max_rounds: int = 5) -> GameEngine:
    counter = itertools.count(1)
    engine = GameEngine(
        config=GameConfig(max_rounds=max_rounds),
        id_factory=lambda: f"p{next(counter)}",
    )
    engine.add_player("Anne")
    engine.add_player("Bonny")
    engine.start_game()
    engine.commit_round(
        {
            "p1": RoundInput(
                bid=1,
                tricks_won=1,
                bonuses=frozenset(
                    {BonusKind.SKULL_KING_CAPTURED_BY_MERMAID, BonusKind.YELLOW_14}
                ),
            ),
        }
    )
    engine.advance_round()
    engine.commit_round({"p2": RoundInput(bid=2, tricks_won=1)})
    return engine


def test_snapshot_layout():
    data = _make_played_engine().snapshot()

    assert data["version"] == 1
    assert data["max_rounds"] == 5
    assert data["current_round"] == 2
    assert data["game_started"] is True
    assert data["game_ended"] is False

    anne = data["players"][0]
    assert anne == {
        "id": "p1",
        "name": "Anne",
        "bids": [1, 0],
        "tricks_won": [1, 0],
        "bonuses": [["yellow14", "skullKingCapturedByMermaid"], []],
        "scores": [70, 20],
    }


def test_snapshot_round_trips_through_json():
    engine = _make_played_engine()
    data = json.loads(json.dumps(engine.snapshot()))

    restored = GameEngine.from_snapshot(data)
    assert restored.phase == GamePhase.IN_PROGRESS
    assert restored.current_round == 2
    assert restored.max_rounds == 5
    assert restored.players == engine.players
    assert restored.snapshot() == engine.snapshot()

    # The restored game keeps going where it left off.
    restored.advance_round()
    assert restored.current_round == 3


def test_snapshot_of_setup_and_ended_games():
    engine = GameEngine()
    engine.add_player("Solo")
    state = from_snapshot(engine.snapshot())
    assert state.phase == GamePhase.SETUP
    assert [p.name for p in state.players] == ["Solo"]

    engine = _make_played_engine(max_rounds=2)
    engine.advance_round()
    assert engine.game_ended
    state = from_snapshot(to_snapshot(engine.state))
    assert state.phase == GamePhase.ENDED
    assert state.game_started and state.game_ended


def test_restore_adopts_snapshot_max_rounds():
    data = _make_played_engine(max_rounds=7).snapshot()
    engine = GameEngine()
    engine.restore(data)
    assert engine.max_rounds == 7
    assert engine.config.max_rounds == 7

    engine.reset_game()
    assert engine.max_rounds == 7


def _corrupt(mutate):
    data = copy.deepcopy(_make_played_engine().snapshot())
    mutate(data)
    return data


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.update(version=2),
        lambda d: d.pop("version"),
        lambda d: d.update(extra="field"),
        lambda d: d.update(current_round=6),
        lambda d: d.update(current_round=4),
        lambda d: d.update(game_started=False),
        lambda d: d.update(game_ended=True),
        lambda d: d.update(max_rounds="5"),
        lambda d: d["players"][0].update(bids=[1]),
        lambda d: d["players"][0].update(bids=[1, -1]),
        lambda d: d["players"][0].update(bids=[True, 0]),
        lambda d: d["players"][0].update(scores=[70, 30]),
        lambda d: d["players"][0].update(name="   "),
        lambda d: d["players"][0].update(bonuses=[["yellow14", "yellow14"], []]),
        lambda d: d["players"][0].update(bonuses=[["rainbow14"], []]),
        lambda d: d["players"][1].update(id="p1"),
        lambda d: d["players"].pop(),
        lambda d: d["players"][1].pop("name"),
        lambda d: d["players"][0].update(
            bids=[7, 0], tricks_won=[7, 0], bonuses=[[], []], scores=[140, 20]
        ),
        lambda d: d["players"][1].update(tricks_won=[0, 3], scores=[10, -10]),
    ],
)
def test_corrupt_snapshots_are_rejected(mutate):
    with pytest.raises(SnapshotError):
        from_snapshot(_corrupt(mutate))


@pytest.mark.parametrize("data", [None, "game", [], 42])
def test_non_mapping_snapshots_are_rejected(data):
    with pytest.raises(SnapshotError):
        from_snapshot(data)


def test_snapshot_error_is_a_validation_error():
    assert issubclass(SnapshotError, ValidationError)


def test_snapshot_player_limit_follows_config():
    data = _make_played_engine().snapshot()
    with pytest.raises(SnapshotError):
        from_snapshot(data, GameConfig(max_rounds=5, min_players=3))


def test_failed_restore_leaves_engine_untouched():
    engine = _make_played_engine()
    before = engine.snapshot()
    bad = copy.deepcopy(before)
    bad["players"][1]["scores"] = [10, 999]

    with pytest.raises(SnapshotError):
        engine.restore(bad)
    assert engine.snapshot() == before


def test_hand_limits_on_restore_follow_config():
    data = _make_played_engine().snapshot()
    data["players"][0].update(
        bids=[7, 0], tricks_won=[7, 0], bonuses=[[], []], scores=[140, 20]
    )

    with pytest.raises(SnapshotError):
        from_snapshot(data)

    state = from_snapshot(data, GameConfig(max_rounds=5, enforce_hand_limits=False))
    assert state.players[0].bids == [7, 0]
    assert state.players[0].scores == [140, 20]
