import itertools

from skull_king.bonuses import BonusKind
from skull_king.config import GameConfig
from skull_king.engine import GameEngine
from skull_king.game_log import (
    FIELDNAMES,
    build_round_score_rows,
    rank_label,
    round_scores_frame,
    score_table,
)
from skull_king.state import RoundInput


def _make_sample_game() -> GameEngine:
    counter = itertools.count(1)
    engine = GameEngine(
        config=GameConfig(max_rounds=3),
        id_factory=lambda: f"p{next(counter)}",
    )
    engine.add_player("P1")
    engine.add_player("P2")
    engine.start_game()

    rounds = [
        {"p1": RoundInput(bid=1, tricks_won=1), "p2": RoundInput()},
        {
            "p1": RoundInput(bid=2, tricks_won=1),
            "p2": RoundInput(
                bid=1, tricks_won=1, bonuses=frozenset({BonusKind.YELLOW_14})
            ),
        },
        {"p1": RoundInput(), "p2": RoundInput(bid=3, tricks_won=0)},
    ]
    for inputs in rounds:
        engine.commit_round(inputs)
        engine.advance_round()
    return engine


def test_build_round_score_rows_running_totals():
    engine = _make_sample_game()
    rows = build_round_score_rows(engine.state)

    assert len(rows) == 3 * 2
    for row in rows:
        assert set(row) == set(FIELDNAMES)

    p1_rows = [r for r in rows if r["player_id"] == "p1"]
    assert [r["round_score"] for r in p1_rows] == [20, -10, 30]
    assert [r["total_score"] for r in p1_rows] == [20, 10, 40]
    assert [r["cards_per_player"] for r in p1_rows] == [1, 2, 3]

    p2_round_2 = rows[3]
    assert p2_round_2["player_name"] == "P2"
    assert p2_round_2["round_number"] == 2
    assert p2_round_2["bonuses"] == ["yellow14"]
    assert p2_round_2["total_score"] == 40

    # Final running totals match the engine's totals
    for p in engine.players:
        last = [r for r in rows if r["player_id"] == p.id][-1]
        assert last["total_score"] == engine.total_score(p)


def test_rows_for_a_game_without_rounds():
    engine = GameEngine()
    engine.add_player("A")
    assert build_round_score_rows(engine.state) == []

    frame = round_scores_frame(engine.state)
    assert frame.empty
    assert list(frame.columns) == FIELDNAMES


def test_round_scores_frame_matches_rows():
    engine = _make_sample_game()
    frame = round_scores_frame(engine.state)

    assert list(frame.columns) == FIELDNAMES
    assert len(frame) == 6
    totals = frame.groupby("player_name")["round_score"].sum()
    assert totals["P1"] == 40
    assert totals["P2"] == 10


def test_score_table_is_ranked():
    engine = _make_sample_game()
    table = score_table(engine.state)

    assert list(table.columns) == [
        "player_id",
        "player_name",
        "R1",
        "R2",
        "R3",
        "total",
        "rank",
        "rank_label",
    ]
    assert table["player_name"].tolist() == ["P1", "P2"]
    assert table["total"].tolist() == [40, 10]
    assert table["rank"].tolist() == [1, 2]
    assert table["R2"].tolist() == [-10, 30]
    assert table["rank_label"].tolist() == [rank_label(1), rank_label(2)]


def test_score_table_mid_game():
    counter = itertools.count(1)
    engine = GameEngine(id_factory=lambda: f"p{next(counter)}")
    engine.add_player("A")
    engine.add_player("B")
    engine.start_game()
    engine.commit_round({"p2": RoundInput(bid=1, tricks_won=1)})

    table = score_table(engine.state)
    assert [c for c in table.columns if c.startswith("R")] == ["R1"]
    assert table["player_name"].tolist() == ["B", "A"]


def test_rank_label():
    assert rank_label(1) == "\U0001f947"
    assert rank_label(2) == "\U0001f948"
    assert rank_label(3) == "\U0001f949"
    assert rank_label(4) == "4."
    assert rank_label(10) == "10."
