from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from .bonuses import bonuses_to_list
from .rules import rank_players
from .state import GameState

FIELDNAMES = [
    "round_number",
    "cards_per_player",
    "player_id",
    "player_name",
    "bid",
    "tricks_won",
    "bonuses",
    "round_score",
    "total_score",
]

_MEDALS = {1: "\U0001f947", 2: "\U0001f948", 3: "\U0001f949"}


def rank_label(rank: int) -> str:
    """Medal for the podium, "N." for everyone else."""
    return _MEDALS.get(rank, f"{rank}.")


def build_round_score_rows(game_state: GameState) -> List[Dict[str, Any]]:
    """
    Build one row per (round, player) for a score table.

    Rows come out round by round in roster order. `total_score` is the running
    total after that round. Rounds that have not been recorded yet produce no
    rows, so a game in progress can still be tabulated.
    """
    rows: List[Dict[str, Any]] = []
    running: Dict[str, int] = {p.id: 0 for p in game_state.players}
    rounds = max((p.rounds_recorded for p in game_state.players), default=0)

    for idx in range(rounds):
        for p in game_state.players:
            if idx >= p.rounds_recorded:
                continue
            running[p.id] += p.scores[idx]
            rows.append(
                {
                    "round_number": idx + 1,
                    "cards_per_player": idx + 1,
                    "player_id": p.id,
                    "player_name": p.name,
                    "bid": p.bids[idx],
                    "tricks_won": p.tricks_won[idx],
                    "bonuses": bonuses_to_list(p.bonuses[idx]),
                    "round_score": p.scores[idx],
                    "total_score": running[p.id],
                }
            )
    return rows


def score_table(game_state: GameState) -> pd.DataFrame:
    """
    Wide score table: one row per player in ranking order, one column per
    recorded round ("R1", "R2", ...) plus "total", "rank" and "rank_label".
    """
    rounds = max((p.rounds_recorded for p in game_state.players), default=0)
    round_columns = [f"R{i}" for i in range(1, rounds + 1)]
    columns = ["player_id", "player_name"] + round_columns + [
        "total",
        "rank",
        "rank_label",
    ]

    records = []
    for entry in rank_players(game_state):
        p = entry.player
        record: Dict[str, Any] = {"player_id": p.id, "player_name": p.name}
        for idx, column in enumerate(round_columns):
            record[column] = p.scores[idx] if idx < p.rounds_recorded else None
        record["total"] = entry.total_score
        record["rank"] = entry.rank
        record["rank_label"] = rank_label(entry.rank)
        records.append(record)

    return pd.DataFrame.from_records(records, columns=columns)


def round_scores_frame(game_state: GameState) -> pd.DataFrame:
    """Long-format DataFrame of build_round_score_rows, columns in FIELDNAMES order."""
    rows = build_round_score_rows(game_state)
    return pd.DataFrame.from_records(rows, columns=FIELDNAMES)
