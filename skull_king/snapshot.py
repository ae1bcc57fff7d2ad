"""
Versioned snapshot of a scoresheet.

A snapshot is a plain, JSON-compatible dict that a storage layer can keep and
hand back later. Restoring validates the layout with pydantic and then checks
the game invariants, so a corrupt or foreign payload is rejected with a
SnapshotError instead of being adopted.

Layout (version 1):

    {
        "version": 1,
        "max_rounds": 10,
        "current_round": 3,
        "game_started": true,
        "game_ended": false,
        "players": [
            {
                "id": "...",
                "name": "Anne",
                "bids": [1, 0],
                "tricks_won": [1, 0],
                "bonuses": [["yellow14"], []],
                "scores": [30, 20]
            }
        ]
    }
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt
from pydantic import ValidationError as PydanticValidationError
from pydantic import field_validator, model_validator

from .bonuses import BonusKind, bonuses_to_list
from .config import SNAPSHOT_VERSION, GameConfig
from .errors import SnapshotError
from .rules import score_history
from .state import GamePhase, GameState, PlayerState

Count = Annotated[StrictInt, Field(ge=0)]


class PlayerSnapshot(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    bids: List[Count] = Field(default_factory=list)
    tricks_won: List[Count] = Field(default_factory=list)
    bonuses: List[List[BonusKind]] = Field(default_factory=list)
    scores: List[StrictInt] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("player name must not be blank")
        return value

    @field_validator("bonuses")
    @classmethod
    def _no_repeated_bonus(cls, value: List[List[BonusKind]]) -> List[List[BonusKind]]:
        for idx, selected in enumerate(value):
            if len(set(selected)) != len(selected):
                raise ValueError(f"round {idx + 1} lists the same bonus twice")
        return value

    @model_validator(mode="after")
    def _parallel_sequences(self) -> "PlayerSnapshot":
        lengths = {
            len(self.bids),
            len(self.tricks_won),
            len(self.bonuses),
            len(self.scores),
        }
        if len(lengths) != 1:
            raise ValueError(
                f"player {self.id}: bids, tricks_won, bonuses and scores "
                "must have the same length"
            )
        return self

    @property
    def rounds_recorded(self) -> int:
        return len(self.bids)


class GameSnapshot(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: StrictInt
    max_rounds: StrictInt = Field(ge=1)
    current_round: StrictInt = Field(ge=1)
    game_started: StrictBool
    game_ended: StrictBool
    players: List[PlayerSnapshot] = Field(default_factory=list)

    @field_validator("version")
    @classmethod
    def _supported_version(cls, value: int) -> int:
        if value != SNAPSHOT_VERSION:
            raise ValueError(
                f"unsupported snapshot version {value} "
                f"(expected {SNAPSHOT_VERSION})"
            )
        return value

    @model_validator(mode="after")
    def _game_invariants(self) -> "GameSnapshot":
        if self.current_round > self.max_rounds:
            raise ValueError("current_round exceeds max_rounds")
        if self.game_ended and not self.game_started:
            raise ValueError("game_ended requires game_started")

        ids = [p.id for p in self.players]
        if len(set(ids)) != len(ids):
            raise ValueError("player ids must be unique")

        recorded = {p.rounds_recorded for p in self.players}
        if len(recorded) > 1:
            raise ValueError("players have different numbers of recorded rounds")
        rounds = recorded.pop() if recorded else 0

        if not self.game_started:
            if self.current_round != 1 or rounds:
                raise ValueError("a game in setup cannot have recorded rounds")
        elif self.game_ended:
            if self.current_round != self.max_rounds or rounds != self.max_rounds:
                raise ValueError(
                    "an ended game must have every round up to max_rounds recorded"
                )
        elif rounds not in (self.current_round - 1, self.current_round):
            raise ValueError(
                f"{rounds} recorded round(s) do not fit current_round "
                f"{self.current_round}"
            )
        return self


def to_snapshot(state: GameState) -> Dict[str, Any]:
    """Serialize `state` into a versioned, JSON-compatible dict."""
    snapshot = GameSnapshot(
        version=SNAPSHOT_VERSION,
        max_rounds=state.max_rounds,
        current_round=state.current_round,
        game_started=state.game_started,
        game_ended=state.game_ended,
        players=[
            PlayerSnapshot(
                id=p.id,
                name=p.name,
                bids=list(p.bids),
                tricks_won=list(p.tricks_won),
                bonuses=[
                    [BonusKind(v) for v in bonuses_to_list(selected)]
                    for selected in p.bonuses
                ],
                scores=list(p.scores),
            )
            for p in state.players
        ],
    )
    return snapshot.model_dump(mode="json")


def from_snapshot(
    data: Mapping[str, Any],
    config: Optional[GameConfig] = None,
) -> GameState:
    """
    Rebuild a GameState from a snapshot dict.

    Raises SnapshotError when the payload does not match the schema, has an
    unsupported version, breaks a game invariant, records a bid or trick
    count larger than the hand when `config.enforce_hand_limits` is set, or
    stores scores that do not match its own bids and tricks.
    """
    config = config or GameConfig()
    try:
        snapshot = GameSnapshot.model_validate(data)
    except PydanticValidationError as exc:
        raise SnapshotError(f"Invalid snapshot: {exc}") from exc

    if len(snapshot.players) > config.max_players:
        raise SnapshotError(
            f"Snapshot has {len(snapshot.players)} players; "
            f"at most {config.max_players} are allowed"
        )
    if snapshot.game_started and len(snapshot.players) < config.min_players:
        raise SnapshotError(
            f"A started game needs at least {config.min_players} players"
        )

    players: List[PlayerState] = []
    for p in snapshot.players:
        if config.enforce_hand_limits:
            for idx, (bid, won) in enumerate(zip(p.bids, p.tricks_won)):
                hand_size = idx + 1
                if bid > hand_size or won > hand_size:
                    raise SnapshotError(
                        f"Player {p.id} round {hand_size}: bid {bid} / "
                        f"tricks {won} exceed the {hand_size} card(s) dealt"
                    )
        bonuses = [frozenset(selected) for selected in p.bonuses]
        expected = score_history(p.bids, p.tricks_won, bonuses)
        if expected != p.scores:
            raise SnapshotError(
                f"Stored scores for player {p.id} {p.scores} do not match "
                f"the recorded rounds {expected}"
            )
        players.append(
            PlayerState(
                id=p.id,
                name=p.name,
                bids=list(p.bids),
                tricks_won=list(p.tricks_won),
                bonuses=bonuses,
                scores=expected,
            )
        )

    if snapshot.game_ended:
        phase = GamePhase.ENDED
    elif snapshot.game_started:
        phase = GamePhase.IN_PROGRESS
    else:
        phase = GamePhase.SETUP

    return GameState(
        players=players,
        max_rounds=snapshot.max_rounds,
        current_round=snapshot.current_round,
        phase=phase,
    )
