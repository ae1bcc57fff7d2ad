from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List
import enum

from .bonuses import BonusKind, parse_bonuses
from .config import DEFAULT_MAX_ROUNDS
from .errors import ValidationError


class GamePhase(enum.Enum):
    SETUP = "setup"
    IN_PROGRESS = "in_progress"
    ENDED = "ended"


def _check_count(value: int, what: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{what} must be an integer, got {value!r}")
    if value < 0:
        raise ValidationError(f"{what} must not be negative, got {value}")


@dataclass(frozen=True)
class RoundInput:
    """
    One player's staged input for a round.

    `bonuses` accepts BonusKind members or their string values and is stored
    as a frozenset.
    """
    bid: int = 0
    tricks_won: int = 0
    bonuses: FrozenSet[BonusKind] = frozenset()

    def __post_init__(self) -> None:
        _check_count(self.bid, "bid")
        _check_count(self.tricks_won, "tricks_won")
        object.__setattr__(self, "bonuses", parse_bonuses(self.bonuses))


@dataclass(frozen=True)
class RoundRecord:
    """A recorded round for one player, score included."""
    bid: int
    tricks_won: int
    bonuses: FrozenSet[BonusKind]
    score: int


@dataclass
class PlayerState:
    id: str
    name: str
    # Parallel per-round sequences; index 0 is round 1.
    bids: List[int] = field(default_factory=list)
    tricks_won: List[int] = field(default_factory=list)
    bonuses: List[FrozenSet[BonusKind]] = field(default_factory=list)
    scores: List[int] = field(default_factory=list)

    @property
    def rounds_recorded(self) -> int:
        return len(self.bids)

    @property
    def total_score(self) -> int:
        return sum(self.scores)

    def round_input(self, round_number: int) -> RoundInput:
        idx = round_number - 1
        return RoundInput(
            bid=self.bids[idx],
            tricks_won=self.tricks_won[idx],
            bonuses=self.bonuses[idx],
        )

    def iter_inputs(self) -> Iterable[RoundInput]:
        for round_number in range(1, self.rounds_recorded + 1):
            yield self.round_input(round_number)


@dataclass(frozen=True)
class RankedPlayer:
    player: PlayerState
    total_score: int
    rank: int


@dataclass
class GameState:
    players: List[PlayerState] = field(default_factory=list)
    max_rounds: int = DEFAULT_MAX_ROUNDS
    current_round: int = 1
    phase: GamePhase = GamePhase.SETUP

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def game_started(self) -> bool:
        return self.phase != GamePhase.SETUP

    @property
    def game_ended(self) -> bool:
        return self.phase == GamePhase.ENDED
