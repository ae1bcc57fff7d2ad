from .bonuses import BONUS_POINTS, BonusKind
from .config import GameConfig
from .engine import GameEngine, create_game
from .errors import (
    PreconditionError,
    ScorekeeperError,
    SnapshotError,
    ValidationError,
)
from .game_log import rank_label, score_table
from .rules import score_round
from .state import GamePhase, PlayerState, RankedPlayer, RoundInput, RoundRecord

__all__ = [
    "BONUS_POINTS",
    "BonusKind",
    "GameConfig",
    "GameEngine",
    "GamePhase",
    "PlayerState",
    "PreconditionError",
    "RankedPlayer",
    "RoundInput",
    "RoundRecord",
    "ScorekeeperError",
    "SnapshotError",
    "ValidationError",
    "create_game",
    "rank_label",
    "score_round",
    "score_table",
]
