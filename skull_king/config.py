from __future__ import annotations

from dataclasses import dataclass

from .errors import ValidationError

# Game-wide defaults. The original table game deals one card in round 1 and
# ten cards in round 10.
DEFAULT_MAX_ROUNDS = 10
MIN_PLAYERS = 2
MAX_PLAYERS = 10

# Bumped whenever the snapshot layout changes incompatibly.
SNAPSHOT_VERSION = 1


@dataclass(frozen=True)
class GameConfig:
    """
    Per-game settings.

    - max_rounds: number of rounds before the game ends.
    - min_players / max_players: roster bounds checked during setup.
    - enforce_hand_limits: reject bids or tricks larger than the number of
      cards dealt in the current round.
    """

    max_rounds: int = DEFAULT_MAX_ROUNDS
    min_players: int = MIN_PLAYERS
    max_players: int = MAX_PLAYERS
    enforce_hand_limits: bool = True

    def __post_init__(self) -> None:
        for name in ("max_rounds", "min_players", "max_players"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"{name} must be an integer, got {value!r}")
        if self.max_rounds < 1:
            raise ValidationError("max_rounds must be a positive integer")
        if self.min_players < 1:
            raise ValidationError("min_players must be at least 1")
        if self.max_players < self.min_players:
            raise ValidationError("max_players must not be smaller than min_players")
