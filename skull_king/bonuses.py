from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List
import enum

from .errors import ValidationError


class BonusKind(enum.Enum):
    YELLOW_14 = "yellow14"
    GREEN_14 = "green14"
    PURPLE_14 = "purple14"
    BLACK_14 = "black14"
    MERMAID_CAPTURED_BY_PIRATE = "mermaidCapturedByPirate"
    PIRATE_CAPTURED_BY_SKULL_KING = "pirateCapturedBySkullKing"
    SKULL_KING_CAPTURED_BY_MERMAID = "skullKingCapturedByMermaid"

    @property
    def points(self) -> int:
        return BONUS_POINTS[self]

    @property
    def label(self) -> str:
        return BONUS_LABELS[self]

    def __str__(self) -> str:
        return f"{self.label} (+{self.points})"


BONUS_POINTS: Dict[BonusKind, int] = {
    BonusKind.YELLOW_14: 10,
    BonusKind.GREEN_14: 10,
    BonusKind.PURPLE_14: 10,
    BonusKind.BLACK_14: 20,
    BonusKind.MERMAID_CAPTURED_BY_PIRATE: 20,
    BonusKind.PIRATE_CAPTURED_BY_SKULL_KING: 30,
    BonusKind.SKULL_KING_CAPTURED_BY_MERMAID: 40,
}

BONUS_LABELS: Dict[BonusKind, str] = {
    BonusKind.YELLOW_14: "Yellow 14",
    BonusKind.GREEN_14: "Green 14",
    BonusKind.PURPLE_14: "Purple 14",
    BonusKind.BLACK_14: "Black 14/Jolly Roger",
    BonusKind.MERMAID_CAPTURED_BY_PIRATE: "Mermaid captured by Pirate",
    BonusKind.PIRATE_CAPTURED_BY_SKULL_KING: "Pirate captured by Skull King",
    BonusKind.SKULL_KING_CAPTURED_BY_MERMAID: "Skull King captured by Mermaid",
}


def parse_bonus(value: BonusKind | str) -> BonusKind:
    """Accept a BonusKind or its string value (e.g. "yellow14")."""
    if isinstance(value, BonusKind):
        return value
    try:
        return BonusKind(value)
    except ValueError:
        raise ValidationError(f"Unknown bonus kind: {value!r}") from None


def parse_bonuses(values: Iterable[BonusKind | str]) -> FrozenSet[BonusKind]:
    """
    Convert a collection of bonus selections into a frozenset.

    A bonus can be claimed at most once per round, so repeated entries in a
    list-like input are rejected instead of being collapsed.
    """
    kinds: List[BonusKind] = [parse_bonus(v) for v in values]
    selected = frozenset(kinds)
    if len(selected) != len(kinds):
        raise ValidationError("A bonus may only be selected once per round")
    return selected


def bonuses_to_list(bonuses: Iterable[BonusKind]) -> List[str]:
    """JSON-friendly form, in catalog order so output is deterministic."""
    chosen = set(bonuses)
    return [kind.value for kind in BonusKind if kind in chosen]
