from __future__ import annotations

import copy
import dataclasses
import logging
import threading
import uuid
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .config import GameConfig
from .errors import PreconditionError, ValidationError
from .rules import rank_players, score_history, score_round
from .snapshot import from_snapshot, to_snapshot
from .state import (
    GamePhase,
    GameState,
    PlayerState,
    RankedPlayer,
    RoundInput,
    RoundRecord,
)

logger = logging.getLogger(__name__)

PlayerRef = Union[PlayerState, str]


def _new_player_id() -> str:
    return uuid.uuid4().hex


class GameEngine:
    """
    Drives a Skull King scoresheet from setup through the final ranking.

    This module is *pure* bookkeeping: no storage, no UI. A caller stages each
    player's bid, tricks and bonuses, submits them with `commit_round`, then
    moves on with `advance_round`. Every mutating call is all-or-nothing and
    runs under a single lock around the whole game state; accessors read under
    the same lock and hand out copies.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.config = config or GameConfig()
        self._id_factory = id_factory or _new_player_id
        self._lock = threading.RLock()
        self._state = GameState(max_rounds=self.config.max_rounds)

    # -------------------------------------------------------------------------
    # Read-only accessors
    #
    # Everything handed out here is a copy; the engine's own state only
    # changes through the mutating calls below.
    # -------------------------------------------------------------------------

    @property
    def state(self) -> GameState:
        with self._lock:
            return copy.deepcopy(self._state)

    @property
    def phase(self) -> GamePhase:
        return self._state.phase

    @property
    def players(self) -> List[PlayerState]:
        with self._lock:
            return [copy.deepcopy(p) for p in self._state.players]

    @property
    def current_round(self) -> int:
        return self._state.current_round

    @property
    def max_rounds(self) -> int:
        return self._state.max_rounds

    @property
    def game_started(self) -> bool:
        return self._state.game_started

    @property
    def game_ended(self) -> bool:
        return self._state.game_ended

    @property
    def cards_per_player(self) -> int:
        """Round N deals N cards to each player."""
        return self._state.current_round

    @property
    def is_final_round(self) -> bool:
        with self._lock:
            return self._state.current_round == self._state.max_rounds

    @property
    def can_add_player(self) -> bool:
        with self._lock:
            return (
                self._state.phase == GamePhase.SETUP
                and self._state.num_players < self.config.max_players
            )

    @property
    def can_start(self) -> bool:
        with self._lock:
            return (
                self._state.phase == GamePhase.SETUP
                and self._state.num_players >= self.config.min_players
            )

    def get_player(self, player_id: str) -> PlayerState:
        with self._lock:
            return copy.deepcopy(self._find_player(player_id))

    def round_record(self, player_id: str, round_number: int) -> RoundRecord:
        """Return what was recorded for `player_id` in the given 1-based round."""
        with self._lock:
            player = self._find_player(player_id)
            if not 1 <= round_number <= player.rounds_recorded:
                raise ValidationError(
                    f"Round {round_number} has not been recorded for {player.name}"
                )
            idx = round_number - 1
            return RoundRecord(
                bid=player.bids[idx],
                tricks_won=player.tricks_won[idx],
                bonuses=player.bonuses[idx],
                score=player.scores[idx],
            )

    def current_round_inputs(self) -> Dict[str, RoundInput]:
        """
        Inputs a UI should pre-fill for the current round: whatever was
        already committed for it, otherwise zero bid, zero tricks, no bonuses.
        """
        with self._lock:
            round_number = self._state.current_round
            inputs: Dict[str, RoundInput] = {}
            for player in self._state.players:
                if player.rounds_recorded >= round_number:
                    inputs[player.id] = player.round_input(round_number)
                else:
                    inputs[player.id] = RoundInput()
            return inputs

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def add_player(self, name: str) -> PlayerState:
        with self._lock:
            self._require_phase(GamePhase.SETUP, "add a player")
            clean_name = (name or "").strip()
            if not clean_name:
                raise ValidationError("Player name must not be empty")
            if self._state.num_players >= self.config.max_players:
                raise ValidationError(
                    f"Roster is full ({self.config.max_players} players)"
                )

            existing = {p.id for p in self._state.players}
            player_id = self._id_factory()
            while player_id in existing:
                player_id = self._id_factory()

            player = PlayerState(id=player_id, name=clean_name)
            self._state.players.append(player)
            logger.info("Added player %s (%s)", clean_name, player_id)
            return copy.deepcopy(player)

    def remove_player(self, player_id: str) -> None:
        with self._lock:
            self._require_phase(GamePhase.SETUP, "remove a player")
            remaining = [p for p in self._state.players if p.id != player_id]
            if len(remaining) == self._state.num_players:
                logger.debug("No player with id %s to remove", player_id)
                return
            self._state.players = remaining
            logger.info("Removed player %s", player_id)

    def start_game(self) -> None:
        with self._lock:
            self._require_phase(GamePhase.SETUP, "start the game")
            if self._state.num_players < self.config.min_players:
                raise PreconditionError(
                    f"At least {self.config.min_players} players are needed "
                    f"to start; have {self._state.num_players}"
                )
            self._state.current_round = 1
            self._state.phase = GamePhase.IN_PROGRESS
            logger.info(
                "Started game with %d players over %d rounds",
                self._state.num_players,
                self._state.max_rounds,
            )

    # -------------------------------------------------------------------------
    # Round lifecycle
    # -------------------------------------------------------------------------

    def commit_round(
        self,
        inputs: Optional[Mapping[str, Union[RoundInput, Mapping[str, Any]]]] = None,
    ) -> None:
        """
        Record the current round for every player and rescore them.

        Players missing from `inputs` are recorded as bid 0, no tricks and no
        bonuses. Committing the same round again overwrites that round only.
        """
        with self._lock:
            self._require_phase(GamePhase.IN_PROGRESS, "commit a round")
            staged = self._stage_inputs(inputs or {})
            self._write_round(staged, self._state.players)
            logger.info(
                "Committed round %d/%d",
                self._state.current_round,
                self._state.max_rounds,
            )

    def advance_round(self) -> None:
        with self._lock:
            self._require_phase(GamePhase.IN_PROGRESS, "advance the round")
            round_number = self._state.current_round

            missing = [
                p for p in self._state.players if p.rounds_recorded < round_number
            ]
            if missing:
                logger.info(
                    "Round %d was not committed for %d player(s); "
                    "recording defaults",
                    round_number,
                    len(missing),
                )
                self._write_round({p.id: RoundInput() for p in missing}, missing)

            if round_number < self._state.max_rounds:
                self._state.current_round = round_number + 1
                logger.info(
                    "Advanced to round %d/%d",
                    self._state.current_round,
                    self._state.max_rounds,
                )
            else:
                self._state.phase = GamePhase.ENDED
                logger.info("Game ended after round %d", round_number)

    def reset_game(self) -> None:
        with self._lock:
            self._state = GameState(max_rounds=self.config.max_rounds)
            logger.info("Reset game")

    def preview_score(self, round_input: Union[RoundInput, Mapping[str, Any]]) -> int:
        """Score `round_input` as if it were committed for the current round."""
        staged = self._coerce_input(round_input)
        with self._lock:
            round_number = self._state.current_round
        return score_round(
            staged.bid,
            staged.tricks_won,
            round_number,
            staged.bonuses,
        )

    # -------------------------------------------------------------------------
    # Scores and ranking
    # -------------------------------------------------------------------------

    def total_score(self, player: PlayerRef) -> int:
        if isinstance(player, str):
            with self._lock:
                return self._find_player(player).total_score
        return player.total_score

    def ranked_players(self) -> List[RankedPlayer]:
        """
        Players ordered by total score, best first.

        Ties keep roster order and still get distinct ranks (1, 2, 3, ...).
        """
        with self._lock:
            return [
                dataclasses.replace(entry, player=copy.deepcopy(entry.player))
                for entry in rank_players(self._state)
            ]

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Return a JSON-compatible snapshot of the whole game."""
        with self._lock:
            return to_snapshot(self._state)

    def restore(self, data: Mapping[str, Any]) -> None:
        """Replace the current game with a validated snapshot."""
        with self._lock:
            state = from_snapshot(data, self.config)
            if state.max_rounds != self.config.max_rounds:
                self.config = dataclasses.replace(
                    self.config, max_rounds=state.max_rounds
                )
            self._state = state
            logger.info(
                "Restored %s game with %d players at round %d/%d",
                state.phase.value,
                state.num_players,
                state.current_round,
                state.max_rounds,
            )

    @classmethod
    def from_snapshot(
        cls,
        data: Mapping[str, Any],
        config: Optional[GameConfig] = None,
    ) -> "GameEngine":
        engine = cls(config=config)
        engine.restore(data)
        return engine

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _find_player(self, player_id: str) -> PlayerState:
        for player in self._state.players:
            if player.id == player_id:
                return player
        raise ValidationError(f"Unknown player id: {player_id!r}")

    def _require_phase(self, phase: GamePhase, action: str) -> None:
        if self._state.phase != phase:
            raise PreconditionError(
                f"Cannot {action} while the game is in phase "
                f"{self._state.phase.value!r}"
            )

    @staticmethod
    def _coerce_input(value: Union[RoundInput, Mapping[str, Any]]) -> RoundInput:
        if isinstance(value, RoundInput):
            return value
        if isinstance(value, Mapping):
            try:
                return RoundInput(**value)
            except TypeError as exc:
                raise ValidationError(f"Malformed round input: {exc}") from exc
        raise ValidationError(f"Malformed round input: {value!r}")

    def _stage_inputs(
        self,
        inputs: Mapping[str, Union[RoundInput, Mapping[str, Any]]],
    ) -> Dict[str, RoundInput]:
        """Validate every input up front so a bad entry leaves state untouched."""
        roster = {p.id for p in self._state.players}
        unknown = [pid for pid in inputs if pid not in roster]
        if unknown:
            raise ValidationError(
                "Unknown player id(s): " + ", ".join(str(pid) for pid in unknown)
            )

        staged: Dict[str, RoundInput] = {}
        hand_size = self._state.current_round
        for player in self._state.players:
            raw = inputs.get(player.id)
            round_input = RoundInput() if raw is None else self._coerce_input(raw)
            if self.config.enforce_hand_limits:
                if round_input.bid > hand_size:
                    raise ValidationError(
                        f"{player.name} bid {round_input.bid} but only "
                        f"{hand_size} card(s) were dealt"
                    )
                if round_input.tricks_won > hand_size:
                    raise ValidationError(
                        f"{player.name} won {round_input.tricks_won} tricks but "
                        f"only {hand_size} were played"
                    )
            staged[player.id] = round_input
        return staged

    def _write_round(
        self,
        staged: Mapping[str, RoundInput],
        players: List[PlayerState],
    ) -> None:
        idx = self._state.current_round - 1

        # Build every player's new sequences before touching any of them.
        updates = []
        for player in players:
            round_input = staged[player.id]
            bids = list(player.bids)
            tricks_won = list(player.tricks_won)
            bonuses = list(player.bonuses)
            if idx < len(bids):
                bids[idx] = round_input.bid
                tricks_won[idx] = round_input.tricks_won
                bonuses[idx] = round_input.bonuses
            else:
                bids.append(round_input.bid)
                tricks_won.append(round_input.tricks_won)
                bonuses.append(round_input.bonuses)
            scores = score_history(bids, tricks_won, bonuses)
            updates.append((player, bids, tricks_won, bonuses, scores))

        for player, bids, tricks_won, bonuses, scores in updates:
            player.bids = bids
            player.tricks_won = tricks_won
            player.bonuses = bonuses
            player.scores = scores
            logger.debug(
                "Rescored %s: %s (total %d)", player.name, scores, sum(scores)
            )


def create_game(
    max_rounds: Optional[int] = None,
    config: Optional[GameConfig] = None,
) -> GameEngine:
    """
    Create an empty game in the setup phase.

    `max_rounds` defaults to the config value (DEFAULT_MAX_ROUNDS unless a
    config says otherwise).
    """
    if config is None:
        config = GameConfig()
    if max_rounds is not None and config.max_rounds != max_rounds:
        config = dataclasses.replace(config, max_rounds=max_rounds)
    return GameEngine(config=config)
