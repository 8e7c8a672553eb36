"""Information strategy: plays only on public deduction, hints by convention."""

from __future__ import annotations

import logging
from typing import Sequence

from ..errors import ConventionInvariantError, InvariantViolationError
from ..game import is_critical
from ..knowledge import CardPossibilityTable
from ..models import Action, Card, DiscardAction, HintAction, PlayAction, TurnLog
from ..visibility import OwnedView, PlayerView
from .base import Strategy, StrategyFactory
from .conventions import (
    BoardFacts,
    HintCandidate,
    HintInterpretation,
    PublicBeliefs,
    encode_candidates,
    view_facts,
)


logger = logging.getLogger(__name__)

# Usefulness of a hint that tells someone to play a card they did not know about
PLAY_HINT_VALUE = 10.0
# Anything scoring above this is a new play instruction; trash hints stay below
PLAY_HINT_THRESHOLD = PLAY_HINT_VALUE - 1.0
# Late-game guesses need at least this chance of success
RISKY_PLAY_THRESHOLD = 0.6


class InformationStrategy(Strategy):
    """
    Fair strategy built on the shared hint convention.

    Keeps a copy of the public beliefs for the whole table, updated from
    every turn. Never plays a card unless every identity it could still be
    is playable, except for late guesses when a fuse can be spared.
    """

    name = "info"

    def __init__(self, player: int, num_players: int):
        super().__init__(player, num_players)
        self.beliefs: PublicBeliefs | None = None
        self.interpretations: list[HintInterpretation] = []
        # Snapshot with our own last hint applied, checked against the engine
        self._pending_hint: tuple[HintAction, OwnedView] | None = None

    # -- bookkeeping -----------------------------------------------------

    def start(self, view: PlayerView) -> None:
        self.beliefs = PublicBeliefs([view.hand_size(p) for p in range(view.num_players)])

    def _ensure_beliefs(self, view: PlayerView) -> PublicBeliefs:
        if self.beliefs is None:
            self.beliefs = PublicBeliefs([view.hand_size(p) for p in range(view.num_players)])
        return self.beliefs

    def observe(self, turn: TurnLog, view: PlayerView) -> None:
        beliefs = self._ensure_beliefs(view)
        action = turn.action
        if isinstance(action, HintAction):
            interpretation = beliefs.apply_hint(
                turn.player,
                action,
                turn.result.positions_touched or [],
                view_facts(view),
                turn.turn_number,
            )
            self.interpretations.append(interpretation)
            if turn.player == self.player:
                self._check_pending_hint(action, view)
        else:
            if turn.result.card is None:
                raise InvariantViolationError(f"Turn {turn.turn_number} removed a card without revealing it")
            beliefs.reveal(turn.player, action.card_position, turn.result.card, turn.result.drew_card)

        for player in range(view.num_players):
            if len(beliefs.hand(player)) != view.hand_size(player):
                raise ConventionInvariantError(f"Beliefs for player {player} lost track of the hand")

    def _check_pending_hint(self, hint: HintAction, view: PlayerView) -> None:
        if self._pending_hint is None:
            return
        expected_hint, snapshot = self._pending_hint
        self._pending_hint = None
        if expected_hint != hint:
            return
        predicted = [k.model_dump() for k in snapshot.knowledge(hint.target_player)]
        actual = [k.model_dump() for k in view.knowledge(hint.target_player)]
        if predicted != actual:
            raise ConventionInvariantError(
                f"Hint to player {hint.target_player} did not update knowledge as simulated"
            )

    # -- own hand --------------------------------------------------------

    def _own_tables(self, view: PlayerView) -> list[CardPossibilityTable]:
        return self._ensure_beliefs(view).hand(self.player)

    def _sure_slots(self, view: PlayerView, facts: BoardFacts) -> tuple[list[int], list[int]]:
        """Own slots proven playable and proven dead, using unseen-card counts."""
        counts = view.remaining_counts()
        playable, dead = [], []
        for position, table in enumerate(self._own_tables(view)):
            if table.all_satisfy(lambda c: c in facts.playable, counts):
                playable.append(position)
            elif table.all_satisfy(lambda c: c in facts.dead, counts):
                dead.append(position)
        return playable, dead

    def _slot_value(self, card: Card, view: PlayerView, facts: BoardFacts, discarded) -> float:
        if card in facts.dead:
            return 0.0
        if is_critical(card, view.fireworks, discarded):
            return 10.0
        if card in facts.playable:
            return 2.0
        return 1.0

    def _chop(self, view: PlayerView, facts: BoardFacts) -> int:
        """Own slot whose loss is expected to hurt least (oldest on ties)."""
        counts = view.remaining_counts()
        discarded = view.discarded_counts()
        knowledge = view.own_slots()
        best_position, best_loss = 0, float("inf")
        for position, table in enumerate(self._own_tables(view)):
            weighted = table.weighted_possibilities(counts) or table.weighted_possibilities()
            total = sum(w for _, w in weighted)
            loss = sum(w * self._slot_value(c, view, facts, discarded) for c, w in weighted) / total
            if knowledge[position].times_hinted:
                loss += 0.5
            if loss < best_loss:
                best_position, best_loss = position, loss
        return best_position

    def _best_guess(self, view: PlayerView, facts: BoardFacts) -> tuple[int, float]:
        counts = view.remaining_counts()
        best = (0, -1.0)
        for position, table in enumerate(self._own_tables(view)):
            p = table.probability(lambda c: c in facts.playable, counts)
            if p > best[1]:
                best = (position, p)
        return best

    # -- hints -----------------------------------------------------------

    def _score_candidate(self, candidate: HintCandidate, view: PlayerView, facts: BoardFacts) -> float:
        beliefs = self._ensure_beliefs(view)
        interpretation = candidate.interpretation
        target = interpretation.target
        focus_status = beliefs.status(target, interpretation.focus, facts)
        offset = (target - self.player) % view.num_players

        if interpretation.message == "play":
            if focus_status == "play":
                return 0.0
            # Someone is already set to play this exact card
            for player in view.other_players():
                for position, card in enumerate(view.hand(player)):
                    if (player, position) == (target, interpretation.focus):
                        continue
                    if card == candidate.focus_card and beliefs.status(player, position, facts) == "play":
                        return 0.0
            score = PLAY_HINT_VALUE + (5 - candidate.focus_card.number) * 0.5
        else:
            if focus_status == "trash":
                return 0.0
            settled = any(
                beliefs.status(target, p, facts) is not None for p in range(len(beliefs.hand(target)))
            )
            score = 1.0 if settled else 3.0

        # Extra credit for other touched slots the literal content settles
        preview = beliefs.copy()
        preview.apply_hint(
            self.player, candidate.hint, interpretation.touched, facts, interpretation.turn_number
        )
        for position in interpretation.touched:
            if position == interpretation.focus:
                continue
            if beliefs.status(target, position, facts) is None and preview.status(target, position, facts):
                score += 1.0
        return score - 0.1 * offset

    def _ranked_hints(self, view: PlayerView, facts: BoardFacts) -> list[tuple[float, HintCandidate]]:
        candidates = encode_candidates(self.player, view, self._ensure_beliefs(view))
        scored = [(self._score_candidate(c, view, facts), c) for c in candidates]
        # Best score first, canonical order breaks ties
        scored.sort(key=lambda sc: (-sc[0], sc[1].interpretation.ordinal))
        return scored

    def _give(self, hint: HintAction, view: PlayerView) -> HintAction:
        snapshot = view.clone_to_owned()
        snapshot.note_hint(hint)
        self._pending_hint = (hint, snapshot)
        return hint

    # -- decision --------------------------------------------------------

    def decide(self, view: PlayerView, history: Sequence[TurnLog]) -> Action:
        facts = view_facts(view)
        playable, dead = self._sure_slots(view, facts)
        if playable:
            return PlayAction(card_position=playable[0])

        ranked = self._ranked_hints(view, facts) if view.hint_tokens > 0 else []
        best_score, best = ranked[0] if ranked else (0.0, None)

        if best is not None and best_score >= PLAY_HINT_THRESHOLD:
            logger.debug(f"Player {self.player} hints {best.hint} ({best.interpretation.message})")
            return self._give(best.hint, view)

        if dead and view.can_discard() and view.hint_tokens < view.max_hints:
            return DiscardAction(card_position=dead[0])

        if best is not None and best_score > 0:
            return self._give(best.hint, view)

        if view.deck_size == 0 and view.fuse_tokens >= 2:
            position, p = self._best_guess(view, facts)
            if p >= RISKY_PLAY_THRESHOLD:
                return PlayAction(card_position=position)

        if view.can_discard() and view.hint_tokens < view.max_hints:
            return DiscardAction(card_position=dead[0] if dead else self._chop(view, facts))

        # At max tokens: any honest hint stalls without losing a card
        if best is not None:
            return self._give(best.hint, view)
        if view.can_discard():
            return DiscardAction(card_position=dead[0] if dead else self._chop(view, facts))

        position, _ = self._best_guess(view, facts)
        logger.debug(f"Player {self.player} is forced to guess slot {position}")
        return PlayAction(card_position=position)


class InformationStrategyFactory(StrategyFactory):
    name = "info"

    def create_players(self, num_players: int, seed: int) -> list[Strategy]:
        return [InformationStrategy(player, num_players) for player in range(num_players)]
