"""Hint conventions shared by every player of the information strategy.

A plain hint only says "these slots are red" or "these slots are 3s". Under
this convention every player runs the same pure function over public data to
read one more thing out of a hint:

1. All hints a player could give are put in one canonical order: targets by
   seat offset from the hinter, then the five colors, then numbers 1-5.
2. The *focus* of a hint is the newest touched slot whose public belief does
   not already settle what to do with it (or the newest touched slot if all
   are settled).
3. The message is picked by the parity of ``ordinal + focus``: even means
   "the focus card was playable when hinted", odd means "the focus card was
   dead when hinted". Other touched slots are just kept.

A hinter may only give hints whose message is true for the real focus card,
so which hints are *not* available is itself part of the channel. Because
the function only reads public data, every observer, including the target,
decodes the same message.
"""

from __future__ import annotations

from typing import Literal, Mapping, NamedTuple, Sequence

from pydantic import BaseModel, ConfigDict

from ..errors import ConventionInvariantError
from ..game import is_dead, is_playable
from ..knowledge import CardPossibilityTable
from ..models import ALL_CARDS, Card, Color, COLORS, HintAction, NUMBERS
from ..visibility import PlayerView

Message = Literal["play", "trash"]
Recommendation = Literal["play", "trash", "keep"]

MESSAGES: tuple[Message, ...] = ("play", "trash")
HINTS_PER_TARGET = len(COLORS) + len(NUMBERS)


class BoardFacts(NamedTuple):
    """Public classification of every card identity at one moment."""

    playable: frozenset[Card]
    dead: frozenset[Card]


def board_facts(fireworks: Mapping[Color, int], discarded: Mapping[Card, int]) -> BoardFacts:
    return BoardFacts(
        playable=frozenset(c for c in ALL_CARDS if is_playable(c, fireworks)),
        dead=frozenset(c for c in ALL_CARDS if is_dead(c, fireworks, discarded)),
    )


def view_facts(view: PlayerView) -> BoardFacts:
    return board_facts(view.fireworks, view.discarded_counts())


class HintInterpretation(BaseModel):
    """What a hint means under the convention."""

    model_config = ConfigDict(frozen=True)

    hinter: int
    target: int
    hint: HintAction
    turn_number: int
    ordinal: int
    touched: tuple[int, ...]
    focus: int
    message: Message
    recommendations: dict[int, Recommendation]


def hint_ordering(hinter: int, num_players: int) -> list[HintAction]:
    """Every hint `hinter` could name, in canonical order."""
    hints: list[HintAction] = []
    for offset in range(1, num_players):
        target = (hinter + offset) % num_players
        hints.extend(HintAction(target_player=target, hint_type="color", hint_value=c) for c in COLORS)
        hints.extend(HintAction(target_player=target, hint_type="number", hint_value=n) for n in NUMBERS)
    return hints


def hint_ordinal(hinter: int, hint: HintAction, num_players: int) -> int:
    """Position of `hint` in the hinter's canonical order."""
    offset = (hint.target_player - hinter) % num_players
    if offset == 0:
        raise ValueError("A player cannot hint themselves")
    if hint.hint_type == "color":
        within = COLORS.index(hint.hint_value)  # type: ignore[arg-type]
    else:
        within = len(COLORS) + NUMBERS.index(hint.hint_value)  # type: ignore[arg-type]
    return (offset - 1) * HINTS_PER_TARGET + within


def slot_status(table: CardPossibilityTable, facts: BoardFacts) -> Message | None:
    """Action the public belief already settles for a slot, if any."""
    cards = table.possibilities()
    if not cards:
        raise ConventionInvariantError("Slot belief has no possible card left")
    if all(c in facts.playable for c in cards):
        return "play"
    if all(c in facts.dead for c in cards):
        return "trash"
    return None


def find_focus(tables: Sequence[CardPossibilityTable], touched: Sequence[int], facts: BoardFacts) -> int:
    """Newest touched slot that is still unsettled, else the newest touched slot."""
    if not touched:
        raise ValueError("A hint touching no slot has no focus")
    for position in sorted(touched, reverse=True):
        if slot_status(tables[position], facts) is None:
            return position
    return max(touched)


def message_holds(message: Message, card: Card, facts: BoardFacts) -> bool:
    if message == "play":
        return card in facts.playable
    return card in facts.dead


def interpret_hint(
    hinter: int,
    hint: HintAction,
    touched: Sequence[int],
    tables: Sequence[CardPossibilityTable],
    facts: BoardFacts,
    turn_number: int,
    num_players: int,
) -> HintInterpretation:
    """
    Decode a hint. Pure function of public data.

    Args:
        hinter: seat giving the hint
        hint: the hint action
        touched: positions the hint touched in the target's hand
        tables: the target's public beliefs *before* the hint
        facts: playable/dead identities on the board at hint time
        turn_number: turn of the hint
        num_players: table size
    """
    ordinal = hint_ordinal(hinter, hint, num_players)
    focus = find_focus(tables, touched, facts)
    message = MESSAGES[(ordinal + focus) % len(MESSAGES)]
    recommendations: dict[int, Recommendation] = {
        position: (message if position == focus else "keep") for position in touched
    }
    return HintInterpretation(
        hinter=hinter,
        target=hint.target_player,
        hint=hint,
        turn_number=turn_number,
        ordinal=ordinal,
        touched=tuple(touched),
        focus=focus,
        message=message,
        recommendations=recommendations,
    )


class HintCandidate(NamedTuple):
    hint: HintAction
    interpretation: HintInterpretation
    focus_card: Card


class PublicBeliefs:
    """
    Possibility tables for every slot at the table.

    Built only from the public history, so every player holds an identical
    copy. A player's tables for their own hand are what they know about it.
    """

    def __init__(self, hand_sizes: Sequence[int]):
        self.tables: list[list[CardPossibilityTable]] = [
            [CardPossibilityTable() for _ in range(size)] for size in hand_sizes
        ]

    def copy(self) -> "PublicBeliefs":
        clone = PublicBeliefs([])
        clone.tables = [[t.copy() for t in hand] for hand in self.tables]
        return clone

    def hand(self, player: int) -> list[CardPossibilityTable]:
        return self.tables[player]

    def status(self, player: int, position: int, facts: BoardFacts) -> Message | None:
        return slot_status(self.tables[player][position], facts)

    def apply_hint(
        self,
        hinter: int,
        hint: HintAction,
        touched: Sequence[int],
        facts: BoardFacts,
        turn_number: int,
    ) -> HintInterpretation:
        """Decode a hint and fold its literal and conventional content in."""
        tables = self.tables[hint.target_player]
        interpretation = interpret_hint(
            hinter, hint, touched, tables, facts, turn_number, len(self.tables)
        )
        for position, table in enumerate(tables):
            table.mark_hint(hint.hint_type, hint.hint_value, position in touched)
            if not len(table):
                raise ConventionInvariantError(
                    f"Hint {hint.hint_type}={hint.hint_value} emptied slot {position} of player {hint.target_player}"
                )

        focus_table = tables[interpretation.focus]
        allowed = [c for c in focus_table.possibilities() if message_holds(interpretation.message, c, facts)]
        if not allowed:
            raise ConventionInvariantError(
                f"Turn {turn_number}: '{interpretation.message}' message contradicts slot "
                f"{interpretation.focus} of player {hint.target_player}"
            )
        focus_table.restrict_to(allowed)
        return interpretation

    def reveal(self, player: int, position: int, card: Card, drew: bool) -> None:
        """A slot left the hand face up; check it against its belief."""
        table = self.tables[player].pop(position)
        if card not in table:
            raise ConventionInvariantError(
                f"Player {player} revealed {card} from slot {position}, which was believed impossible"
            )
        if drew:
            self.tables[player].append(CardPossibilityTable())


def encode_candidates(hinter: int, view: PlayerView, beliefs: PublicBeliefs) -> list[HintCandidate]:
    """
    Every hint `hinter` may honestly give right now, in canonical order.

    A hint qualifies when it touches at least one card and its decoded
    message is true for the card actually sitting in the focus slot.
    """
    facts = view_facts(view)
    candidates: list[HintCandidate] = []
    for hint in hint_ordering(hinter, view.num_players):
        hand = view.hand(hint.target_player)
        touched = [i for i, card in enumerate(hand) if hint.matches(card)]
        if not touched:
            continue
        interpretation = interpret_hint(
            hinter,
            hint,
            touched,
            beliefs.hand(hint.target_player),
            facts,
            view.turn_number,
            view.num_players,
        )
        focus_card = hand[interpretation.focus]
        if message_holds(interpretation.message, focus_card, facts):
            candidates.append(HintCandidate(hint, interpretation, focus_card))
    return candidates
