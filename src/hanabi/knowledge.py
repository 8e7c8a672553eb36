"""Card possibility tables.

A table tracks which card identities a slot could still hold, weighted by
how many copies of each identity exist. Strategies keep one table per slot
and narrow it as hints and conventions reveal information.
"""

from __future__ import annotations

from typing import Callable, Iterable, Mapping

from .models import ALL_CARDS, CARD_COUNTS, Card, Color, HintType, Number


class CardPossibilityTable:
    """Possible identities for one slot, with copy-count weights."""

    __slots__ = ("_possible",)

    def __init__(self, possible: Mapping[Card, int] | None = None):
        if possible is None:
            self._possible: dict[Card, int] = {
                card: CARD_COUNTS[card.number] for card in ALL_CARDS
            }
        else:
            self._possible = dict(possible)

    def copy(self) -> "CardPossibilityTable":
        return CardPossibilityTable(self._possible)

    def __len__(self) -> int:
        return len(self._possible)

    def __contains__(self, card: Card) -> bool:
        return card in self._possible

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CardPossibilityTable):
            return NotImplemented
        return self._possible == other._possible

    def __repr__(self) -> str:
        return "CardPossibilityTable(" + ", ".join(str(c) for c in self._possible) + ")"

    def is_possible(self, card: Card) -> bool:
        return card in self._possible

    def possibilities(self) -> list[Card]:
        """Possible identities in canonical order."""
        return list(self._possible)

    def weight(self, card: Card) -> int:
        return self._possible.get(card, 0)

    def weighted_possibilities(
        self, counts: Mapping[Card, int] | None = None
    ) -> list[tuple[Card, int]]:
        """Possible identities weighted by `counts` (default: copy counts).

        Identities whose weight drops to zero are left out.
        """
        out = []
        for card, weight in self._possible.items():
            w = counts.get(card, 0) if counts is not None else weight
            if w > 0:
                out.append((card, w))
        return out

    def probability(
        self,
        predicate: Callable[[Card], bool],
        counts: Mapping[Card, int] | None = None,
    ) -> float:
        """Probability that the slot satisfies `predicate`."""
        weighted = self.weighted_possibilities(counts)
        total = sum(w for _, w in weighted)
        if total == 0:
            return 0.0
        return sum(w for card, w in weighted if predicate(card)) / total

    def is_determined(self) -> bool:
        return len(self._possible) == 1

    def mark_false(self, card: Card) -> None:
        self._possible.pop(card, None)

    def mark_color(self, color: Color, matched: bool) -> None:
        for card in list(self._possible):
            if (card.color == color) != matched:
                del self._possible[card]

    def mark_number(self, number: Number, matched: bool) -> None:
        for card in list(self._possible):
            if (card.number == number) != matched:
                del self._possible[card]

    def mark_hint(self, hint_type: HintType, hint_value: str | int, matched: bool) -> None:
        if hint_type == "color":
            self.mark_color(hint_value, matched)  # type: ignore[arg-type]
        else:
            self.mark_number(hint_value, matched)  # type: ignore[arg-type]

    def restrict_to(self, cards: Iterable[Card]) -> None:
        """Keep only the identities listed in `cards`."""
        keep = set(cards)
        for card in list(self._possible):
            if card not in keep:
                del self._possible[card]

    def all_satisfy(
        self,
        predicate: Callable[[Card], bool],
        counts: Mapping[Card, int] | None = None,
    ) -> bool:
        """True when every still-possible identity satisfies `predicate`."""
        weighted = self.weighted_possibilities(counts)
        return bool(weighted) and all(predicate(card) for card, _ in weighted)
