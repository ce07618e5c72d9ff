"""Domain models for cards and the canonical UNO deck."""

import random
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import TypeVar
from uuid import UUID

T = TypeVar("T")

NUMBER_VALUES = ("0", "1", "2", "3", "4", "5", "6", "7", "8", "9")
DECK_SIZE = 108


class CardType(StrEnum):
    """Kind of card."""

    NUMBER = "number"
    SKIP = "skip"
    REVERSE = "reverse"
    DRAW_TWO = "draw_two"
    WILD = "wild"
    WILD_DRAW_FOUR = "wild_draw_four"


class CardColor(StrEnum):
    """Card colors; wild cards have none."""

    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"


class CardPosition(StrEnum):
    """Where a card currently lives within a session."""

    DECK = "deck"
    HAND = "hand"
    DISCARD = "discard"


ACTION_TYPES = (CardType.SKIP, CardType.REVERSE, CardType.DRAW_TWO)
WILD_TYPES = (CardType.WILD, CardType.WILD_DRAW_FOUR)


@dataclass(frozen=True)
class CardBlueprint:
    """A card that has not been persisted yet."""

    card_type: CardType
    value: str
    color: CardColor | None
    position: CardPosition = CardPosition.DECK
    player_id: UUID | None = None
    order_index: int = 0


@dataclass(frozen=True)
class Card:
    """Represents a persisted card belonging to a session."""

    id: UUID
    session_id: UUID
    card_type: CardType
    value: str
    color: CardColor | None
    position: CardPosition
    player_id: UUID | None
    order_index: int


def generate_deck() -> list[CardBlueprint]:
    """Return the 108 cards of a fresh deck, unshuffled."""
    cards: list[CardBlueprint] = []
    for color in CardColor:
        cards.append(CardBlueprint(CardType.NUMBER, "0", color))
        for number in NUMBER_VALUES[1:]:
            cards.append(CardBlueprint(CardType.NUMBER, number, color))
            cards.append(CardBlueprint(CardType.NUMBER, number, color))
        for card_type in ACTION_TYPES:
            cards.append(CardBlueprint(card_type, card_type.value, color))
            cards.append(CardBlueprint(card_type, card_type.value, color))
    for _ in range(4):
        for card_type in WILD_TYPES:
            cards.append(CardBlueprint(card_type, card_type.value, None))
    return cards


def shuffle_cards(cards: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return a uniformly shuffled copy of ``cards`` (Fisher-Yates).

    The input sequence is left untouched. Pass a seeded ``random.Random`` to
    get a reproducible order.
    """
    source = rng or random.SystemRandom()
    shuffled = list(cards)
    for i in range(len(shuffled) - 1, 0, -1):
        j = source.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def describe_card(card: Card | CardBlueprint) -> str:
    """Human readable label, e.g. ``7 of red`` or ``wild``."""
    if card.color is None:
        return card.value
    return f"{card.value} of {card.color.value}"
