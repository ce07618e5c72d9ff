"""Shuffle and deal the opening hands of a session."""

import random
from collections.abc import Sequence
from dataclasses import dataclass, replace
from uuid import UUID

from uno_server.domain.cards import Card, CardPosition, shuffle_cards
from uno_server.domain.results import DealInvariantError
from uno_server.domain.rules import HAND_SIZE
from uno_server.domain.sessions import RosterEntry


@dataclass(frozen=True)
class DealPlan:
    """Card positions after the opening deal."""

    hands: dict[UUID, list[Card]]
    discard: Card
    draw_pile: list[Card]

    @property
    def card_updates(self) -> list[Card]:
        updates: list[Card] = []
        for hand in self.hands.values():
            updates.extend(hand)
        updates.append(self.discard)
        updates.extend(self.draw_pile)
        return updates


def plan_deal(
    deck: Sequence[Card],
    roster: Sequence[RosterEntry],
    rng: random.Random | None = None,
    hand_size: int = HAND_SIZE,
) -> DealPlan:
    """Shuffle ``deck`` and split it into hands, one discard and a draw pile.

    Hands are dealt in contiguous blocks following ``roster`` order (join
    order). The card after the last hand opens the discard pile and the rest
    stays in the deck, re-indexed in shuffled order.
    """
    needed = hand_size * len(roster) + 1
    if len(deck) < needed:
        raise DealInvariantError(
            f"Deck holds {len(deck)} cards, {needed} required for "
            f"{len(roster)} players"
        )

    shuffled = shuffle_cards(deck, rng)
    hands: dict[UUID, list[Card]] = {}
    for seat, entry in enumerate(roster):
        block = shuffled[seat * hand_size : (seat + 1) * hand_size]
        hands[entry.player_id] = [
            replace(
                card,
                position=CardPosition.HAND,
                player_id=entry.player_id,
                order_index=slot,
            )
            for slot, card in enumerate(block)
        ]

    dealt = hand_size * len(roster)
    discard = replace(
        shuffled[dealt],
        position=CardPosition.DISCARD,
        player_id=None,
        order_index=0,
    )
    draw_pile = [
        replace(card, position=CardPosition.DECK, player_id=None, order_index=index)
        for index, card in enumerate(shuffled[dealt + 1 :])
    ]
    return DealPlan(hands=hands, discard=discard, draw_pile=draw_pile)
