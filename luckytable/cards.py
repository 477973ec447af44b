"""Playing cards and a single 52-card deck."""
from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class Suit(str, Enum):
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"


RANKS = ["A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K"]
FACE_RANKS = {"J", "Q", "K"}
SUIT_SYMBOLS = {Suit.HEARTS: "♥", Suit.DIAMONDS: "♦", Suit.CLUBS: "♣", Suit.SPADES: "♠"}


@dataclass(frozen=True)
class Card:
    suit: Suit
    rank: str

    def __post_init__(self) -> None:
        if self.rank not in RANKS:
            raise ValueError(f"Unknown rank: {self.rank}")

    @property
    def is_ace(self) -> bool:
        return self.rank == "A"

    @property
    def blackjack_value(self) -> int:
        if self.is_ace:
            return 11
        if self.rank in FACE_RANKS:
            return 10
        return int(self.rank)

    @property
    def baccarat_value(self) -> int:
        if self.is_ace:
            return 1
        if self.rank in FACE_RANKS or self.rank == "10":
            return 0
        return int(self.rank)

    @property
    def label(self) -> str:
        return f"{self.rank}{SUIT_SYMBOLS[self.suit]}"

    def __str__(self) -> str:
        return self.label


def full_set() -> List[Card]:
    return [Card(suit, rank) for suit in Suit for rank in RANKS]


class Deck:
    """52 cards in random order, consumed from the front.

    Drawing from an empty deck replaces it with a freshly shuffled one, so
    ``draw`` never fails on exhaustion.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()
        self.cards: List[Card] = []
        self.reshuffle()

    def reshuffle(self) -> None:
        cards = full_set()
        self.rng.shuffle(cards)
        self.cards = cards

    def draw(self) -> Card:
        if not self.cards:
            self.reshuffle()
        return self.cards.pop(0)

    def remaining(self) -> int:
        return len(self.cards)

    def __len__(self) -> int:
        return len(self.cards)


def new_deck(rng: Optional[random.Random] = None) -> Deck:
    return Deck(rng)
