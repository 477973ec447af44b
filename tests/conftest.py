from __future__ import annotations

import random
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List

import pytest

from luckytable.cards import Card, Suit
from luckytable.storage import MemoryStore
from luckytable.wallet import Wallet

SUIT_CODES = {"s": Suit.SPADES, "h": Suit.HEARTS, "d": Suit.DIAMONDS, "c": Suit.CLUBS}


def cards(hand: str) -> List[Card]:
    """``"As Kh 10d"`` -> cards; the trailing letter is the suit."""
    return [Card(SUIT_CODES[token[-1]], token[:-1]) for token in hand.split()]


class StackedRandom(random.Random):
    """Random source whose shuffles put chosen cards on top and whose spins are scripted."""

    def __init__(self, stacks: Iterable[str] = (), numbers: Iterable[int] = ()) -> None:
        super().__init__(1234)
        self.stacks = [cards(s) for s in stacks]
        self.numbers = list(numbers)

    def shuffle(self, x) -> None:
        if not self.stacks:
            return
        top = self.stacks.pop(0)
        for card in top:
            x.remove(card)
        x[:0] = top

    def randrange(self, start, stop=None, step=1):
        if self.numbers:
            return self.numbers.pop(0)
        return super().randrange(start, stop, step)


class FixedClock:
    def __init__(self, moment: datetime | None = None) -> None:
        self.moment = moment or datetime(2024, 3, 9, 18, 30, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.moment

    def today(self) -> date:
        return self.moment.date()

    def advance(self, **kwargs) -> None:
        self.moment += timedelta(**kwargs)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def make_wallet(store, clock):
    def factory(balance: int = 1000, **kwargs) -> Wallet:
        return Wallet(store, clock=clock, starting_balance=balance, **kwargs)

    return factory
