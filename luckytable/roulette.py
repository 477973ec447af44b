"""Single-zero roulette with colour, parity and straight-up bets."""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from .models import ActionResult, LedgerResult, Rejection, TransactionMeta, TransactionType
from .wallet import Wallet

log = logging.getLogger(__name__)

GAME_LABEL = "Roulette"
POCKETS = 37
RED_NUMBERS = frozenset({1, 3, 5, 7, 9, 12, 14, 16, 18, 19, 21, 23, 25, 27, 30, 32, 34, 36})


class BetType(str, Enum):
    RED = "red"
    BLACK = "black"
    EVEN = "even"
    ODD = "odd"
    NUMBER = "number"


PAYOUT_MULTIPLIERS = {
    BetType.RED: 1,
    BetType.BLACK: 1,
    BetType.EVEN: 1,
    BetType.ODD: 1,
    BetType.NUMBER: 35,
}

BetValue = Union[int, str]


@dataclass
class Bet:
    type: BetType
    value: BetValue
    amount: int

    @property
    def key(self) -> Tuple[BetType, BetValue]:
        return (self.type, self.value)


def color_of(number: int) -> str:
    if number == 0:
        return "green"
    return "red" if number in RED_NUMBERS else "black"


def bet_wins(bet: Bet, number: int) -> bool:
    if bet.type == BetType.RED:
        return number in RED_NUMBERS
    if bet.type == BetType.BLACK:
        return number != 0 and number not in RED_NUMBERS
    if bet.type == BetType.EVEN:
        return number != 0 and number % 2 == 0
    if bet.type == BetType.ODD:
        return number % 2 == 1
    return number == bet.value


@dataclass(frozen=True)
class SpinResult:
    number: int
    color: str
    net: int
    winning_bets: List[Tuple[Bet, int]] = field(default_factory=list)
    losing_bets: List[Bet] = field(default_factory=list)
    settlement: Optional[LedgerResult] = None


def settle(bets: List[Bet], number: int) -> SpinResult:
    """Work out the net result of ``bets`` for a given winning number."""
    winnings = 0
    losses = 0
    winners: List[Tuple[Bet, int]] = []
    losers: List[Bet] = []
    for bet in bets:
        if bet_wins(bet, number):
            won = bet.amount * PAYOUT_MULTIPLIERS[bet.type]
            winnings += won
            winners.append((bet, won))
        else:
            losses += bet.amount
            losers.append(bet)
    return SpinResult(
        number=number,
        color=color_of(number),
        net=winnings - losses,
        winning_bets=winners,
        losing_bets=losers,
    )


class RouletteTable:
    def __init__(self, wallet: Wallet, rng: Optional[random.Random] = None) -> None:
        self.wallet = wallet
        self.rng = rng or random.Random()
        self._bets: Dict[Tuple[BetType, BetValue], Bet] = {}
        self.last_number: Optional[int] = None
        self.last_result: Optional[SpinResult] = None

    @property
    def bets(self) -> List[Bet]:
        return list(self._bets.values())

    @property
    def total_bet(self) -> int:
        return sum(bet.amount for bet in self._bets.values())

    @property
    def has_open_bets(self) -> bool:
        return bool(self._bets)

    def place_bet(self, bet_type: BetType, value: Optional[BetValue], amount: int) -> ActionResult:
        if amount <= 0:
            return ActionResult.rejected(Rejection.INVALID_BET)
        if not self.wallet.can_afford(amount):
            return ActionResult.rejected(Rejection.INSUFFICIENT_FUNDS)

        if bet_type == BetType.NUMBER:
            if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value < POCKETS:
                return ActionResult.rejected(Rejection.INVALID_BET)
        else:
            value = bet_type.value

        existing = self._bets.get((bet_type, value))
        if existing:
            existing.amount += amount
        else:
            self._bets[(bet_type, value)] = Bet(type=bet_type, value=value, amount=amount)
        return ActionResult.accepted()

    def clear_bets(self) -> None:
        self._bets.clear()

    def spin(self) -> Tuple[ActionResult, Optional[SpinResult]]:
        if not self._bets:
            return ActionResult.rejected(Rejection.NO_BETS), None
        if not self.wallet.can_afford(self.total_bet):
            return ActionResult.rejected(Rejection.INSUFFICIENT_FUNDS), None

        number = self.rng.randrange(POCKETS)
        outcome = settle(self.bets, number)
        verb = "Won" if outcome.net > 0 else "Lost"
        settlement = self.wallet.update_balance(
            outcome.net,
            TransactionMeta(
                type=TransactionType.WIN if outcome.net > 0 else TransactionType.LOSS,
                amount=abs(outcome.net),
                description=f"{verb} - Number {number}",
                game=GAME_LABEL,
            ),
        )
        if not settlement.ok:
            # Bets stay on the table so the spin can be retried
            log.warning("Roulette spin on %d not recorded: %s", number, settlement.reason)
            return ActionResult.rejected(Rejection.STORAGE_FAILURE), None

        result = SpinResult(
            number=outcome.number,
            color=outcome.color,
            net=outcome.net,
            winning_bets=outcome.winning_bets,
            losing_bets=outcome.losing_bets,
            settlement=settlement,
        )

        self._bets.clear()
        self.last_number = number
        self.last_result = result
        log.debug("Roulette landed on %d (%s), net %+d", number, result.color, result.net)
        return ActionResult.accepted(), result
