"""Two-card baccarat: no third-card drawing, banker wins pay 0.95:1."""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .cards import Card, Deck
from .models import ActionResult, LedgerResult, Rejection, TransactionMeta, TransactionType
from .wallet import Wallet

log = logging.getLogger(__name__)

GAME_LABEL = "Baccarat"


class Phase(str, Enum):
    BETTING = "betting"
    DEALING = "dealing"
    FINISHED = "finished"


class Side(str, Enum):
    PLAYER = "player"
    BANKER = "banker"
    TIE = "tie"


def hand_score(cards: Iterable[Card]) -> int:
    return sum(card.baccarat_value for card in cards) % 10


def determine_winner(player_score: int, banker_score: int) -> Side:
    if player_score > banker_score:
        return Side.PLAYER
    if banker_score > player_score:
        return Side.BANKER
    return Side.TIE


def winnings_for(side: Side, amount: int) -> int:
    """Net chips won by a winning bet of ``amount`` on ``side``."""
    if side == Side.BANKER:
        # 5% commission, floored to whole chips
        return amount * 95 // 100
    if side == Side.TIE:
        return amount * 8
    return amount


@dataclass(frozen=True)
class BaccaratResult:
    winner: Side
    player_score: int
    banker_score: int
    net: int
    settlement: Optional[LedgerResult] = None


class BaccaratTable:
    def __init__(self, wallet: Wallet, rng: Optional[random.Random] = None) -> None:
        self.wallet = wallet
        self.deck = Deck(rng)
        self.phase = Phase.BETTING
        self._bets: Dict[Side, int] = {}
        self.player_hand: List[Card] = []
        self.banker_hand: List[Card] = []
        self.result: Optional[BaccaratResult] = None

    @property
    def bets(self) -> Dict[Side, int]:
        return dict(self._bets)

    @property
    def total_bet(self) -> int:
        return sum(self._bets.values())

    @property
    def player_score(self) -> int:
        return hand_score(self.player_hand)

    @property
    def banker_score(self) -> int:
        return hand_score(self.banker_hand)

    @property
    def has_open_bets(self) -> bool:
        return self.phase == Phase.BETTING and bool(self._bets)

    def bet_on(self, side: Side) -> int:
        return self._bets.get(side, 0)

    def place_bet(self, side: Side, amount: int) -> ActionResult:
        if self.phase != Phase.BETTING:
            return ActionResult.rejected(Rejection.INVALID_STATE)
        if amount <= 0:
            return ActionResult.rejected(Rejection.INVALID_BET)
        if not self.wallet.can_afford(amount):
            return ActionResult.rejected(Rejection.INSUFFICIENT_FUNDS)

        self._bets[side] = self._bets.get(side, 0) + amount
        return ActionResult.accepted()

    def clear_bets(self) -> ActionResult:
        if self.phase != Phase.BETTING:
            return ActionResult.rejected(Rejection.INVALID_STATE)
        self._bets.clear()
        return ActionResult.accepted()

    def deal(self) -> ActionResult:
        if self.phase != Phase.BETTING:
            return ActionResult.rejected(Rejection.INVALID_STATE)
        if not self._bets:
            return ActionResult.rejected(Rejection.NO_BETS)
        if not self.wallet.can_afford(self.total_bet):
            return ActionResult.rejected(Rejection.INSUFFICIENT_FUNDS)

        self.phase = Phase.DEALING
        self.player_hand = [self.deck.draw(), self.deck.draw()]
        self.banker_hand = [self.deck.draw(), self.deck.draw()]

        winner = determine_winner(self.player_score, self.banker_score)
        net = 0
        for side, amount in self._bets.items():
            if side == winner:
                net += winnings_for(side, amount)
            else:
                net -= amount

        verb = "Won" if net > 0 else "Lost"
        settlement = self.wallet.update_balance(
            net,
            TransactionMeta(
                type=TransactionType.WIN if net > 0 else TransactionType.LOSS,
                amount=abs(net),
                description=f"{verb} - {winner.value.title()} wins",
                game=GAME_LABEL,
            ),
        )
        if not settlement.ok:
            log.warning("Baccarat round not recorded: %s", settlement.reason)
            self.player_hand = []
            self.banker_hand = []
            self.phase = Phase.BETTING
            return ActionResult.rejected(Rejection.STORAGE_FAILURE)

        self.result = BaccaratResult(
            winner=winner,
            player_score=self.player_score,
            banker_score=self.banker_score,
            net=net,
            settlement=settlement,
        )
        self._bets.clear()
        self.phase = Phase.FINISHED
        log.debug("Baccarat %d-%d, %s wins, net %+d", self.player_score, self.banker_score, winner.value, net)
        return ActionResult.accepted()

    def new_round(self) -> ActionResult:
        if self.phase != Phase.FINISHED:
            return ActionResult.rejected(Rejection.INVALID_STATE)
        self.phase = Phase.BETTING
        self.player_hand = []
        self.banker_hand = []
        self.result = None
        return ActionResult.accepted()
