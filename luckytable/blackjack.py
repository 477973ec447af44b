"""Blackjack: single player against an S17 dealer, settled through the wallet."""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from .cards import Card, Deck
from .models import ActionResult, LedgerResult, Rejection, TransactionMeta, TransactionType
from .wallet import Wallet

log = logging.getLogger(__name__)

GAME_LABEL = "Blackjack 21"
BLACKJACK = 21
DEALER_STANDS_ON = 17


class Phase(str, Enum):
    BETTING = "betting"
    PLAYING = "playing"
    DEALER_TURN = "dealer"
    FINISHED = "finished"


class HandResult(str, Enum):
    WIN = "win"
    LOSE = "lose"
    PUSH = "push"


def hand_score(cards: Iterable[Card]) -> int:
    """Sum with aces as 11, knocking 10 off per ace while the hand is over 21."""
    score = 0
    aces = 0
    for card in cards:
        if card.is_ace:
            aces += 1
        score += card.blackjack_value

    while score > BLACKJACK and aces > 0:
        score -= 10
        aces -= 1

    return score


@dataclass(frozen=True)
class BlackjackOutcome:
    result: HandResult
    payout: int
    player_score: int
    dealer_score: int
    blackjack: bool = False
    bust: bool = False

    @property
    def message(self) -> str:
        if self.result == HandResult.WIN:
            return "BLACKJACK!" if self.blackjack else "YOU WIN!"
        if self.result == HandResult.LOSE:
            return "BUST!" if self.bust else "DEALER WINS"
        return "PUSH"


class BlackjackGame:
    """One table seat. Phases run betting -> playing -> dealer -> finished."""

    def __init__(self, wallet: Wallet, rng: Optional[random.Random] = None) -> None:
        self.wallet = wallet
        self.rng = rng or random.Random()
        self.deck = Deck(self.rng)
        self.phase = Phase.BETTING
        self.bet = 0
        self.player_hand: List[Card] = []
        self.dealer_hand: List[Card] = []
        self.can_double = False
        self.can_split = False
        self.outcome: Optional[BlackjackOutcome] = None
        self.settlement: Optional[LedgerResult] = None

    @property
    def player_score(self) -> int:
        return hand_score(self.player_hand)

    @property
    def dealer_score(self) -> int:
        # The hole card stays hidden until the dealer plays
        if self.phase == Phase.PLAYING:
            return hand_score(self.dealer_hand[:1])
        return hand_score(self.dealer_hand)

    @property
    def in_progress(self) -> bool:
        return self.phase in (Phase.PLAYING, Phase.DEALER_TURN)

    @property
    def awaiting_settlement(self) -> bool:
        return self.phase == Phase.DEALER_TURN and self.outcome is not None

    def start_round(self, bet: int) -> ActionResult:
        if self.phase != Phase.BETTING:
            return self._reject(Rejection.INVALID_STATE, "start")
        if bet <= 0:
            return self._reject(Rejection.INVALID_BET, "start")
        if not self.wallet.can_afford(bet):
            return self._reject(Rejection.INSUFFICIENT_FUNDS, "start")

        self.deck = Deck(self.rng)
        self.bet = bet
        self.player_hand = [self.deck.draw()]
        self.dealer_hand = [self.deck.draw()]
        self.player_hand.append(self.deck.draw())
        self.dealer_hand.append(self.deck.draw())

        self.phase = Phase.PLAYING
        self.can_double = True
        self.can_split = self.player_hand[0].rank == self.player_hand[1].rank

        if self.player_score == BLACKJACK and not self._finish(natural=True):
            return self._reject(Rejection.STORAGE_FAILURE, "start")
        return ActionResult.accepted()

    def hit(self) -> ActionResult:
        if self.phase != Phase.PLAYING:
            return self._reject(Rejection.INVALID_STATE, "hit")

        self.player_hand.append(self.deck.draw())
        self.can_double = False
        self.can_split = False

        if self.player_score > BLACKJACK and not self._finish(bust=True):
            return self._reject(Rejection.STORAGE_FAILURE, "hit")
        return ActionResult.accepted()

    def stand(self) -> ActionResult:
        """Play out the dealer, or retry a settlement the wallet refused."""
        if self.awaiting_settlement:
            settled = self._settle()
        elif self.phase == Phase.PLAYING:
            settled = self._play_dealer()
        else:
            return self._reject(Rejection.INVALID_STATE, "stand")
        if not settled:
            return self._reject(Rejection.STORAGE_FAILURE, "stand")
        return ActionResult.accepted()

    def double(self) -> ActionResult:
        if self.phase != Phase.PLAYING:
            return self._reject(Rejection.INVALID_STATE, "double")
        if not self.can_double or len(self.player_hand) != 2:
            return self._reject(Rejection.DOUBLE_NOT_ALLOWED, "double")
        if not self.wallet.can_afford(self.bet * 2):
            return self._reject(Rejection.INSUFFICIENT_FUNDS, "double")

        self.bet *= 2
        self.can_double = False
        self.can_split = False
        self.player_hand.append(self.deck.draw())

        if self.player_score > BLACKJACK:
            settled = self._finish(bust=True)
        else:
            settled = self._play_dealer()
        if not settled:
            return self._reject(Rejection.STORAGE_FAILURE, "double")
        return ActionResult.accepted()

    def new_round(self) -> ActionResult:
        if self.phase != Phase.FINISHED:
            return self._reject(Rejection.INVALID_STATE, "new round")

        self.phase = Phase.BETTING
        self.bet = 0
        self.player_hand = []
        self.dealer_hand = []
        self.can_double = False
        self.can_split = False
        self.outcome = None
        self.settlement = None
        return ActionResult.accepted()

    def _play_dealer(self) -> bool:
        self.phase = Phase.DEALER_TURN
        while hand_score(self.dealer_hand) < DEALER_STANDS_ON:
            self.dealer_hand.append(self.deck.draw())
        return self._finish()

    def _finish(self, natural: bool = False, bust: bool = False) -> bool:
        player = hand_score(self.player_hand)
        dealer = hand_score(self.dealer_hand)

        if bust:
            result, payout = HandResult.LOSE, -self.bet
        elif natural:
            if dealer == BLACKJACK:
                result, payout = HandResult.PUSH, 0
            else:
                # 3:2, rounded down to whole chips
                result, payout = HandResult.WIN, self.bet * 3 // 2
        elif dealer > BLACKJACK or player > dealer:
            result, payout = HandResult.WIN, self.bet
        elif dealer > player:
            result, payout = HandResult.LOSE, -self.bet
        else:
            result, payout = HandResult.PUSH, 0

        self.outcome = BlackjackOutcome(
            result=result,
            payout=payout,
            player_score=player,
            dealer_score=dealer,
            blackjack=natural and result == HandResult.WIN,
            bust=bust,
        )
        return self._settle()

    def _settle(self) -> bool:
        outcome = self.outcome
        self.settlement = self.wallet.update_balance(
            outcome.payout, self._ledger_entry(outcome.result, outcome.payout)
        )
        if not self.settlement.ok:
            # The hand stays open with its outcome decided until the wallet takes it
            self.phase = Phase.DEALER_TURN
            log.warning("Blackjack settlement of %+d not recorded: %s", outcome.payout, self.settlement.reason)
            return False
        self.phase = Phase.FINISHED
        return True

    def _ledger_entry(self, result: HandResult, payout: int) -> TransactionMeta:
        if payout > 0:
            kind = TransactionType.WIN
        elif payout < 0:
            kind = TransactionType.LOSS
        else:
            # A push still leaves one zero-amount entry in the history
            kind = TransactionType.BONUS
        verb = {HandResult.WIN: "Won", HandResult.LOSE: "Lost", HandResult.PUSH: "Push"}[result]
        return TransactionMeta(
            type=kind,
            amount=abs(payout),
            description=f"{verb} - Blackjack",
            game=GAME_LABEL,
        )

    def _reject(self, reason: Rejection, action: str) -> ActionResult:
        log.debug("Rejected blackjack %s in phase %s: %s", action, self.phase.value, reason.value)
        return ActionResult.rejected(reason)
