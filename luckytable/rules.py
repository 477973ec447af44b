"""Rules and strategy tips shown for each game."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class GameRules:
    title: str
    objective: str
    rules: List[str]
    strategy: List[str]


GAME_RULES: Dict[str, GameRules] = {
    "blackjack": GameRules(
        title="Blackjack 21",
        objective="Get as close to 21 as possible without going over, while beating the dealer's hand.",
        rules=[
            "Cards 2-10 are worth their face value",
            "Face cards (J, Q, K) are worth 10 points",
            "Aces can be worth 1 or 11 points",
            'If your first two cards total 21, you have "Blackjack" and win 3:2',
            'If you go over 21, you "bust" and lose immediately',
            "Dealer must hit on 16 and stand on 17",
            'You can "Hit" to take another card or "Stand" to keep your current total',
            'You can "Double" your bet and take exactly one more card',
        ],
        strategy=[
            "Always hit if your total is 11 or less",
            "Always stand if your total is 17 or more",
            "Consider the dealer's up card when deciding",
            "Double down on 11 against dealer 2-10",
            "Double down on 10 against dealer 2-9",
        ],
    ),
    "roulette": GameRules(
        title="Roulette",
        objective="Predict where the ball will land on the spinning wheel.",
        rules=[
            "The wheel has numbers 0-36",
            "Numbers 1-36 are either red or black",
            "Zero (0) is green",
            "You can bet on individual numbers, colors, or parity",
            "Red/Black, Even/Odd pay 1:1",
            "Straight number bets pay 35:1",
            "All outside bets lose if the ball lands on 0",
        ],
        strategy=[
            "Even money bets (red/black, even/odd) have the best odds",
            "Straight number bets have the highest payout but lowest probability",
            "The house edge comes from the green zero",
            "Manage your bankroll carefully",
        ],
    ),
    "baccarat": GameRules(
        title="Baccarat",
        objective="Bet on whether the Player or Banker hand will have a total closest to 9.",
        rules=[
            "Cards 2-9 are worth their face value",
            "Aces are worth 1 point",
            "Face cards and 10s are worth 0 points",
            "Hand values are calculated by adding cards and taking the last digit",
            "Player and Banker each receive 2 cards; no third card is drawn",
            "Player bet pays 1:1",
            "Banker bet pays 1:1 minus 5% commission",
            "Tie bet pays 8:1",
        ],
        strategy=[
            "Banker bet has the lowest house edge",
            "Tie bet has a very high house edge - avoid it",
            "Baccarat is largely a game of chance",
        ],
    ),
}


def get_rules(game_id: str) -> Optional[GameRules]:
    return GAME_RULES.get(game_id.strip().lower())
