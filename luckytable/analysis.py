"""Quick statistics derived from the wallet's transaction history."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List

from .models import Transaction, TransactionType


@dataclass(frozen=True)
class QuickStats:
    games_played: int
    total_winnings: int
    win_rate: float
    best_streak: int


class WalletAnalyzer:
    def __init__(self, transactions: Iterable[Transaction]) -> None:
        # Ledger order is newest first; analysis runs oldest first
        self.rounds: List[Transaction] = [t for t in reversed(list(transactions)) if t.game]

    def per_game(self) -> Dict[str, Dict[str, int]]:
        breakdown: Dict[str, Dict[str, int]] = defaultdict(lambda: {"win": 0, "lose": 0, "push": 0})
        for entry in self.rounds:
            if entry.type == TransactionType.WIN:
                breakdown[entry.game]["win"] += 1
            elif entry.type == TransactionType.LOSS and entry.amount > 0:
                breakdown[entry.game]["lose"] += 1
            else:
                breakdown[entry.game]["push"] += 1
        return breakdown

    def summary(self) -> QuickStats:
        wins = [t for t in self.rounds if t.type == TransactionType.WIN]
        best = current = 0
        for entry in self.rounds:
            current = current + 1 if entry.type == TransactionType.WIN else 0
            best = max(best, current)

        played = len(self.rounds)
        return QuickStats(
            games_played=played,
            total_winnings=sum(t.amount for t in wins),
            win_rate=len(wins) / played if played else 0.0,
            best_streak=best,
        )

    def report(self) -> str:
        stats = self.summary()
        lines = [
            f"Games played: {stats.games_played}",
            f"Total winnings: {stats.total_winnings:,}",
            f"Win rate: {stats.win_rate*100:.1f}%",
            f"Best streak: {stats.best_streak}",
        ]
        for game, outcomes in sorted(self.per_game().items()):
            lines.append(f"{game}: {outcomes['win']} won / {outcomes['lose']} lost / {outcomes['push']} even")
        return "\n".join(lines)
