from __future__ import annotations

from luckytable.analysis import WalletAnalyzer
from luckytable.models import TransactionMeta, TransactionType


def record(wallet, kind, amount, game="Roulette"):
    wallet.update_balance(
        amount if kind == TransactionType.WIN else -amount,
        TransactionMeta(type=kind, amount=amount, description="round", game=game),
    )


def test_empty_history(make_wallet):
    stats = WalletAnalyzer(make_wallet().transactions).summary()
    assert stats.games_played == 0
    assert stats.win_rate == 0.0
    assert stats.best_streak == 0


def test_summary_counts_only_game_rounds(make_wallet):
    wallet = make_wallet()
    record(wallet, TransactionType.WIN, 10)
    record(wallet, TransactionType.WIN, 20, game="Baccarat")
    wallet.collect_daily_bonus()
    record(wallet, TransactionType.WIN, 5)
    record(wallet, TransactionType.LOSS, 15)
    record(wallet, TransactionType.WIN, 40, game="Blackjack 21")

    stats = WalletAnalyzer(wallet.transactions).summary()
    assert stats.games_played == 5
    assert stats.total_winnings == 75
    assert stats.win_rate == 0.8
    # The bonus between rounds does not break the streak
    assert stats.best_streak == 3


def test_per_game_breakdown_and_report(make_wallet):
    wallet = make_wallet()
    record(wallet, TransactionType.WIN, 10)
    record(wallet, TransactionType.LOSS, 10)
    record(wallet, TransactionType.LOSS, 0)

    analyzer = WalletAnalyzer(wallet.transactions)
    assert analyzer.per_game()["Roulette"] == {"win": 1, "lose": 1, "push": 1}
    report = analyzer.report()
    assert "Games played: 3" in report
    assert "Roulette: 1 won / 1 lost / 1 even" in report
