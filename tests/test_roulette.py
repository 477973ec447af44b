from __future__ import annotations

from unittest import mock

import pytest

from luckytable.models import Rejection, TransactionType
from luckytable.roulette import Bet, BetType, RED_NUMBERS, RouletteTable, bet_wins, color_of, settle
from luckytable.storage import StorageError

from conftest import StackedRandom


def make_table(make_wallet, *numbers: int, balance: int = 1000) -> RouletteTable:
    return RouletteTable(make_wallet(balance), StackedRandom(numbers=numbers))


def test_straight_up_win(make_wallet):
    table = make_table(make_wallet, 17, balance=100)
    assert table.place_bet(BetType.NUMBER, 17, 10)

    result, spin = table.spin()
    assert result
    assert spin.number == 17
    assert spin.net == 350
    assert table.wallet.balance == 450

    (entry,) = table.wallet.transactions
    assert entry.type == TransactionType.WIN
    assert entry.amount == 350
    assert entry.game == "Roulette"
    assert entry.description == "Won - Number 17"


@pytest.mark.parametrize("bet_type", [BetType.RED, BetType.BLACK, BetType.EVEN, BetType.ODD])
def test_zero_beats_every_outside_bet(bet_type):
    assert not bet_wins(Bet(bet_type, bet_type.value, 10), 0)


def test_zero_straight_up_bet_can_win():
    assert bet_wins(Bet(BetType.NUMBER, 0, 10), 0)


def test_colours_and_parity():
    assert len(RED_NUMBERS) == 18
    assert color_of(0) == "green"
    assert color_of(1) == "red"
    assert color_of(2) == "black"
    assert bet_wins(Bet(BetType.RED, "red", 1), 36)
    assert bet_wins(Bet(BetType.BLACK, "black", 1), 35)
    assert bet_wins(Bet(BetType.EVEN, "even", 1), 36)
    assert bet_wins(Bet(BetType.ODD, "odd", 1), 35)
    assert not bet_wins(Bet(BetType.ODD, "odd", 1), 36)


def test_settle_nets_wins_against_losses():
    bets = [Bet(BetType.RED, "red", 20), Bet(BetType.EVEN, "even", 10), Bet(BetType.NUMBER, 5, 5)]
    result = settle(bets, 5)
    # red +20, even -10, number 5 +175
    assert result.net == 185
    assert [b.type for b, _ in result.winning_bets] == [BetType.RED, BetType.NUMBER]
    assert result.losing_bets == [bets[1]]


def test_losing_spin_clears_bets(make_wallet):
    table = make_table(make_wallet, 0)
    table.place_bet(BetType.RED, None, 10)
    table.place_bet(BetType.ODD, None, 10)

    _, spin = table.spin()
    assert spin.net == -20
    assert table.bets == []
    assert table.last_number == 0
    assert table.wallet.balance == 980
    entry = table.wallet.transactions[0]
    assert entry.type == TransactionType.LOSS
    assert entry.description == "Lost - Number 0"


def test_break_even_spin_is_recorded_as_zero_loss(make_wallet):
    table = make_table(make_wallet, 1)
    table.place_bet(BetType.RED, None, 10)
    table.place_bet(BetType.BLACK, None, 10)

    _, spin = table.spin()
    assert spin.net == 0
    entry = table.wallet.transactions[0]
    assert entry.type == TransactionType.LOSS
    assert entry.amount == 0
    assert table.wallet.balance == 1000


def test_identical_bets_accumulate(make_wallet):
    table = make_table(make_wallet)
    table.place_bet(BetType.NUMBER, 7, 5)
    table.place_bet(BetType.NUMBER, 7, 5)
    table.place_bet(BetType.RED, "ignored", 5)
    table.place_bet(BetType.RED, None, 5)

    assert [(b.type, b.value, b.amount) for b in table.bets] == [
        (BetType.NUMBER, 7, 10),
        (BetType.RED, "red", 10),
    ]
    assert table.total_bet == 20


@pytest.mark.parametrize("value", [37, -1, "7", None])
def test_number_bet_must_name_a_pocket(make_wallet, value):
    table = make_table(make_wallet)
    assert table.place_bet(BetType.NUMBER, value, 5).reason == Rejection.INVALID_BET
    assert table.bets == []


def test_bet_validation(make_wallet):
    table = make_table(make_wallet, balance=50)
    assert table.place_bet(BetType.RED, None, 0).reason == Rejection.INVALID_BET
    assert table.place_bet(BetType.RED, None, 51).reason == Rejection.INSUFFICIENT_FUNDS


def test_spin_needs_bets(make_wallet):
    table = make_table(make_wallet)
    result, spin = table.spin()
    assert result.reason == Rejection.NO_BETS
    assert spin is None


def test_spin_rejects_total_above_balance(make_wallet):
    table = make_table(make_wallet, 3, balance=100)
    table.place_bet(BetType.RED, None, 60)
    table.place_bet(BetType.BLACK, None, 60)

    result, _ = table.spin()
    assert result.reason == Rejection.INSUFFICIENT_FUNDS
    assert table.total_bet == 120
    assert table.wallet.transactions == []


def test_clear_bets(make_wallet):
    table = make_table(make_wallet)
    table.place_bet(BetType.EVEN, None, 5)
    table.clear_bets()
    assert not table.has_open_bets


def test_unrecorded_spin_keeps_bets(make_wallet, store):
    table = make_table(make_wallet, 17, 17, balance=100)
    table.place_bet(BetType.NUMBER, 17, 10)

    with mock.patch.object(store, "write_many", side_effect=StorageError("read-only")):
        result, spin = table.spin()

    assert not result
    assert result.reason == Rejection.STORAGE_FAILURE
    assert spin is None
    assert table.total_bet == 10
    assert table.last_result is None
    assert table.wallet.balance == 100

    result, spin = table.spin()
    assert result
    assert spin.net == 350
    assert table.wallet.balance == 450
