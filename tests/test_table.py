from __future__ import annotations

import pytest

from luckytable.accounts import InMemoryUserRepository
from luckytable.baccarat import Side
from luckytable.blackjack import Phase
from luckytable.models import Rejection
from luckytable.roulette import BetType
from luckytable.storage import MemoryStore, StorageError
from luckytable.table import Table, TableManager

from conftest import StackedRandom


def test_one_open_round_at_a_time(make_wallet):
    # Shuffles happen for the blackjack deck, the baccarat deck, then the first hand
    table = Table(make_wallet(), StackedRandom(stacks=["2c", "2c", "10s 9h 6d 8c"]))
    assert table.start_blackjack(10)
    assert table.active_game() == "blackjack"

    assert table.place_roulette_bet(BetType.RED, None, 10).reason == Rejection.ROUND_IN_PROGRESS
    assert table.place_baccarat_bet(Side.PLAYER, 10).reason == Rejection.ROUND_IN_PROGRESS
    assert table.reset_wallet().reason == Rejection.ROUND_IN_PROGRESS

    table.stand()
    assert table.active_game() is None
    assert table.place_roulette_bet(BetType.RED, None, 10)
    assert table.start_blackjack(10).reason == Rejection.ROUND_IN_PROGRESS
    assert table.deal_baccarat().reason == Rejection.ROUND_IN_PROGRESS


def test_finished_rounds_restart_automatically(make_wallet):
    table = Table(make_wallet())
    table.place_baccarat_bet(Side.BANKER, 10)
    assert table.deal_baccarat()
    assert table.place_baccarat_bet(Side.PLAYER, 10)

    table.clear_bets()
    assert table.active_game() is None


def test_blackjack_restarts_after_finish(make_wallet):
    table = Table(make_wallet(), StackedRandom(stacks=["2c", "2c", "10s 9h 6d 8c Kh"]))
    table.start_blackjack(10)
    table.hit()
    assert table.blackjack.phase == Phase.FINISHED
    assert table.start_blackjack(10)


def test_reset_clears_pending_bets(make_wallet):
    table = Table(make_wallet())
    table.place_roulette_bet(BetType.NUMBER, 5, 10)
    assert table.reset_wallet().ok
    assert table.roulette.bets == []


def test_manager_keeps_a_table_per_player(clock):
    stores = {}

    def factory(player_id):
        return stores.setdefault(player_id, MemoryStore())

    manager = TableManager(factory, clock=clock, starting_balance=500, daily_bonus=50)
    first = manager.table_for(1)
    assert manager.table_for(1) is first
    assert manager.table_for(2) is not first

    first.wallet.collect_daily_bonus()
    assert first.wallet.balance == 550
    assert manager.table_for(2).wallet.balance == 500
    assert stores[1].get("wallet_balance") == "550"


def test_manager_loads_saved_wallets(clock):
    store = MemoryStore({"wallet_balance": "42"})
    manager = TableManager(lambda _: store, clock=clock)
    assert manager.table_for(7).wallet.balance == 42


def test_signup_waits_for_open_hand(make_wallet):
    table = Table(make_wallet(), StackedRandom(stacks=["2c", "2c", "10s 9h 6d 8c"]))
    table.start_blackjack(10)

    result = table.signup("a@b.io", "alice", "pw")
    assert not result.ok
    assert not table.accounts.is_authenticated

    table.stand()
    table.place_roulette_bet(BetType.RED, None, 10)
    assert table.signup("a@b.io", "alice", "pw").ok
    assert table.roulette.bets == []
    assert table.wallet.balance == 1000


def test_manager_restores_preferences_and_session(clock):
    stores = {}
    users = InMemoryUserRepository()

    def factory(player_id):
        return stores.setdefault(player_id, MemoryStore())

    manager = TableManager(factory, clock=clock, users=users)
    table = manager.table_for(1)
    table.signup("a@b.io", "alice", "pw")
    table.preferences.update("animations_enabled", False)

    reopened = TableManager(factory, clock=clock, users=users).table_for(1)
    assert reopened.accounts.user.username == "alice"
    assert not reopened.preferences.current.animations_enabled
    assert not TableManager(factory, clock=clock, users=users).table_for(2).accounts.is_authenticated


@pytest.mark.parametrize("error", [StorageError("cannot open"), PermissionError("read-only disk")])
def test_manager_falls_back_to_memory_when_storage_is_unavailable(clock, error):
    def factory(player_id):
        raise error

    manager = TableManager(factory, clock=clock, starting_balance=300)
    table = manager.table_for(1)
    assert isinstance(table.wallet.store, MemoryStore)
    assert table.wallet.balance == 300
    assert table.wallet.update_balance(50).ok
