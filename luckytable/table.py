"""Per-player table sessions that keep to one unresolved round at a time."""
from __future__ import annotations

import logging
import random
from typing import Callable, Dict, Optional, Tuple

from .accounts import AccountService, AuthResult, InMemoryUserRepository, UserRepository
from .baccarat import BaccaratTable, Phase as BaccaratPhase, Side
from .blackjack import BlackjackGame, Phase as BlackjackPhase
from .clock import Clock
from .models import ActionResult, LedgerResult, Rejection
from .preferences import PreferencesStore
from .roulette import BetType, BetValue, RouletteTable, SpinResult
from .storage import KeyValueStore, MemoryStore, StorageError
from .wallet import DAILY_BONUS, HISTORY_LIMIT, STARTING_BALANCE, Wallet

log = logging.getLogger(__name__)


class Table:
    """One wallet shared by the three games, plus the player's preferences and account."""

    def __init__(
        self,
        wallet: Wallet,
        rng: Optional[random.Random] = None,
        users: Optional[UserRepository] = None,
    ) -> None:
        self.wallet = wallet
        self.blackjack = BlackjackGame(wallet, rng)
        self.roulette = RouletteTable(wallet, rng)
        self.baccarat = BaccaratTable(wallet, rng)
        self.preferences = PreferencesStore(wallet.store)
        self.accounts = AccountService(
            users or InMemoryUserRepository(), wallet.store, wallet=wallet, clock=wallet.clock
        )

    def active_game(self) -> Optional[str]:
        if self.blackjack.in_progress:
            return "blackjack"
        if self.roulette.has_open_bets:
            return "roulette"
        if self.baccarat.has_open_bets:
            return "baccarat"
        return None

    def _busy(self, game: str) -> bool:
        active = self.active_game()
        if active is not None and active != game:
            log.debug("Rejected %s action while a %s round is open", game, active)
            return True
        return False

    def start_blackjack(self, bet: int) -> ActionResult:
        if self._busy("blackjack"):
            return ActionResult.rejected(Rejection.ROUND_IN_PROGRESS)
        if self.blackjack.phase == BlackjackPhase.FINISHED:
            self.blackjack.new_round()
        return self.blackjack.start_round(bet)

    def hit(self) -> ActionResult:
        return self.blackjack.hit()

    def stand(self) -> ActionResult:
        return self.blackjack.stand()

    def double(self) -> ActionResult:
        return self.blackjack.double()

    def place_roulette_bet(self, bet_type: BetType, value: Optional[BetValue], amount: int) -> ActionResult:
        if self._busy("roulette"):
            return ActionResult.rejected(Rejection.ROUND_IN_PROGRESS)
        return self.roulette.place_bet(bet_type, value, amount)

    def spin(self) -> Tuple[ActionResult, Optional[SpinResult]]:
        if self._busy("roulette"):
            return ActionResult.rejected(Rejection.ROUND_IN_PROGRESS), None
        return self.roulette.spin()

    def place_baccarat_bet(self, side: Side, amount: int) -> ActionResult:
        if self._busy("baccarat"):
            return ActionResult.rejected(Rejection.ROUND_IN_PROGRESS)
        if self.baccarat.phase == BaccaratPhase.FINISHED:
            self.baccarat.new_round()
        return self.baccarat.place_bet(side, amount)

    def deal_baccarat(self) -> ActionResult:
        if self._busy("baccarat"):
            return ActionResult.rejected(Rejection.ROUND_IN_PROGRESS)
        return self.baccarat.deal()

    def clear_bets(self) -> None:
        self.roulette.clear_bets()
        if self.baccarat.phase == BaccaratPhase.BETTING:
            self.baccarat.clear_bets()

    def reset_wallet(self) -> LedgerResult:
        if self.blackjack.in_progress:
            return LedgerResult(ok=False, balance=self.wallet.balance, reason=Rejection.ROUND_IN_PROGRESS)
        self.clear_bets()
        return self.wallet.reset()

    def signup(self, email: str, username: str, password: str) -> AuthResult:
        # Registering starts a fresh wallet, so no round may be open
        if self.blackjack.in_progress:
            return AuthResult(ok=False, reason="Finish your current round first")
        self.clear_bets()
        return self.accounts.signup(email, username, password)


class TableManager:
    """Hands out one table per player, each with its own wallet storage."""

    def __init__(
        self,
        store_factory: Callable[[int], KeyValueStore],
        clock: Optional[Clock] = None,
        starting_balance: int = STARTING_BALANCE,
        daily_bonus: int = DAILY_BONUS,
        history_limit: int = HISTORY_LIMIT,
        strict: bool = False,
        rng: Optional[random.Random] = None,
        users: Optional[UserRepository] = None,
    ) -> None:
        self.store_factory = store_factory
        self.clock = clock
        self.starting_balance = starting_balance
        self.daily_bonus = daily_bonus
        self.history_limit = history_limit
        self.strict = strict
        self.rng = rng
        self.users = users or InMemoryUserRepository()
        self.tables: Dict[int, Table] = {}

    def _open_store(self, player_id: int) -> KeyValueStore:
        try:
            return self.store_factory(player_id)
        except (StorageError, OSError) as exc:
            log.warning("Storage unavailable for player %s, keeping the session in memory: %s", player_id, exc)
            return MemoryStore()

    def table_for(self, player_id: int) -> Table:
        table = self.tables.get(player_id)
        if table is None:
            wallet = Wallet(
                self._open_store(player_id),
                clock=self.clock,
                starting_balance=self.starting_balance,
                daily_bonus=self.daily_bonus,
                history_limit=self.history_limit,
                strict=self.strict,
            )
            wallet.load()
            table = Table(wallet, self.rng, users=self.users)
            table.preferences.load()
            table.accounts.restore_session()
            self.tables[player_id] = table
        return table
