"""Wallet ledger: the single place where chip balances change."""
from __future__ import annotations

import json
import logging
import uuid
from typing import List, Mapping, Optional

from .clock import Clock, SystemClock
from .models import LedgerResult, Rejection, Transaction, TransactionMeta, TransactionType
from .storage import KeyValueStore, StorageError

log = logging.getLogger(__name__)

STARTING_BALANCE = 1000
DAILY_BONUS = 200
HISTORY_LIMIT = 100

KEY_BALANCE = "wallet_balance"
KEY_TRANSACTIONS = "wallet_transactions"
KEY_LAST_BONUS = "last_bonus_date"
WALLET_KEYS = (KEY_BALANCE, KEY_TRANSACTIONS, KEY_LAST_BONUS)


class Wallet:
    """Chip balance plus a bounded, newest-first transaction log.

    Balance and log are persisted together through ``KeyValueStore.write_many``;
    if that write fails the in-memory state is left untouched.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Optional[Clock] = None,
        starting_balance: int = STARTING_BALANCE,
        daily_bonus: int = DAILY_BONUS,
        history_limit: int = HISTORY_LIMIT,
        strict: bool = False,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.starting_balance = starting_balance
        self.daily_bonus = daily_bonus
        self.history_limit = history_limit
        self.strict = strict
        self._balance = starting_balance
        self._transactions: List[Transaction] = []
        self.last_bonus_date: Optional[str] = None

    @property
    def balance(self) -> int:
        return self._balance

    @property
    def transactions(self) -> List[Transaction]:
        return list(self._transactions)

    @property
    def daily_bonus_collected(self) -> bool:
        return self.last_bonus_date == self.clock.today().isoformat()

    def can_afford(self, amount: int) -> bool:
        return 0 <= amount <= self._balance

    def load(self) -> bool:
        """Read persisted state. Falls back to defaults and returns False on failure."""
        try:
            balance_raw = self.store.get(KEY_BALANCE)
            transactions_raw = self.store.get(KEY_TRANSACTIONS)
            last_bonus = self.store.get(KEY_LAST_BONUS)
        except StorageError as exc:
            log.warning("Could not load wallet, using defaults: %s", exc)
            self._restore_defaults()
            return False

        try:
            balance = int(balance_raw) if balance_raw else self.starting_balance
            entries = json.loads(transactions_raw) if transactions_raw else []
            transactions = [Transaction.from_dict(entry) for entry in entries]
        except (ValueError, KeyError, TypeError) as exc:
            log.warning("Stored wallet data is malformed, using defaults: %s", exc)
            self._restore_defaults()
            return False

        self._balance = max(0, balance)
        self._transactions = transactions[: self.history_limit]
        self.last_bonus_date = last_bonus
        return True

    def update_balance(self, delta: int, meta: Optional[TransactionMeta] = None) -> LedgerResult:
        if meta is None:
            meta = TransactionMeta(
                type=TransactionType.WIN if delta > 0 else TransactionType.LOSS,
                amount=abs(delta),
                description=f"{'Won' if delta > 0 else 'Lost'} {abs(delta)} chips",
            )
        return self._apply(delta, meta)

    def deposit(self, amount: int) -> LedgerResult:
        if amount <= 0:
            return LedgerResult(ok=False, balance=self._balance, reason=Rejection.INVALID_AMOUNT)
        meta = TransactionMeta(
            type=TransactionType.DEPOSIT,
            amount=amount,
            description=f"Deposited {amount} chips",
        )
        return self._apply(amount, meta)

    def collect_daily_bonus(self) -> LedgerResult:
        if self.daily_bonus_collected:
            return LedgerResult(ok=False, balance=self._balance, reason=Rejection.ALREADY_COLLECTED)

        today = self.clock.today().isoformat()
        meta = TransactionMeta(
            type=TransactionType.BONUS,
            amount=self.daily_bonus,
            description="Daily bonus collected",
        )
        result = self._apply(self.daily_bonus, meta, extra={KEY_LAST_BONUS: today})
        if result.ok:
            self.last_bonus_date = today
        return result

    def reset(self) -> LedgerResult:
        try:
            self.store.write_many({key: None for key in WALLET_KEYS})
        except StorageError as exc:
            log.warning("Could not reset wallet: %s", exc)
            return LedgerResult(ok=False, balance=self._balance, reason=Rejection.STORAGE_FAILURE)
        self._restore_defaults()
        log.info("Wallet reset to %d chips", self._balance)
        return LedgerResult(ok=True, balance=self._balance)

    def _restore_defaults(self) -> None:
        self._balance = self.starting_balance
        self._transactions = []
        self.last_bonus_date = None

    def _apply(
        self,
        delta: int,
        meta: TransactionMeta,
        extra: Optional[Mapping[str, Optional[str]]] = None,
    ) -> LedgerResult:
        if self.strict and self._balance + delta < 0:
            return LedgerResult(ok=False, balance=self._balance, reason=Rejection.INSUFFICIENT_FUNDS)

        new_balance = max(0, self._balance + delta)
        transaction = Transaction(
            id=uuid.uuid4().hex,
            type=meta.type,
            amount=meta.amount,
            timestamp=self.clock.now().isoformat(),
            description=meta.description,
            game=meta.game,
        )
        history = [transaction, *self._transactions][: self.history_limit]

        items = {
            KEY_BALANCE: str(new_balance),
            KEY_TRANSACTIONS: json.dumps([entry.to_dict() for entry in history]),
        }
        if extra:
            items.update(extra)

        try:
            self.store.write_many(items)
        except StorageError as exc:
            log.warning("Ledger write failed, balance left at %d: %s", self._balance, exc)
            return LedgerResult(ok=False, balance=self._balance, reason=Rejection.STORAGE_FAILURE)

        self._balance = new_balance
        self._transactions = history
        log.debug("Ledger %+d -> %d (%s)", delta, new_balance, meta.type.value)
        return LedgerResult(ok=True, balance=new_balance, transaction=transaction)
