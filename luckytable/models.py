"""Domain models shared by the game engines and the wallet ledger."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional


class TransactionType(str, Enum):
    WIN = "win"
    LOSS = "loss"
    BONUS = "bonus"
    DEPOSIT = "deposit"


class Rejection(str, Enum):
    INVALID_BET = "invalid_bet"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    NO_BETS = "no_bets"
    INVALID_STATE = "invalid_state"
    DOUBLE_NOT_ALLOWED = "double_not_allowed"
    ALREADY_COLLECTED = "already_collected"
    STORAGE_FAILURE = "storage_failure"
    ROUND_IN_PROGRESS = "round_in_progress"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class TransactionMeta:
    """Fields a caller supplies for a ledger entry; id and timestamp are synthesized."""

    type: TransactionType
    amount: int
    description: str
    game: Optional[str] = None


@dataclass(frozen=True)
class Transaction:
    id: str
    type: TransactionType
    amount: int
    timestamp: str
    description: str
    game: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["type"] = self.type.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Transaction":
        return cls(
            id=str(data["id"]),
            type=TransactionType(data["type"]),
            amount=int(data["amount"]),
            timestamp=str(data["timestamp"]),
            description=str(data["description"]),
            game=data.get("game"),
        )

    @property
    def is_credit(self) -> bool:
        return self.type != TransactionType.LOSS


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    reason: Optional[Rejection] = None

    @classmethod
    def accepted(cls) -> "ActionResult":
        return cls(ok=True)

    @classmethod
    def rejected(cls, reason: Rejection) -> "ActionResult":
        return cls(ok=False, reason=reason)

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class LedgerResult:
    ok: bool
    balance: int
    transaction: Optional[Transaction] = None
    reason: Optional[Rejection] = None

    def __bool__(self) -> bool:
        return self.ok
