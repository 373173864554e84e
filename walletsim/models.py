# walletsim/models.py
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
import time

from .errors import WalletError


class OperationKind(Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    SWAP = "swap"


class OperationStatus(Enum):
    """
    Enum representing the lifecycle states of a wallet operation.
    """
    IDLE = "IDLE"
    VALIDATING = "VALIDATING"
    PROCESSING = "PROCESSING"
    COMMITTED = "COMMITTED"
    REJECTED = "REJECTED"


# Allowed lifecycle edges. COMMITTED and REJECTED are terminal.
_TRANSITIONS = {
    OperationStatus.IDLE: {OperationStatus.VALIDATING},
    OperationStatus.VALIDATING: {OperationStatus.PROCESSING, OperationStatus.REJECTED},
    OperationStatus.PROCESSING: {OperationStatus.COMMITTED, OperationStatus.REJECTED},
    OperationStatus.COMMITTED: set(),
    OperationStatus.REJECTED: set(),
}


@dataclass(frozen=True, slots=True)
class Asset:
    """
    Immutable snapshot of a held currency/token.
    The Ledger replaces instances instead of mutating them, so an unchanged
    row keeps its identity across ledger versions.
    """
    id: str
    symbol: str
    name: str
    balance: float
    price_usd: float
    change_24h: float  # percentage
    icon: str = ""

    @property
    def value_usd(self) -> float:
        return self.balance * self.price_usd


@dataclass(frozen=True, slots=True)
class PriceQuote:
    price_usd: float
    change_24h: float


@dataclass(frozen=True, slots=True)
class PaymentMethod:
    id: str
    name: str
    type: str  # 'card' | 'sbp'
    icon: str = ""


@dataclass(slots=True)
class Notification:
    """
    User-facing outcome event. Only `visible` ever changes after creation.
    """
    message: str
    visible: bool = True


@dataclass(slots=True)
class Operation:
    """
    One deposit, withdrawal or swap request moving through the pipeline.
    Holds the raw user input, the parsed values and the lifecycle trail.
    """
    kind: OperationKind
    asset_id: str
    amount_text: str
    to_asset_id: Optional[str] = None   # swap destination
    address: str = ""                   # withdraw destination
    method_id: str = ""                 # deposit payment method
    amount: float = 0.0
    received: float = 0.0               # swap output, computed at commit
    status: OperationStatus = OperationStatus.IDLE
    history: List[OperationStatus] = field(default_factory=lambda: [OperationStatus.IDLE])
    reason: Optional[WalletError] = None
    message: str = ""
    timestamp: float = field(default_factory=time.time)

    def advance(self, status: OperationStatus):
        if status not in _TRANSITIONS[self.status]:
            raise ValueError(f"Illegal transition {self.status.value} -> {status.value}")
        self.status = status
        self.history.append(status)

    def reject(self, reason: WalletError):
        self.reason = reason
        self.advance(OperationStatus.REJECTED)

    @property
    def committed(self) -> bool:
        return self.status is OperationStatus.COMMITTED

    @property
    def reason_name(self) -> str:
        return type(self.reason).__name__ if self.reason else ""
