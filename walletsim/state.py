import logging
from dataclasses import dataclass
from typing import Any, Dict

from .config import build_assets, build_payment_methods
from .ledger import Ledger
from .models import OperationKind, PaymentMethod
from .notifications import Notifier
from .scheduler import Scheduler
from .valuation import ValuationSnapshot, value_portfolio


@dataclass
class ModalSurface:
    """UI state of one operation screen (deposit, withdraw or swap)."""
    kind: OperationKind
    is_open: bool = False
    locked: bool = False

    def open(self):
        self.is_open = True

    def close(self) -> bool:
        # Close button is disabled while an operation is processing
        if self.locked:
            return False
        self.is_open = False
        return True

    def dismiss(self):
        self.locked = False
        self.is_open = False


class WalletState:
    """
    The single owned aggregate behind the wallet screen: balances, display
    rate, the hide-balances flag, the notifier and the three modal surfaces.
    Handlers receive it explicitly; nothing here is module-global.
    """
    def __init__(self, ledger: Ledger, exchange_rate: float, notifier: Notifier,
                 payment_methods: Dict[str, PaymentMethod], logger: logging.Logger,
                 nickname: str = "", wallet_address: str = "", currency: str = "RUB"):
        self.ledger = ledger
        self.notifier = notifier
        self.payment_methods = payment_methods
        self.logger = logger
        self.nickname = nickname
        self.wallet_address = wallet_address
        self.currency = currency
        self.hidden = False
        self.exchange_rate = 0.0
        self.set_exchange_rate(exchange_rate)
        self.surfaces = {kind: ModalSurface(kind) for kind in OperationKind}

    @classmethod
    def from_config(cls, config: Dict[str, Any], scheduler: Scheduler, logger: logging.Logger) -> "WalletState":
        ledger = Ledger(build_assets(config), config['ledger']['stable_asset'], logger)
        notifier = Notifier(scheduler, logger, config['notifications']['timeout_ms'])
        return cls(
            ledger=ledger,
            exchange_rate=float(config['display']['exchange_rate']),
            notifier=notifier,
            payment_methods=build_payment_methods(config),
            logger=logger,
            nickname=config['user']['nickname'],
            wallet_address=config['user']['wallet_address'],
            currency=config['display'].get('currency', 'RUB'),
        )

    def valuation(self) -> ValuationSnapshot:
        return value_portfolio(self.ledger.assets, self.exchange_rate, self.hidden)

    def toggle_hidden(self) -> bool:
        self.hidden = not self.hidden
        return self.hidden

    def set_exchange_rate(self, rate: float):
        if not rate > 0:
            raise ValueError(f"Exchange rate must be positive, got {rate}")
        self.exchange_rate = rate

    def open_surface(self, kind: OperationKind) -> ModalSurface:
        surface = self.surfaces[kind]
        surface.open()
        return surface

    def close_surface(self, kind: OperationKind) -> bool:
        return self.surfaces[kind].close()
