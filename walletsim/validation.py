# walletsim/validation.py
import math
import re
from typing import Dict

from .errors import (InsufficientBalance, InvalidAmount, InvalidAssetPair,
                     InvalidPaymentMethod, MissingAddress, UnknownAsset)
from .ledger import Ledger
from .models import Operation, PaymentMethod

# Plain decimal notation with an optional exponent: "100", "0.5", ".5", "1e3".
# Hex, underscores, "inf" and "nan" are refused before float() ever sees them.
_AMOUNT_RE = re.compile(r"^\+?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


def parse_amount(text) -> float:
    """Parses user-entered amount text into a finite float strictly above zero."""
    if text is None:
        raise InvalidAmount("Amount is required")
    raw = str(text).strip()
    if not _AMOUNT_RE.match(raw):
        raise InvalidAmount(f"'{raw}' is not a number")
    value = float(raw)
    if not math.isfinite(value):
        raise InvalidAmount(f"'{raw}' is not a finite number")
    if value <= 0:
        raise InvalidAmount(f"Amount must be greater than zero, got {raw}")
    return value


def redact_address(address: str) -> str:
    """Shows only the first and last 4 characters: 'UQDc...9_01'."""
    return f"{address[:4]}...{address[-4:]}"


class OperationValidator:
    """
    The gatekeeper between raw user input and the Ledger.
    Each check raises a specific WalletError and never touches state;
    the pipeline turns the error into a REJECTED operation.
    """
    def __init__(self, ledger: Ledger, payment_methods: Dict[str, PaymentMethod]):
        self.ledger = ledger
        self.payment_methods = payment_methods

    def validate_deposit(self, op: Operation):
        op.amount = parse_amount(op.amount_text)
        if op.method_id not in self.payment_methods:
            raise InvalidPaymentMethod(f"Unknown payment method '{op.method_id}'")

    def validate_withdraw(self, op: Operation):
        asset = self.ledger.get(op.asset_id)
        if asset is None:
            raise UnknownAsset(f"Unknown asset '{op.asset_id}'")

        op.amount = parse_amount(op.amount_text)

        op.address = (op.address or "").strip()
        if not op.address:
            raise MissingAddress("Destination address is required")

        if not self.ledger.check_liquidity(asset.id, op.amount):
            raise InsufficientBalance(f"Insufficient {asset.symbol}: requested {op.amount}, available {asset.balance}")

    def validate_swap(self, op: Operation):
        if op.asset_id == op.to_asset_id:
            raise InvalidAssetPair("Source and destination assets must differ")
        src = self.ledger.get(op.asset_id)
        if src is None or self.ledger.get(op.to_asset_id) is None:
            raise InvalidAssetPair(f"Unknown asset in pair {op.asset_id} -> {op.to_asset_id}")

        op.amount = parse_amount(op.amount_text)

        if not self.ledger.check_liquidity(src.id, op.amount):
            raise InsufficientBalance(f"Insufficient {src.symbol}: requested {op.amount}, available {src.balance}")
