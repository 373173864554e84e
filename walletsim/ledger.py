import logging
import math
from dataclasses import replace
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .errors import InsufficientBalance, InvalidAmount, InvalidAssetPair, UnknownAsset
from .models import Asset, PriceQuote


class Ledger:
    """
    Authoritative in-memory set of asset balances.

    Every entry point builds a new tuple in which only the targeted assets are
    replaced; untouched rows are the very same objects as before, so a view
    comparing identities sees exactly the rows that changed.
    """
    def __init__(self, assets: Iterable[Asset], stable_asset_id: str, logger: logging.Logger):
        self.logger = logger
        self.assets: Tuple[Asset, ...] = tuple(assets)
        self.stable_asset_id = stable_asset_id

        ids = [a.id for a in self.assets]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate asset ids in seed set: {ids}")
        symbols = [a.symbol for a in self.assets]
        if len(set(symbols)) != len(symbols):
            raise ValueError(f"Duplicate asset symbols in seed set: {symbols}")
        if stable_asset_id not in ids:
            raise ValueError(f"Stable asset '{stable_asset_id}' is not in the seed set")
        if any(not math.isfinite(a.balance) or a.balance < 0 for a in self.assets):
            raise ValueError("Seed balances must be finite and non-negative")
        bad_prices = [a.id for a in self.assets if not self._valid_price(a.price_usd)]
        if bad_prices:
            raise ValueError(f"Seed prices must be finite and positive: {bad_prices}")

    # --- READ HELPERS ---

    def get(self, asset_id: str) -> Optional[Asset]:
        for asset in self.assets:
            if asset.id == asset_id:
                return asset
        return None

    @property
    def stable_asset(self) -> Asset:
        return self.get(self.stable_asset_id)

    def check_liquidity(self, asset_id: str, amount_needed: float) -> bool:
        asset = self.get(asset_id)
        if asset is None:
            return False
        return asset.balance >= amount_needed

    def quote_swap(self, from_id: str, to_id: str, amount: float) -> Tuple[float, float]:
        """Returns (rate, received) at current prices without touching balances."""
        src, dst = self._resolve_pair(from_id, to_id)
        rate = src.price_usd / dst.price_usd
        return rate, amount * rate

    # --- MUTATION ENTRY POINTS ---

    def apply_deposit(self, asset_id: str, amount: float) -> Tuple[Asset, ...]:
        # Deposits only ever credit the stable-value asset.
        if asset_id != self.stable_asset_id:
            raise InvalidAssetPair(f"Deposits are only accepted in {self.stable_asset_id}, got {asset_id}")
        self._check_amount(amount)
        asset = self._require(asset_id)
        return self._commit({asset_id: replace(asset, balance=asset.balance + amount)})

    def apply_withdraw(self, asset_id: str, amount: float) -> Tuple[Asset, ...]:
        self._check_amount(amount)
        asset = self._require(asset_id)
        if amount > asset.balance:
            raise InsufficientBalance(f"Withdraw {amount} {asset.symbol} exceeds balance {asset.balance}")
        return self._commit({asset_id: replace(asset, balance=asset.balance - amount)})

    def apply_swap(self, from_id: str, to_id: str, amount: float) -> Tuple[Tuple[Asset, ...], float]:
        """
        Converts `amount` of `from_id` into `to_id` at the prices current right now.

        Returns:
            Tuple(new asset set, received amount)
        """
        self._check_amount(amount)
        src, dst = self._resolve_pair(from_id, to_id)
        if amount > src.balance:
            raise InsufficientBalance(f"Swap {amount} {src.symbol} exceeds balance {src.balance}")

        rate = src.price_usd / dst.price_usd
        received = amount * rate
        assets = self._commit({
            from_id: replace(src, balance=src.balance - amount),
            to_id: replace(dst, balance=dst.balance + received),
        })
        return assets, received

    def apply_price_update(self, quotes: Mapping[str, PriceQuote]) -> Tuple[Asset, ...]:
        changes = {}
        for asset_id, quote in quotes.items():
            asset = self.get(asset_id)
            if asset is None:
                # Never create assets implicitly
                self.logger.debug(f"Ignoring quote for unknown asset '{asset_id}'")
                continue
            if not self._valid_price(quote.price_usd) or not math.isfinite(quote.change_24h):
                self.logger.warning(f"Ignoring malformed quote for '{asset_id}': {quote}")
                continue
            changes[asset_id] = replace(asset, price_usd=quote.price_usd, change_24h=quote.change_24h)
        return self._commit(changes)

    # --- INTERNALS ---

    def _commit(self, changes: Dict[str, Asset]) -> Tuple[Asset, ...]:
        if changes:
            self.assets = tuple(changes.get(a.id, a) for a in self.assets)
        return self.assets

    def _require(self, asset_id: str) -> Asset:
        asset = self.get(asset_id)
        if asset is None:
            raise UnknownAsset(f"Unknown asset '{asset_id}'")
        return asset

    def _resolve_pair(self, from_id: str, to_id: str) -> Tuple[Asset, Asset]:
        if from_id == to_id:
            raise InvalidAssetPair(f"Cannot swap {from_id} into itself")
        src, dst = self.get(from_id), self.get(to_id)
        if src is None or dst is None:
            raise InvalidAssetPair(f"Unknown asset in pair {from_id} -> {to_id}")
        return src, dst

    @staticmethod
    def _valid_price(price: float) -> bool:
        return math.isfinite(price) and price > 0

    @staticmethod
    def _check_amount(amount: float):
        if not math.isfinite(amount) or amount <= 0:
            raise InvalidAmount(f"Amount must be a finite number greater than zero, got {amount}")
