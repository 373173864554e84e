# walletsim/pricing.py
import asyncio
import logging
import random
from typing import Dict, Iterable, Optional

from .errors import FeedUnavailable
from .models import Asset, PriceQuote
from .scheduler import Scheduler
from .state import WalletState


class MockMarketFeed:
    """
    Stand-in for a live market API (CoinGecko, Binance...).
    Each fetch waits a simulated network delay and returns every asset's
    price nudged by a small symmetric random step.
    """
    def __init__(self, market_cfg: dict, rng: Optional[random.Random] = None):
        self.cfg = market_cfg
        self.rng = rng or random.Random()

    def _jitter(self, width: float) -> float:
        # Uniform in [-width/2, +width/2)
        return (self.rng.random() - 0.5) * width

    async def fetch_quotes(self, assets: Iterable[Asset]) -> Dict[str, PriceQuote]:
        await asyncio.sleep(self.cfg['network_delay_ms'] / 1000)

        if self.rng.random() < self.cfg.get('failure_rate', 0.0):
            raise FeedUnavailable("Market data endpoint did not respond")

        quotes = {}
        for asset in assets:
            price = asset.price_usd + self._jitter(self.cfg['price_jitter'])
            change = asset.change_24h + self._jitter(self.cfg['change_jitter'])
            quotes[asset.id] = PriceQuote(
                price_usd=round(max(price, self.cfg['min_price']), self.cfg['price_precision']),
                change_24h=round(change, self.cfg['change_precision']),
            )
        return quotes

    def drift_rate(self, rate: float) -> float:
        return rate + self._jitter(self.cfg['rate_drift'])


class PricingFeedAdapter:
    """
    Pulls quotes from the feed on a fixed cadence and pushes them into the
    Ledger. A failed tick is logged and skipped; the previous prices stay
    in effect until the next successful one.
    """
    def __init__(self, state: WalletState, feed: MockMarketFeed, logger: logging.Logger):
        self.state = state
        self.feed = feed
        self.logger = logger
        self.ticks = 0
        self.failures = 0

    async def refresh_prices(self) -> bool:
        try:
            quotes = await self.feed.fetch_quotes(self.state.ledger.assets)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.failures += 1
            self.logger.warning(f"📡 Price refresh skipped: {e}")
            return False

        # Only prices move here; balances changed during the fetch are kept.
        self.state.ledger.apply_price_update(quotes)
        self.logger.debug(f"📡 Prices updated for {len(quotes)} assets")
        return True

    def refresh_rate(self) -> bool:
        try:
            self.state.set_exchange_rate(self.feed.drift_rate(self.state.exchange_rate))
        except Exception as e:
            self.logger.warning(f"💱 Exchange rate update skipped: {e}")
            return False
        return True

    def start(self, scheduler: Scheduler, interval_seconds: float) -> asyncio.Task:
        self.logger.info(f"📡 Price refresh every {interval_seconds}s for {len(self.state.ledger.assets)} assets")
        return scheduler.every(interval_seconds, self.tick, name="price-refresh")

    async def tick(self):
        self.ticks += 1
        await self.refresh_prices()
        # Decoupled from quotes: drifts even when the fetch failed
        self.refresh_rate()
