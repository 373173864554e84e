# walletsim/valuation.py
from dataclasses import dataclass
from typing import Iterable, Tuple

from .models import Asset

MASK_TOTAL = "••••••"
MASK_ROW = "••••"


@dataclass(frozen=True, slots=True)
class AssetValuation:
    asset_id: str
    symbol: str
    balance: float
    value_usd: float
    value_display: float
    balance_text: str
    value_text: str


@dataclass(frozen=True, slots=True)
class ValuationSnapshot:
    """
    Derived view of the portfolio. Never stored; rebuild it from the
    current ledger and rate whenever something needs to be shown.
    """
    assets: Tuple[AssetValuation, ...]
    total_usd: float
    total_display: float
    rate: float
    hidden: bool
    total_usd_text: str
    total_display_text: str


def format_usd(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_rub(value: float) -> str:
    """Whole roubles grouped by spaces, e.g. '9 250 ₽'."""
    return f"{round(value):,}".replace(",", " ") + " ₽"


def value_portfolio(assets: Iterable[Asset], rate: float, hidden: bool = False) -> ValuationSnapshot:
    rows = []
    total_usd = 0.0
    for asset in assets:
        value_usd = asset.value_usd
        value_display = value_usd * rate
        total_usd += value_usd
        rows.append(AssetValuation(
            asset_id=asset.id,
            symbol=asset.symbol,
            balance=asset.balance,
            value_usd=value_usd,
            value_display=value_display,
            balance_text=MASK_ROW if hidden else f"{asset.balance:.2f} {asset.symbol}",
            value_text=MASK_ROW if hidden else format_rub(value_display),
        ))

    total_display = total_usd * rate
    return ValuationSnapshot(
        assets=tuple(rows),
        total_usd=total_usd,
        total_display=total_display,
        rate=rate,
        hidden=hidden,
        total_usd_text=MASK_TOTAL if hidden else format_usd(total_usd),
        total_display_text=MASK_TOTAL if hidden else format_rub(total_display),
    )
