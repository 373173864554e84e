# walletsim/config.py
import copy
import os
from typing import Any, Dict, List

import yaml

from .models import Asset, PaymentMethod

DEFAULT_CONFIG: Dict[str, Any] = {
    'system': {
        'log_level': 'INFO',
    },
    'user': {
        'nickname': 'test',
        'wallet_address': 'UQDc2wT_7-4-6_5-8_9-0_1-2_3-4_5-6_7-8_9-0_1',
    },
    'audit': {
        'operation_log': 'logs/operations.csv',
    },
    'display': {
        'currency': 'RUB',
        'exchange_rate': 92.5,
        'watch_seconds': 30,
    },
    'ledger': {
        'stable_asset': 'tether',
        'assets': [
            {'id': 'tether', 'symbol': 'USDT', 'name': 'Tether', 'balance': 0.0,
             'price_usd': 1.00, 'change_24h': 0.01, 'icon': '₮'},
            {'id': 'toncoin', 'symbol': 'TON', 'name': 'Toncoin', 'balance': 0.0,
             'price_usd': 5.42, 'change_24h': -1.24, 'icon': '◆'},
        ],
    },
    'deposit_methods': [
        {'id': 'sbp', 'name': 'СБП (Система Быстрых Платежей)', 'type': 'sbp', 'icon': '⚡'},
        {'id': 'ru_card', 'name': 'Банковская карта (RU)', 'type': 'card', 'icon': '🇷🇺'},
        {'id': 'ua_card', 'name': 'Банковская карта (UA)', 'type': 'card', 'icon': '🇺🇦'},
        {'id': 'eu_card', 'name': 'Банковская карта (EU)', 'type': 'card', 'icon': '🇪🇺'},
    ],
    'operations': {
        'deposit_latency_ms': 2000,
        'withdraw_latency_ms': 2000,
        'swap_latency_ms': 1500,
        'default_swap_from': 'tether',
        'default_swap_to': 'toncoin',
        'default_withdraw_asset': 'toncoin',
    },
    'notifications': {
        'timeout_ms': 4000,
    },
    'market': {
        'refresh_interval_seconds': 10,
        'network_delay_ms': 500,
        'price_jitter': 0.02,    # full width: +/- 0.01 per tick
        'change_jitter': 0.1,    # +/- 0.05 per tick
        'rate_drift': 0.5,       # +/- 0.25 RUB per tick
        'price_precision': 4,
        'change_precision': 2,
        'min_price': 0.0001,
        'failure_rate': 0.0,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(path: str = "config.yaml") -> Dict[str, Any]:
    """
    Reads the YAML file and lays it over DEFAULT_CONFIG.
    Lists (assets, deposit methods) are replaced wholesale, not merged.
    A missing file simply yields the defaults.
    """
    if not os.path.exists(path):
        return copy.deepcopy(DEFAULT_CONFIG)
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return _deep_merge(DEFAULT_CONFIG, raw)


def build_assets(config: Dict[str, Any]) -> List[Asset]:
    return [
        Asset(
            id=a['id'],
            symbol=a['symbol'],
            name=a.get('name', a['symbol']),
            balance=float(a.get('balance', 0.0)),
            price_usd=float(a['price_usd']),
            change_24h=float(a.get('change_24h', 0.0)),
            icon=a.get('icon', ''),
        )
        for a in config['ledger']['assets']
    ]


def build_payment_methods(config: Dict[str, Any]) -> Dict[str, PaymentMethod]:
    methods = {}
    for m in config['deposit_methods']:
        methods[m['id']] = PaymentMethod(id=m['id'], name=m['name'], type=m.get('type', 'card'), icon=m.get('icon', ''))
    return methods
