import copy
import logging
from pathlib import Path

import pytest

from walletsim.config import DEFAULT_CONFIG, build_assets, build_payment_methods, load_config
from walletsim.models import OperationKind
from walletsim.state import WalletState


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        cfg = load_config(str(tmp_path / "nope.yaml"))
        assert cfg == DEFAULT_CONFIG
        assert cfg is not DEFAULT_CONFIG

    def test_yaml_overrides_are_deep_merged(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "display:\n"
            "  exchange_rate: 100.0\n"
            "ledger:\n"
            "  assets:\n"
            "    - {id: tether, symbol: USDT, name: Tether, balance: 5, price_usd: 1.0}\n",
            encoding="utf-8",
        )
        cfg = load_config(str(path))

        assert cfg['display']['exchange_rate'] == 100.0
        assert cfg['display']['currency'] == "RUB"
        assert cfg['ledger']['stable_asset'] == "tether"
        # Lists are replaced, not merged
        assert len(cfg['ledger']['assets']) == 1
        assert DEFAULT_CONFIG['display']['exchange_rate'] == 92.5

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)) == DEFAULT_CONFIG

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(str(path))

    def test_shipped_config_matches_seed(self):
        cfg = load_config(str(Path(__file__).parent.parent / "config.yaml"))
        ids = [a['id'] for a in cfg['ledger']['assets']]
        assert ids == ["tether", "toncoin"]
        assert cfg['operations']['swap_latency_ms'] == 1500


class TestBuilders:
    def test_build_assets(self):
        seed = build_assets(DEFAULT_CONFIG)
        assert [(a.symbol, a.balance, a.price_usd) for a in seed] == [("USDT", 0.0, 1.0), ("TON", 0.0, 5.42)]

    def test_build_payment_methods(self):
        methods = build_payment_methods(DEFAULT_CONFIG)
        assert list(methods) == ["sbp", "ru_card", "ua_card", "eu_card"]
        assert methods["sbp"].type == "sbp"


class TestWalletState:
    def test_from_config(self, state):
        assert state.exchange_rate == 92.5
        assert state.nickname == "test"
        assert state.ledger.stable_asset_id == "tether"
        assert set(state.surfaces) == set(OperationKind)

    def test_toggle_hidden_masks_valuation(self, state):
        assert state.toggle_hidden() is True
        assert state.valuation().hidden
        assert state.toggle_hidden() is False

    def test_exchange_rate_must_be_positive(self, state):
        with pytest.raises(ValueError):
            state.set_exchange_rate(0)
        assert state.exchange_rate == 92.5

    def test_surface_open_close(self, state):
        surface = state.open_surface(OperationKind.SWAP)
        assert surface.is_open
        assert state.close_surface(OperationKind.SWAP) is True
        assert not surface.is_open

    def test_missing_stable_asset_rejected(self, scheduler):
        cfg = copy.deepcopy(DEFAULT_CONFIG)
        cfg['ledger']['stable_asset'] = "dollar"
        with pytest.raises(ValueError):
            WalletState.from_config(cfg, scheduler, logging.getLogger("test"))
