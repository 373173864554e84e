import copy
import logging

import pytest

from walletsim.config import DEFAULT_CONFIG
from walletsim.pipeline import OperationPipeline
from walletsim.scheduler import Scheduler
from walletsim.state import WalletState


@pytest.fixture
def logger():
    return logging.getLogger("walletsim.tests")


@pytest.fixture
def config():
    """Default config with the simulated waits shrunk to nothing."""
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    cfg['operations'].update(deposit_latency_ms=0, withdraw_latency_ms=0, swap_latency_ms=0)
    cfg['notifications']['timeout_ms'] = 50
    cfg['market']['network_delay_ms'] = 0
    return cfg


@pytest.fixture
def scheduler(logger):
    return Scheduler(logger)


@pytest.fixture
def state(config, scheduler, logger):
    return WalletState.from_config(config, scheduler, logger)


@pytest.fixture
def pipeline(state, config, logger):
    return OperationPipeline(state, config['operations'], logger)
