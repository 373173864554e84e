import csv
import io
import logging

import pytest

from walletsim.errors import InsufficientBalance
from walletsim.logger import AUDIT_HEADER, AsyncAuditLogger, setup_console_logger
from walletsim.models import Operation, OperationKind, OperationStatus
from walletsim.pipeline import OperationPipeline


def read_rows(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


class TestAsyncAuditLogger:
    @pytest.mark.asyncio
    async def test_creates_directory_and_header(self, tmp_path):
        path = tmp_path / "logs" / "operations.csv"
        audit = AsyncAuditLogger(str(path))
        await audit.start()
        await audit.stop()

        assert read_rows(path) == [AUDIT_HEADER]

    @pytest.mark.asyncio
    async def test_rows_for_committed_and_rejected(self, tmp_path):
        path = tmp_path / "operations.csv"
        audit = AsyncAuditLogger(str(path))
        await audit.start()

        ok = Operation(kind=OperationKind.SWAP, asset_id="tether", to_asset_id="toncoin",
                       amount_text="50", amount=50.0, received=9.2251)
        ok.advance(OperationStatus.VALIDATING)
        ok.advance(OperationStatus.PROCESSING)
        ok.advance(OperationStatus.COMMITTED)

        bad = Operation(kind=OperationKind.WITHDRAW, asset_id="toncoin", amount_text="100", amount=100.0)
        bad.advance(OperationStatus.VALIDATING)
        bad.reject(InsufficientBalance("not enough"))

        await audit.log_operation(ok)
        await audit.log_operation(bad)
        await audit.stop()

        header, first, second = read_rows(path)
        assert header == AUDIT_HEADER
        assert first[1:] == ["swap", "tether", "50.00000000", "toncoin", "9.22510000", "COMMITTED", ""]
        assert second[1:] == ["withdraw", "toncoin", "100.00000000", "", "0.00000000", "REJECTED", "InsufficientBalance"]

    @pytest.mark.asyncio
    async def test_header_not_duplicated_on_restart(self, tmp_path):
        path = tmp_path / "operations.csv"
        for _ in range(2):
            audit = AsyncAuditLogger(str(path))
            await audit.start()
            await audit.stop()
        assert read_rows(path) == [AUDIT_HEADER]

    @pytest.mark.asyncio
    async def test_pipeline_writes_audit_trail(self, tmp_path, state, config, logger):
        path = tmp_path / "operations.csv"
        audit = AsyncAuditLogger(str(path))
        await audit.start()
        pipeline = OperationPipeline(state, config['operations'], logger, audit_log=audit)

        await pipeline.request_deposit("100", "sbp")
        await pipeline.request_swap("tether", "tether", "1")
        await audit.stop()

        rows = read_rows(path)[1:]
        assert [(r[1], r[6], r[7]) for r in rows] == [
            ("deposit", "COMMITTED", ""),
            ("swap", "REJECTED", "InvalidAssetPair"),
        ]


class TestConsoleLogger:
    def test_handler_added_once(self):
        stream = io.StringIO()
        log = setup_console_logger("walletsim.tests.console", "INFO", stream=stream)
        again = setup_console_logger("walletsim.tests.console", "INFO", stream=stream)

        assert log is again
        assert len(log.handlers) == 1
        log.info("hello")
        assert "| INFO |" in stream.getvalue()
        assert log.level == logging.INFO
