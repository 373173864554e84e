# walletsim/logger.py
import asyncio
import aiofiles
from aiocsv import AsyncWriter
import logging
import sys
import os
from datetime import datetime, timezone
from typing import List, Any, Optional

from .models import Operation

AUDIT_HEADER = ["timestamp", "kind", "asset", "amount", "to_asset", "received", "status", "reason"]


def operation_row(op: Operation) -> List[Any]:
    return [
        datetime.fromtimestamp(op.timestamp, tz=timezone.utc).isoformat(),
        op.kind.value,
        op.asset_id,
        f"{op.amount:.8f}",
        op.to_asset_id or "",
        f"{op.received:.8f}",
        op.status.value,
        op.reason_name,
    ]


class AsyncAuditLogger:
    """
    Non-blocking CSV trail of finished wallet operations.
    Decouples disk I/O from the UI loop using an asyncio Queue.
    """
    def __init__(self, filepath: str):
        self.filepath = filepath
        self._queue: asyncio.Queue = asyncio.Queue()
        self._worker_task: Optional[asyncio.Task] = None

    async def start(self):
        """
        Creates the directory and the header row if missing, then starts the background writer.
        """
        directory = os.path.dirname(self.filepath)
        if directory and not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)

        if not os.path.exists(self.filepath) or os.path.getsize(self.filepath) == 0:
            async with aiofiles.open(self.filepath, mode='w', newline='') as f:
                writer = AsyncWriter(f, dialect='unix')
                await writer.writerow(AUDIT_HEADER)
        self._worker_task = asyncio.create_task(self._writer_worker())

    async def log_operation(self, op: Operation):
        """
        Non-blocking call to add an operation record to the queue.
        """
        await self._queue.put(operation_row(op))

    async def stop(self):
        """Flushes queued rows and stops the writer."""
        if self._worker_task is None:
            return
        await self._queue.join()
        self._worker_task.cancel()
        await asyncio.gather(self._worker_task, return_exceptions=True)
        self._worker_task = None

    async def _writer_worker(self):
        while True:
            row = await self._queue.get()
            try:
                async with aiofiles.open(self.filepath, mode='a', newline='') as f:
                    writer = AsyncWriter(f, dialect='unix')
                    await writer.writerow(row)
            except Exception as e:
                # Disk trouble must not take the wallet down
                print(f"AUDIT LOG FAILURE: {e}", file=sys.stderr)
            finally:
                self._queue.task_done()


def setup_console_logger(name: str, level: str, stream=None):
    """
    Sets up the standard Python logger for console output.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(stream or sys.stdout)
        formatter = logging.Formatter('%(asctime)s | %(levelname)s | %(module)s | %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
