# walletsim/pipeline.py
import asyncio
import logging
from typing import Callable, Optional

from .errors import OperationInProgress, WalletError
from .logger import AsyncAuditLogger
from .models import Operation, OperationKind, OperationStatus
from .state import WalletState
from .validation import OperationValidator, redact_address
from .valuation import format_usd


def _fmt_qty(value: float) -> str:
    # 50.0 -> "50", 0.125 -> "0.125", 1e-09 stays 1e-09
    return f"{value:.12g}"


class OperationPipeline:
    """
    Runs deposit, withdrawal and swap requests through
    IDLE -> VALIDATING -> PROCESSING -> COMMITTED | REJECTED.

    Validation failures never leave this class: they end up as a REJECTED
    Operation carrying the reason. Once PROCESSING starts the operation can
    neither be cancelled nor fail; the wait only stands in for settlement time.
    """
    def __init__(self, state: WalletState, ops_cfg: dict, logger: logging.Logger,
                 audit_log: Optional[AsyncAuditLogger] = None):
        self.state = state
        self.logger = logger
        self.audit_log = audit_log
        self.validator = OperationValidator(state.ledger, state.payment_methods)
        self.latency = {
            OperationKind.DEPOSIT: ops_cfg['deposit_latency_ms'] / 1000,
            OperationKind.WITHDRAW: ops_cfg['withdraw_latency_ms'] / 1000,
            OperationKind.SWAP: ops_cfg['swap_latency_ms'] / 1000,
        }

    # --- UI ENTRY POINTS ---

    async def request_deposit(self, amount_text: str, method_id: str) -> Operation:
        op = Operation(
            kind=OperationKind.DEPOSIT,
            asset_id=self.state.ledger.stable_asset_id,
            amount_text=amount_text,
            method_id=method_id,
        )
        return await self._run(op, self.validator.validate_deposit, self._commit_deposit)

    async def request_withdraw(self, asset_id: str, amount_text: str, address_text: str) -> Operation:
        op = Operation(
            kind=OperationKind.WITHDRAW,
            asset_id=asset_id,
            amount_text=amount_text,
            address=address_text,
        )
        return await self._run(op, self.validator.validate_withdraw, self._commit_withdraw)

    async def request_swap(self, from_id: str, to_id: str, amount_text: str) -> Operation:
        op = Operation(
            kind=OperationKind.SWAP,
            asset_id=from_id,
            to_asset_id=to_id,
            amount_text=amount_text,
        )
        return await self._run(op, self.validator.validate_swap, self._commit_swap)

    # --- STATE MACHINE ---

    async def _run(self, op: Operation, validate: Callable[[Operation], None],
                   commit: Callable[[Operation], None]) -> Operation:
        surface = self.state.surfaces[op.kind]
        op.advance(OperationStatus.VALIDATING)

        try:
            if surface.locked:
                raise OperationInProgress(f"A {op.kind.value} is already processing")
            validate(op)
        except WalletError as e:
            return await self._finish_rejected(op, e)

        # 1. PROCESSING: surface locked, close disabled
        op.advance(OperationStatus.PROCESSING)
        surface.open()
        surface.locked = True
        self.logger.info(f"⏳ {op.kind.value.upper()} processing | {_fmt_qty(op.amount)} {op.asset_id}")

        try:
            await asyncio.sleep(self.latency[op.kind])
        except asyncio.CancelledError:
            # Only reachable on shutdown; nothing was applied
            surface.locked = False
            raise

        # 2. COMMIT: exactly one ledger mutation
        try:
            commit(op)
        except WalletError as e:
            # Ledger re-check caught a balance drained during the wait
            surface.locked = False
            return await self._finish_rejected(op, e)
        except Exception:
            surface.locked = False
            raise

        op.advance(OperationStatus.COMMITTED)
        surface.dismiss()
        self.state.notifier.emit(op.message)
        self.logger.info(f"✅ {op.kind.value.upper()} committed | {op.message}")
        await self._audit(op)
        return op

    async def _finish_rejected(self, op: Operation, reason: WalletError) -> Operation:
        op.reject(reason)
        self.logger.warning(f"⛔ {op.kind.value.upper()} rejected | {type(reason).__name__}: {reason}")
        await self._audit(op)
        return op

    async def _audit(self, op: Operation):
        if self.audit_log is not None:
            await self.audit_log.log_operation(op)

    # --- COMMIT STEPS ---

    def _commit_deposit(self, op: Operation):
        self.state.ledger.apply_deposit(op.asset_id, op.amount)
        method = self.state.payment_methods[op.method_id]
        op.message = f"Deposit of {format_usd(op.amount)} via {method.name}"

    def _commit_withdraw(self, op: Operation):
        self.state.ledger.apply_withdraw(op.asset_id, op.amount)
        symbol = self.state.ledger.get(op.asset_id).symbol
        op.message = f"Withdrawal of {_fmt_qty(op.amount)} {symbol} to {redact_address(op.address)} completed"

    def _commit_swap(self, op: Operation):
        # Rate taken from the prices current now, not at request time
        _, op.received = self.state.ledger.apply_swap(op.asset_id, op.to_asset_id, op.amount)
        src = self.state.ledger.get(op.asset_id)
        dst = self.state.ledger.get(op.to_asset_id)
        op.message = f"Swapped {_fmt_qty(op.amount)} {src.symbol} for {op.received:.4f} {dst.symbol}"
