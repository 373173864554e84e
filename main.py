# main.py
import asyncio
import sys
from typing import Optional

import questionary
from rich.console import Console, Group
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

# Import Engines
from walletsim.config import load_config
from walletsim.logger import setup_console_logger, AsyncAuditLogger
from walletsim.models import Operation, OperationKind
from walletsim.pipeline import OperationPipeline
from walletsim.pricing import MockMarketFeed, PricingFeedAdapter
from walletsim.scheduler import Scheduler
from walletsim.state import WalletState
from walletsim.validation import parse_amount
from walletsim.errors import WalletError

ACTIONS = ["Deposit", "Withdraw", "Swap", "Hide / show balances", "Watch market", "Settings", "Quit"]

# --- UI HELPER FUNCTIONS ---

def generate_dashboard(state: WalletState):
    """
    Builds the wallet screen: header, total balance, asset list and the
    notification toast if one is visible.
    """
    snap = state.valuation()

    header = Panel(
        f"[bold]{snap.total_display_text}[/bold]\n[dim]Total balance in {state.currency}[/dim]",
        title=f"👤 {state.nickname.upper()}",
        subtitle=f"1 USD = {state.exchange_rate:.2f} {state.currency}",
    )

    # Assets Table
    table = Table(title="💰 Assets", expand=True)
    table.add_column("Asset", style="cyan")
    table.add_column("Price (USD)", justify="right")
    table.add_column("24h", justify="right")
    table.add_column("Balance", justify="right", style="bold")
    table.add_column(f"Value ({state.currency})", justify="right", style="dim")

    for asset, row in zip(state.ledger.assets, snap.assets):
        colour = "green" if asset.change_24h >= 0 else "red"
        sign = "+" if asset.change_24h >= 0 else ""
        table.add_row(
            f"{asset.icon} {asset.name}".strip(),
            f"${asset.price_usd:.2f}",
            f"[{colour}]{sign}{asset.change_24h}%[/{colour}]",
            row.balance_text,
            row.value_text,
        )

    parts = [header, table]
    note = state.notifier.visible
    if note is not None:
        parts.append(Panel(f"[green]✔ Success![/green] {escape(note.message)}", style="green"))
    return Group(*parts)


async def ask_amount(prompt: str, max_value: Optional[float] = None):
    """Returns the raw amount text; 'max' is replaced by the full balance."""
    hint = " (type 'max' for full balance)" if max_value is not None else ""
    text = await questionary.text(f"{prompt}{hint}:").ask_async()
    if text is None:
        return None
    if max_value is not None and text.strip().lower() == "max":
        return repr(max_value)
    return text


def describe(op: Operation) -> str:
    if op.committed:
        return f"[green]✅ {escape(op.message)}[/green]"
    return f"[red]⛔ {op.kind.value.capitalize()} rejected: {op.reason_name} ({escape(str(op.reason))})[/red]"


# --- MAIN CONTROLLER ---

class WalletApp:
    def __init__(self, config_path: str = "config.yaml"):
        self.config = load_config(config_path)
        self.logger = setup_console_logger("WalletSim", self.config['system']['log_level'])
        self.audit_log = AsyncAuditLogger(self.config['audit']['operation_log'])
        self.console = Console()
        self.state = None
        self.pipeline = None
        self.feed = None

    async def _submit(self, label: str, request):
        with self.console.status(f"{label} processing..."):
            op = await request
        self.console.print(describe(op))
        if not op.committed:
            # Rejected: the screen is unlocked, leave it
            self.state.close_surface(op.kind)
        return op

    async def deposit_flow(self):
        self.state.open_surface(OperationKind.DEPOSIT)
        choices = [questionary.Choice(f"{m.icon} {m.name}", value=m.id) for m in self.state.payment_methods.values()]
        method_id = await questionary.select("Deposit method:", choices=choices).ask_async()
        if method_id is None:
            self.state.close_surface(OperationKind.DEPOSIT)
            return
        self.console.print("[dim]Your bank may charge a fee.[/dim]")
        amount = await ask_amount(f"Amount in {self.state.ledger.stable_asset.symbol}")
        if amount is None:
            self.state.close_surface(OperationKind.DEPOSIT)
            return
        await self._submit("Deposit", self.pipeline.request_deposit(amount, method_id))

    async def withdraw_flow(self):
        ledger = self.state.ledger
        self.state.open_surface(OperationKind.WITHDRAW)
        default_id = self.config['operations']['default_withdraw_asset']
        choices = [questionary.Choice(f"{a.symbol} ({a.balance:.4f})", value=a.id) for a in ledger.assets]
        default = next((c for c in choices if c.value == default_id), None)
        asset_id = await questionary.select("Asset to withdraw:", choices=choices, default=default).ask_async()
        if asset_id is None:
            self.state.close_surface(OperationKind.WITHDRAW)
            return
        address = await questionary.text("Destination address:").ask_async()
        if address is None:
            self.state.close_surface(OperationKind.WITHDRAW)
            return
        amount = await ask_amount(f"Amount of {ledger.get(asset_id).symbol}", ledger.get(asset_id).balance)
        if amount is None:
            self.state.close_surface(OperationKind.WITHDRAW)
            return
        await self._submit("Withdrawal", self.pipeline.request_withdraw(asset_id, amount, address))

    async def swap_flow(self):
        ledger = self.state.ledger
        if len(ledger.assets) < 2:
            self.console.print("[yellow]Swaps need at least two assets.[/yellow]")
            return
        self.state.open_surface(OperationKind.SWAP)
        from_id = self.config['operations']['default_swap_from']
        to_id = self.config['operations']['default_swap_to']
        if ledger.get(from_id) is None or ledger.get(to_id) is None:
            from_id, to_id = ledger.assets[0].id, ledger.assets[-1].id

        while True:
            src, dst = ledger.get(from_id), ledger.get(to_id)
            rate, _ = ledger.quote_swap(from_id, to_id, 1.0)
            self.console.print(f"[dim]1 {src.symbol} ≈ {rate:.4f} {dst.symbol}[/dim]")
            switch = await questionary.confirm(f"Swap {src.symbol} → {dst.symbol}. Switch direction?", default=False).ask_async()
            if switch is None:
                self.state.close_surface(OperationKind.SWAP)
                return
            if not switch:
                break
            from_id, to_id = to_id, from_id

        amount = await ask_amount(f"Amount of {src.symbol}", src.balance)
        if amount is None:
            self.state.close_surface(OperationKind.SWAP)
            return
        try:
            _, preview = ledger.quote_swap(from_id, to_id, parse_amount(amount))
            self.console.print(f"You receive ≈ [bold]{preview:.4f} {dst.symbol}[/bold] (final rate fixed at settlement)")
        except WalletError as e:
            self.console.print(f"[yellow]⚠ {escape(str(e))}[/yellow]")
        await self._submit("Swap", self.pipeline.request_swap(from_id, to_id, amount))

    def settings_view(self):
        self.console.print(Panel(
            f"Nickname: [bold]{self.state.nickname}[/bold]\nWallet address: [cyan]{self.state.wallet_address}[/cyan]",
            title="⚙ Settings",
        ))

    async def watch_market(self):
        seconds = self.config['display']['watch_seconds']
        with Live(generate_dashboard(self.state), console=self.console, refresh_per_second=4) as live:
            # Toasts redraw the moment they appear or expire
            redraw = lambda _: live.update(generate_dashboard(self.state))
            self.state.notifier.subscribe(redraw)
            try:
                for _ in range(seconds * 4):
                    live.update(generate_dashboard(self.state))
                    await asyncio.sleep(0.25)
            finally:
                self.state.notifier.unsubscribe(redraw)

    async def run(self):
        market_cfg = self.config['market']
        await self.audit_log.start()
        try:
            async with Scheduler(self.logger) as scheduler:
                self.state = WalletState.from_config(self.config, scheduler, self.logger)
                self.pipeline = OperationPipeline(self.state, self.config['operations'], self.logger, self.audit_log)
                self.feed = PricingFeedAdapter(self.state, MockMarketFeed(market_cfg), self.logger)
                self.feed.start(scheduler, market_cfg['refresh_interval_seconds'])

                while True:
                    self.console.print(generate_dashboard(self.state))
                    action = await questionary.select("Action:", choices=ACTIONS).ask_async()
                    if action is None or action == "Quit":
                        break
                    if action == "Deposit":
                        await self.deposit_flow()
                    elif action == "Withdraw":
                        await self.withdraw_flow()
                    elif action == "Swap":
                        await self.swap_flow()
                    elif action == "Hide / show balances":
                        self.state.toggle_hidden()
                    elif action == "Watch market":
                        await self.watch_market()
                    elif action == "Settings":
                        self.settings_view()
        finally:
            print("Shutting down resources...")
            await self.audit_log.stop()


if __name__ == "__main__":
    try:
        app = WalletApp(sys.argv[1] if len(sys.argv) > 1 else "config.yaml")
        try:
            import uvloop
            run = uvloop.run
        except ImportError:
            run = asyncio.run
        run(app.run())
    except KeyboardInterrupt:
        print("\n🛑 Wallet closed by user.")
        sys.exit()
