"""CLI: lumenpay wallet connect|status|disconnect"""

from typing import Optional

import click
from rich.console import Console

from lumenpay.errors import SignerError, user_message
from lumenpay.models.wallet import Connected, Error

console = Console()


def _get_client(interactive: bool = True):
    from lumenpay.cli.main import _get_client
    return _get_client(interactive)


def _run(coro):
    from lumenpay.cli.main import _run
    return _run(coro)


@click.group()
def wallet():
    """Wallet session commands."""


@wallet.command("connect")
@click.option("--backend", default=None, help="Signer backend id (keypair, remote)")
def wallet_connect(backend: Optional[str]):
    """Connect a signing wallet and remember it."""

    async def _connect():
        async with _get_client() as client:
            if client.session.connected:
                client.disconnect()
            with console.status("Connecting wallet..."):
                state = await client.connect(backend)
            if isinstance(state, Error):
                console.print(f"[red]{user_message(SignerError(state.message, state.kind))}[/red]")
                console.print(f"[dim]{state.message}[/dim]")
                return False
            console.print(f"[green]Connected[/green] {state.address} via {state.wallet_id} on {state.network}")
            return True

    if not _run(_connect()):
        raise SystemExit(1)


@wallet.command("status")
def wallet_status():
    """Show the remembered wallet session."""

    async def _status():
        async with _get_client() as client:
            state = client.session.state
            if isinstance(state, Connected):
                console.print(f"[green]Connected[/green] {state.address} via {state.wallet_id} on {state.network}")
                console.print("[dim]Restored from disk; the first signature confirms the wallet is live.[/dim]")
            else:
                console.print("[yellow]No wallet connected. Run `lumenpay wallet connect`.[/yellow]")

    _run(_status())


@wallet.command("disconnect")
def wallet_disconnect():
    """Forget the wallet session."""

    async def _disconnect():
        async with _get_client() as client:
            client.disconnect()
        console.print("[green]Disconnected.[/green]")

    _run(_disconnect())
