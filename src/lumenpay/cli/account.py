"""CLI: lumenpay account balance|history|fund"""

import json
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from lumenpay.amount import from_stroops

console = Console()


def _get_client(interactive: bool = True):
    from lumenpay.cli.main import _get_client
    return _get_client(interactive)


def _run(coro):
    from lumenpay.cli.main import _run
    return _run(coro)


@click.group()
def account():
    """Account reads and funding."""


@account.command("balance")
@click.argument("address", required=False)
def account_balance(address: Optional[str]):
    """Native balance of ADDRESS (default: the connected wallet)."""

    async def _balance():
        async with _get_client(interactive=False) as client:
            with console.status("Fetching account..."):
                balance = await client.balance(address)
        console.print(f"[bold]{balance}[/bold] XLM")

    _run(_balance())


@account.command("history")
@click.argument("address", required=False)
@click.option("--limit", default=None, type=int, help="Keep only the latest N samples")
@click.option("--json-output", "--json", is_flag=True)
def account_history(address: Optional[str], limit: Optional[int], json_output: bool):
    """Balance over time, rebuilt from the payment log."""

    async def _history():
        async with _get_client(interactive=False) as client:
            with console.status("Fetching payments..."):
                samples = await client.balance_history(address, limit=limit)
        if json_output:
            click.echo(json.dumps(
                [{"timestamp": s.timestamp.isoformat(), "balance": from_stroops(s.balance)} for s in samples],
                indent=2,
            ))
            return
        table = Table(title="Balance history (best effort, payments only)")
        table.add_column("Time")
        table.add_column("Balance (XLM)", justify="right")
        for s in samples:
            table.add_row(s.timestamp.strftime("%Y-%m-%d %H:%M:%S"), from_stroops(s.balance))
        console.print(table)

    _run(_history())


@account.command("fund")
@click.argument("address", required=False)
def account_fund(address: Optional[str]):
    """Fund ADDRESS from the test network friendbot."""

    async def _fund():
        async with _get_client(interactive=False) as client:
            with console.status("Asking friendbot..."):
                funded = await client.fund(address)
        if funded:
            console.print("[green]Funded.[/green]")
        else:
            console.print("[yellow]Friendbot refused; the account is probably funded already.[/yellow]")

    _run(_fund())
