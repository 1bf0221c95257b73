"""CLI: lumenpay registry log|count"""

import click
from rich.console import Console

console = Console()


def _get_client(interactive: bool = True):
    from lumenpay.cli.main import _get_client
    return _get_client(interactive)


def _run(coro):
    from lumenpay.cli.main import _run
    return _run(coro)


@click.group()
def registry():
    """On-chain payment registry."""


@registry.command("log")
@click.argument("from_address")
@click.argument("to_address")
@click.argument("amount")
@click.option("-y", "--yes", is_flag=True, help="Sign without asking")
def registry_log(from_address: str, to_address: str, amount: str, yes: bool):
    """Record a FROM -> TO payment of AMOUNT."""

    async def _log():
        async with _get_client(interactive=not yes) as client:
            with console.status("Simulating..."):
                accepted = await client.log_payment(to_address, amount, source=from_address)
        console.print(f"[green]Logged.[/green] tx {accepted.hash}")

    _run(_log())


@registry.command("count")
def registry_count():
    """Number of payments the registry has recorded."""

    async def _count():
        async with _get_client(interactive=False) as client:
            with console.status("Querying registry..."):
                count = await client.payment_count()
            console.print(f"[bold]{count}[/bold] payments logged")
            console.print(f"[dim]{client.registry.explorer_url(client.network.name)}[/dim]")

    _run(_count())
