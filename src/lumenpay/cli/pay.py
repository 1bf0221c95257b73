"""CLI: lumenpay pay send"""

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
def pay():
    """Payments."""


@pay.command("send")
@click.argument("destination")
@click.argument("amount")
@click.option("-y", "--yes", is_flag=True, help="Sign without asking")
@click.option("--log", "log_to_registry", is_flag=True, help="Also record the payment in the registry contract")
def pay_send(destination: str, amount: str, yes: bool, log_to_registry: bool):
    """Send AMOUNT XLM to DESTINATION."""

    async def _send():
        async with _get_client(interactive=not yes) as client:
            accepted = await client.send_payment(destination, amount)
            console.print(f"[green]Sent {amount} XLM.[/green] tx {accepted.hash} ledger {accepted.ledger}")
            if log_to_registry:
                with console.status("Logging to registry..."):
                    logged = await client.log_payment(destination, amount)
                console.print(f"[green]Logged.[/green] tx {logged.hash}")

    _run(_send())
