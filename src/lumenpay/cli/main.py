"""
LumenPay CLI — `lumenpay` command.

Commands:
  lumenpay wallet <cmd>     Connect, inspect or drop the signing wallet
  lumenpay account <cmd>    Balance, balance history, test-network funding
  lumenpay pay send         Send a native payment
  lumenpay registry <cmd>   On-chain payment registry
  lumenpay config <cmd>     Show or change settings
"""

import asyncio
from typing import Optional

import click
from rich.console import Console

from lumenpay import __version__
from lumenpay.amount import from_stroops
from lumenpay.client import AsyncLumenPay
from lumenpay.config import Settings, load_settings
from lumenpay.errors import LumenPayError, user_message
from lumenpay.log import setup_logging
from lumenpay.models.transaction import Payment, TransactionEnvelope

console = Console()


def _settings() -> Settings:
    ctx = click.get_current_context()
    root = ctx.find_root()
    if root.obj is None:
        root.obj = load_settings()
    return root.obj


def _confirm_envelope(envelope: TransactionEnvelope) -> bool:
    op = envelope.operations[0]
    if isinstance(op, Payment):
        what = f"pay {from_stroops(op.amount)} XLM to {op.destination.short()}"
    else:
        what = f"call {op.function} on {op.contract.short()}"
    console.print(f"[bold]Sign:[/bold] {what} (fee {envelope.fee} stroops, seq {envelope.sequence})")
    return click.confirm("Approve?", default=True)


def _get_client(interactive: bool = True) -> AsyncLumenPay:
    """Client with the persisted wallet session rehydrated."""
    client = AsyncLumenPay(_settings(), approve=_confirm_envelope if interactive else None)
    client.rehydrate()
    return client


def _run(coro):
    try:
        return asyncio.run(coro)
    except LumenPayError as e:
        console.print(f"[red]{user_message(e)}[/red]")
        raise SystemExit(1)


@click.group()
@click.version_option(__version__)
@click.option("-v", "--verbose", count=True, help="-v for info, -vv for debug logging")
@click.option("--log-json", is_flag=True, help="Log as JSON lines")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None,
              help="Also append JSON log lines to this file (info level unless -vv)")
@click.option("--network", default=None, help="testnet, futurenet or public")
@click.pass_context
def main(ctx: click.Context, verbose: int, log_json: bool, log_file: Optional[str], network: Optional[str]):
    """LumenPay: Stellar payments from the terminal."""
    if verbose or log_json or log_file:
        level = "DEBUG" if verbose > 1 else "INFO" if verbose or log_file else "WARNING"
        setup_logging(level=level, fmt="json" if log_json else "human", log_file=log_file)
    try:
        settings = load_settings()
    except LumenPayError as e:
        console.print(f"[red]{user_message(e)}[/red]")
        raise SystemExit(1)
    if network:
        settings = settings.model_copy(update={"network": network})
    ctx.obj = settings


# Register subcommands from separate modules
from lumenpay.cli.account import account
from lumenpay.cli.config import config_cmd
from lumenpay.cli.pay import pay
from lumenpay.cli.registry import registry
from lumenpay.cli.wallet import wallet

main.add_command(wallet)
main.add_command(account)
main.add_command(pay)
main.add_command(registry)
main.add_command(config_cmd)


if __name__ == "__main__":
    main()
