"""
ContractInvocationPreparer — builds a contract call, simulates it and
assembles the resource-annotated envelope.

Two sequential round trips per call (account read, simulation). Nothing
is cached: every call simulates afresh against current ledger state.
"""

import logging
from typing import Any, Iterable, Optional

from lumenpay.builder import TransactionBuilder, assemble
from lumenpay.config import DEFAULT_CONTRACT_INCLUSION_FEE
from lumenpay.errors import (
    AccountNotFound,
    HttpError,
    InvalidAddress,
    NetworkError,
    RpcError,
    SimulationError,
    ValidationError,
    XdrError,
)
from lumenpay.models.outcome import NetworkFailure, Prepared, PrepareOutcome, SimulationFailed, SimulationResult
from lumenpay.models.transaction import ContractInvoke
from lumenpay.scval import from_native
from lumenpay.strkey import AccountAddress, ContractAddress
from lumenpay.transport.rpc import SorobanRpcClient

logger = logging.getLogger(__name__)

SYMBOL_MAX = 32


class ContractInvocationPreparer:
    def __init__(
        self,
        rpc: SorobanRpcClient,
        inclusion_fee: int = DEFAULT_CONTRACT_INCLUSION_FEE,
        builder: Optional[TransactionBuilder] = None,
    ):
        self._rpc = rpc
        self._inclusion_fee = inclusion_fee
        self._builder = builder or TransactionBuilder()

    @staticmethod
    def operation(contract: str, function: str, args: Iterable[Any] = ()) -> ContractInvoke:
        try:
            contract_id = ContractAddress.parse(contract)
        except InvalidAddress as e:
            raise InvalidAddress(f"contract: {e}") from e
        if not 0 < len(function) <= SYMBOL_MAX:
            raise ValidationError(f"function name must be 1 to {SYMBOL_MAX} characters, got {function!r}")
        return ContractInvoke(
            contract=contract_id,
            function=function,
            args=tuple(from_native(a) for a in args),
        )

    async def _draft_and_simulate(self, source: AccountAddress, op: ContractInvoke):
        account = await self._rpc.get_account(source)
        draft = self._builder.build_invocation(account, op, self._inclusion_fee)
        simulation = await self._rpc.simulate_transaction(draft)
        return draft, simulation

    async def simulate(self, source: str, contract: str, function: str, args: Iterable[Any] = ()) -> SimulationResult:
        """Raw simulation of the call, without assembling."""
        op = self.operation(contract, function, args)
        _, simulation = await self._draft_and_simulate(AccountAddress.parse(source), op)
        return simulation

    async def prepare(
        self,
        source: str,
        contract: str,
        function: str,
        args: Iterable[Any] = (),
    ) -> PrepareOutcome:
        """Prepared envelope ready for signing, or why there is none.

        Invalid input is raised; network and simulation
        failures are returned, and so is RPC output that does not decode.
        """
        source_id = AccountAddress.parse(source)
        op = self.operation(contract, function, args)
        try:
            draft, simulation = await self._draft_and_simulate(source_id, op)
        except AccountNotFound as e:
            return SimulationFailed(diagnostic=str(e))
        except (NetworkError, RpcError, HttpError) as e:
            return NetworkFailure(cause=str(e))
        except XdrError as e:
            return SimulationFailed(diagnostic=f"undecodable RPC response: {e}")

        if not simulation.success or simulation.footprint is None:
            logger.warning("%s.%s will not be submitted: %s", contract, function, simulation.diagnostic)
            return SimulationFailed(diagnostic=simulation.diagnostic or "simulation failed")

        try:
            envelope = assemble(
                draft,
                simulation.min_resource_fee or 0,
                simulation.footprint,
                simulation.auth,
            )
        except XdrError as e:
            return SimulationFailed(diagnostic=f"undecodable simulation output: {e}")
        logger.info("prepared %s.%s seq=%d fee=%d", ContractAddress.parse(contract).short(), function,
                    envelope.sequence, envelope.fee)
        return Prepared(envelope=envelope, simulation=simulation)

    async def query(self, source: str, contract: str, function: str, args: Iterable[Any] = ()) -> Any:
        """Read-only call: the decoded return value of a successful simulation."""
        simulation = await self.simulate(source, contract, function, args)
        if not simulation.success:
            raise SimulationError(simulation.diagnostic or "simulation failed")
        return simulation.native_value()
