"""
Typed results of the network-facing steps: simulation, preparation and
submission.
"""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict

from lumenpay.models.transaction import ResourceFootprint, TransactionEnvelope
from lumenpay.scval import SCVal, to_native


class SimulationResult(BaseModel):
    """Ephemeral: consumed once to assemble an envelope."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    success: bool
    return_value: Optional[SCVal] = None
    footprint: Optional[ResourceFootprint] = None
    min_resource_fee: Optional[int] = None
    auth: tuple[str, ...] = ()
    diagnostic: Optional[str] = None
    latest_ledger: Optional[int] = None

    def native_value(self) -> Any:
        return to_native(self.return_value) if self.return_value is not None else None


class NetworkFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["network_error"] = "network_error"
    cause: str


class Prepared(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["prepared"] = "prepared"
    envelope: TransactionEnvelope
    simulation: SimulationResult


class SimulationFailed(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["simulation_failed"] = "simulation_failed"
    diagnostic: str


PrepareOutcome = Union[Prepared, SimulationFailed, NetworkFailure]


class Accepted(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["accepted"] = "accepted"
    hash: str
    ledger: Optional[int] = None
    ledger_close_time: Optional[str] = None


class Rejected(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["rejected"] = "rejected"
    result_code: str
    operation_result_codes: tuple[str, ...] = ()


SubmissionOutcome = Union[Accepted, Rejected, NetworkFailure]
