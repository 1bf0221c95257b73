"""
lumenpay error types.

Every failure the core can report is a LumenPayError carrying a stable
``code``. ``user_message`` turns any of them into the short, actionable
text shown to people.
"""

from typing import Any, Optional


class LumenPayError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class ValidationError(LumenPayError):
    """Rejected locally, before any network call."""

    def __init__(self, message: str, code: str = "validation_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class InvalidAddress(ValidationError):
    def __init__(self, message: str, code: str = "invalid_address"):
        super().__init__(message, code)


class InvalidDestination(InvalidAddress):
    def __init__(self, message: str):
        super().__init__(message, "invalid_destination")


class InvalidAmount(ValidationError):
    def __init__(self, message: str):
        super().__init__(message, "invalid_amount")


class InsufficientBalance(ValidationError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, "insufficient_balance", details)


# Signer error kinds
WALLET_NOT_FOUND = "wallet_not_found"
USER_REJECTED = "user_rejected"
GENERIC = "generic"

_NOT_FOUND_HINTS = ("not installed", "not found", "no wallet", "unreachable")
_REJECTED_HINTS = ("rejected", "cancelled", "canceled", "denied", "declined", "refused")


def classify_signer_message(message: str) -> str:
    """Map a signer's free-form error text to a signer error kind."""
    msg = message.lower()
    if any(hint in msg for hint in _NOT_FOUND_HINTS):
        return WALLET_NOT_FOUND
    if any(hint in msg for hint in _REJECTED_HINTS):
        return USER_REJECTED
    return GENERIC


class SignerError(LumenPayError):
    def __init__(self, message: str, kind: Optional[str] = None):
        self.kind = kind or classify_signer_message(message)
        super().__init__(f"signer_{self.kind}", message)

    @property
    def not_installed(self) -> bool:
        return self.kind == WALLET_NOT_FOUND

    @property
    def user_rejected(self) -> bool:
        return self.kind == USER_REJECTED


class SimulationError(LumenPayError):
    def __init__(self, diagnostic: str):
        super().__init__("simulation_failed", diagnostic or "Simulation failed")
        self.diagnostic = diagnostic


class SubmissionRejected(LumenPayError):
    def __init__(self, result_code: str, operation_codes: Optional[list[str]] = None):
        codes = list(operation_codes or [])
        text = result_code if not codes else f"{result_code} ({', '.join(codes)})"
        super().__init__("submission_rejected", f"Transaction rejected: {text}",
                         {"result_code": result_code, "operation_codes": codes})
        self.result_code = result_code
        self.operation_codes = codes


class NetworkError(LumenPayError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("network_error", message, details)


class HttpError(LumenPayError):
    """A 4xx answer. The request reached the server and was refused."""

    def __init__(self, status_code: int, message: str, body: Any = None):
        super().__init__("http_error", f"HTTP {status_code}: {message}", {"status_code": status_code})
        self.status_code = status_code
        self.body = body


class AccountNotFound(HttpError):
    def __init__(self, address: str):
        super().__init__(404, f"account {address} does not exist on this network")
        self.code = "account_not_found"
        self.address = address


class RpcError(LumenPayError):
    """JSON-RPC error object returned by the RPC server."""

    def __init__(self, rpc_code: int, message: str):
        super().__init__("rpc_error", f"RPC error {rpc_code}: {message}", {"rpc_code": rpc_code})
        self.rpc_code = rpc_code


class XdrError(LumenPayError):
    def __init__(self, message: str):
        super().__init__("xdr_error", message)


class ConfigError(LumenPayError):
    def __init__(self, message: str):
        super().__init__("config_error", message)


class SessionStateError(LumenPayError):
    def __init__(self, message: str):
        super().__init__("session_state_error", message)


_RESULT_CODE_MESSAGES = {
    "tx_bad_seq": "The account sequence moved on. Rebuild the transaction and try again.",
    "tx_insufficient_balance": "Insufficient balance to cover the amount and fees.",
    "tx_insufficient_fee": "The fee was too low for current network load. Try again.",
    "tx_too_late": "The transaction expired before it was submitted. Build it again.",
    "tx_no_account": "The source account does not exist on this network. Fund it first.",
    "op_underfunded": "Insufficient balance to cover the amount and fees.",
    "op_no_destination": "The destination account does not exist yet.",
}


def user_message(error: LumenPayError) -> str:
    """One distinct, actionable message per error family."""
    if isinstance(error, InsufficientBalance):
        return "Insufficient balance for this payment."
    if isinstance(error, InvalidAmount):
        return f"Enter a valid amount: {error}"
    if isinstance(error, InvalidAddress):
        return f"Check the address: {error}"
    if isinstance(error, SignerError):
        if error.kind == WALLET_NOT_FOUND:
            return "Wallet not found. Install or unlock the wallet and try again."
        if error.kind == USER_REJECTED:
            return "The request was cancelled. Approve the request in your wallet to continue."
        return f"The wallet could not complete the request: {error}"
    if isinstance(error, SimulationError):
        return f"The contract call would fail on-chain: {error.diagnostic}"
    if isinstance(error, SubmissionRejected):
        for code in error.operation_codes + [error.result_code]:
            if code in _RESULT_CODE_MESSAGES:
                return _RESULT_CODE_MESSAGES[code]
        return str(error)
    if isinstance(error, NetworkError):
        return "The network could not be reached. Nothing was submitted; it is safe to retry."
    return str(error)
