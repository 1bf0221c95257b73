"""
lumenpay — Stellar payments and Soroban contract calls.

Build, simulate, sign and submit transactions against Horizon and
Soroban RPC, with a pluggable signing wallet.
"""

from lumenpay.client import AsyncLumenPay, LumenPay
from lumenpay.config import NETWORKS, NetworkConfig, Settings, load_settings
from lumenpay.errors import (
    InsufficientBalance,
    InvalidAddress,
    InvalidAmount,
    InvalidDestination,
    LumenPayError,
    NetworkError,
    SignerError,
    SimulationError,
    SubmissionRejected,
    ValidationError,
    user_message,
)
from lumenpay.strkey import AccountAddress, Address, ContractAddress

__version__ = "0.1.0"
__all__ = [
    "LumenPay",
    "AsyncLumenPay",
    "Settings",
    "NetworkConfig",
    "NETWORKS",
    "load_settings",
    "Address",
    "AccountAddress",
    "ContractAddress",
    "LumenPayError",
    "ValidationError",
    "InvalidAddress",
    "InvalidDestination",
    "InvalidAmount",
    "InsufficientBalance",
    "SignerError",
    "SimulationError",
    "SubmissionRejected",
    "NetworkError",
    "user_message",
]
