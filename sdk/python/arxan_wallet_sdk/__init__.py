"""
Arxan Wallet Python SDK

Python SDK for the Arxan blockchain wallet service.

Features:
- Wallet and sub-wallet registration
- Proof of existence (POE) assets with off-chain file upload
- Colored token and digital asset issuance and transfer
- Ed25519 payload signing, by the caller or by the SDK
- Synchronous or asynchronous invoking mode per request
"""

import logging

__version__ = "1.0.0"
__author__ = "Arxan Wallet Team"

from .client import (
    INVOKE_MODE_HEADER,
    INVOKE_MODE_SYNC,
    INVOKE_MODE_ASYNC,
    KeyMaterial,
    PrecomputedSignature,
    WalletClient,
    canonical_payload,
)
from .config import ClientConfig, load_config
from .crypto import WalletCrypto
from .errors import (
    WalletError,
    InvalidInputError,
    NotFoundError,
    InsufficientFundsError,
    UnauthorizedError,
    WalletTimeoutError,
    ServiceError,
    TransportError,
)
from .models import (
    ORGANIZATION,
    DEPENDENT,
    INDEPENDENT,
    ASSET,
    CASH,
    FEE,
    LOAN,
    INTEREST,
    ATOM,
    MICRO_AXT,
    AXT,
    KeyPair,
    RegisterWalletBody,
    RegisterSubWalletBody,
    SignatureBody,
    SignatureParam,
    WalletResponse,
    WalletBalance,
    WalletInfo,
    POEBody,
    POEPayload,
    OffchainMetadata,
    UTXO,
    SpentTxOUT,
    TransactionLog,
    TokenAmount,
    Fee,
    IssueBody,
    IssueAssetBody,
    TransferCTokenBody,
    TransferAssetBody,
)
from .utils import Utils

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "WalletClient",
    "PrecomputedSignature",
    "KeyMaterial",
    "canonical_payload",
    "INVOKE_MODE_HEADER",
    "INVOKE_MODE_SYNC",
    "INVOKE_MODE_ASYNC",
    "ClientConfig",
    "load_config",
    "WalletCrypto",
    "WalletError",
    "InvalidInputError",
    "NotFoundError",
    "InsufficientFundsError",
    "UnauthorizedError",
    "WalletTimeoutError",
    "ServiceError",
    "TransportError",
    "ORGANIZATION",
    "DEPENDENT",
    "INDEPENDENT",
    "ASSET",
    "CASH",
    "FEE",
    "LOAN",
    "INTEREST",
    "ATOM",
    "MICRO_AXT",
    "AXT",
    "KeyPair",
    "RegisterWalletBody",
    "RegisterSubWalletBody",
    "SignatureBody",
    "SignatureParam",
    "WalletResponse",
    "WalletBalance",
    "WalletInfo",
    "POEBody",
    "POEPayload",
    "OffchainMetadata",
    "UTXO",
    "SpentTxOUT",
    "TransactionLog",
    "TokenAmount",
    "Fee",
    "IssueBody",
    "IssueAssetBody",
    "TransferCTokenBody",
    "TransferAssetBody",
    "Utils",
]
