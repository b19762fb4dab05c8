"""
Client library for notas: programmable payment instruments held in escrow
by a registrar contract and governed by pluggable modules.

Usage:
    from nota_sdk import NotaContext, NotaDispatcher, WriteRequest

    ctx = NotaContext.for_chain(80001, account)
    dispatcher = NotaDispatcher(registrar, indexer)
    result = await dispatcher.write(ctx, request)
"""
from __future__ import annotations

from .chains import DeploymentRegistry, TokenInfo, from_base_units, same_address, to_base_units
from .codec import PayloadSchema, decode_payload, encode_payload
from .config import ChainDeployment, NotaSettings, TokenConfig, load_settings
from .context import NotaContext
from .dispatcher import NotaDispatcher
from .exceptions import (
    IndexerQueryError,
    InstrumentIdNotFound,
    MalformedPayload,
    NoMatchingModule,
    NotaError,
    NotaNotFound,
    NotaValidationError,
    TransactionReverted,
    UnsupportedChain,
    UnsupportedCurrency,
    UnsupportedModule,
    UnsupportedOperation,
)
from .indexer import GraphIndexer
from .logging_config import LogContext, setup_logging
from .metadata import HttpMetadataUploader
from .models import (
    BridgeWriteResult,
    CashBeforeDateDripModule,
    CashBeforeDateModule,
    CashDirection,
    CashEvent,
    CrossChainModule,
    DirectPayModule,
    MetadataURIs,
    Milestone,
    MilestonesModule,
    ModuleName,
    NotaState,
    NotaStatusReport,
    RawMetadata,
    ReversibleReleaseModule,
    UploadedMetadata,
    WriteRequest,
    WriteResult,
)
from .ports import BridgePort, IndexerPort, MetadataUploader, RegistrarPort
from .receipts import nota_id_from_receipt
from .registrar import Web3BridgeSender, Web3Registrar
from .status import derive_status

__version__ = "0.1.0"

__all__ = [
    # Client
    "NotaDispatcher",
    "NotaContext",
    # Configuration
    "NotaSettings",
    "load_settings",
    "ChainDeployment",
    "TokenConfig",
    "DeploymentRegistry",
    "TokenInfo",
    "to_base_units",
    "from_base_units",
    "same_address",
    # Codec
    "PayloadSchema",
    "encode_payload",
    "decode_payload",
    # Models
    "ModuleName",
    "CashDirection",
    "CashEvent",
    "NotaState",
    "WriteRequest",
    "DirectPayModule",
    "ReversibleReleaseModule",
    "Milestone",
    "MilestonesModule",
    "CrossChainModule",
    "CashBeforeDateModule",
    "CashBeforeDateDripModule",
    "RawMetadata",
    "UploadedMetadata",
    "MetadataURIs",
    "WriteResult",
    "BridgeWriteResult",
    "NotaStatusReport",
    # Status
    "derive_status",
    "nota_id_from_receipt",
    # Ports and adapters
    "RegistrarPort",
    "BridgePort",
    "IndexerPort",
    "MetadataUploader",
    "Web3Registrar",
    "Web3BridgeSender",
    "GraphIndexer",
    "HttpMetadataUploader",
    # Logging
    "setup_logging",
    "LogContext",
    # Errors
    "NotaError",
    "NotaValidationError",
    "UnsupportedChain",
    "UnsupportedCurrency",
    "UnsupportedModule",
    "NoMatchingModule",
    "UnsupportedOperation",
    "InstrumentIdNotFound",
    "MalformedPayload",
    "NotaNotFound",
    "IndexerQueryError",
    "TransactionReverted",
]
