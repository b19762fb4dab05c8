"""Data model for notas, their settlement history and write requests."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ModuleName(str, Enum):
    """Closed set of instrument kinds."""
    DIRECT = "direct"
    REVERSIBLE_RELEASE = "reversibleRelease"
    MILESTONES = "milestones"
    CROSSCHAIN = "crosschain"
    CASH_BEFORE_DATE = "cashBeforeDate"
    CASH_BEFORE_DATE_DRIP = "cashBeforeDateDrip"


class CashDirection(str, Enum):
    """Settlement direction recorded on a cash event."""
    RELEASE = "release"
    REVERSAL = "reversal"


# =============================================================================
# On-chain state
# =============================================================================

@dataclass(frozen=True)
class CashEvent:
    """A settlement paid out of a nota's escrow."""
    to: str
    amount: int
    timestamp: int
    direction: Optional[CashDirection] = None


@dataclass(frozen=True)
class NotaState:
    """Snapshot of a nota as reported by the indexer."""
    nota_id: str
    module: ModuleName
    owner: str
    sender: str = ""
    creditor: str = ""
    debtor: str = ""
    token: str = ""
    escrowed: int = 0
    instant_paid: int = 0
    cashes: Tuple[CashEvent, ...] = ()
    module_address: str = ""
    payload: bytes = b""

    # Timestamp of the latest claim, taken from indexed cash history
    last_claimed_at: Optional[int] = None


# =============================================================================
# Write requests
# =============================================================================

class NotaModel(BaseModel):
    """Base model for client requests."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
    )


class DirectPayModule(NotaModel):
    """Invoice or one-shot payment settled directly, without escrow."""
    module_name: Literal["direct"] = "direct"
    type: Literal["invoice", "payment"] = "invoice"
    creditor: str
    debtor: str
    due_date: Optional[int] = None
    dapp_operator: Optional[str] = None


class ReversibleReleaseModule(NotaModel):
    """Escrowed payment released or reversed by an inspector."""
    module_name: Literal["reversibleRelease"] = "reversibleRelease"
    type: Literal["invoice", "payment"] = "invoice"
    creditor: str
    debtor: str
    inspector: Optional[str] = None


class Milestone(NotaModel):
    amount: Decimal = Field(gt=0)
    due_date: int = 0


class MilestonesModule(NotaModel):
    """Payment split into sequentially funded and released milestones."""
    module_name: Literal["milestones"] = "milestones"
    type: Literal["invoice", "payment"] = "invoice"
    creditor: str
    debtor: str
    milestones: List[Milestone] = Field(min_length=1)


class CrossChainModule(NotaModel):
    """Payment bridged to a nota minted on another chain."""
    module_name: Literal["crosschain"] = "crosschain"
    creditor: str
    destination_chain_id: int
    destination_chain: str


class CashBeforeDateModule(NotaModel):
    """Escrow the owner must claim before a deadline."""
    module_name: Literal["cashBeforeDate"] = "cashBeforeDate"
    owner: str
    cash_before_date: int


class CashBeforeDateDripModule(NotaModel):
    """Escrow the payee claims in periodic drips until expiration."""
    module_name: Literal["cashBeforeDateDrip"] = "cashBeforeDateDrip"
    payee: str
    expiration_date: int
    drip_amount: Decimal = Field(gt=0)
    drip_period: int = Field(gt=0)


ModuleRequest = Annotated[
    Union[
        DirectPayModule,
        ReversibleReleaseModule,
        MilestonesModule,
        CrossChainModule,
        CashBeforeDateModule,
        CashBeforeDateDripModule,
    ],
    Field(discriminator="module_name"),
]


class RawMetadata(NotaModel):
    """Metadata still to be uploaded before the write."""
    type: Literal["raw"] = "raw"
    notes: Optional[str] = None
    tags: Optional[str] = None
    file: Optional[bytes] = None
    file_name: str = "attachment"


class UploadedMetadata(NotaModel):
    """Metadata already stored; URIs go straight into the payload."""
    type: Literal["uploaded"] = "uploaded"
    external_uri: str
    image_uri: Optional[str] = None


Metadata = Annotated[Union[RawMetadata, UploadedMetadata], Field(discriminator="type")]


class WriteRequest(NotaModel):
    """Request to create a nota."""
    currency: str
    amount: Decimal = Field(gt=0)
    module: ModuleRequest
    metadata: Optional[Metadata] = None

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    @property
    def module_name(self) -> ModuleName:
        return ModuleName(self.module.module_name)


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class MetadataURIs:
    """Locations of uploaded nota metadata."""
    external_uri: str = ""
    image_uri: str = ""


@dataclass(frozen=True)
class WriteResult:
    """A nota written on the active chain."""
    tx_hash: str
    nota_id: str


@dataclass(frozen=True)
class BridgeWriteResult:
    """A nota sent across a bridge; its id is assigned on the destination chain."""
    tx_hash: str
    destination_chain_id: int


def _plain(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bytes):
        return "0x" + value.hex()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


@dataclass(frozen=True)
class NotaStatusReport:
    """Status of a nota as seen by one viewer at one instant."""
    nota_id: str
    module: ModuleName
    status: Enum
    viewer: str
    as_of: int
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = {key: _plain(value) for key, value in self.data.items()}
        return {
            "nota_id": self.nota_id,
            "module_name": self.module.value,
            "status": self.status.value,
            "viewer": self.viewer,
            "as_of": datetime.fromtimestamp(self.as_of, tz=timezone.utc).isoformat(),
            **data,
        }
