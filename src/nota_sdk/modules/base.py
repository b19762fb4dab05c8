"""Base class shared by every nota module."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, Optional

from ..chains import TokenInfo
from ..codec import EMPTY_PAYLOAD, PayloadSchema
from ..exceptions import UnsupportedOperation
from ..models import CashDirection, MetadataURIs, ModuleName, NotaState, WriteRequest


@dataclass(frozen=True)
class WritePlan:
    """Arguments of the registrar write call, minus token and module address."""
    owner: str
    escrowed: int
    instant: int
    payload: bytes


@dataclass(frozen=True)
class FundPlan:
    escrowed: int
    instant: int
    payload: bytes = EMPTY_PAYLOAD


@dataclass(frozen=True)
class CashPlan:
    to: str
    amount: int
    payload: bytes = EMPTY_PAYLOAD


def as_datetime(timestamp: int) -> Optional[datetime]:
    """Unix seconds to UTC datetime; 0 means unset."""
    if not timestamp:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


class NotaModule(ABC):
    """
    One instrument kind.

    A module owns its payload schema, turns write requests into registrar
    arguments, picks fund/cash arguments from indexed state and derives the
    viewer-relative status. All methods are pure: the dispatcher performs
    every external call.
    """

    name: ClassVar[ModuleName]
    # Indexer discriminant; None when the module cannot be read on this chain
    typename: ClassVar[Optional[str]] = None
    schema: ClassVar[PayloadSchema]

    @abstractmethod
    def plan_write(
        self,
        request: WriteRequest,
        token: TokenInfo,
        uris: MetadataURIs,
    ) -> WritePlan:
        """Build the write call for a creation request."""

    def plan_fund(self, state: NotaState, fields: Dict[str, Any]) -> FundPlan:
        raise UnsupportedOperation(self.name.value, "fund")

    def plan_cash(
        self,
        state: NotaState,
        fields: Dict[str, Any],
        viewer: str,
        direction: CashDirection,
        recipient: Optional[str] = None,
    ) -> CashPlan:
        raise UnsupportedOperation(self.name.value, "cash")

    @abstractmethod
    def derive_status(
        self,
        fields: Dict[str, Any],
        state: NotaState,
        viewer: str,
        now: int,
    ) -> Enum:
        """Status of the nota for ``viewer`` at unix time ``now``."""

    def describe(self, fields: Dict[str, Any], state: NotaState) -> Dict[str, Any]:
        """Decoded payload fields exposed in status reports."""
        return dict(fields)
