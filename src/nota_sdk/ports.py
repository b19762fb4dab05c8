"""Interfaces of the external services the client drives.

Receipts are mappings shaped like web3 transaction receipts: they carry at
least ``transactionHash`` and ``logs``.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from .models import MetadataURIs, NotaState

Receipt = Mapping[str, Any]


class RegistrarPort(ABC):
    """Nota registrar contract on the active chain."""

    @abstractmethod
    async def write(
        self,
        token: str,
        escrowed: int,
        instant: int,
        owner: str,
        module: str,
        payload: bytes,
        value: int = 0,
    ) -> Receipt:
        """Create a nota and return the confirmed receipt."""

    @abstractmethod
    async def fund(
        self,
        nota_id: str,
        amount: int,
        instant: int,
        payload: bytes,
        value: int = 0,
    ) -> Receipt:
        """Add escrow or pay instantly into an existing nota."""

    @abstractmethod
    async def cash(
        self,
        nota_id: str,
        amount: int,
        to: str,
        payload: bytes,
    ) -> Receipt:
        """Pay escrow out of a nota."""

    @abstractmethod
    async def approve(self, token: str, amount: int) -> Receipt:
        """Approve the registrar to pull ``amount`` of ``token``."""


class BridgePort(ABC):
    """Bridge sender contract creating notas on a remote chain."""

    @abstractmethod
    async def create_remote_nota(
        self,
        token: str,
        amount: int,
        owner: str,
        payload: bytes,
        destination_chain: str,
        value: int = 0,
    ) -> Receipt:
        """Send a nota across the bridge and return the source-chain receipt."""


class IndexerPort(ABC):
    """Read side: indexed nota state keyed by id."""

    @abstractmethod
    async def fetch_nota(self, nota_id: str) -> NotaState:
        """Fetch the current state of a nota."""


class MetadataUploader(ABC):
    """Content-addressed store for nota notes and attachments."""

    @abstractmethod
    async def upload(
        self,
        notes: Optional[str] = None,
        tags: Optional[str] = None,
        file: Optional[bytes] = None,
        file_name: str = "attachment",
    ) -> MetadataURIs:
        """Upload metadata and return where it lives."""
