"""
Module dispatcher.

Routes write/fund/cash/status operations to the nota module named in the
request or in the indexed state. Each operation makes at most one indexer
read and exactly one contract call; every lookup that can fail happens before
the first external call.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Union

from .chains import TokenInfo, same_address, to_base_units
from .config import NATIVE_CURRENCY, ZERO_ADDRESS
from .context import NotaContext
from .exceptions import NotaValidationError, UnsupportedCurrency, UnsupportedModule
from .logging_config import LogContext
from .models import (
    BridgeWriteResult,
    CashDirection,
    CrossChainModule,
    MetadataURIs,
    ModuleName,
    NotaStatusReport,
    RawMetadata,
    UploadedMetadata,
    WriteRequest,
    WriteResult,
)
from .modules import get_module
from .ports import BridgePort, IndexerPort, MetadataUploader, RegistrarPort
from .receipts import nota_id_from_receipt, tx_hash_hex
from .status import derive_status

logger = logging.getLogger(__name__)


def _is_native(token_address: str) -> bool:
    if not token_address:
        raise NotaValidationError("Indexed nota has no token address", field="token")
    return same_address(token_address, ZERO_ADDRESS)


class NotaDispatcher:
    """
    Client-side entry point for nota operations.

    Args:
        registrar: Registrar contract adapter on the active chain
        indexer: Read-side adapter returning indexed nota state
        bridge: Bridge sender adapter, required for crosschain writes
        uploader: Metadata store, required for writes carrying raw metadata
    """

    def __init__(
        self,
        registrar: RegistrarPort,
        indexer: IndexerPort,
        bridge: Optional[BridgePort] = None,
        uploader: Optional[MetadataUploader] = None,
    ):
        self._registrar = registrar
        self._indexer = indexer
        self._bridge = bridge
        self._uploader = uploader

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def write(
        self,
        ctx: NotaContext,
        request: WriteRequest,
    ) -> Union[WriteResult, BridgeWriteResult]:
        """Create a nota for the request's module."""
        module = get_module(request.module_name)
        token = ctx.registry.resolve_currency(ctx.chain_id, request.currency)

        if module.name == ModuleName.CROSSCHAIN:
            return await self._write_crosschain(ctx, request, token)

        module_address = ctx.registry.module_address(ctx.chain_id, module.name.value)

        with LogContext(chain_id=ctx.chain_id, operation="write"):
            uris = await self._resolve_metadata(request)
            plan = module.plan_write(request, token, uris)
            value = plan.escrowed + plan.instant if token.is_native else 0

            logger.info(
                f"Writing {module.name.value} nota: owner={plan.owner} "
                f"escrowed={plan.escrowed} instant={plan.instant} token={token.symbol}"
            )
            receipt = await self._registrar.write(
                token.address,
                plan.escrowed,
                plan.instant,
                plan.owner,
                module_address,
                plan.payload,
                value,
            )

            nota_id = nota_id_from_receipt(receipt)
            tx_hash = tx_hash_hex(receipt)
            logger.info(f"Wrote nota {nota_id} in {tx_hash}")
            return WriteResult(tx_hash=tx_hash, nota_id=nota_id)

    async def _write_crosschain(
        self,
        ctx: NotaContext,
        request: WriteRequest,
        token: TokenInfo,
    ) -> BridgeWriteResult:
        module = get_module(ModuleName.CROSSCHAIN)
        if not ctx.deployment.bridge_sender or self._bridge is None:
            raise UnsupportedModule(module.name.value, ctx.chain_id)

        spec: CrossChainModule = request.module
        with LogContext(chain_id=ctx.chain_id, operation="write"):
            uris = await self._resolve_metadata(request)
            plan = module.plan_write(request, token, uris)
            value = plan.instant if token.is_native else 0

            logger.info(
                f"Sending nota to {spec.destination_chain} "
                f"(chain {spec.destination_chain_id}): owner={plan.owner} amount={plan.instant}"
            )
            receipt = await self._bridge.create_remote_nota(
                token.address,
                plan.instant,
                plan.owner,
                plan.payload,
                spec.destination_chain,
                value,
            )
            return BridgeWriteResult(
                tx_hash=tx_hash_hex(receipt),
                destination_chain_id=spec.destination_chain_id,
            )

    async def _resolve_metadata(self, request: WriteRequest) -> MetadataURIs:
        metadata = request.metadata
        if metadata is None:
            return MetadataURIs()
        if isinstance(metadata, UploadedMetadata):
            return MetadataURIs(
                external_uri=metadata.external_uri,
                image_uri=metadata.image_uri or "",
            )

        raw: RawMetadata = metadata
        if not (raw.notes or raw.tags or raw.file):
            return MetadataURIs()
        if self._uploader is None:
            raise NotaValidationError(
                "Raw metadata requires a metadata uploader",
                field="metadata",
            )
        return await self._uploader.upload(
            notes=raw.notes,
            tags=raw.tags,
            file=raw.file,
            file_name=raw.file_name,
        )

    # ------------------------------------------------------------------
    # Fund / cash
    # ------------------------------------------------------------------

    async def fund(self, ctx: NotaContext, nota_id: str) -> str:
        """Pay or escrow the outstanding amount of an existing nota."""
        with LogContext(chain_id=ctx.chain_id, nota_id=str(nota_id), operation="fund"):
            state = await self._indexer.fetch_nota(str(nota_id))
            module = get_module(state.module)
            fields = module.schema.decode(state.payload)
            plan = module.plan_fund(state, fields)
            value = plan.escrowed + plan.instant if _is_native(state.token) else 0

            logger.info(
                f"Funding {module.name.value} nota {state.nota_id}: "
                f"escrowed={plan.escrowed} instant={plan.instant}"
            )
            receipt = await self._registrar.fund(
                state.nota_id,
                plan.escrowed,
                plan.instant,
                plan.payload,
                value,
            )
            return tx_hash_hex(receipt)

    async def cash(
        self,
        ctx: NotaContext,
        nota_id: str,
        direction: Union[CashDirection, str] = CashDirection.RELEASE,
        recipient: Optional[str] = None,
    ) -> str:
        """
        Pay escrow out of a nota.

        The module picks the recipient and amount from the indexed state and
        the acting account; ``direction`` selects release or reversal where the
        module supports both, and ``recipient`` overrides the payee where the
        module allows it.
        """
        direction = CashDirection(direction)
        with LogContext(chain_id=ctx.chain_id, nota_id=str(nota_id), operation="cash"):
            state = await self._indexer.fetch_nota(str(nota_id))
            module = get_module(state.module)
            fields = module.schema.decode(state.payload)
            plan = module.plan_cash(state, fields, ctx.account, direction, recipient)

            logger.info(
                f"Cashing {module.name.value} nota {state.nota_id} ({direction.value}): "
                f"amount={plan.amount} to={plan.to}"
            )
            receipt = await self._registrar.cash(state.nota_id, plan.amount, plan.to, plan.payload)
            return tx_hash_hex(receipt)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    async def status(
        self,
        ctx: NotaContext,
        nota_id: str,
        now: Union[int, datetime],
        viewer: Optional[str] = None,
    ) -> NotaStatusReport:
        """Status of a nota for ``viewer`` (default: the context account) at ``now``."""
        state = await self._indexer.fetch_nota(str(nota_id))
        return derive_status(state, viewer or ctx.account, now)

    async def approve_token(self, ctx: NotaContext, currency: str, amount) -> str:
        """Approve the registrar to pull ``amount`` of an ERC-20 currency."""
        token = ctx.registry.resolve_currency(ctx.chain_id, currency)
        if token.symbol == NATIVE_CURRENCY:
            raise UnsupportedCurrency(currency, ctx.chain_id)

        base_units = to_base_units(amount, token.decimals)
        with LogContext(chain_id=ctx.chain_id, operation="approve"):
            logger.info(f"Approving registrar for {base_units} {token.symbol}")
            receipt = await self._registrar.approve(token.address, base_units)
            return tx_hash_hex(receipt)
