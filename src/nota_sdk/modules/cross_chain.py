"""Cross-chain: a payment sent over the bridge and minted as a nota remotely."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from ..chains import TokenInfo, to_base_units
from ..codec import PayloadSchema
from ..exceptions import UnsupportedOperation
from ..models import CrossChainModule, MetadataURIs, ModuleName, NotaState, WriteRequest
from .base import NotaModule, WritePlan


class CrossChain(NotaModule):
    """
    Writes go through the bridge sender rather than the registrar. The nota
    only exists on the destination chain, where it is indexed as a direct
    payment, so it has no readable state here.
    """

    name = ModuleName.CROSSCHAIN
    typename = None
    schema = PayloadSchema.of(
        "crosschain",
        ("destinationChainId", "uint256"),
        ("toNotify", "address"),
        ("externalURI", "string"),
        ("imageURI", "string"),
    )

    def plan_write(
        self,
        request: WriteRequest,
        token: TokenInfo,
        uris: MetadataURIs,
    ) -> WritePlan:
        module: CrossChainModule = request.module
        amount = to_base_units(request.amount, token.decimals)
        payload = self.schema.encode({
            "destinationChainId": module.destination_chain_id,
            "toNotify": module.creditor,
            "externalURI": uris.external_uri,
            "imageURI": uris.image_uri,
        })
        return WritePlan(owner=module.creditor, escrowed=0, instant=amount, payload=payload)

    def derive_status(
        self,
        fields: Dict[str, Any],
        state: NotaState,
        viewer: str,
        now: int,
    ) -> Enum:
        raise UnsupportedOperation(
            self.name.value,
            "status",
            "read the nota on its destination chain",
        )
