"""Cash before date: escrow the owner must claim before a deadline."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from ..chains import TokenInfo, same_address, to_base_units
from ..codec import PayloadSchema
from ..exceptions import UnsupportedOperation
from ..models import (
    CashBeforeDateModule,
    CashDirection,
    MetadataURIs,
    ModuleName,
    NotaState,
    WriteRequest,
)
from .base import CashPlan, NotaModule, WritePlan, as_datetime


class CashBeforeDateStatus(str, Enum):
    CLAIMABLE = "claimable"
    AWAITING_CLAIM = "awaiting_claim"
    CLAIMED = "claimed"
    EXPIRED = "expired"
    RETURNABLE = "returnable"
    RETURNED = "returned"


class CashBeforeDate(NotaModule):
    name = ModuleName.CASH_BEFORE_DATE
    typename = "CashBeforeDateData"
    schema = PayloadSchema.of(
        "cashBeforeDate",
        ("cashBeforeDate", "uint256"),
        ("externalURI", "string"),
        ("imageURI", "string"),
    )

    def plan_write(
        self,
        request: WriteRequest,
        token: TokenInfo,
        uris: MetadataURIs,
    ) -> WritePlan:
        module: CashBeforeDateModule = request.module
        payload = self.schema.encode({
            "cashBeforeDate": module.cash_before_date,
            "externalURI": uris.external_uri,
            "imageURI": uris.image_uri,
        })
        return WritePlan(
            owner=module.owner,
            escrowed=to_base_units(request.amount, token.decimals),
            instant=0,
            payload=payload,
        )

    def plan_cash(
        self,
        state: NotaState,
        fields: Dict[str, Any],
        viewer: str,
        direction: CashDirection,
        recipient: Optional[str] = None,
    ) -> CashPlan:
        # The contract pays the owner before the deadline and the sender after it
        if state.cashes or state.escrowed == 0:
            raise UnsupportedOperation(self.name.value, "cash", "already cashed")
        return CashPlan(to=recipient or viewer, amount=state.escrowed)

    def derive_status(
        self,
        fields: Dict[str, Any],
        state: NotaState,
        viewer: str,
        now: int,
    ) -> CashBeforeDateStatus:
        deadline = fields["cashBeforeDate"]
        is_owner = same_address(viewer, state.owner)

        if state.cashes:
            if same_address(state.cashes[0].to, viewer):
                return CashBeforeDateStatus.CLAIMED
            return CashBeforeDateStatus.RETURNED
        if now < deadline:
            return CashBeforeDateStatus.CLAIMABLE if is_owner else CashBeforeDateStatus.AWAITING_CLAIM
        return CashBeforeDateStatus.EXPIRED if is_owner else CashBeforeDateStatus.RETURNABLE

    def describe(self, fields: Dict[str, Any], state: NotaState) -> Dict[str, Any]:
        return {
            "cash_before_date": fields["cashBeforeDate"],
            "cash_before_date_formatted": as_datetime(fields["cashBeforeDate"]),
            "external_uri": fields["externalURI"],
            "image_uri": fields["imageURI"],
        }
