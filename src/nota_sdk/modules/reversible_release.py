"""Reversible release: escrow an inspector either releases or reverses."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from ..chains import TokenInfo, same_address, to_base_units
from ..codec import PayloadSchema
from ..exceptions import UnsupportedOperation
from ..models import (
    CashDirection,
    MetadataURIs,
    ModuleName,
    NotaState,
    ReversibleReleaseModule,
    WriteRequest,
)
from .base import CashPlan, FundPlan, NotaModule, WritePlan


class ReversibleReleaseStatus(str, Enum):
    AWAITING_PAYMENT = "awaiting_payment"
    PAYABLE = "payable"
    AWAITING_RELEASE = "awaiting_release"
    RELEASABLE = "releasable"
    RELEASED = "released"
    VOIDED = "voided"


class ReversibleRelease(NotaModule):
    name = ModuleName.REVERSIBLE_RELEASE
    typename = "ReversiblePaymentData"
    schema = PayloadSchema.of(
        "reversibleRelease",
        ("toNotify", "address"),
        ("inspector", "address"),
        ("amount", "uint256"),
        ("externalURI", "string"),
        ("imageURI", "string"),
    )

    def plan_write(
        self,
        request: WriteRequest,
        token: TokenInfo,
        uris: MetadataURIs,
    ) -> WritePlan:
        module: ReversibleReleaseModule = request.module
        amount = to_base_units(request.amount, token.decimals)

        if module.type == "invoice":
            to_notify, escrowed = module.debtor, 0
        else:
            to_notify, escrowed = module.creditor, amount

        payload = self.schema.encode({
            "toNotify": to_notify,
            "inspector": module.inspector or module.debtor,
            "amount": amount,
            "externalURI": uris.external_uri,
            "imageURI": uris.image_uri,
        })
        return WritePlan(owner=module.creditor, escrowed=escrowed, instant=0, payload=payload)

    def plan_fund(self, state: NotaState, fields: Dict[str, Any]) -> FundPlan:
        if state.escrowed > 0 or state.cashes:
            raise UnsupportedOperation(self.name.value, "fund", "payment already escrowed")
        return FundPlan(escrowed=fields["amount"], instant=0)

    def plan_cash(
        self,
        state: NotaState,
        fields: Dict[str, Any],
        viewer: str,
        direction: CashDirection,
        recipient: Optional[str] = None,
    ) -> CashPlan:
        if state.escrowed == 0:
            raise UnsupportedOperation(self.name.value, "cash", "nothing escrowed")
        if direction == CashDirection.RELEASE:
            to = state.creditor or state.owner
        else:
            to = state.debtor or state.sender
        return CashPlan(to=to, amount=state.escrowed)

    def derive_status(
        self,
        fields: Dict[str, Any],
        state: NotaState,
        viewer: str,
        now: int,
    ) -> ReversibleReleaseStatus:
        creditor = state.creditor or state.owner
        if state.cashes:
            if same_address(state.cashes[0].to, creditor):
                return ReversibleReleaseStatus.RELEASED
            return ReversibleReleaseStatus.VOIDED
        if state.escrowed > 0:
            if same_address(viewer, fields["inspector"]):
                return ReversibleReleaseStatus.RELEASABLE
            return ReversibleReleaseStatus.AWAITING_RELEASE
        if same_address(viewer, state.debtor):
            return ReversibleReleaseStatus.PAYABLE
        return ReversibleReleaseStatus.AWAITING_PAYMENT

    def describe(self, fields: Dict[str, Any], state: NotaState) -> Dict[str, Any]:
        return {
            "amount": fields["amount"],
            "inspector": fields["inspector"],
            "external_uri": fields["externalURI"],
            "image_uri": fields["imageURI"],
        }
