"""Direct pay: invoices and payments settled straight to the creditor."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from ..chains import TokenInfo, same_address, to_base_units
from ..codec import PayloadSchema
from ..exceptions import UnsupportedOperation
from ..models import DirectPayModule, MetadataURIs, ModuleName, NotaState, WriteRequest
from .base import FundPlan, NotaModule, WritePlan, as_datetime


class DirectPayStatus(str, Enum):
    PAID = "paid"
    AWAITING_PAYMENT = "awaiting_payment"
    PAYABLE = "payable"
    OVERDUE = "overdue"


class DirectPay(NotaModule):
    name = ModuleName.DIRECT
    typename = "DirectPayData"
    schema = PayloadSchema.of(
        "direct",
        ("toNotify", "address"),
        ("amount", "uint256"),
        ("dueDate", "uint256"),
        ("dappOperator", "address"),
        ("externalURI", "string"),
        ("imageURI", "string"),
    )

    def plan_write(
        self,
        request: WriteRequest,
        token: TokenInfo,
        uris: MetadataURIs,
    ) -> WritePlan:
        module: DirectPayModule = request.module
        amount = to_base_units(request.amount, token.decimals)

        if module.type == "invoice":
            to_notify, instant = module.debtor, 0
        else:
            to_notify, instant = module.creditor, amount

        payload = self.schema.encode({
            "toNotify": to_notify,
            "amount": amount,
            "dueDate": module.due_date or 0,
            "dappOperator": module.dapp_operator,
            "externalURI": uris.external_uri,
            "imageURI": uris.image_uri,
        })
        return WritePlan(owner=module.creditor, escrowed=0, instant=instant, payload=payload)

    def plan_fund(self, state: NotaState, fields: Dict[str, Any]) -> FundPlan:
        outstanding = fields["amount"] - state.instant_paid
        if outstanding <= 0:
            raise UnsupportedOperation(self.name.value, "fund", "invoice already paid")
        return FundPlan(escrowed=0, instant=outstanding)

    def derive_status(
        self,
        fields: Dict[str, Any],
        state: NotaState,
        viewer: str,
        now: int,
    ) -> DirectPayStatus:
        if state.instant_paid >= fields["amount"]:
            return DirectPayStatus.PAID
        due_date = fields["dueDate"]
        if due_date and now >= due_date:
            return DirectPayStatus.OVERDUE
        if same_address(viewer, state.creditor or state.owner):
            return DirectPayStatus.AWAITING_PAYMENT
        return DirectPayStatus.PAYABLE

    def describe(self, fields: Dict[str, Any], state: NotaState) -> Dict[str, Any]:
        return {
            "amount": fields["amount"],
            "due_date": as_datetime(fields["dueDate"]),
            "external_uri": fields["externalURI"],
            "image_uri": fields["imageURI"],
        }
