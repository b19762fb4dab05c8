"""Cash before date with drip: the payee withdraws a fixed chunk per period."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from ..chains import TokenInfo, same_address, to_base_units
from ..codec import PayloadSchema
from ..exceptions import UnsupportedOperation
from ..models import (
    CashBeforeDateDripModule,
    CashDirection,
    MetadataURIs,
    ModuleName,
    NotaState,
    WriteRequest,
)
from .base import CashPlan, NotaModule, WritePlan, as_datetime


class CashBeforeDateDripStatus(str, Enum):
    CLAIMABLE = "claimable"
    AWAITING_CLAIM = "awaiting_claim"
    EXPIRED = "expired"
    RETURNABLE = "returnable"
    RETURNED = "returned"
    LOCKED = "locked"


def drip_window_open(last_claimed_at: Optional[int], drip_period: int, now: int) -> bool:
    """True once a full drip period has passed since the last claim."""
    if last_claimed_at is None:
        return True
    return now >= last_claimed_at + drip_period


class CashBeforeDateDrip(NotaModule):
    name = ModuleName.CASH_BEFORE_DATE_DRIP
    typename = "CashBeforeDateDripData"
    schema = PayloadSchema.of(
        "cashBeforeDateDrip",
        ("expirationDate", "uint256"),
        ("dripAmount", "uint256"),
        ("dripPeriod", "uint256"),
        ("externalURI", "string"),
        ("imageURI", "string"),
    )

    def plan_write(
        self,
        request: WriteRequest,
        token: TokenInfo,
        uris: MetadataURIs,
    ) -> WritePlan:
        module: CashBeforeDateDripModule = request.module
        payload = self.schema.encode({
            "expirationDate": module.expiration_date,
            "dripAmount": to_base_units(module.drip_amount, token.decimals),
            "dripPeriod": module.drip_period,
            "externalURI": uris.external_uri,
            "imageURI": uris.image_uri,
        })
        return WritePlan(
            owner=module.payee,
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
        if state.escrowed == 0:
            raise UnsupportedOperation(self.name.value, "cash", "escrow is empty")
        if same_address(viewer, state.owner):
            return CashPlan(to=state.owner, amount=min(fields["dripAmount"], state.escrowed))
        if same_address(viewer, state.sender):
            return CashPlan(to=state.sender, amount=state.escrowed)
        raise UnsupportedOperation(
            self.name.value,
            "cash",
            "only the payee or the sender can cash",
        )

    def derive_status(
        self,
        fields: Dict[str, Any],
        state: NotaState,
        viewer: str,
        now: int,
    ) -> CashBeforeDateDripStatus:
        expiration = fields["expirationDate"]
        drip_amount = fields["dripAmount"]

        if now >= expiration:
            if same_address(viewer, state.sender):
                if state.escrowed > 0:
                    return CashBeforeDateDripStatus.RETURNABLE
                return CashBeforeDateDripStatus.RETURNED
            return CashBeforeDateDripStatus.EXPIRED

        if drip_window_open(state.last_claimed_at, fields["dripPeriod"], now):
            if state.escrowed > drip_amount:
                if same_address(viewer, state.owner):
                    return CashBeforeDateDripStatus.CLAIMABLE
                return CashBeforeDateDripStatus.AWAITING_CLAIM
            return CashBeforeDateDripStatus.LOCKED

        return CashBeforeDateDripStatus.LOCKED

    def describe(self, fields: Dict[str, Any], state: NotaState) -> Dict[str, Any]:
        return {
            "expiration_date": fields["expirationDate"],
            "expiration_date_formatted": as_datetime(fields["expirationDate"]),
            "drip_amount": fields["dripAmount"],
            "drip_period": fields["dripPeriod"],
            "last_claimed_at": state.last_claimed_at,
            "external_uri": fields["externalURI"],
            "image_uri": fields["imageURI"],
        }
