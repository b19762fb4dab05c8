"""Milestones: a payment funded and released one milestone at a time."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from itertools import accumulate
from typing import Any, Dict, List, Optional

from ..chains import TokenInfo, same_address, to_base_units
from ..codec import PayloadSchema
from ..exceptions import MalformedPayload, NotaValidationError, UnsupportedOperation
from ..models import (
    CashDirection,
    MetadataURIs,
    MilestonesModule,
    ModuleName,
    NotaState,
    WriteRequest,
)
from .base import CashPlan, FundPlan, NotaModule, WritePlan, as_datetime


class MilestonesStatus(str, Enum):
    AWAITING_PAYMENT = "awaiting_payment"
    PAYABLE = "payable"
    AWAITING_RELEASE = "awaiting_release"
    RELEASABLE = "releasable"
    OVERDUE = "overdue"
    COMPLETED = "completed"
    VOIDED = "voided"


@dataclass(frozen=True)
class MilestoneProgress:
    """Where a milestones nota stands against its schedule."""
    amounts: List[int]
    due_dates: List[int]
    released: int
    funded: int
    reversed: bool

    @property
    def total(self) -> int:
        return sum(self.amounts)

    @property
    def boundaries(self) -> List[int]:
        return list(accumulate(self.amounts))

    @property
    def current_index(self) -> int:
        """First milestone not yet fully released (len(amounts) when done)."""
        for i, boundary in enumerate(self.boundaries):
            if self.released < boundary:
                return i
        return len(self.amounts)

    @property
    def next_unfunded_index(self) -> Optional[int]:
        for i, boundary in enumerate(self.boundaries):
            if self.funded < boundary:
                return i
        return None

    @classmethod
    def from_state(cls, fields: Dict[str, Any], state: NotaState) -> "MilestoneProgress":
        if len(fields["milestoneAmounts"]) != len(fields["milestoneDueDates"]):
            raise MalformedPayload("milestones", "milestone amounts and due dates differ in length")
        debtor = state.debtor or state.sender
        reversed_ = False
        released = 0
        for cash in state.cashes:
            if cash.direction == CashDirection.REVERSAL or (
                cash.direction is None and debtor and same_address(cash.to, debtor)
            ):
                reversed_ = True
            else:
                released += cash.amount
        return cls(
            amounts=list(fields["milestoneAmounts"]),
            due_dates=list(fields["milestoneDueDates"]),
            released=released,
            funded=released + state.escrowed,
            reversed=reversed_,
        )


class Milestones(NotaModule):
    name = ModuleName.MILESTONES
    typename = "MilestonesData"
    schema = PayloadSchema.of(
        "milestones",
        ("milestoneAmounts", "uint256[]"),
        ("milestoneDueDates", "uint256[]"),
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
        module: MilestonesModule = request.module
        amounts = [to_base_units(m.amount, token.decimals) for m in module.milestones]
        total = to_base_units(request.amount, token.decimals)
        if sum(amounts) != total:
            raise NotaValidationError(
                f"Milestone amounts sum to {sum(amounts)}, expected {total}",
                field="milestones",
            )

        if module.type == "invoice":
            to_notify, escrowed = module.debtor, 0
        else:
            to_notify, escrowed = module.creditor, amounts[0]

        payload = self.schema.encode({
            "milestoneAmounts": amounts,
            "milestoneDueDates": [m.due_date for m in module.milestones],
            "toNotify": to_notify,
            "externalURI": uris.external_uri,
            "imageURI": uris.image_uri,
        })
        return WritePlan(owner=module.creditor, escrowed=escrowed, instant=0, payload=payload)

    def plan_fund(self, state: NotaState, fields: Dict[str, Any]) -> FundPlan:
        progress = MilestoneProgress.from_state(fields, state)
        if progress.reversed:
            raise UnsupportedOperation(self.name.value, "fund", "nota was voided")
        index = progress.next_unfunded_index
        if index is None:
            raise UnsupportedOperation(self.name.value, "fund", "all milestones funded")
        return FundPlan(escrowed=progress.boundaries[index] - progress.funded, instant=0)

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
        if direction == CashDirection.REVERSAL:
            return CashPlan(to=state.debtor or state.sender, amount=state.escrowed)

        progress = MilestoneProgress.from_state(fields, state)
        index = progress.current_index
        if index >= len(progress.amounts):
            raise UnsupportedOperation(self.name.value, "cash", "all milestones released")
        remaining = progress.boundaries[index] - progress.released
        return CashPlan(to=state.creditor or state.owner, amount=min(remaining, state.escrowed))

    def derive_status(
        self,
        fields: Dict[str, Any],
        state: NotaState,
        viewer: str,
        now: int,
    ) -> MilestonesStatus:
        progress = MilestoneProgress.from_state(fields, state)
        debtor = state.debtor or state.sender

        if progress.released >= progress.total:
            return MilestonesStatus.COMPLETED
        if progress.reversed:
            return MilestonesStatus.VOIDED
        if state.escrowed > 0:
            if same_address(viewer, debtor):
                return MilestonesStatus.RELEASABLE
            return MilestonesStatus.AWAITING_RELEASE

        due_date = progress.due_dates[progress.current_index]
        if due_date and now >= due_date:
            return MilestonesStatus.OVERDUE
        if same_address(viewer, debtor):
            return MilestonesStatus.PAYABLE
        return MilestonesStatus.AWAITING_PAYMENT

    def describe(self, fields: Dict[str, Any], state: NotaState) -> Dict[str, Any]:
        progress = MilestoneProgress.from_state(fields, state)
        return {
            "milestones": [
                {"amount": amount, "due_date": as_datetime(due)}
                for amount, due in zip(progress.amounts, progress.due_dates)
            ],
            "current_milestone": progress.current_index,
            "released": progress.released,
            "external_uri": fields["externalURI"],
            "image_uri": fields["imageURI"],
        }
