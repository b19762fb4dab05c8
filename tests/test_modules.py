"""
Tests for the nota module registry and per-module lifecycle rules.
"""
from __future__ import annotations

import json
from decimal import Decimal

import pytest

from nota_sdk.chains import TokenInfo
from nota_sdk.codec import EMPTY_PAYLOAD
from nota_sdk.config import ZERO_ADDRESS
from nota_sdk.exceptions import (
    MalformedPayload,
    NoMatchingModule,
    NotaValidationError,
    UnsupportedOperation,
)
from nota_sdk.models import CashDirection, CashEvent, MetadataURIs, ModuleName, NotaState, WriteRequest
from nota_sdk.modules import (
    MODULES,
    DirectPayStatus,
    MilestonesStatus,
    ReversibleReleaseStatus,
    get_module,
    module_for_typename,
)
from nota_sdk.status import derive_status

from conftest import CREDITOR, DAI, DEBTOR, INSPECTOR, STRANGER

TOKEN = TokenInfo(symbol="DAI", address=DAI, decimals=18)
NATIVE = TokenInfo(symbol="NATIVE", address=ZERO_ADDRESS, decimals=18)
URIS = MetadataURIs(external_uri="ipfs://QmNotes", image_uri="")
ONE = 10**18


def request(module: dict, amount="1", currency="DAI") -> WriteRequest:
    return WriteRequest.model_validate({"currency": currency, "amount": amount, "module": module})


def state_for(module_name: ModuleName, payload: bytes, **kwargs) -> NotaState:
    kwargs.setdefault("owner", CREDITOR)
    kwargs.setdefault("creditor", CREDITOR)
    kwargs.setdefault("debtor", DEBTOR)
    kwargs.setdefault("sender", DEBTOR)
    return NotaState(nota_id="5", module=module_name, payload=payload, **kwargs)


class TestRegistry:
    """Tests for module lookup."""

    def test_every_module_name_registered(self):
        assert set(MODULES) == set(ModuleName)
        for name in ModuleName:
            assert get_module(name).name == name
            assert get_module(name.value) is MODULES[name]

    def test_unknown_name(self):
        with pytest.raises(NoMatchingModule) as exc_info:
            get_module("streaming")
        assert exc_info.value.discriminant == "streaming"

    @pytest.mark.parametrize(
        "typename,expected",
        [
            ("DirectPayData", ModuleName.DIRECT),
            ("ReversiblePaymentData", ModuleName.REVERSIBLE_RELEASE),
            ("MilestonesData", ModuleName.MILESTONES),
            ("CashBeforeDateData", ModuleName.CASH_BEFORE_DATE),
            ("CashBeforeDateDripData", ModuleName.CASH_BEFORE_DATE_DRIP),
        ],
    )
    def test_typename_lookup(self, typename, expected):
        assert module_for_typename(typename).name == expected

    def test_unknown_typename(self):
        with pytest.raises(NoMatchingModule):
            module_for_typename("SimpleCashData")


class TestDirectPay:
    module = get_module(ModuleName.DIRECT)

    def test_invoice_write(self):
        req = request({"module_name": "direct", "type": "invoice", "creditor": CREDITOR, "debtor": DEBTOR})
        plan = self.module.plan_write(req, TOKEN, URIS)
        assert (plan.owner, plan.escrowed, plan.instant) == (CREDITOR, 0, 0)
        fields = self.module.schema.decode(plan.payload)
        assert fields["toNotify"] == DEBTOR
        assert fields["amount"] == ONE
        assert fields["externalURI"] == "ipfs://QmNotes"

    def test_payment_write(self):
        req = request(
            {"module_name": "direct", "type": "payment", "creditor": CREDITOR, "debtor": DEBTOR, "due_date": 1234},
            amount="2.5",
        )
        plan = self.module.plan_write(req, TOKEN, URIS)
        assert (plan.escrowed, plan.instant) == (0, 2_500_000_000_000_000_000)
        fields = self.module.schema.decode(plan.payload)
        assert fields["toNotify"] == CREDITOR
        assert fields["dueDate"] == 1234

    def _state(self, instant_paid=0, due_date=0):
        payload = self.module.schema.encode({"toNotify": DEBTOR, "amount": ONE, "dueDate": due_date})
        return state_for(ModuleName.DIRECT, payload, instant_paid=instant_paid)

    def test_fund_pays_outstanding(self):
        state = self._state()
        plan = self.module.plan_fund(state, self.module.schema.decode(state.payload))
        assert (plan.escrowed, plan.instant, plan.payload) == (0, ONE, EMPTY_PAYLOAD)

    def test_fund_when_paid(self):
        state = self._state(instant_paid=ONE)
        with pytest.raises(UnsupportedOperation):
            self.module.plan_fund(state, self.module.schema.decode(state.payload))

    def test_cash_is_unsupported(self):
        state = self._state()
        with pytest.raises(UnsupportedOperation) as exc_info:
            self.module.plan_cash(state, {}, CREDITOR, CashDirection.RELEASE)
        assert exc_info.value.operation == "cash"

    def test_status(self):
        state = self._state(due_date=1000)
        fields = self.module.schema.decode(state.payload)
        assert self.module.derive_status(fields, state, CREDITOR, 999) == DirectPayStatus.AWAITING_PAYMENT
        assert self.module.derive_status(fields, state, DEBTOR, 999) == DirectPayStatus.PAYABLE
        assert self.module.derive_status(fields, state, DEBTOR, 1000) == DirectPayStatus.OVERDUE

        paid = self._state(instant_paid=ONE, due_date=1000)
        assert self.module.derive_status(fields, paid, DEBTOR, 5000) == DirectPayStatus.PAID


class TestReversibleRelease:
    module = get_module(ModuleName.REVERSIBLE_RELEASE)

    def test_payment_escrows_amount(self):
        req = request(
            {
                "module_name": "reversibleRelease",
                "type": "payment",
                "creditor": CREDITOR,
                "debtor": DEBTOR,
                "inspector": INSPECTOR,
            }
        )
        plan = self.module.plan_write(req, TOKEN, URIS)
        assert (plan.owner, plan.escrowed, plan.instant) == (CREDITOR, ONE, 0)
        assert self.module.schema.decode(plan.payload)["inspector"] == INSPECTOR

    def test_inspector_defaults_to_debtor(self):
        req = request({"module_name": "reversibleRelease", "creditor": CREDITOR, "debtor": DEBTOR})
        plan = self.module.plan_write(req, TOKEN, URIS)
        assert plan.escrowed == 0
        assert self.module.schema.decode(plan.payload)["inspector"] == DEBTOR

    def _state(self, escrowed=0, cashes=()):
        payload = self.module.schema.encode({"toNotify": DEBTOR, "inspector": INSPECTOR, "amount": ONE})
        return state_for(ModuleName.REVERSIBLE_RELEASE, payload, escrowed=escrowed, cashes=tuple(cashes))

    def test_fund_escrows_amount(self):
        state = self._state()
        plan = self.module.plan_fund(state, self.module.schema.decode(state.payload))
        assert (plan.escrowed, plan.instant) == (ONE, 0)

    def test_fund_twice(self):
        state = self._state(escrowed=ONE)
        with pytest.raises(UnsupportedOperation):
            self.module.plan_fund(state, self.module.schema.decode(state.payload))

    def test_cash_directions(self):
        state = self._state(escrowed=ONE)
        fields = self.module.schema.decode(state.payload)
        release = self.module.plan_cash(state, fields, INSPECTOR, CashDirection.RELEASE)
        reversal = self.module.plan_cash(state, fields, INSPECTOR, CashDirection.REVERSAL)
        assert (release.to, release.amount) == (CREDITOR, ONE)
        assert (reversal.to, reversal.amount) == (DEBTOR, ONE)

    def test_cash_without_escrow(self):
        state = self._state()
        with pytest.raises(UnsupportedOperation):
            self.module.plan_cash(state, {}, INSPECTOR, CashDirection.RELEASE)

    def test_status(self):
        unfunded = self._state()
        fields = self.module.schema.decode(unfunded.payload)
        assert self.module.derive_status(fields, unfunded, DEBTOR, 0) == ReversibleReleaseStatus.PAYABLE
        assert self.module.derive_status(fields, unfunded, CREDITOR, 0) == ReversibleReleaseStatus.AWAITING_PAYMENT

        funded = self._state(escrowed=ONE)
        assert self.module.derive_status(fields, funded, INSPECTOR, 0) == ReversibleReleaseStatus.RELEASABLE
        assert self.module.derive_status(fields, funded, CREDITOR, 0) == ReversibleReleaseStatus.AWAITING_RELEASE

        released = self._state(cashes=[CashEvent(to=CREDITOR, amount=ONE, timestamp=1)])
        voided = self._state(cashes=[CashEvent(to=DEBTOR, amount=ONE, timestamp=1)])
        assert self.module.derive_status(fields, released, STRANGER, 0) == ReversibleReleaseStatus.RELEASED
        assert self.module.derive_status(fields, voided, STRANGER, 0) == ReversibleReleaseStatus.VOIDED


class TestMilestones:
    module = get_module(ModuleName.MILESTONES)

    def _request(self, type_="invoice", amount="6"):
        return request(
            {
                "module_name": "milestones",
                "type": type_,
                "creditor": CREDITOR,
                "debtor": DEBTOR,
                "milestones": [
                    {"amount": "1", "due_date": 1000},
                    {"amount": "2", "due_date": 2000},
                    {"amount": "3", "due_date": 3000},
                ],
            },
            amount=amount,
        )

    def _state(self, escrowed=0, cashes=()):
        payload = self.module.schema.encode({
            "milestoneAmounts": [ONE, 2 * ONE, 3 * ONE],
            "milestoneDueDates": [1000, 2000, 3000],
            "toNotify": DEBTOR,
        })
        return state_for(ModuleName.MILESTONES, payload, escrowed=escrowed, cashes=tuple(cashes))

    def test_payment_escrows_first_milestone(self):
        plan = self.module.plan_write(self._request("payment"), TOKEN, URIS)
        assert (plan.escrowed, plan.instant) == (ONE, 0)
        fields = self.module.schema.decode(plan.payload)
        assert fields["milestoneAmounts"] == [ONE, 2 * ONE, 3 * ONE]
        assert fields["milestoneDueDates"] == [1000, 2000, 3000]

    def test_amounts_must_sum_to_total(self):
        with pytest.raises(NotaValidationError):
            self.module.plan_write(self._request(amount="7"), TOKEN, URIS)

    def test_fund_next_milestone(self):
        state = self._state(cashes=[CashEvent(to=CREDITOR, amount=ONE, timestamp=1, direction=CashDirection.RELEASE)])
        plan = self.module.plan_fund(state, self.module.schema.decode(state.payload))
        assert plan.escrowed == 2 * ONE

    def test_fund_when_fully_funded(self):
        state = self._state(escrowed=6 * ONE)
        with pytest.raises(UnsupportedOperation):
            self.module.plan_fund(state, self.module.schema.decode(state.payload))

    def test_release_current_milestone(self):
        state = self._state(escrowed=3 * ONE)
        plan = self.module.plan_cash(state, self.module.schema.decode(state.payload), DEBTOR, CashDirection.RELEASE)
        assert (plan.to, plan.amount) == (CREDITOR, ONE)

    def test_reversal_returns_escrow(self):
        state = self._state(escrowed=3 * ONE)
        plan = self.module.plan_cash(state, self.module.schema.decode(state.payload), DEBTOR, CashDirection.REVERSAL)
        assert (plan.to, plan.amount) == (DEBTOR, 3 * ONE)

    def test_mismatched_lists(self):
        payload = self.module.schema.encode({"milestoneAmounts": [1, 2], "milestoneDueDates": [1]})
        state = state_for(ModuleName.MILESTONES, payload)
        with pytest.raises(MalformedPayload):
            self.module.derive_status(self.module.schema.decode(payload), state, DEBTOR, 0)

    def test_status(self):
        fields = self.module.schema.decode(self._state().payload)

        unfunded = self._state()
        assert self.module.derive_status(fields, unfunded, DEBTOR, 500) == MilestonesStatus.PAYABLE
        assert self.module.derive_status(fields, unfunded, CREDITOR, 500) == MilestonesStatus.AWAITING_PAYMENT
        assert self.module.derive_status(fields, unfunded, CREDITOR, 1000) == MilestonesStatus.OVERDUE

        funded = self._state(escrowed=ONE)
        assert self.module.derive_status(fields, funded, DEBTOR, 500) == MilestonesStatus.RELEASABLE
        assert self.module.derive_status(fields, funded, CREDITOR, 500) == MilestonesStatus.AWAITING_RELEASE

        done = self._state(cashes=[CashEvent(to=CREDITOR, amount=6 * ONE, timestamp=1)])
        assert self.module.derive_status(fields, done, CREDITOR, 0) == MilestonesStatus.COMPLETED

        voided = self._state(cashes=[CashEvent(to=DEBTOR, amount=ONE, timestamp=1, direction=CashDirection.REVERSAL)])
        assert self.module.derive_status(fields, voided, CREDITOR, 0) == MilestonesStatus.VOIDED

    def test_describe_reports_current_milestone(self):
        state = self._state(cashes=[CashEvent(to=CREDITOR, amount=ONE, timestamp=1)])
        data = self.module.describe(self.module.schema.decode(state.payload), state)
        assert data["current_milestone"] == 1
        assert data["released"] == ONE
        assert len(data["milestones"]) == 3

    def test_report_dict_is_json_ready(self):
        state = self._state(escrowed=ONE)
        data = derive_status(state, DEBTOR, 500).to_dict()
        assert data["status"] == "releasable"
        assert data["milestones"][0]["due_date"] == "1970-01-01T00:16:40+00:00"
        json.dumps(data)


class TestCrossChain:
    module = get_module(ModuleName.CROSSCHAIN)

    def test_write_plan(self):
        req = request(
            {
                "module_name": "crosschain",
                "creditor": CREDITOR,
                "destination_chain_id": 42220,
                "destination_chain": "celo",
            },
            currency="native",
        )
        plan = self.module.plan_write(req, NATIVE, URIS)
        assert (plan.owner, plan.escrowed, plan.instant) == (CREDITOR, 0, ONE)
        assert self.module.schema.decode(plan.payload)["destinationChainId"] == 42220

    def test_status_unsupported(self):
        state = state_for(ModuleName.CROSSCHAIN, b"")
        with pytest.raises(UnsupportedOperation):
            self.module.derive_status({}, state, CREDITOR, 0)


class TestCashBeforeDate:
    module = get_module(ModuleName.CASH_BEFORE_DATE)

    def test_write_escrows_amount(self):
        req = request({"module_name": "cashBeforeDate", "owner": CREDITOR, "cash_before_date": 1000}, amount="0.5")
        plan = self.module.plan_write(req, TOKEN, URIS)
        assert (plan.owner, plan.escrowed, plan.instant) == (CREDITOR, ONE // 2, 0)
        assert self.module.schema.decode(plan.payload)["cashBeforeDate"] == 1000

    def test_cash_goes_to_viewer_by_default(self):
        payload = self.module.schema.encode({"cashBeforeDate": 1000})
        state = state_for(ModuleName.CASH_BEFORE_DATE, payload, escrowed=ONE)
        plan = self.module.plan_cash(state, {}, DEBTOR, CashDirection.RELEASE)
        assert (plan.to, plan.amount, plan.payload) == (DEBTOR, ONE, EMPTY_PAYLOAD)

        plan = self.module.plan_cash(state, {}, DEBTOR, CashDirection.RELEASE, recipient=STRANGER)
        assert plan.to == STRANGER

    def test_cash_twice(self):
        payload = self.module.schema.encode({"cashBeforeDate": 1000})
        state = state_for(
            ModuleName.CASH_BEFORE_DATE,
            payload,
            cashes=(CashEvent(to=CREDITOR, amount=ONE, timestamp=1),),
        )
        with pytest.raises(UnsupportedOperation):
            self.module.plan_cash(state, {}, CREDITOR, CashDirection.RELEASE)

    def test_fund_unsupported(self):
        state = state_for(ModuleName.CASH_BEFORE_DATE, b"")
        with pytest.raises(UnsupportedOperation):
            self.module.plan_fund(state, {})


class TestCashBeforeDateDrip:
    module = get_module(ModuleName.CASH_BEFORE_DATE_DRIP)

    def _state(self, escrowed):
        payload = self.module.schema.encode({"expirationDate": 10**9, "dripAmount": ONE, "dripPeriod": 60})
        return state_for(ModuleName.CASH_BEFORE_DATE_DRIP, payload, escrowed=escrowed)

    def test_write(self):
        req = request(
            {
                "module_name": "cashBeforeDateDrip",
                "payee": CREDITOR,
                "expiration_date": 10**9,
                "drip_amount": "0.25",
                "drip_period": 60,
            },
            amount="2",
        )
        plan = self.module.plan_write(req, TOKEN, URIS)
        assert (plan.owner, plan.escrowed) == (CREDITOR, 2 * ONE)
        assert self.module.schema.decode(plan.payload)["dripAmount"] == ONE // 4

    def test_payee_draws_one_drip(self):
        state = self._state(escrowed=5 * ONE)
        fields = self.module.schema.decode(state.payload)
        plan = self.module.plan_cash(state, fields, CREDITOR, CashDirection.RELEASE)
        assert (plan.to, plan.amount) == (CREDITOR, ONE)

    def test_payee_draws_remainder(self):
        state = self._state(escrowed=ONE // 2)
        fields = self.module.schema.decode(state.payload)
        assert self.module.plan_cash(state, fields, CREDITOR, CashDirection.RELEASE).amount == ONE // 2

    def test_sender_takes_everything_back(self):
        state = self._state(escrowed=5 * ONE)
        fields = self.module.schema.decode(state.payload)
        plan = self.module.plan_cash(state, fields, DEBTOR, CashDirection.REVERSAL)
        assert (plan.to, plan.amount) == (DEBTOR, 5 * ONE)

    def test_stranger_cannot_cash(self):
        state = self._state(escrowed=5 * ONE)
        fields = self.module.schema.decode(state.payload)
        with pytest.raises(UnsupportedOperation):
            self.module.plan_cash(state, fields, STRANGER, CashDirection.RELEASE)


class TestWriteRequest:
    """Tests for request validation."""

    def test_currency_upper_cased(self):
        req = request({"module_name": "cashBeforeDate", "owner": CREDITOR, "cash_before_date": 1}, currency="dai")
        assert req.currency == "DAI"
        assert req.module_name == ModuleName.CASH_BEFORE_DATE

    def test_amount_must_be_positive(self):
        with pytest.raises(ValueError):
            request({"module_name": "cashBeforeDate", "owner": CREDITOR, "cash_before_date": 1}, amount="0")

    def test_unknown_module_rejected(self):
        with pytest.raises(ValueError):
            request({"module_name": "streaming", "owner": CREDITOR})

    def test_extra_fields_rejected(self):
        with pytest.raises(ValueError):
            request({"module_name": "cashBeforeDate", "owner": CREDITOR, "cash_before_date": 1, "memo": "x"})

    def test_milestones_require_one_entry(self):
        with pytest.raises(ValueError):
            request({"module_name": "milestones", "creditor": CREDITOR, "debtor": DEBTOR, "milestones": []})

    def test_amount_kept_as_decimal(self):
        req = request({"module_name": "cashBeforeDate", "owner": CREDITOR, "cash_before_date": 1}, amount="1.25")
        assert req.amount == Decimal("1.25")
