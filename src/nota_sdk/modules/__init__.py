"""Registry of nota modules keyed by module name and indexer typename."""
from __future__ import annotations

from typing import Dict, Union

from ..exceptions import NoMatchingModule
from ..models import ModuleName
from .base import CashPlan, FundPlan, NotaModule, WritePlan
from .cash_before_date import CashBeforeDate, CashBeforeDateStatus
from .cash_before_date_drip import CashBeforeDateDrip, CashBeforeDateDripStatus
from .cross_chain import CrossChain
from .direct_pay import DirectPay, DirectPayStatus
from .milestones import Milestones, MilestonesStatus
from .reversible_release import ReversibleRelease, ReversibleReleaseStatus

MODULES: Dict[ModuleName, NotaModule] = {
    module.name: module
    for module in (
        DirectPay(),
        ReversibleRelease(),
        Milestones(),
        CrossChain(),
        CashBeforeDate(),
        CashBeforeDateDrip(),
    )
}

_BY_TYPENAME: Dict[str, NotaModule] = {
    module.typename: module for module in MODULES.values() if module.typename
}


def get_module(name: Union[ModuleName, str]) -> NotaModule:
    """Look up a module by name; unknown names raise NoMatchingModule."""
    try:
        return MODULES[ModuleName(name)]
    except ValueError:
        raise NoMatchingModule(name) from None


def module_for_typename(typename: str) -> NotaModule:
    """Look up a module by the indexer's moduleData __typename."""
    try:
        return _BY_TYPENAME[typename]
    except KeyError:
        raise NoMatchingModule(typename) from None


__all__ = [
    "MODULES",
    "get_module",
    "module_for_typename",
    "NotaModule",
    "WritePlan",
    "FundPlan",
    "CashPlan",
    "DirectPay",
    "DirectPayStatus",
    "ReversibleRelease",
    "ReversibleReleaseStatus",
    "Milestones",
    "MilestonesStatus",
    "CrossChain",
    "CashBeforeDate",
    "CashBeforeDateStatus",
    "CashBeforeDateDrip",
    "CashBeforeDateDripStatus",
]
