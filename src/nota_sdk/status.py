"""Status derivation.

Status is never stored on-chain: it is recomputed from indexed state for a
given viewer at a given instant. The caller always supplies the current time.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Union

from .models import NotaState, NotaStatusReport
from .modules import get_module

Timestamp = Union[int, datetime]


def to_unix(now: Timestamp) -> int:
    """Unix seconds for ``now``; naive datetimes are read as UTC."""
    if isinstance(now, datetime):
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return int(now.timestamp())
    return int(now)


def derive_status_from_fields(
    fields: Dict[str, Any],
    state: NotaState,
    viewer: str,
    now: Timestamp,
) -> Enum:
    """Run the module state machine on an already decoded payload."""
    return get_module(state.module).derive_status(fields, state, viewer, to_unix(now))


def derive_status(state: NotaState, viewer: str, now: Timestamp) -> NotaStatusReport:
    """Decode the stored payload and derive the viewer's status."""
    module = get_module(state.module)
    fields = module.schema.decode(state.payload)
    as_of = to_unix(now)
    status = module.derive_status(fields, state, viewer, as_of)
    return NotaStatusReport(
        nota_id=state.nota_id,
        module=module.name,
        status=status,
        viewer=viewer,
        as_of=as_of,
        data=module.describe(fields, state),
    )
