"""GraphQL indexer adapter.

Reads nota state from the protocol subgraph and maps it onto NotaState.
Addresses come back lower-cased from the subgraph; amounts and timestamps
come back as decimal strings.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .context import NotaContext
from .exceptions import IndexerQueryError, MalformedPayload, NotaNotFound, UnsupportedChain
from .models import CashDirection, CashEvent, NotaState
from .modules import module_for_typename
from .ports import IndexerPort

logger = logging.getLogger(__name__)

NOTA_QUERY = """
query nota($id: String) {
  notas(where: { id: $id }, first: 1) {
    id
    owner { id }
    sender { id }
    erc20 { id }
    escrowed
    instant
    moduleBytes
    module { id }
    cashes {
      to { id }
      amount
      timestamp
      type
    }
    moduleData {
      __typename
      ... on DirectPayData {
        amount
        creditor { id }
        debtor { id }
        dueDate
      }
      ... on ReversiblePaymentData {
        amount
        creditor { id }
        debtor { id }
      }
      ... on MilestonesData {
        amount
        creditor { id }
        debtor { id }
      }
    }
  }
}
"""


def _ref(node: Optional[Dict[str, Any]]) -> str:
    """Id of a nested `{ id }` reference."""
    if not node:
        return ""
    return node.get("id") or ""


def _int(value: Any) -> int:
    if value in (None, ""):
        return 0
    return int(value)


def _direction(value: Optional[str]) -> Optional[CashDirection]:
    if not value:
        return None
    try:
        return CashDirection(value.lower())
    except ValueError:
        return None


def parse_nota(raw: Dict[str, Any]) -> NotaState:
    """Map one subgraph nota record onto NotaState."""
    module_data = raw.get("moduleData") or {}
    module = module_for_typename(module_data.get("__typename", ""))

    cashes = tuple(
        CashEvent(
            to=_ref(c.get("to")),
            amount=_int(c.get("amount")),
            timestamp=_int(c.get("timestamp")),
            direction=_direction(c.get("type")),
        )
        for c in raw.get("cashes") or []
    )
    last_claimed_at = max((c.timestamp for c in cashes), default=None)

    payload = raw.get("moduleBytes") or "0x"
    if isinstance(payload, str):
        try:
            payload = bytes.fromhex(payload[2:] if payload.startswith("0x") else payload)
        except ValueError:
            raise MalformedPayload(module.name.value, "moduleBytes is not hex") from None

    return NotaState(
        nota_id=str(raw["id"]),
        module=module.name,
        owner=_ref(raw.get("owner")),
        sender=_ref(raw.get("sender")),
        creditor=_ref(module_data.get("creditor")),
        debtor=_ref(module_data.get("debtor")),
        token=_ref(raw.get("erc20")),
        escrowed=_int(raw.get("escrowed")),
        instant_paid=_int(raw.get("instant")),
        cashes=cashes,
        module_address=_ref(raw.get("module")),
        payload=payload,
        last_claimed_at=last_claimed_at,
    )


class GraphIndexer(IndexerPort):
    """Subgraph client over httpx."""

    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._url = url
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_context(cls, ctx: NotaContext, **kwargs) -> "GraphIndexer":
        url = ctx.deployment.graph_url
        if not url:
            raise UnsupportedChain(ctx.chain_id)
        return cls(url, **kwargs)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Content-Type": "application/json"},
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GraphIndexer":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def query(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """Run a GraphQL query and return its data object."""
        client = await self._get_client()
        response = await client.post(self._url, json={"query": query, "variables": variables})
        response.raise_for_status()
        body = response.json()

        errors: List[Any] = body.get("errors") or []
        if errors:
            message = "; ".join(str(e.get("message", e)) for e in errors if isinstance(e, dict)) or str(errors)
            raise IndexerQueryError(f"Indexer query failed: {message}", errors)
        return body.get("data") or {}

    async def fetch_nota(self, nota_id: str) -> NotaState:
        logger.debug(f"Fetching nota {nota_id} from {self._url}")
        data = await self.query(NOTA_QUERY, {"id": str(nota_id)})
        notas = data.get("notas") or []
        if not notas:
            raise NotaNotFound(str(nota_id))
        return parse_nota(notas[0])
