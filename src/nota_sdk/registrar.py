"""web3.py adapters for the registrar, bridge sender and ERC-20 contracts.

The provider behind the AsyncWeb3 instance is expected to sign for
``account`` (local signing middleware or an unlocked node account).
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from web3 import AsyncWeb3

from .context import NotaContext
from .exceptions import TransactionReverted, UnsupportedModule
from .ports import BridgePort, Receipt, RegistrarPort
from .receipts import tx_hash_hex

logger = logging.getLogger(__name__)


def _fn(name: str, inputs: List[tuple[str, str]], outputs: List[str] | None = None) -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "stateMutability": "payable",
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": "", "type": t} for t in (outputs or [])],
    }


REGISTRAR_ABI = [
    _fn(
        "write",
        [
            ("currency", "address"),
            ("escrowed", "uint256"),
            ("instant", "uint256"),
            ("owner", "address"),
            ("module", "address"),
            ("moduleWriteData", "bytes"),
        ],
        ["uint256"],
    ),
    _fn(
        "fund",
        [
            ("notaId", "uint256"),
            ("amount", "uint256"),
            ("instant", "uint256"),
            ("fundData", "bytes"),
        ],
    ),
    _fn(
        "cash",
        [
            ("notaId", "uint256"),
            ("amount", "uint256"),
            ("to", "address"),
            ("cashData", "bytes"),
        ],
    ),
]

BRIDGE_SENDER_ABI = [
    _fn(
        "createRemoteNota",
        [
            ("currency", "address"),
            ("amount", "uint256"),
            ("owner", "address"),
            ("moduleWriteData", "bytes"),
            ("destinationChain", "string"),
        ],
    ),
]

ERC20_ABI = [
    {
        "type": "function",
        "name": "approve",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
]


class _Web3Sender:
    """Submits contract calls and waits for their receipts."""

    def __init__(self, w3: AsyncWeb3, account: str, receipt_timeout: float = 120.0):
        self._w3 = w3
        self._account = AsyncWeb3.to_checksum_address(account)
        self._receipt_timeout = receipt_timeout

    def _contract(self, address: str, abi: List[Dict[str, Any]]):
        return self._w3.eth.contract(address=AsyncWeb3.to_checksum_address(address), abi=abi)

    async def _transact(self, call, operation: str, value: int = 0) -> Receipt:
        tx_hash = await call.transact({"from": self._account, "value": value})
        logger.info(f"Submitted {operation} transaction {AsyncWeb3.to_hex(tx_hash)}")

        receipt = await self._w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self._receipt_timeout
        )
        if receipt.get("status") == 0:
            raise TransactionReverted(tx_hash_hex(receipt), operation)

        logger.info(
            f"Confirmed {operation} transaction {tx_hash_hex(receipt)} "
            f"in block {receipt.get('blockNumber')}"
        )
        return receipt


class Web3Registrar(_Web3Sender, RegistrarPort):
    """Registrar calls through web3.py."""

    def __init__(
        self,
        w3: AsyncWeb3,
        registrar_address: str,
        account: str,
        receipt_timeout: float = 120.0,
    ):
        super().__init__(w3, account, receipt_timeout)
        self._registrar_address = AsyncWeb3.to_checksum_address(registrar_address)
        self._registrar = self._contract(registrar_address, REGISTRAR_ABI)

    @classmethod
    def from_context(cls, w3: AsyncWeb3, ctx: NotaContext, **kwargs) -> "Web3Registrar":
        if not ctx.deployment.registrar:
            raise UnsupportedModule("registrar", ctx.chain_id)
        return cls(w3, ctx.deployment.registrar, ctx.account, **kwargs)

    async def write(
        self,
        token: str,
        escrowed: int,
        instant: int,
        owner: str,
        module: str,
        payload: bytes,
        value: int = 0,
    ) -> Receipt:
        call = self._registrar.functions.write(
            AsyncWeb3.to_checksum_address(token),
            escrowed,
            instant,
            AsyncWeb3.to_checksum_address(owner),
            AsyncWeb3.to_checksum_address(module),
            payload,
        )
        return await self._transact(call, "write", value)

    async def fund(
        self,
        nota_id: str,
        amount: int,
        instant: int,
        payload: bytes,
        value: int = 0,
    ) -> Receipt:
        call = self._registrar.functions.fund(int(nota_id), amount, instant, payload)
        return await self._transact(call, "fund", value)

    async def cash(
        self,
        nota_id: str,
        amount: int,
        to: str,
        payload: bytes,
    ) -> Receipt:
        call = self._registrar.functions.cash(
            int(nota_id), amount, AsyncWeb3.to_checksum_address(to), payload
        )
        return await self._transact(call, "cash")

    async def approve(self, token: str, amount: int) -> Receipt:
        erc20 = self._contract(token, ERC20_ABI)
        call = erc20.functions.approve(self._registrar_address, amount)
        return await self._transact(call, "approve")


class Web3BridgeSender(_Web3Sender, BridgePort):
    """Bridge sender calls through web3.py."""

    def __init__(
        self,
        w3: AsyncWeb3,
        bridge_address: str,
        account: str,
        receipt_timeout: float = 120.0,
    ):
        super().__init__(w3, account, receipt_timeout)
        self._bridge = self._contract(bridge_address, BRIDGE_SENDER_ABI)

    @classmethod
    def from_context(cls, w3: AsyncWeb3, ctx: NotaContext, **kwargs) -> "Web3BridgeSender":
        if not ctx.deployment.bridge_sender:
            raise UnsupportedModule("bridgeSender", ctx.chain_id)
        return cls(w3, ctx.deployment.bridge_sender, ctx.account, **kwargs)

    async def create_remote_nota(
        self,
        token: str,
        amount: int,
        owner: str,
        payload: bytes,
        destination_chain: str,
        value: int = 0,
    ) -> Receipt:
        call = self._bridge.functions.createRemoteNota(
            AsyncWeb3.to_checksum_address(token),
            amount,
            AsyncWeb3.to_checksum_address(owner),
            payload,
            destination_chain,
        )
        return await self._transact(call, "createRemoteNota", value)
