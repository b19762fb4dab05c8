"""
Tests for the web3.py registrar and bridge adapters.

The AsyncWeb3 instance is a MagicMock; only the contract call plumbing and
receipt handling are exercised.
"""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from nota_sdk.exceptions import TransactionReverted, UnsupportedModule
from nota_sdk.registrar import (
    BRIDGE_SENDER_ABI,
    ERC20_ABI,
    REGISTRAR_ABI,
    Web3BridgeSender,
    Web3Registrar,
)

from conftest import BRIDGE_SENDER, CREDITOR, DAI, DEBTOR, MODULE_ADDRESSES, REGISTRAR, TX_HASH


def mock_w3(status=1):
    w3 = MagicMock()
    contract = MagicMock()
    w3.eth.contract.return_value = contract
    w3.eth.wait_for_transaction_receipt = AsyncMock(
        return_value={"transactionHash": TX_HASH, "status": status, "blockNumber": 10, "logs": []}
    )
    return w3, contract


def mock_call(contract, name):
    call = MagicMock()
    call.transact = AsyncMock(return_value=TX_HASH)
    getattr(contract.functions, name).return_value = call
    return call


class TestWeb3Registrar:
    """Tests for Web3Registrar."""

    @pytest.mark.asyncio
    async def test_write(self):
        w3, contract = mock_w3()
        call = mock_call(contract, "write")
        registrar = Web3Registrar(w3, REGISTRAR, CREDITOR)

        receipt = await registrar.write(DAI, 5, 0, CREDITOR, MODULE_ADDRESSES["direct"], b"\x01", value=0)

        assert receipt["status"] == 1
        args = contract.functions.write.call_args.args
        assert args[0].lower() == DAI
        assert args[1:4] == (5, 0, CREDITOR)
        assert args[5] == b"\x01"
        call.transact.assert_awaited_once_with({"from": CREDITOR, "value": 0})
        w3.eth.wait_for_transaction_receipt.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fund_sends_value(self):
        w3, contract = mock_w3()
        call = mock_call(contract, "fund")
        registrar = Web3Registrar(w3, REGISTRAR, DEBTOR)

        await registrar.fund("7", 0, 100, b"", value=100)

        contract.functions.fund.assert_called_once_with(7, 0, 100, b"")
        call.transact.assert_awaited_once_with({"from": DEBTOR, "value": 100})

    @pytest.mark.asyncio
    async def test_cash(self):
        w3, contract = mock_w3()
        mock_call(contract, "cash")
        registrar = Web3Registrar(w3, REGISTRAR, DEBTOR)

        await registrar.cash("8", 100, CREDITOR, b"")

        contract.functions.cash.assert_called_once_with(8, 100, CREDITOR, b"")

    @pytest.mark.asyncio
    async def test_approve_targets_registrar(self):
        w3, contract = mock_w3()
        mock_call(contract, "approve")
        registrar = Web3Registrar(w3, REGISTRAR, CREDITOR)

        await registrar.approve(DAI, 10)

        spender, amount = contract.functions.approve.call_args.args
        assert spender.lower() == REGISTRAR
        assert amount == 10
        assert w3.eth.contract.call_args_list[-1].kwargs["abi"] == ERC20_ABI

    @pytest.mark.asyncio
    async def test_reverted(self):
        w3, contract = mock_w3(status=0)
        mock_call(contract, "cash")
        registrar = Web3Registrar(w3, REGISTRAR, CREDITOR)

        with pytest.raises(TransactionReverted) as exc_info:
            await registrar.cash("8", 100, CREDITOR, b"")
        assert exc_info.value.operation == "cash"
        assert exc_info.value.tx_hash == "0x" + "12" * 32

    def test_from_context(self, ctx, undeployed_ctx):
        w3, _ = mock_w3()
        Web3Registrar.from_context(w3, ctx)
        assert w3.eth.contract.call_args.kwargs["abi"] == REGISTRAR_ABI

        with pytest.raises(UnsupportedModule):
            Web3Registrar.from_context(w3, undeployed_ctx)


class TestWeb3BridgeSender:
    """Tests for Web3BridgeSender."""

    @pytest.mark.asyncio
    async def test_create_remote_nota(self):
        w3, contract = mock_w3()
        call = mock_call(contract, "createRemoteNota")
        bridge = Web3BridgeSender(w3, BRIDGE_SENDER, CREDITOR)

        await bridge.create_remote_nota(DAI, 5, CREDITOR, b"\x02", "celo")

        args = contract.functions.createRemoteNota.call_args.args
        assert args[1:] == (5, CREDITOR, b"\x02", "celo")
        call.transact.assert_awaited_once_with({"from": CREDITOR, "value": 0})

    def test_from_context(self, ctx, undeployed_ctx):
        w3, _ = mock_w3()
        Web3BridgeSender.from_context(w3, ctx)
        assert w3.eth.contract.call_args.kwargs["abi"] == BRIDGE_SENDER_ABI

        with pytest.raises(UnsupportedModule):
            Web3BridgeSender.from_context(w3, undeployed_ctx)
