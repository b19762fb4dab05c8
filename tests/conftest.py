"""
Pytest configuration and fixtures for nota_sdk tests.
"""
from __future__ import annotations

import pytest
from eth_abi import encode

from nota_sdk.chains import DeploymentRegistry
from nota_sdk.config import ZERO_ADDRESS, ChainDeployment, TokenConfig
from nota_sdk.context import NotaContext
from nota_sdk.receipts import WRITTEN_TOPIC

CHAIN_ID = 80001
SECOND_CHAIN_ID = 44787

CREDITOR = "0x1111111111111111111111111111111111111111"
DEBTOR = "0x2222222222222222222222222222222222222222"
INSPECTOR = "0x3333333333333333333333333333333333333333"
STRANGER = "0x4444444444444444444444444444444444444444"

REGISTRAR = "0x00000000000000000000000000000000000000aa"
BRIDGE_SENDER = "0x00000000000000000000000000000000000000bb"
DAI = "0x00000000000000000000000000000000000000d1"
USDC = "0x00000000000000000000000000000000000000d2"

MODULE_ADDRESSES = {
    "direct": "0x0000000000000000000000000000000000000a01",
    "reversibleRelease": "0x0000000000000000000000000000000000000a02",
    "milestones": "0x0000000000000000000000000000000000000a03",
    "cashBeforeDate": "0x0000000000000000000000000000000000000a05",
    "cashBeforeDateDrip": "0x0000000000000000000000000000000000000a06",
}

GRAPH_URL = "https://indexer.test/graph"


def build_test_deployments() -> dict[int, ChainDeployment]:
    return {
        CHAIN_ID: ChainDeployment(
            chain_id=CHAIN_ID,
            name="mumbai",
            registrar=REGISTRAR,
            bridge_sender=BRIDGE_SENDER,
            graph_url=GRAPH_URL,
            modules=dict(MODULE_ADDRESSES),
            tokens={
                "DAI": TokenConfig(address=DAI, decimals=18),
                "USDC": TokenConfig(address=USDC, decimals=6),
                "WETH": TokenConfig(address=""),
            },
        ),
        # Known chain with nothing deployed yet
        SECOND_CHAIN_ID: ChainDeployment(
            chain_id=SECOND_CHAIN_ID,
            name="alfajores",
            modules={"direct": "", "cashBeforeDate": ""},
            tokens={"DAI": TokenConfig(address="")},
        ),
    }


@pytest.fixture
def registry() -> DeploymentRegistry:
    return DeploymentRegistry(build_test_deployments())


@pytest.fixture
def ctx(registry) -> NotaContext:
    """Context acting as the creditor on the test chain."""
    return NotaContext.for_chain(CHAIN_ID, CREDITOR, registry)


@pytest.fixture
def undeployed_ctx(registry) -> NotaContext:
    return NotaContext.for_chain(SECOND_CHAIN_ID, CREDITOR, registry)


TX_HASH = b"\x12" * 32


def address_topic(address: str) -> bytes:
    """Indexed address as a 32-byte log topic."""
    return b"\x00" * 12 + bytes.fromhex(address[2:])


def written_log(nota_id: int, module: str = MODULE_ADDRESSES["direct"]) -> dict:
    """Registrar Written log for a nota owned by CREDITOR."""
    data = encode(
        ["uint256", "uint256", "address", "uint256", "uint256", "uint256", "bytes"],
        [nota_id, 0, ZERO_ADDRESS, 10**18, 1_700_000_000, 0, b"\x01\x02"],
    )
    return {
        "topics": [WRITTEN_TOPIC, address_topic(DEBTOR), address_topic(CREDITOR), address_topic(module)],
        "data": data,
    }
