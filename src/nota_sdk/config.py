"""
Configuration for the nota client.

Provides:
- Per-chain deployment tables (registrar, module contracts, tokens, indexer URL)
- Loading deployment tables from a JSON file
- NotaSettings read from NOTA_* environment variables
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
NATIVE_CURRENCY = "NATIVE"


@dataclass(frozen=True)
class TokenConfig:
    """ERC-20 token deployed on a chain."""
    address: str
    decimals: int = 18


@dataclass(frozen=True)
class ChainDeployment:
    """Contract deployment set for one chain."""
    chain_id: int
    name: str
    display_name: str = ""
    registrar: str = ""
    bridge_sender: str = ""
    graph_url: str = ""
    native_decimals: int = 18
    explorer_url: str = ""

    # module name -> module contract address ("" = not deployed)
    modules: Dict[str, str] = field(default_factory=dict)

    # currency symbol -> token
    tokens: Dict[str, TokenConfig] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, chain_id: int, data: Dict[str, Any]) -> "ChainDeployment":
        """Build a deployment from its JSON representation."""
        tokens = {
            symbol.upper(): TokenConfig(
                address=token["address"],
                decimals=int(token.get("decimals", 18)),
            )
            for symbol, token in data.get("tokens", {}).items()
        }
        return cls(
            chain_id=chain_id,
            name=data.get("name", str(chain_id)),
            display_name=data.get("display_name", ""),
            registrar=data.get("registrar", ""),
            bridge_sender=data.get("bridge_sender", ""),
            graph_url=data.get("graph_url", ""),
            native_decimals=int(data.get("native_decimals", 18)),
            explorer_url=data.get("explorer_url", ""),
            modules=dict(data.get("modules", {})),
            tokens=tokens,
        )


# Protocol testnet deployments (contract addresses populated after deployment)
def build_default_deployments() -> Dict[int, ChainDeployment]:
    """Build the default deployment table."""
    return {
        80001: ChainDeployment(
            chain_id=80001,
            name="mumbai",
            display_name="Polygon Mumbai",
            graph_url="https://denota.klymr.me/graph/mumbai",
            explorer_url="https://mumbai.polygonscan.com",
            modules={
                "direct": "",
                "reversibleRelease": "",
                "milestones": "",
                "cashBeforeDate": "",
                "cashBeforeDateDrip": "",
            },
            tokens={
                "DAI": TokenConfig(address="", decimals=18),
                "WETH": TokenConfig(address="", decimals=18),
            },
        ),
        44787: ChainDeployment(
            chain_id=44787,
            name="alfajores",
            display_name="Celo Alfajores",
            graph_url="https://denota.klymr.me/graph/alfajores",
            explorer_url="https://alfajores.celoscan.io",
            modules={
                "direct": "",
                "reversibleRelease": "",
                "milestones": "",
                "cashBeforeDate": "",
                "cashBeforeDateDrip": "",
            },
            tokens={
                "DAI": TokenConfig(address="", decimals=18),
                "WETH": TokenConfig(address="", decimals=18),
            },
        ),
    }


def load_deployments_file(path: Path | str) -> Dict[int, ChainDeployment]:
    """
    Load a deployment table from JSON.

    The file maps chain ids (as strings) to deployment objects:

        {"80001": {"name": "mumbai", "registrar": "0x...",
                   "modules": {"direct": "0x..."},
                   "tokens": {"DAI": {"address": "0x...", "decimals": 18}}}}
    """
    raw = json.loads(Path(path).read_text())
    deployments = {
        int(chain_id): ChainDeployment.from_dict(int(chain_id), data)
        for chain_id, data in raw.items()
    }
    logger.info(f"Loaded {len(deployments)} chain deployments from {path}")
    return deployments


class NotaSettings(BaseSettings):
    """Client settings, read from NOTA_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="NOTA_",
        env_file=".env",
        extra="ignore",
    )

    # Active chain
    chain_id: int = 80001

    # JSON deployment table; replaces the built-in testnet table when set
    deployments_file: Optional[Path] = None

    # Indexer override (otherwise taken from the chain deployment)
    graph_url: str = ""

    # Metadata upload endpoint
    metadata_url: str = ""

    # Timeouts for the HTTP adapters
    http_timeout_seconds: float = 30.0

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_json: bool = True

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept lower-case level names from the environment."""
        if isinstance(v, str):
            return v.upper()
        return v

    def deployments(self) -> Dict[int, ChainDeployment]:
        """Deployment table selected by these settings."""
        if self.deployments_file:
            deployments = load_deployments_file(self.deployments_file)
        else:
            deployments = build_default_deployments()

        if self.graph_url and self.chain_id in deployments:
            deployments[self.chain_id] = replace(deployments[self.chain_id], graph_url=self.graph_url)
        return deployments


@lru_cache
def load_settings(env_file: str | None = None) -> NotaSettings:
    """Load NotaSettings once per process."""
    env_path = Path(env_file) if env_file else None
    return NotaSettings(_env_file=env_path)
