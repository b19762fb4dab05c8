"""Immutable per-call context: who is acting, on which chain."""
from __future__ import annotations

from dataclasses import dataclass

from .chains import DeploymentRegistry
from .config import ChainDeployment, NotaSettings


@dataclass(frozen=True)
class NotaContext:
    """
    Active chain/session view handed to every client operation.

    The dispatcher reads it and never mutates it; switching chains or
    accounts means building a new context.
    """
    chain_id: int
    account: str
    registry: DeploymentRegistry

    @classmethod
    def for_chain(
        cls,
        chain_id: int,
        account: str,
        registry: DeploymentRegistry | None = None,
    ) -> "NotaContext":
        """Build a context, failing with UnsupportedChain for unknown chains."""
        registry = registry or DeploymentRegistry()
        registry.deployment(chain_id)
        return cls(chain_id=chain_id, account=account, registry=registry)

    @classmethod
    def from_settings(cls, settings: NotaSettings, account: str) -> "NotaContext":
        registry = DeploymentRegistry(settings.deployments())
        return cls.for_chain(settings.chain_id, account, registry)

    @property
    def deployment(self) -> ChainDeployment:
        return self.registry.deployment(self.chain_id)
