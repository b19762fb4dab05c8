"""Exception hierarchy for the nota client.

Every failure the client reports on its own account derives from NotaError.
Transport failures (httpx, web3 RPC errors) are not wrapped here and reach
the caller unchanged. A mined transaction with a failed status is reported
as TransactionReverted.

All exceptions have:
- error_code: Machine-readable error code (e.g., "UNSUPPORTED_CHAIN")
- message: Human-readable error message
- details: Optional additional context dictionary
- to_dict(): Convert to a serializable error payload
"""
from __future__ import annotations

from typing import Any, Optional


class NotaError(Exception):
    """Base exception for all nota client errors."""

    error_code: str = "NOTA_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to an error payload."""
        result = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class NotaValidationError(NotaError):
    """Invalid input data or parameters."""

    error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details=details)
        self.field = field


# =============================================================================
# Resolution errors
# =============================================================================

class UnsupportedChain(NotaError):
    """No deployment set is registered for the chain."""

    error_code = "UNSUPPORTED_CHAIN"

    def __init__(self, chain_id: int) -> None:
        super().__init__(
            f"Unsupported chain: {chain_id}",
            details={"chain_id": chain_id},
        )
        self.chain_id = chain_id


class UnsupportedCurrency(NotaError):
    """Currency symbol has no token on the chain."""

    error_code = "UNSUPPORTED_CURRENCY"

    def __init__(self, currency: str, chain_id: int) -> None:
        super().__init__(
            f"Currency {currency} is not available on chain {chain_id}",
            details={"currency": currency, "chain_id": chain_id},
        )
        self.currency = currency
        self.chain_id = chain_id


class UnsupportedModule(NotaError):
    """Module has no contract deployment on the chain."""

    error_code = "UNSUPPORTED_MODULE"

    def __init__(self, module: str, chain_id: int) -> None:
        super().__init__(
            f"Module {module} is not deployed on chain {chain_id}",
            details={"module": module, "chain_id": chain_id},
        )
        self.module = module
        self.chain_id = chain_id


# =============================================================================
# Dispatch errors
# =============================================================================

class NoMatchingModule(NotaError):
    """Discriminant does not name any known module."""

    error_code = "NO_MATCHING_MODULE"

    def __init__(self, discriminant: Any) -> None:
        super().__init__(
            f"No module matches discriminant {discriminant!r}",
            details={"discriminant": str(discriminant)},
        )
        self.discriminant = discriminant


class UnsupportedOperation(NotaError):
    """Module exists but has no routine for the requested operation."""

    error_code = "UNSUPPORTED_OPERATION"

    def __init__(self, module: str, operation: str, reason: str = "") -> None:
        message = f"{module} notas do not support {operation}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            details={"module": module, "operation": operation},
        )
        self.module = module
        self.operation = operation


class InstrumentIdNotFound(NotaError):
    """Write transaction confirmed but no Written event could be parsed."""

    error_code = "INSTRUMENT_ID_NOT_FOUND"

    def __init__(self, tx_hash: str) -> None:
        super().__init__(
            f"No Written event found in receipt for {tx_hash}",
            details={"tx_hash": tx_hash},
        )
        self.tx_hash = tx_hash


class MalformedPayload(NotaError):
    """Module payload bytes do not match the module's declared shape."""

    error_code = "MALFORMED_PAYLOAD"

    def __init__(self, module: str, reason: str) -> None:
        super().__init__(
            f"Malformed {module} payload: {reason}",
            details={"module": module, "reason": reason},
        )
        self.module = module
        self.reason = reason


# =============================================================================
# Indexer errors
# =============================================================================

class NotaNotFound(NotaError):
    """Indexer has no record of the nota."""

    error_code = "NOT_FOUND"

    def __init__(self, nota_id: str) -> None:
        super().__init__(
            f"Nota '{nota_id}' not found",
            details={"nota_id": nota_id},
        )
        self.nota_id = nota_id


class IndexerQueryError(NotaError):
    """Indexer answered with GraphQL errors."""

    error_code = "INDEXER_QUERY_ERROR"

    def __init__(self, message: str, errors: Optional[list[Any]] = None) -> None:
        super().__init__(message, details={"errors": errors or []})
        self.errors = errors or []


# =============================================================================
# Transaction errors
# =============================================================================

class TransactionReverted(NotaError):
    """Transaction was mined with a failed status."""

    error_code = "TRANSACTION_REVERTED"

    def __init__(self, tx_hash: str, operation: str) -> None:
        super().__init__(
            f"{operation} transaction {tx_hash} reverted",
            details={"tx_hash": tx_hash, "operation": operation},
        )
        self.tx_hash = tx_hash
        self.operation = operation
