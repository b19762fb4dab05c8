"""
Module payload codec.

Every module declares an ordered tuple of (name, ABI type) fields. Payloads
travel as the standard ABI tuple encoding, the same bytes the module contract
parses with abi.decode. Field order is part of the protocol: changing it for a
module requires a new module version.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple, Union

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import is_address, is_hexstr, to_bytes, to_checksum_address

from .config import ZERO_ADDRESS
from .exceptions import MalformedPayload, NotaValidationError

# Payload for calls that take no module-specific parameters
EMPTY_PAYLOAD = b""

SUPPORTED_TYPES = ("address", "string", "bytes", "bytes32", "uint256[]")


@dataclass(frozen=True)
class FieldSpec:
    """One positional payload field."""
    name: str
    abi_type: str

    def zero_value(self) -> Any:
        """Value encoded when the caller leaves the field out."""
        if self.abi_type.endswith("[]"):
            return []
        if self.abi_type.startswith("uint") or self.abi_type.startswith("int"):
            return 0
        if self.abi_type == "address":
            return ZERO_ADDRESS
        if self.abi_type == "string":
            return ""
        if self.abi_type == "bytes32":
            return b"\x00" * 32
        return b""


def _is_integer_type(abi_type: str) -> bool:
    return abi_type.startswith("uint") or abi_type.startswith("int")


@dataclass(frozen=True)
class PayloadSchema:
    """Ordered field list for one module's payload."""
    module: str
    fields: Tuple[FieldSpec, ...]

    def __post_init__(self):
        for spec in self.fields:
            if not (_is_integer_type(spec.abi_type) or spec.abi_type in SUPPORTED_TYPES):
                raise ValueError(f"Unsupported payload type {spec.abi_type} in {self.module}")

    @classmethod
    def of(cls, module: str, *fields: Tuple[str, str]) -> "PayloadSchema":
        return cls(module=module, fields=tuple(FieldSpec(n, t) for n, t in fields))

    @property
    def types(self) -> list[str]:
        return [spec.abi_type for spec in self.fields]

    @property
    def names(self) -> list[str]:
        return [spec.name for spec in self.fields]

    def _normalize(self, spec: FieldSpec, value: Any) -> Any:
        if value is None:
            return spec.zero_value()

        abi_type = spec.abi_type
        if abi_type == "address":
            if not isinstance(value, str) or not is_address(value.lower()):
                raise NotaValidationError(
                    f"{self.module}.{spec.name} must be an address, got {value!r}",
                    field=spec.name,
                )
            return to_checksum_address(value)
        if abi_type.endswith("[]"):
            if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
                raise NotaValidationError(
                    f"{self.module}.{spec.name} must be a list",
                    field=spec.name,
                )
            return [self._integer(spec, v) for v in value]
        if _is_integer_type(abi_type):
            return self._integer(spec, value)
        if abi_type == "string":
            if not isinstance(value, str):
                raise NotaValidationError(
                    f"{self.module}.{spec.name} must be a string",
                    field=spec.name,
                )
            return value
        if isinstance(value, str):
            return to_bytes(hexstr=value)
        return bytes(value)

    def _integer(self, spec: FieldSpec, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise NotaValidationError(
                f"{self.module}.{spec.name} must be an integer, got {value!r}",
                field=spec.name,
            )
        return value

    def encode(self, values: Mapping[str, Any]) -> bytes:
        """Encode field values in declared order; absent fields become zero values."""
        unknown = set(values) - set(self.names)
        if unknown:
            raise NotaValidationError(
                f"Unknown {self.module} payload fields: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )

        ordered = [self._normalize(spec, values.get(spec.name)) for spec in self.fields]
        try:
            return encode(self.types, ordered)
        except (EncodingError, OverflowError) as e:
            raise NotaValidationError(f"Cannot encode {self.module} payload: {e}") from e

    def decode(self, data: Union[bytes, str]) -> Dict[str, Any]:
        """
        Decode payload bytes into a field dict.

        The input must be the canonical encoding: truncated data, bad padding,
        trailing bytes and undecodable strings all raise MalformedPayload.
        """
        raw = self._coerce_bytes(data)
        try:
            decoded = decode(self.types, raw)
        except (DecodingError, UnicodeDecodeError, OverflowError) as e:
            raise MalformedPayload(self.module, str(e)) from e

        values = {
            spec.name: list(value) if spec.abi_type.endswith("[]") else value
            for spec, value in zip(self.fields, decoded)
        }
        if encode(self.types, list(decoded)) != raw:
            raise MalformedPayload(
                self.module,
                f"expected canonical encoding, got {len(raw)} bytes with trailing or non-canonical data",
            )
        return values

    def _coerce_bytes(self, data: Union[bytes, str]) -> bytes:
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)
        if isinstance(data, str):
            if data in ("", "0x"):
                return b""
            if not is_hexstr(data):
                raise MalformedPayload(self.module, "payload is not a hex string")
            try:
                return to_bytes(hexstr=data)
            except ValueError as e:
                raise MalformedPayload(self.module, str(e)) from e
        raise MalformedPayload(self.module, f"unsupported payload container {type(data).__name__}")


def encode_payload(module: str, fields: Mapping[str, Any]) -> bytes:
    """Encode a module's write payload."""
    from .modules import get_module

    return get_module(module).schema.encode(fields)


def decode_payload(module: str, data: Union[bytes, str]) -> Dict[str, Any]:
    """Decode a module's stored payload."""
    from .modules import get_module

    return get_module(module).schema.decode(data)
