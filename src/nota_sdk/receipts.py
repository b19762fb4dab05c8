"""Parsing of registrar events out of transaction receipts."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import to_bytes, to_checksum_address
from web3 import Web3

from .exceptions import InstrumentIdNotFound

logger = logging.getLogger(__name__)

# Written(address indexed caller, uint256 notaId, address indexed owner,
#         uint256 instant, address currency, uint256 escrowed, uint256 timestamp,
#         uint256 moduleFee, address indexed module, bytes moduleData)
WRITTEN_EVENT_SIGNATURE = (
    "Written(address,uint256,address,uint256,address,uint256,uint256,uint256,address,bytes)"
)
WRITTEN_TOPIC = Web3.keccak(text=WRITTEN_EVENT_SIGNATURE)

_WRITTEN_DATA_TYPES = [
    "uint256",  # notaId
    "uint256",  # instant
    "address",  # currency
    "uint256",  # escrowed
    "uint256",  # timestamp
    "uint256",  # moduleFee
    "bytes",    # moduleData
]


@dataclass(frozen=True)
class WrittenEvent:
    """Decoded Written event."""
    caller: str
    nota_id: int
    owner: str
    instant: int
    currency: str
    escrowed: int
    timestamp: int
    module_fee: int
    module: str
    module_data: bytes


def _as_bytes(value: Union[bytes, str]) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return to_bytes(hexstr=value)


def _topic_address(topic: Union[bytes, str]) -> str:
    return to_checksum_address(_as_bytes(topic)[-20:])


def tx_hash_hex(receipt: Mapping[str, Any]) -> str:
    """Transaction hash of a receipt as a 0x-prefixed hex string."""
    tx_hash = receipt.get("transactionHash", "")
    if isinstance(tx_hash, (bytes, bytearray)):
        return Web3.to_hex(tx_hash)
    return str(tx_hash)


def parse_written_log(log: Mapping[str, Any]) -> Optional[WrittenEvent]:
    """Decode a log as a Written event, or None when it is some other event."""
    topics = log.get("topics") or []
    if len(topics) != 4:
        return None
    try:
        if _as_bytes(topics[0]) != WRITTEN_TOPIC:
            return None
        (
            nota_id,
            instant,
            currency,
            escrowed,
            timestamp,
            module_fee,
            module_data,
        ) = decode(_WRITTEN_DATA_TYPES, _as_bytes(log.get("data") or b""))
        return WrittenEvent(
            caller=_topic_address(topics[1]),
            nota_id=nota_id,
            owner=_topic_address(topics[2]),
            instant=instant,
            currency=currency,
            escrowed=escrowed,
            timestamp=timestamp,
            module_fee=module_fee,
            module=_topic_address(topics[3]),
            module_data=module_data,
        )
    except (DecodingError, ValueError) as e:
        logger.debug(f"Skipping log that does not parse as Written: {e}")
        return None


def nota_id_from_receipt(receipt: Mapping[str, Any]) -> str:
    """
    Extract the id of the nota created by a write transaction.

    The first log that parses as a Written event supplies the id, returned as
    a decimal string. A receipt without one raises InstrumentIdNotFound.
    """
    for log in receipt.get("logs") or []:
        event = parse_written_log(log)
        if event is not None:
            return str(event.nota_id)
    raise InstrumentIdNotFound(tx_hash_hex(receipt))
