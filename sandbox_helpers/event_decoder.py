"""
Event log decoding against a contract ABI.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from eth_utils import event_abi_to_log_topic, remove_0x_prefix
from hexbytes import HexBytes
from web3 import Web3
from web3._utils.events import get_event_data

logger = logging.getLogger(__name__)

_codec = Web3().codec


def event_signature(abi_entry: dict) -> str:
    """Keccak hash of the event's normalised signature, unprefixed lowercase hex."""
    return event_abi_to_log_topic(abi_entry).hex().lower().replace("0x", "", 1)


def _topic_hex(topic: Union[str, bytes]) -> str:
    if isinstance(topic, (bytes, bytearray)):
        return bytes(topic).hex().lower()
    return remove_0x_prefix(topic).lower()


def _to_bytes(value: Union[str, bytes, None]) -> bytes:
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return bytes(HexBytes(value))


def _prepare_log(event_log: Dict[str, Any]) -> Dict[str, Any]:
    """Shape a raw log the way web3's event decoder expects it."""
    return {
        "topics": [HexBytes(_to_bytes(t)) for t in event_log.get("topics", [])],
        "data": _to_bytes(event_log.get("data")),
        "address": event_log.get("address", ""),
        "blockHash": event_log.get("blockHash"),
        "blockNumber": event_log.get("blockNumber"),
        "transactionHash": event_log.get("transactionHash"),
        "transactionIndex": event_log.get("transactionIndex"),
        "logIndex": event_log.get("logIndex"),
    }


def parse_event_log(abi: List[dict], event_log: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Decode ``event_log`` with the first ABI event matching its first topic.

    Indexed parameters are read from the topics, the rest from the data.

    Returns:
        ``{parameter name: value}``, or None when no event in ``abi``
        matches the log.
    """
    topics = event_log.get("topics") or []
    if not topics:
        return None
    wanted = _topic_hex(topics[0])

    for entry in abi:
        if entry.get("type") != "event":
            continue
        if event_signature(entry) != wanted:
            continue
        event_abi = {"anonymous": False, **entry}
        decoded = get_event_data(_codec, event_abi, _prepare_log(event_log))
        logger.debug(f"Decoded {entry.get('name')} event")
        return dict(decoded["args"])

    return None
