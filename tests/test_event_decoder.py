"""
Tests for sandbox_helpers/event_decoder.py

Covers:
  - Event signature hashing
  - Decoding indexed and non-indexed parameters
  - First-match selection and unmatched logs
"""

import pytest
from hexbytes import HexBytes

from sandbox_helpers.event_decoder import event_signature, parse_event_log


TRANSFER_TOPIC = "ddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
SENDER = "0x" + "11" * 20
RECIPIENT = "0x" + "22" * 20

TRANSFER_EVENT = {
    "type": "event",
    "name": "Transfer",
    "anonymous": False,
    "inputs": [
        {"name": "from", "type": "address", "indexed": True},
        {"name": "to", "type": "address", "indexed": True},
        {"name": "value", "type": "uint256", "indexed": False},
    ],
}

MESSAGE_EVENT = {
    "type": "event",
    "name": "Message",
    "inputs": [
        {"name": "id", "type": "uint256", "indexed": True},
        {"name": "text", "type": "string", "indexed": False},
    ],
}

TRANSFER_FUNCTION = {
    "type": "function",
    "name": "transfer",
    "inputs": [
        {"name": "to", "type": "address"},
        {"name": "value", "type": "uint256"},
    ],
    "outputs": [{"name": "", "type": "bool"}],
}


def pad_address(address):
    return "0x" + "00" * 12 + address[2:]


def uint_word(value):
    return f"{value:064x}"


@pytest.fixture
def transfer_log():
    return {
        "address": "0x" + "33" * 20,
        "topics": [
            "0x" + TRANSFER_TOPIC,
            pad_address(SENDER),
            pad_address(RECIPIENT),
        ],
        "data": "0x" + uint_word(1000),
        "blockNumber": 12,
        "logIndex": 0,
    }


# ---------------------------------------------------------------------------
# event_signature
# ---------------------------------------------------------------------------

class TestEventSignature:
    def test_transfer_signature(self):
        assert event_signature(TRANSFER_EVENT) == TRANSFER_TOPIC

    def test_unprefixed_lowercase(self):
        sig = event_signature(MESSAGE_EVENT)
        assert not sig.startswith("0x")
        assert sig == sig.lower()
        assert len(sig) == 64


# ---------------------------------------------------------------------------
# parse_event_log
# ---------------------------------------------------------------------------

class TestParseEventLog:
    def test_decodes_all_parameters(self, transfer_log):
        decoded = parse_event_log([TRANSFER_EVENT], transfer_log)

        assert set(decoded) == {"from", "to", "value"}
        assert decoded["from"].lower() == SENDER
        assert decoded["to"].lower() == RECIPIENT
        assert decoded["value"] == 1000

    def test_skips_functions_and_other_events(self, transfer_log):
        decoded = parse_event_log(
            [TRANSFER_FUNCTION, MESSAGE_EVENT, TRANSFER_EVENT], transfer_log
        )
        assert decoded["value"] == 1000

    def test_uppercase_topic(self, transfer_log):
        transfer_log["topics"][0] = "0x" + TRANSFER_TOPIC.upper()
        assert parse_event_log([TRANSFER_EVENT], transfer_log)["value"] == 1000

    def test_bytes_topics_and_data(self, transfer_log):
        transfer_log["topics"] = [HexBytes(t) for t in transfer_log["topics"]]
        transfer_log["data"] = HexBytes(transfer_log["data"])
        assert parse_event_log([TRANSFER_EVENT], transfer_log)["value"] == 1000

    def test_dynamic_data(self):
        text = "hello"
        data = (
            uint_word(32)
            + uint_word(len(text))
            + text.encode().hex().ljust(64, "0")
        )
        log = {
            "topics": ["0x" + event_signature(MESSAGE_EVENT), "0x" + uint_word(5)],
            "data": "0x" + data,
        }
        assert parse_event_log([MESSAGE_EVENT], log) == {"id": 5, "text": "hello"}

    def test_first_matching_entry_wins(self, transfer_log):
        renamed = {
            **TRANSFER_EVENT,
            "inputs": [
                {"name": "src", "type": "address", "indexed": True},
                {"name": "dst", "type": "address", "indexed": True},
                {"name": "wad", "type": "uint256", "indexed": False},
            ],
        }
        decoded = parse_event_log([renamed, TRANSFER_EVENT], transfer_log)
        assert set(decoded) == {"src", "dst", "wad"}

    def test_no_matching_event(self, transfer_log):
        assert parse_event_log([MESSAGE_EVENT, TRANSFER_FUNCTION], transfer_log) is None

    def test_empty_abi(self, transfer_log):
        assert parse_event_log([], transfer_log) is None

    def test_log_without_topics(self):
        assert parse_event_log([TRANSFER_EVENT], {"topics": [], "data": "0x"}) is None
