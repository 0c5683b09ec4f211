"""Hex byte string helpers."""

import logging
from typing import List

from eth_utils import remove_0x_prefix

logger = logging.getLogger(__name__)


def remove_trailing_zeroes(hex_body: str) -> str:
    """Drop trailing ``00`` pairs from an unprefixed hex string.

    The first byte pair is always kept.

    Raises:
        ValueError: ``hex_body`` has an odd length.
    """
    if len(hex_body) % 2 != 0:
        raise ValueError(f"Wrong hex str: {hex_body}")

    last_non_zero = 0
    for i in range(len(hex_body) - 2, 1, -2):
        if hex_body[i:i + 2] != "00":
            last_non_zero = i
            break

    return hex_body[:last_non_zero + 2]


def to_byte_codes(hex_body: str) -> List[int]:
    """Convert an unprefixed hex string to byte values.

    Control bytes (value <= 9) and pairs that are not hex are skipped.
    """
    if len(hex_body) % 2 != 0:
        logger.error(f"Wrong hex str: {hex_body}")

    codes = []
    for i in range(0, len(hex_body), 2):
        pair = hex_body[i:i + 2]
        try:
            code = int(pair, 16)
        except ValueError:
            continue
        if code > 9:
            codes.append(code)
    return codes


def hex_to_string(hex_str: str) -> str:
    """Decode a zero-padded ``0x`` hex byte string into text.

    >>> hex_to_string("0x48656c6c6f000000")
    'Hello'
    """
    codes = to_byte_codes(remove_trailing_zeroes(remove_0x_prefix(hex_str)))
    return "".join(chr(code) for code in codes)
