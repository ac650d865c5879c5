"""Minimal ABI helpers for the handful of view functions the resolvers read."""
from __future__ import annotations

from typing import Any

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from web3 import Web3

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
WORD = 32


def selector(signature: str) -> bytes:
    """4-byte function selector, e.g. ``selector("kink()")``."""
    return bytes(Web3.keccak(text=signature)[:4])


def encode_call(signature: str, arg_types: list[str] | None = None, args: list[Any] | None = None) -> bytes:
    """Calldata for ``signature`` with ABI-encoded arguments."""
    data = selector(signature)
    if arg_types:
        data += encode(arg_types, args or [])
    return data


# Chainlink AggregatorV3Interface
LATEST_ROUND_DATA = encode_call("latestRoundData()")

# Target utilization of kinked IRMs, 1e18 = 100%
KINK = encode_call("kink()")

# Feed-discovery probes on composite oracles, in priority order.
BASE_FEED_PROBES: tuple[bytes, ...] = (
    encode_call("getBaseFeed(uint256)", ["uint256"], [1]),
    encode_call("getBaseFeed(uint256)", ["uint256"], [0]),
    encode_call("baseFeed()"),
    encode_call("feeds(uint256)", ["uint256"], [1]),
    encode_call("baseFeeds(uint256)", ["uint256"], [1]),
)


def is_zero_address(address: str | None) -> bool:
    return not address or address.lower() == ZERO_ADDRESS


def normalize_address(address: str) -> str:
    """Checksummed address; raises ``ValueError`` on malformed input."""
    if not isinstance(address, str) or not Web3.is_address(address):
        raise ValueError(f"Malformed address: {address!r}")
    return Web3.to_checksum_address(address)


def decode_address(data: bytes | None) -> str | None:
    """Single ``address`` return value.

    None for empty/short data, the zero address, or a word that is not a
    valid address encoding (non-zero padding bytes).
    """
    if not data or len(data) < WORD:
        return None
    try:
        (address,) = decode(["address"], data[:WORD])
    except DecodingError:
        return None
    if is_zero_address(address):
        return None
    return Web3.to_checksum_address(address)


def decode_uint(data: bytes | None) -> int | None:
    if not data or len(data) < WORD:
        return None
    (value,) = decode(["uint256"], data[:WORD])
    return value


def decode_latest_round_data(data: bytes | None) -> int | None:
    """``updatedAt`` from ``latestRoundData()``; None when absent or zero."""
    if not data or len(data) < 5 * WORD:
        return None
    _, _, _, updated_at, _ = decode(
        ["uint80", "int256", "uint256", "uint256", "uint80"], data[: 5 * WORD]
    )
    return updated_at or None
