# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of PlasmaChain - see LICENSE and TRADEMARKS.md
# Refs: Keccak-256; EIP-55; secp256k1
from __future__ import annotations
import json
from typing import Union
from Crypto.Hash import keccak

from ..utils import config as CFG

# ======== CURVE CONSTANTS ========
SECP256K1_P = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
HALF_N = SECP256K1_N // 2


# -----------------------------
# BYTES
# -----------------------------

def to_bytes(x) -> bytes:
    if isinstance(x, (bytes, bytearray, memoryview)):
        return bytes(x)
    if isinstance(x, str):
        s = x[2:] if x[:2].lower() == "0x" else x
        return bytes.fromhex(s)
    if x is None:
        return b""
    raise TypeError(f"Cannot convert {type(x).__name__} to bytes")


# -----------------------------
# HASHING
# -----------------------------

def keccak256(data: bytes) -> bytes:
    h = keccak.new(digest_bits=256)
    h.update(bytes(data))
    return h.digest()


# -----------------------------
# ADDRESSES
# -----------------------------

def pubkey_to_address(pubkey: bytes) -> bytes:
    pubkey = bytes(pubkey)
    if len(pubkey) == 65 and pubkey[0] == 0x04:
        pubkey = pubkey[1:]
    if len(pubkey) != 64:
        raise ValueError(f"Expected 64-byte uncompressed pubkey, got {len(pubkey)}")
    return keccak256(pubkey)[-CFG.ADDRESS_LENGTH:]

def valid_address(addr) -> bool:
    if not isinstance(addr, (bytes, bytearray)):
        return False
    return len(addr) == CFG.ADDRESS_LENGTH and bytes(addr) != CFG.ZERO_ADDRESS

def same_address(a, b) -> bool:
    if not isinstance(a, (bytes, bytearray)) or not isinstance(b, (bytes, bytearray)):
        return False
    if len(a) != CFG.ADDRESS_LENGTH or len(b) != CFG.ADDRESS_LENGTH:
        return False
    return bytes(a) == bytes(b)

def address_to_hex(addr: bytes) -> str:
    return "0x" + bytes(addr).hex()

def address_from_hex(value: Union[str, bytes, None]) -> bytes:
    if value is None or value == "":
        return CFG.ZERO_ADDRESS
    raw = to_bytes(value)
    if len(raw) != CFG.ADDRESS_LENGTH:
        raise ValueError(f"Invalid address length: {len(raw)} (expected {CFG.ADDRESS_LENGTH})")
    return raw


# -----------------------------
# SERIALIZATION
# -----------------------------

def serialize(obj) -> bytes:
    def convert(o):
        if hasattr(o, "to_dict"):
            return o.to_dict()
        elif isinstance(o, (bytes, bytearray)):
            return bytes(o).hex()
        raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")
    return json.dumps(obj, default=convert, sort_keys=True, separators=(',', ':'), ensure_ascii=False).encode('utf-8')
