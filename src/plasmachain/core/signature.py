# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of PlasmaChain - see LICENSE and TRADEMARKS.md
# Refs: SEC1-4.1.6; libsecp256k1-recovery; Amino-SignatureSecp256k1
"""Recoverable secp256k1 signatures and address recovery.

An encoded signature on the wire is ``SIG_PREFIX || 0x41 || r || s || v``:
a 4-byte type tag, a length byte, then the raw 65-byte recoverable
signature. Both header fields are checked before anything else is parsed.
"""
from __future__ import annotations
import hashlib
from typing import Tuple
from ecdsa import SECP256k1, VerifyingKey, numbertheory
from ecdsa.ecdsa import InvalidPointError
from ecdsa.ellipticcurve import PointJacobi, INFINITY
from ecdsa.errors import MalformedPointError
from ecdsa.util import sigdecode_string

from ..utils import config as CFG
from ..utils.helpers import SECP256K1_N, SECP256K1_P, pubkey_to_address


class SignatureError(ValueError):
    pass


# -----------------------------
# FRAMING
# -----------------------------

def encode_signature(raw_sig: bytes) -> bytes:
    raw_sig = bytes(raw_sig)
    if len(raw_sig) != CFG.RAW_SIG_LEN:
        raise SignatureError(f"raw signature must be {CFG.RAW_SIG_LEN} bytes, got {len(raw_sig)}")
    return CFG.SIG_PREFIX + bytes([CFG.SIG_LENGTH_BYTE]) + raw_sig

def decode_signature(encoded) -> bytes:
    if not isinstance(encoded, (bytes, bytearray)):
        raise SignatureError("signature must be bytes")
    encoded = bytes(encoded)
    if len(encoded) < CFG.SIG_HEADER_LEN:
        raise SignatureError("signature too short")
    if encoded[:len(CFG.SIG_PREFIX)] != CFG.SIG_PREFIX:
        raise SignatureError("unexpected signature type prefix")
    if encoded[len(CFG.SIG_PREFIX)] != CFG.SIG_LENGTH_BYTE:
        raise SignatureError("unexpected signature length byte")
    raw = encoded[CFG.SIG_HEADER_LEN:]
    if len(raw) != CFG.RAW_SIG_LEN:
        raise SignatureError(f"raw signature must be {CFG.RAW_SIG_LEN} bytes, got {len(raw)}")
    split_raw_signature(raw)
    return raw

def split_raw_signature(raw_sig: bytes) -> Tuple[int, int, int]:
    if len(raw_sig) != CFG.RAW_SIG_LEN:
        raise SignatureError(f"raw signature must be {CFG.RAW_SIG_LEN} bytes, got {len(raw_sig)}")
    r = int.from_bytes(raw_sig[:32], "big")
    s = int.from_bytes(raw_sig[32:64], "big")
    v = raw_sig[64]
    if not (1 <= r < SECP256K1_N) or not (1 <= s < SECP256K1_N):
        raise SignatureError("r or s out of range")
    if v > CFG.MAX_RECOVERY_ID:
        raise SignatureError(f"invalid recovery id {v}")
    return r, s, v


# -----------------------------
# RECOVERY
# -----------------------------

def recover_pubkey(digest32: bytes, raw_sig: bytes) -> VerifyingKey:
    if not isinstance(digest32, (bytes, bytearray)) or len(digest32) != 32:
        raise SignatureError("recover_pubkey expects a 32-byte digest")
    raw_sig = bytes(raw_sig)
    r, s, v = split_raw_signature(raw_sig)
    if v >= 2:
        return _recover_overflow(bytes(digest32), r, s, v)

    # candidates are ordered even-y then odd-y, i.e. by recovery id
    try:
        candidates = VerifyingKey.from_public_key_recovery_with_digest(
            raw_sig[:64], bytes(digest32), SECP256k1, hashfunc=hashlib.sha256, sigdecode=sigdecode_string)
    except (numbertheory.Error, InvalidPointError, MalformedPointError) as e:
        raise SignatureError(f"public key recovery failed: {e}") from e
    except TypeError as e:
        # a candidate at infinity has no coordinates
        raise SignatureError("recovered point at infinity") from e
    return candidates[v]

def _recover_overflow(digest32: bytes, r: int, s: int, v: int) -> VerifyingKey:
    """Ids 2/3 put R.x at r + n, which ecdsa's recovery never tries."""
    curve = SECP256k1.curve
    G = SECP256k1.generator
    n = SECP256k1.order

    x = r + (v >> 1) * n
    if x >= SECP256K1_P:
        raise SignatureError("R.x out of field range")

    # p % 4 == 3, so sqrt is a single exponentiation
    alpha = (pow(x, 3, SECP256K1_P) + curve.a() * x + curve.b()) % SECP256K1_P
    beta = pow(alpha, (SECP256K1_P + 1) // 4, SECP256K1_P)
    if (beta * beta) % SECP256K1_P != alpha:
        raise SignatureError("R is not on the curve")
    y = beta if (beta & 1) == (v & 1) else SECP256K1_P - beta

    R = PointJacobi(curve, x, y, 1, n)
    e = int.from_bytes(digest32, "big")
    Q = pow(r, -1, n) * (s * R + ((-e) % n) * G)
    if Q == INFINITY:
        raise SignatureError("recovered point at infinity")
    return VerifyingKey.from_public_point(Q, curve=SECP256k1)

def recover_address(digest32: bytes, encoded_sig) -> bytes:
    raw = decode_signature(encoded_sig)
    vk = recover_pubkey(digest32, raw)
    return pubkey_to_address(vk.to_string())
