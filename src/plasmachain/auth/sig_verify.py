# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of PlasmaChain - see LICENSE and TRADEMARKS.md
# Refs: secp256k1; Keccak-256; Plasma-MVP-ConfirmSigs
from __future__ import annotations
from typing import Optional, Sequence

# ---------------- Local Project ----------------
from ..core.position import Position
from ..core.signature import SignatureError, recover_address
from ..core.utxo import UTXO
from ..storage.utxo import UTXOMapper
from ..utils.helpers import keccak256, same_address, valid_address
from .errors import AuthError, RejectReason

# ---------------- Logger ----------------
from ..utils.chain_logging import get_ctx_logger
log = get_ctx_logger("plasmachain.auth(sig_verify)")


def _lookup(mapper: UTXOMapper, position: Position, slot: Optional[int]) -> UTXO:
    utxo = mapper.get_utxo(position)
    if utxo is None:
        raise AuthError(RejectReason.UNKNOWN_UTXO, f"UTXO {position} trying to be spent does not exist", slot=slot)
    return utxo


def verify_input_signature(mapper: UTXOMapper, position: Position, expected_signer: bytes,
                           signature: bytes, sign_bytes: bytes, *, slot: Optional[int] = None) -> None:
    """Check that ``expected_signer`` owns the UTXO at ``position`` and signed ``sign_bytes``.

    The declared owner is compared first, then the key is recovered from
    the signature and compared again, so a wrong declaration and a forged
    signature fail with different reasons.
    """
    utxo = _lookup(mapper, position, slot)

    if not same_address(utxo.get_address(), expected_signer):
        raise AuthError(RejectReason.OWNER_MISMATCH, f"signer does not match owner of {position}", slot=slot)

    digest = keccak256(sign_bytes)
    try:
        recovered = recover_address(digest, signature)
    except SignatureError as e:
        raise AuthError(RejectReason.SIGNATURE_INVALID, f"malformed signature on {position}: {e}", slot=slot) from e

    if not same_address(recovered, expected_signer):
        raise AuthError(RejectReason.SIGNATURE_MISMATCH, f"signature verification failed for {position}", slot=slot)
    log.trace("[verify_input_signature] %s signed by %s", position, recovered.hex())


def _check_confirm(position: Position, digest: bytes, sig: bytes, expected: bytes, which: str,
                   slot: Optional[int]) -> None:
    try:
        recovered = recover_address(digest, sig)
    except SignatureError as e:
        raise AuthError(RejectReason.CONFIRM_SIGNATURE_MISMATCH,
                        f"confirm signature {which} on {position} malformed: {e}", slot=slot, which=which) from e
    if not same_address(recovered, expected):
        raise AuthError(RejectReason.CONFIRM_SIGNATURE_MISMATCH,
                        f"confirm signature {which} on {position} verification failed", slot=slot, which=which)


def verify_confirm_signatures(mapper: UTXOMapper, position: Position, confirm_sigs: Sequence[bytes],
                              position_sign_bytes: bytes, *, slot: Optional[int] = None) -> None:
    """Check that the creators of the UTXO at ``position`` confirmed this spend.

    Confirmations are checked against the UTXO's input addresses, never
    against its current owner. The second one is required only when the
    second input address is a valid address.
    """
    utxo = _lookup(mapper, position, slot)
    input_addresses = utxo.get_input_addresses()
    sigs = list(confirm_sigs or [])

    digest = keccak256(position_sign_bytes)
    _check_confirm(position, digest, sigs[0] if sigs else b"", input_addresses[0], "first", slot)

    if len(input_addresses) > 1 and valid_address(input_addresses[1]):
        _check_confirm(position, digest, sigs[1] if len(sigs) > 1 else b"", input_addresses[1], "second", slot)
    log.trace("[verify_confirm_signatures] %s confirmed", position)
