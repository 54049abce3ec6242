# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of PlasmaChain - see LICENSE and TRADEMARKS.md
# Refs: Plasma-MVP; Cosmos-SDK-AnteHandler
"""Authorization of spend transactions before they touch the ledger.

The handler is stateless: the accumulated fee is passed in by the caller
and handed back in the result, increased only by a final-mode accept.
Callers sharing one accumulator must serialize their calls.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, Union

# ---------------- Local Project ----------------
from ..core.msg import SpendMsg
from ..core.tx import BaseTx
from ..storage.utxo import UTXOMapper
from .errors import AuthError, RejectReason
from .sig_verify import verify_confirm_signatures, verify_input_signature

# ---------------- Logger ----------------
from ..utils.chain_logging import get_ctx_logger
log = get_ctx_logger("plasmachain.auth(ante)")


@dataclass(frozen=True)
class Accept:
    fee_delta: int
    fee_amount: int

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Reject:
    reason: RejectReason
    message: str
    fee_amount: int
    slot: Optional[int] = None
    which: Optional[str] = None

    @property
    def ok(self) -> bool:
        return False


AnteResult = Union[Accept, Reject]


class AnteHandler:
    def __init__(self, utxo_mapper: UTXOMapper):
        if not isinstance(utxo_mapper, UTXOMapper):
            raise TypeError("utxo_mapper must implement UTXOMapper")
        self.utxo_mapper = utxo_mapper

    def __call__(self, tx, *, check_tx: bool, fee_amount: int = 0) -> AnteResult:
        try:
            fee = self._authorize(tx)
        except AuthError as e:
            log.debug("[ante] reject %s", e)
            return Reject(reason=e.reason, message=e.message, fee_amount=fee_amount, slot=e.slot, which=e.which)

        if check_tx:
            log.trace("[ante] accept (check) fee=%d", fee)
            return Accept(fee_delta=0, fee_amount=fee_amount)
        log.debug("[ante] accept fee=%d total=%d", fee, fee_amount + fee)
        return Accept(fee_delta=fee, fee_amount=fee_amount + fee)

    authorize = __call__

    def _authorize(self, tx) -> int:
        get_sigs = getattr(tx, "get_signatures", None)
        sigs = list(get_sigs()) if callable(get_sigs) else []
        if not sigs:
            raise AuthError(RejectReason.NO_SIGNERS, "no signers")

        if not isinstance(tx, BaseTx):
            raise AuthError(RejectReason.WRONG_TX_SHAPE, "tx must be in form of BaseTx")

        msg = tx.get_msg()
        signers = msg.get_signers()
        if len(sigs) != len(signers):
            raise AuthError(RejectReason.SIGNER_COUNT_MISMATCH,
                            f"wrong number of signers: {len(sigs)} signatures for {len(signers)} signers")

        if not isinstance(msg, SpendMsg):
            raise AuthError(RejectReason.WRONG_MESSAGE_SHAPE, "msg must be of type SpendMsg")
        fee = msg.fee
        if isinstance(fee, bool) or not isinstance(fee, int) or fee < 0:
            raise AuthError(RejectReason.WRONG_MESSAGE_SHAPE, f"fee must be a non-negative integer, got {fee!r}")
        sign_bytes = msg.get_sign_bytes()

        self._verify_input(msg.position1, signers[0], sigs[0], msg.confirm_sigs1, sign_bytes, slot=1)

        if msg.has_second_input():
            self._verify_input(msg.position2, signers[1], sigs[1], msg.confirm_sigs2, sign_bytes, slot=2)

        return fee

    def _verify_input(self, position, signer, sig, confirm_sigs, sign_bytes, *, slot: int) -> None:
        verify_input_signature(self.utxo_mapper, position, signer, sig, sign_bytes, slot=slot)
        verify_confirm_signatures(self.utxo_mapper, position, confirm_sigs, position.get_sign_bytes(), slot=slot)


def new_ante_handler(utxo_mapper: UTXOMapper) -> AnteHandler:
    return AnteHandler(utxo_mapper)


def apply_fees(handler: AnteHandler, txs: Iterable, fee_amount: int = 0) -> Tuple[int, List[AnteResult]]:
    """Run ``txs`` through ``handler`` in final mode, folding accepted fees."""
    results: List[AnteResult] = []
    for tx in txs:
        res = handler(tx, check_tx=False, fee_amount=fee_amount)
        fee_amount = res.fee_amount
        results.append(res)
    return fee_amount, results
