# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of PlasmaChain - see LICENSE and TRADEMARKS.md
# Refs: see REFERENCES.md
from __future__ import annotations
from enum import Enum
from typing import Optional


class RejectReason(str, Enum):
    NO_SIGNERS = "no_signers"
    WRONG_TX_SHAPE = "wrong_tx_shape"
    SIGNER_COUNT_MISMATCH = "signer_count_mismatch"
    WRONG_MESSAGE_SHAPE = "wrong_message_shape"
    UNKNOWN_UTXO = "unknown_utxo"
    OWNER_MISMATCH = "owner_mismatch"
    SIGNATURE_INVALID = "signature_invalid"
    SIGNATURE_MISMATCH = "signature_mismatch"
    CONFIRM_SIGNATURE_MISMATCH = "confirm_signature_mismatch"


class AuthError(Exception):
    """A spend failed authorization. ``slot`` is the input (1 or 2) and
    ``which`` names the confirm signature ("first"/"second") when relevant."""

    def __init__(self, reason: RejectReason, message: str = "", *, slot: Optional[int] = None, which: Optional[str] = None):
        self.reason = RejectReason(reason)
        self.message = message or self.reason.value
        self.slot = slot
        self.which = which
        super().__init__(self.message)

    def __str__(self):
        parts = [self.reason.value]
        if self.slot is not None:
            parts.append(f"input={self.slot}")
        if self.which is not None:
            parts.append(f"confirm={self.which}")
        return f"{' '.join(parts)}: {self.message}"
