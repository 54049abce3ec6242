# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of PlasmaChain - see LICENSE and TRADEMARKS.md
# Refs: Plasma-MVP
from __future__ import annotations
from typing import List, Sequence

from .msg import Msg, SpendMsg
from ..utils.helpers import keccak256, serialize, to_bytes


class BaseTx:
    def __init__(self, msg: Msg, signatures: Sequence[bytes] = None):
        if not isinstance(msg, Msg):
            raise TypeError("msg must be Msg instance")
        self.msg = msg
        self.signatures = [bytes(s) for s in (signatures or [])]

    def get_msg(self) -> Msg:
        return self.msg

    def get_signatures(self) -> List[bytes]:
        return list(self.signatures)

    def validate_basic(self) -> None:
        validate = getattr(self.msg, "validate_basic", None)
        if callable(validate):
            validate()

    # -------- IDs ----------

    def tx_hash(self) -> bytes:
        return keccak256(serialize(self.to_dict()))

    # -------- Serde ----------

    def to_dict(self) -> dict:
        return {
            "msg": self.msg.to_dict(),
            "signatures": [s.hex() for s in self.signatures],}

    @classmethod
    def from_dict(cls, data: dict) -> "BaseTx":
        if isinstance(data, BaseTx):
            return data
        if not isinstance(data, dict):
            raise TypeError("BaseTx.from_dict expects dict")
        return cls(
            msg=SpendMsg.from_dict(data.get("msg") or {}),
            signatures=[to_bytes(s) for s in data.get("signatures", [])],)

    def __repr__(self):
        return f"<BaseTx msg={self.msg!r} sigs={len(self.signatures)}>"
