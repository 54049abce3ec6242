# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of PlasmaChain - see LICENSE and TRADEMARKS.md
# Refs: Plasma-MVP
from __future__ import annotations
from dataclasses import dataclass

from ..utils import config as CFG

_WIDTHS = (
    ("blknum", CFG.POS_BLKNUM_BYTES),
    ("txindex", CFG.POS_TXINDEX_BYTES),
    ("oindex", CFG.POS_OINDEX_BYTES),
    ("depositnum", CFG.POS_DEPOSIT_BYTES),
)
SIGN_BYTES_LEN = sum(w for _, w in _WIDTHS)


@dataclass(frozen=True)
class Position:
    blknum: int = 0
    txindex: int = 0
    oindex: int = 0
    depositnum: int = 0

    def __post_init__(self):
        for name, width in _WIDTHS:
            val = getattr(self, name)
            if isinstance(val, bool) or not isinstance(val, int):
                raise TypeError(f"{name} must be an integer")
            if not (0 <= val < (1 << (8 * width))):
                raise ValueError(f"{name} out of range for uint{8 * width}: {val}")

    # -------- Encoding ----------

    def get_sign_bytes(self) -> bytes:
        return b"".join(int(getattr(self, name)).to_bytes(width, "big") for name, width in _WIDTHS)

    def key(self) -> bytes:
        return self.get_sign_bytes()

    @classmethod
    def from_key(cls, raw: bytes) -> "Position":
        raw = bytes(raw)
        if len(raw) != SIGN_BYTES_LEN:
            raise ValueError(f"position key must be {SIGN_BYTES_LEN} bytes, got {len(raw)}")
        vals = {}
        i = 0
        for name, width in _WIDTHS:
            vals[name] = int.from_bytes(raw[i:i + width], "big")
            i += width
        return cls(**vals)

    def is_deposit(self) -> bool:
        return self.depositnum != 0

    # -------- Serde ----------

    def to_dict(self) -> dict:
        return {
            "blknum": self.blknum,
            "txindex": self.txindex,
            "oindex": self.oindex,
            "depositnum": self.depositnum,}

    @classmethod
    def from_dict(cls, data: dict) -> "Position":
        if isinstance(data, Position):
            return data
        if not isinstance(data, dict):
            raise TypeError("Position.from_dict expects dict")
        return cls(
            blknum=int(data.get("blknum", 0)),
            txindex=int(data.get("txindex", 0)),
            oindex=int(data.get("oindex", 0)),
            depositnum=int(data.get("depositnum", 0)),)

    def __str__(self):
        return f"({self.blknum}, {self.txindex}, {self.oindex}, {self.depositnum})"
