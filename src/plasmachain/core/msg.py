# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of PlasmaChain - see LICENSE and TRADEMARKS.md
# Refs: Plasma-MVP
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from .position import Position
from ..utils import config as CFG
from ..utils.helpers import address_from_hex, address_to_hex, serialize, to_bytes, valid_address


class Msg(ABC):
    @abstractmethod
    def get_signers(self) -> List[bytes]:
        """Addresses expected to sign, in input order."""


class Spendable(Msg):
    @abstractmethod
    def get_sign_bytes(self) -> bytes:
        """Canonical bytes covered by the ownership signatures."""


def _confirm_pair(sigs: Optional[Sequence[bytes]]) -> List[bytes]:
    pair = [bytes(s or b"") for s in (sigs or [])]
    if len(pair) > 2:
        raise ValueError(f"at most 2 confirm signatures per input, got {len(pair)}")
    while len(pair) < 2:
        pair.append(b"")
    return pair


class SpendMsg(Spendable):
    def __init__(self, *,
                 blknum1: int = 0, txindex1: int = 0, oindex1: int = 0, depositnum1: int = 0,
                 owner1: bytes = CFG.ZERO_ADDRESS, confirm_sigs1: Sequence[bytes] = None,
                 blknum2: int = 0, txindex2: int = 0, oindex2: int = 0, depositnum2: int = 0,
                 owner2: bytes = CFG.ZERO_ADDRESS, confirm_sigs2: Sequence[bytes] = None,
                 newowner1: bytes = CFG.ZERO_ADDRESS, denom1: int = 0,
                 newowner2: bytes = CFG.ZERO_ADDRESS, denom2: int = 0,
                 fee: int = 0):
        for name, val in (("denom1", denom1), ("denom2", denom2), ("fee", fee)):
            if isinstance(val, bool) or not isinstance(val, int):
                raise TypeError(f"{name} must be an integer")
            if val < 0:
                raise ValueError(f"{name} must be >= 0")

        self.position1 = Position(blknum1, txindex1, oindex1, depositnum1)
        self.owner1 = bytes(owner1)
        self.confirm_sigs1 = _confirm_pair(confirm_sigs1)
        self.position2 = Position(blknum2, txindex2, oindex2, depositnum2)
        self.owner2 = bytes(owner2)
        self.confirm_sigs2 = _confirm_pair(confirm_sigs2)
        self.newowner1 = bytes(newowner1)
        self.denom1 = denom1
        self.newowner2 = bytes(newowner2)
        self.denom2 = denom2
        self.fee = fee

    # -------- Spendable ----------

    def get_signers(self) -> List[bytes]:
        signers = [self.owner1]
        if valid_address(self.owner2):
            signers.append(self.owner2)
        return signers

    def get_sign_bytes(self) -> bytes:
        return serialize(self.to_dict())

    # -------- Inputs ----------

    def has_second_input(self) -> bool:
        return valid_address(self.owner2)

    def input_positions(self) -> List[Position]:
        if self.has_second_input():
            return [self.position1, self.position2]
        return [self.position1]

    def validate_basic(self) -> None:
        if not valid_address(self.owner1):
            raise ValueError("first input owner must be a valid address")
        if not valid_address(self.newowner1):
            raise ValueError("first output owner must be a valid address")
        if self.denom1 < 0 or self.denom2 < 0:
            raise ValueError("denominations must be >= 0")
        if self.fee < 0:
            raise ValueError("fee must be >= 0")
        if self.denom2 > 0 and not valid_address(self.newowner2):
            raise ValueError("second output has a denomination but no owner")
        if self.has_second_input() and self.position2 == self.position1:
            raise ValueError("second input spends the same position as the first")

    # -------- Serde ----------

    def to_dict(self) -> dict:
        return {
            "blknum1": self.position1.blknum,
            "txindex1": self.position1.txindex,
            "oindex1": self.position1.oindex,
            "depositnum1": self.position1.depositnum,
            "owner1": address_to_hex(self.owner1),
            "confirm_sigs1": [s.hex() for s in self.confirm_sigs1],
            "blknum2": self.position2.blknum,
            "txindex2": self.position2.txindex,
            "oindex2": self.position2.oindex,
            "depositnum2": self.position2.depositnum,
            "owner2": address_to_hex(self.owner2),
            "confirm_sigs2": [s.hex() for s in self.confirm_sigs2],
            "newowner1": address_to_hex(self.newowner1),
            "denom1": self.denom1,
            "newowner2": address_to_hex(self.newowner2),
            "denom2": self.denom2,
            "fee": self.fee,}

    @classmethod
    def from_dict(cls, data: dict) -> "SpendMsg":
        if isinstance(data, SpendMsg):
            return data
        if not isinstance(data, dict):
            raise TypeError("SpendMsg.from_dict expects dict")
        kwargs = {}
        for k in ("blknum1", "txindex1", "oindex1", "depositnum1",
                  "blknum2", "txindex2", "oindex2", "depositnum2",
                  "denom1", "denom2", "fee"):
            kwargs[k] = int(data.get(k, 0))
        for k in ("owner1", "owner2", "newowner1", "newowner2"):
            kwargs[k] = address_from_hex(data.get(k))
        for k in ("confirm_sigs1", "confirm_sigs2"):
            kwargs[k] = [to_bytes(s) for s in data.get(k, [])]
        return cls(**kwargs)

    def __repr__(self):
        return f"<SpendMsg in={[str(p) for p in self.input_positions()]} fee={self.fee}>"
