# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of PlasmaChain - see LICENSE and TRADEMARKS.md
# Refs: Plasma-MVP
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from .position import Position
from ..utils import config as CFG
from ..utils.helpers import address_from_hex, address_to_hex


class OwnedUTXO(ABC):
    """What the verifier needs from a stored output."""

    @abstractmethod
    def get_address(self) -> bytes:
        """Current owner, the only key allowed to spend the output."""

    @abstractmethod
    def get_input_addresses(self) -> List[bytes]:
        """Owners of the inputs that created this output (second may be zero)."""


class UTXO(OwnedUTXO):
    def __init__(self, address: bytes, input_addresses: Sequence[bytes], position: Position, denom: int = 0):
        if not isinstance(address, (bytes, bytearray)) or len(address) != CFG.ADDRESS_LENGTH:
            raise ValueError(f"address must be {CFG.ADDRESS_LENGTH}-byte bytes")
        inputs = [bytes(a) for a in (input_addresses or [])]
        if not inputs or len(inputs) > CFG.MAX_INPUTS:
            raise ValueError(f"UTXO needs 1..{CFG.MAX_INPUTS} input addresses, got {len(inputs)}")
        for a in inputs:
            if len(a) != CFG.ADDRESS_LENGTH:
                raise ValueError(f"input address must be {CFG.ADDRESS_LENGTH} bytes")
        while len(inputs) < CFG.MAX_INPUTS:
            inputs.append(CFG.ZERO_ADDRESS)
        if not isinstance(position, Position):
            raise TypeError("position must be Position instance")
        if not isinstance(denom, int) or denom < 0:
            raise ValueError("denom must be integer >= 0")

        self.address = bytes(address)
        self.input_addresses = inputs
        self.position = position
        self.denom = denom

    def get_address(self) -> bytes:
        return self.address

    def get_input_addresses(self) -> List[bytes]:
        return list(self.input_addresses)

    # -------- Serde ----------

    def to_dict(self) -> dict:
        return {
            "address": address_to_hex(self.address),
            "input_addresses": [address_to_hex(a) for a in self.input_addresses],
            "position": self.position.to_dict(),
            "denom": self.denom,}

    @classmethod
    def from_dict(cls, data: dict, position: Optional[Position] = None) -> "UTXO":
        if not isinstance(data, dict):
            raise TypeError("UTXO.from_dict expects dict")
        pos = position or Position.from_dict(data.get("position") or {})
        return cls(
            address=address_from_hex(data["address"]),
            input_addresses=[address_from_hex(a) for a in data.get("input_addresses", [])],
            position=pos,
            denom=int(data.get("denom", 0)),)

    def __eq__(self, other):
        if not isinstance(other, UTXO):
            return NotImplemented
        return (self.address == other.address and self.input_addresses == other.input_addresses
                and self.position == other.position and self.denom == other.denom)

    def __repr__(self):
        return f"<UTXO {self.position} owner={self.address.hex()[:8]} denom={self.denom}>"
