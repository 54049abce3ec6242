# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of PlasmaChain - see LICENSE and TRADEMARKS.md
# Refs: Plasma-MVP

import json
import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterator, Optional

# ---------------- Local Project ----------------
from ..core.position import Position
from ..core.utxo import UTXO
from ..utils import config as CFG
from .db import AtomicJSONFile
from .kv import KVStore, kv_enabled

# ---------------- Logger ----------------
from ..utils.chain_logging import get_ctx_logger
log = get_ctx_logger("plasmachain.storage(utxo)")


class UTXOMapper(ABC):
    """Read side of the ledger used during authorization."""

    @abstractmethod
    def get_utxo(self, position: Position) -> Optional[UTXO]:
        """Return the record at ``position`` or None when it does not exist."""


class MemoryUTXOMapper(UTXOMapper):
    def __init__(self, utxos=None):
        self.utxos: Dict[Position, UTXO] = {}
        for utxo in utxos or []:
            self.add_utxo(utxo)

    def get_utxo(self, position: Position) -> Optional[UTXO]:
        return self.utxos.get(position)

    def add_utxo(self, utxo: UTXO) -> None:
        self.utxos[utxo.position] = utxo

    def remove_utxo(self, position: Position) -> bool:
        return self.utxos.pop(position, None) is not None

    def __len__(self):
        return len(self.utxos)


class UTXODB(UTXOMapper):
    def __init__(self, *, backend: Optional[str] = None, path: Optional[str] = None):
        if backend is None:
            backend = "lmdb" if kv_enabled() else "json"
        self.backend = str(backend).lower()
        self._lock = threading.RLock()
        self.kv = None
        self.file = None
        self.utxos: Dict[str, UTXO] = {}
        if self.backend == "lmdb":
            self.kv = KVStore(path or CFG.DB_DIR)
        elif self.backend == "json":
            self.file = AtomicJSONFile(path or CFG.UTXOS_FILE)
            self._load()
        else:
            raise ValueError(f"Unsupported UTXO backend: {backend}")

    # ===================== SERIALIZE =====================
    @staticmethod
    def _key_hex(position: Position) -> str:
        return position.key().hex()

    @staticmethod
    def _encode_entry(utxo: UTXO) -> bytes:
        return json.dumps(utxo.to_dict(), separators=(",", ":"), sort_keys=True).encode("utf-8")

    @staticmethod
    def _decode_entry(payload, position: Position) -> Optional[UTXO]:
        try:
            return UTXO.from_dict(payload, position=position)
        except (KeyError, TypeError, ValueError) as e:
            log.warning("[UTXODB] Corrupt UTXO record at %s: %s", position, e)
            return None

    @classmethod
    def _decode_raw(cls, raw, position: Position) -> Optional[UTXO]:
        try:
            payload = json.loads(bytes(raw).decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            log.warning("[UTXODB] Undecodable UTXO record at %s: %s", position, e)
            return None
        return cls._decode_entry(payload, position)

    # ===================== FILE I/O =====================
    def _load(self) -> None:
        data = self.file.load(default={}) or {}
        with self._lock:
            self.utxos.clear()
            for key, value in data.items():
                try:
                    position = Position.from_key(bytes.fromhex(key))
                except ValueError:
                    log.debug("[UTXODB] Skip UTXO with invalid key: %s", key)
                    continue
                utxo = self._decode_entry(value, position)
                if utxo is not None:
                    self.utxos[key] = utxo
        log.debug("[UTXODB] Loaded %d UTXOs from %s", len(self.utxos), self.file.path)

    def flush(self) -> None:
        if self.file is None:
            return
        with self._lock:
            self.file.save({k: v.to_dict() for k, v in self.utxos.items()})

    # ===================== QUERY =====================
    def get_utxo(self, position: Position) -> Optional[UTXO]:
        if self.kv is not None:
            raw = self.kv.get(CFG.LMDB_UTXO_DB, position.key())
            if raw is None:
                return None
            return self._decode_raw(raw, position)
        with self._lock:
            return self.utxos.get(self._key_hex(position))

    def iter_utxos(self) -> Iterator[UTXO]:
        if self.kv is not None:
            for k, v in self.kv.iter_prefix(CFG.LMDB_UTXO_DB):
                position = Position.from_key(k)
                utxo = self._decode_raw(v, position)
                if utxo is not None:
                    yield utxo
            return
        with self._lock:
            items = list(self.utxos.values())
        yield from items

    # ===================== MODIFY (ledger side) =====================
    def add_utxo(self, utxo: UTXO, *, autosave: bool = True) -> None:
        if self.kv is not None:
            payload = self._encode_entry(utxo)
            self.kv.put(CFG.LMDB_UTXO_DB, utxo.position.key(), payload)
            return
        with self._lock:
            self.utxos[self._key_hex(utxo.position)] = utxo
            if autosave:
                self.flush()

    def add_utxos(self, utxos) -> int:
        count = 0
        if self.kv is not None:
            with self.kv.batch(CFG.LMDB_UTXO_DB) as b:
                for utxo in utxos:
                    payload = self._encode_entry(utxo)
                    b.put(utxo.position.key(), payload)
                    count += 1
            return count
        with self._lock:
            for utxo in utxos:
                self.utxos[self._key_hex(utxo.position)] = utxo
                count += 1
            self.flush()
        return count

    def clear(self) -> None:
        if self.kv is not None:
            self.kv.clear(CFG.LMDB_UTXO_DB)
            return
        with self._lock:
            self.utxos.clear()
            self.flush()

    def remove_utxo(self, position: Position, *, autosave: bool = True) -> bool:
        if self.kv is not None:
            return self.kv.delete(CFG.LMDB_UTXO_DB, position.key())
        with self._lock:
            removed = self.utxos.pop(self._key_hex(position), None) is not None
            if removed and autosave:
                self.flush()
            return removed

    def close(self) -> None:
        if self.kv is not None:
            self.kv.close()
        else:
            self.flush()
