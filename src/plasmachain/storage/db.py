# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of PlasmaChain - see LICENSE and TRADEMARKS.md
# Refs: see REFERENCES.md
import os
import json
import hashlib
import tempfile
from typing import Any

# ---------------- Logger ----------------
from ..utils.chain_logging import get_ctx_logger
log = get_ctx_logger("plasmachain.storage(db)")


def _fsync_dir(dir_path: str) -> None:
    if not hasattr(os, "O_DIRECTORY"):
        return
    fd = os.open(dir_path or ".", os.O_RDONLY | os.O_DIRECTORY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def _sha256_hex(b: bytes) -> str:
    return hashlib.sha256(b).hexdigest()


class AtomicJSONFile:
    def __init__(self, path: str, *, pretty: bool = True, checksum: bool = True):
        self.path = os.path.abspath(path)
        self.dir = os.path.dirname(self.path) or "."
        self.pretty = pretty
        self.checksum = checksum
        self.sha_path = self.path + ".sha256"
        os.makedirs(self.dir, exist_ok=True)

    def _serialize(self, obj: Any) -> bytes:
        if self.pretty:
            return (json.dumps(obj, ensure_ascii=False, indent=2, sort_keys=True) + "\n").encode("utf-8")
        return json.dumps(obj, ensure_ascii=False, sort_keys=True, separators=(",", ":")).encode("utf-8")

    def _write_bytes_atomic(self, data: bytes) -> None:
        fd, tmp_path = tempfile.mkstemp(prefix=os.path.basename(self.path) + ".", dir=self.dir)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data); f.flush(); os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
            _fsync_dir(self.dir)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
        if self.checksum:
            with open(self.sha_path, "w", encoding="utf-8") as cf:
                cf.write(_sha256_hex(data) + "\n")

    def load(self, default: Any = None) -> Any:
        if not os.path.exists(self.path):
            return default
        with open(self.path, "rb") as f:
            raw = f.read()
        if self.checksum and os.path.exists(self.sha_path):
            with open(self.sha_path, "r", encoding="utf-8") as cf:
                recorded = cf.read().strip()
            if recorded and recorded != _sha256_hex(raw):
                raise ValueError(f"Checksum mismatch for {self.path}")
        return json.loads(raw.decode("utf-8"))

    def save(self, obj: Any) -> None:
        self._write_bytes_atomic(self._serialize(obj))
        log.trace("[AtomicJSONFile] wrote %s", self.path)
