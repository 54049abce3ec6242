# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of PlasmaChain - see LICENSE and TRADEMARKS.md
# Refs: see REFERENCES.md
import os, lmdb
from contextlib import contextmanager
from typing import Iterator, Tuple, Optional

from ..utils import config as CFG


def kv_enabled() -> bool:
    return CFG.KV_BACKEND == "lmdb"


class WriteBatch:
    """Write transaction on one named DB.

    Ops are queued as they are applied so that a full map can be grown and
    the whole batch replayed in a fresh transaction.
    """

    def __init__(self, store: "KVStore", name: str):
        self.store = store
        self.name = name
        self.txn = None
        self._ops = []

    def _begin(self):
        self.txn = self.store.env.begin(db=self.store._get_db(self.name), write=True)

    def __enter__(self):
        self._begin()
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.txn is None:
            return
        if exc_type:
            self.txn.abort()
        else:
            self.txn.commit()
        self.txn = None
        self._ops.clear()

    @staticmethod
    def _apply(txn, op) -> None:
        kind, key, val = op
        if kind == "put":
            txn.put(key, val)
        else:
            txn.delete(key)

    def _grow_and_replay(self) -> None:
        while True:
            self.txn.abort()
            self.store._grow_map()
            self._begin()
            try:
                for op in self._ops:
                    self._apply(self.txn, op)
                return
            except lmdb.MapFullError:
                continue

    def _write(self, op) -> None:
        self._ops.append(op)
        try:
            self._apply(self.txn, op)
        except lmdb.MapFullError:
            self._grow_and_replay()

    def put(self, key: bytes, val: bytes) -> None:
        self._write(("put", key, val))

    def delete(self, key: bytes) -> None:
        self._write(("delete", key, None))


class KVStore:
    def __init__(self, path: Optional[str] = None, *, map_size: Optional[int] = None, max_dbs: int = 8):
        self.path = path or CFG.DB_DIR
        os.makedirs(self.path, exist_ok=True)
        self.env = lmdb.open(
            self.path,
            map_size=int(map_size or CFG.LMDB_MAP_SIZE_INIT),
            max_dbs=max_dbs, create=True, lock=True, subdir=True)
        self._db_handles = {}

    def _get_db(self, name: str):
        db = self._db_handles.get(name)
        if db is None:
            db = self.env.open_db(name.encode("utf-8"), create=True)
            self._db_handles[name] = db
        return db

    def _grow_map(self) -> int:
        cur = int(self.env.info().get("map_size", 0) or 0)
        new = min(max(cur * 2, cur + (cur // 2)), int(CFG.LMDB_MAP_SIZE_MAX))
        if new <= cur:
            raise lmdb.MapFullError(f"LMDB map already at cap ({cur} bytes)")
        self.env.set_mapsize(new)
        return new

    def get(self, name: str, key: bytes) -> Optional[bytes]:
        with self.env.begin(db=self._get_db(name), write=False) as txn:
            return txn.get(key)

    def put(self, name: str, key: bytes, val: bytes) -> None:
        db = self._get_db(name)
        while True:
            try:
                with self.env.begin(db=db, write=True) as txn:
                    txn.put(key, val)
                return
            except lmdb.MapFullError:
                self._grow_map()

    def delete(self, name: str, key: bytes) -> bool:
        with self.env.begin(db=self._get_db(name), write=True) as txn:
            return bool(txn.delete(key))

    def iter_prefix(self, name: str, prefix: bytes = b"") -> Iterator[Tuple[bytes, bytes]]:
        with self.env.begin(db=self._get_db(name), write=False) as txn:
            with txn.cursor() as cur:
                if not cur.set_range(prefix):
                    return
                for k, v in cur:
                    if not k.startswith(prefix):
                        break
                    yield bytes(k), bytes(v)

    def clear(self, name: str) -> None:
        db = self._get_db(name)
        with self.env.begin(write=True) as txn:
            txn.drop(db, delete=False)

    @contextmanager
    def batch(self, name: str):
        with WriteBatch(self, name) as wb:
            yield wb

    def close(self) -> None:
        self.env.close()
        self._db_handles.clear()
