# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of PlasmaChain - see LICENSE and TRADEMARKS.md
# Refs: see REFERENCES.md
'''
HOW TO USE logging in your code:

log = get_ctx_logger("plasmachain.auth(ante)", tx="ab12cd34")
log.trace("very technical details, like every signature recovered")
log.debug("technical details for diagnosis, like a rejected spend")
log.info("normal event / milestone")
log.warning("a non-fatal condition that needs attention")
log.error("handled error")
log.exception("context message when an exception occurs") >automatically include traceback
'''

from __future__ import annotations

import os, logging, re, json, time, hashlib
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

from . import config as CFG

# ===== TRACE level (below DEBUG) =====
TRACE = 9
logging.addLevelName(TRACE, "TRACE")
def _trace(self, msg, *a, **k):
    if self.isEnabledFor(TRACE):
        self._log(TRACE, msg, a, **k)
logging.Logger.trace = _trace

ROOT_LOGGER = "plasmachain"
CONTEXT_KEYS = ("height", "block", "peer", "tx")

# =========================
# 1) Core logging setup
# =========================

if CFG.LOG_SHOW_PROCESS:
    _DEFAULT_FMT = "%(asctime)s [%(levelname)s] %(processName)s %(name)s: %(message)s"
else:
    _DEFAULT_FMT = f"%(asctime)s [%(levelname)s] {CFG.LOG_PROC_PLACEHOLDER} %(name)s: %(message)s"
_DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


class RedactFilter(logging.Filter):
    # raw 32-byte secrets (private keys) rendered as hex
    RE_PRIVHEX = re.compile(r"\b(?:0x)?[0-9a-fA-F]{64}\b")

    def filter(self, record):
        msg = record.getMessage()
        msg = self.RE_PRIVHEX.sub("[REDACTED_HEX32]", msg)
        record.msg, record.args = msg, None
        return True


class RateLimitFilter(logging.Filter):
    def __init__(self, min_interval: float = 2.0):
        super().__init__()
        self.min_interval = float(min_interval)
        self._last: dict[str, float] = {}

    def filter(self, record):
        base = f"{record.name}|{record.levelno}|{record.msg}"
        key = hashlib.blake2b(base.encode(), digest_size=8).hexdigest()
        now = time.monotonic()
        last = self._last.get(key)
        if last is not None and (now - last) < self.min_interval:
            return False
        self._last[key] = now
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record):
        d = {
            "ts": self.formatTime(record, _DEFAULT_DATEFMT),
            "lvl": record.levelname,
            "logger": record.name,
            "proc": (record.processName if CFG.LOG_SHOW_PROCESS else CFG.LOG_PROC_PLACEHOLDER),
            "msg": record.getMessage(),
        }
        for k in CONTEXT_KEYS:
            v = getattr(record, k, None)
            if v not in (None, "-"):
                d[k] = v
        if record.exc_info:
            d["exc"] = self.formatException(record.exc_info)
        return json.dumps(d, ensure_ascii=False)


class SafeFormatter(logging.Formatter):
    def format(self, record):
        for k in CONTEXT_KEYS:
            if not hasattr(record, k):
                setattr(record, k, "-")
        return super().format(record)


class ContextAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        for k in CONTEXT_KEYS:
            extra.setdefault(k, self.extra.get(k, "-"))
        return msg, kwargs

    def isEnabledFor(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)

    def trace(self, msg, *args, **kwargs):
        if self.logger.isEnabledFor(TRACE):
            self.log(TRACE, msg, *args, **kwargs)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or ROOT_LOGGER)


def get_ctx_logger(name: str = ROOT_LOGGER, **ctx) -> ContextAdapter:
    return ContextAdapter(get_logger(name), ctx)


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    lvl = logging.getLevelName(str(level).upper())
    return lvl if isinstance(lvl, int) else logging.INFO


def setup_logging(
    log_file: str | os.PathLike | None = None,
    level: int | str | None = None,
    to_console: bool | None = None,
    rotate_max_bytes: int | None = None,
    backup_count: int | None = None,
    force: bool = False,
    fmt: str = _DEFAULT_FMT,
    datefmt: str = _DEFAULT_DATEFMT,) -> logging.Logger:

    root = get_logger()
    if root.handlers and not force:
        return root

    if level is None:
        level = CFG.LOG_LEVEL
    if log_file is None:
        log_file = CFG.LOG_PATH
    if to_console is None:
        to_console = bool(CFG.LOG_TO_CONSOLE)
    if rotate_max_bytes is None:
        rotate_max_bytes = int(CFG.LOG_ROTATE_MAX_BYTES)
    if backup_count is None:
        backup_count = int(CFG.LOG_BACKUP_COUNT)

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    as_json = str(CFG.LOG_FORMAT).lower() == "json"
    rate_seconds_console = float(CFG.LOG_RATE_LIMIT_SECONDS)
    rate_seconds_file    = float(CFG.LOG_FILE_RATE_LIMIT_SECONDS)

    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    # --- File handler ---
    fh = RotatingFileHandler(
        log_path, maxBytes=int(rotate_max_bytes), backupCount=int(backup_count),
        encoding="utf-8", delay=True
    )
    fh.setFormatter(JsonFormatter() if as_json else SafeFormatter(fmt, datefmt))
    fh.addFilter(RedactFilter())
    if rate_seconds_file > 0.0:
        fh.addFilter(RateLimitFilter(rate_seconds_file))
    root.addHandler(fh)

    # --- Console handler (optional) ---
    if to_console:
        sh = logging.StreamHandler()
        sh.setFormatter(JsonFormatter() if as_json else SafeFormatter(fmt, datefmt))
        sh.addFilter(RedactFilter())
        if rate_seconds_console > 0.0:
            sh.addFilter(RateLimitFilter(rate_seconds_console))
        root.addHandler(sh)

    lvl = _resolve_level(level)
    root.setLevel(lvl)
    root.propagate = False
    root.trace(
        "Logging configured: level=%s file=%s format=%s console=%s rotate=%s backup=%s",
        logging.getLevelName(lvl), str(log_path), ("json" if as_json else "plain"),
        to_console, rotate_max_bytes, backup_count
    )
    return root
