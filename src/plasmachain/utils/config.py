# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of PlasmaChain - see LICENSE and TRADEMARKS.md
# Refs: secp256k1; Keccak-256; Plasma-MVP

'''
=============================================================================
 -------- !!! CONSENSUS-CRITICAL REMINDER - READ BEFORE EDITING !!! --------
=============================================================================

The values below **MUST BE IDENTICAL** across all validators.
Changing them changes which spends are authorized (hard fork).

  1) SIGNATURE ENCODING
   - SIG_PREFIX, SIG_LENGTH_BYTE, SIG_HEADER_LEN, RAW_SIG_LEN

  2) LEDGER IDENTITY
   - ADDRESS_LENGTH, ZERO_ADDRESS, MAX_INPUTS
   - POS_BLKNUM_BYTES, POS_TXINDEX_BYTES, POS_OINDEX_BYTES, POS_DEPOSIT_BYTES

NOT CONSENSUS (safe to differ between nodes):
   storage backend/paths, logging.

=============================================================================
'''

import os
import appdirs


# =============================================================================
# 1. MODE & APPLICATION
# =============================================================================
# ---- RUNTIME PROFILE ----
MODE   = os.getenv("PLASMA_MODE", "dev")  # default runtime profile, "prod" for live validators
IS_DEV = (MODE.lower() == "dev")  # cached boolean to simplify dev/prod toggles

# ---- APP METADATA ----
APP_NAME   = "PlasmaChain"  # display name used for user data directories
APP_AUTHOR = "TsarStudio"  # vendor string passed into platform dir helpers
DATA_DIR   = os.getenv("PLASMA_DATA_DIR") or appdirs.user_data_dir(APP_NAME, APP_AUTHOR)  # OS-specific data folder


# =============================================================================
# 2. SIGNATURE ENCODING
# =============================================================================
SIG_PREFIX      = bytes.fromhex("16E1FEEA")  # type tag of an encoded secp256k1 signature
SIG_LENGTH_BYTE = 0x41  # length byte following the tag (65)
SIG_HEADER_LEN  = len(SIG_PREFIX) + 1  # tag + length byte
RAW_SIG_LEN     = 65  # r(32) || s(32) || recovery id(1)
MAX_RECOVERY_ID = 3  # ids 2/3 select x = r + n


# =============================================================================
# 3. LEDGER IDENTITY
# =============================================================================
ADDRESS_LENGTH = 20  # keccak256(pubkey)[-20:]
ZERO_ADDRESS   = b"\x00" * ADDRESS_LENGTH  # reserved "absent" address
MAX_INPUTS     = 2  # spendable inputs per transaction

# ---- POSITION FIELD WIDTHS (bytes, big-endian) ----
POS_BLKNUM_BYTES  = 8  # uint64 block number
POS_TXINDEX_BYTES = 2  # uint16 transaction index inside the block
POS_OINDEX_BYTES  = 1  # uint8 output index inside the transaction
POS_DEPOSIT_BYTES = 8  # uint64 deposit nonce (0 for non-deposits)


# =============================================================================
# 4. DATABASE
# =============================================================================
# ---- KV BACKEND ----
KV_BACKEND         = os.getenv("PLASMA_KV_BACKEND", "lmdb")  # "lmdb" or "json"
DB_DIR             = os.path.join(DATA_DIR, "DB")  # LMDB root folder
UTXOS_FILE         = os.path.join(DATA_DIR, "UTXOS", "utxos.json")  # JSON backend file
LMDB_MAP_SIZE_INIT = 64 * 1024 * 1024  # initial LMDB map size (64 MiB)
LMDB_MAP_SIZE_MAX  = 16 * 1024 * 1024 * 1024  # upper LMDB map cap (16 GiB)
LMDB_UTXO_DB       = "utxo"  # named sub-database holding UTXO records


# =============================================================================
# 5. LOGGING
# =============================================================================
# ---- BASE OUTPUT ----
LOG_SHOW_PROCESS     = False  # include process metadata in log context when True
LOG_PROC_PLACEHOLDER = "-"  # value used when process info is hidden

# ---- MODE PROFILES ----
if IS_DEV:
    LOG_LEVEL                   = "TRACE"  # very verbose logging for development
    LOG_FORMAT                  = "plain"  # plain text logs ease local debugging
    LOG_TO_CONSOLE              = True  # mirror logs to stderr for dev loops
    LOG_RATE_LIMIT_SECONDS      = 0.0  # disable console throttling in dev
    LOG_FILE_RATE_LIMIT_SECONDS = 0.0  # disable file throttling in dev
    LOG_ROTATE_MAX_BYTES        = 5_000_000  # rollover log files after ~5MB in dev
    LOG_BACKUP_COUNT            = 3  # retain a few rotated dev log files
else:
    LOG_LEVEL                   = "INFO"  # balanced verbosity for production
    LOG_FORMAT                  = "json"  # JSON logs simplify ingestion in prod
    LOG_TO_CONSOLE              = False  # suppress console spam for daemons
    LOG_RATE_LIMIT_SECONDS      = 2.0  # throttle console spam in prod
    LOG_FILE_RATE_LIMIT_SECONDS = 1.0  # throttle file spam in prod
    LOG_ROTATE_MAX_BYTES        = 10_000_000  # rollover log files after ~10MB in prod
    LOG_BACKUP_COUNT            = 7  # keep more history on production nodes

# ---- LOG PATH ----
_LOG_BASE = os.path.join(DATA_DIR, "logging", "plasmachain")  # base path used to pick extension
LOG_PATH  = _LOG_BASE + (".jsonl" if str(LOG_FORMAT).lower().strip() == "json" else ".log")
