# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of PlasmaChain - see LICENSE and TRADEMARKS.md
# Refs: see REFERENCES.md

import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(PROJECT_ROOT, "src")
for path in (PROJECT_ROOT, SRC_ROOT):
    if path not in sys.path:
        sys.path.append(path)

from plasmachain.auth.ante import AnteHandler  # noqa: E402
from plasmachain.storage.utxo import MemoryUTXOMapper  # noqa: E402
from signing import KeyPair  # noqa: E402


@pytest.fixture
def alice():
    return KeyPair(0xA11CE)


@pytest.fixture
def bob():
    return KeyPair(0xB0B)


@pytest.fixture
def carol():
    return KeyPair(0xCA401)


@pytest.fixture
def dave():
    return KeyPair(0xDA5E)


@pytest.fixture
def mapper():
    return MemoryUTXOMapper()


@pytest.fixture
def handler(mapper):
    return AnteHandler(mapper)
