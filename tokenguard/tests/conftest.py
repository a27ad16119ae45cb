# -*- coding: utf-8 -*-
"""
tokenguard.tests.conftest
=========================

Shared fixtures:
- deterministic 20-byte addresses derived with SHA3 (no randomness)
- a token initialized with the reference deployment parameters:
  supply=1_000_000, tx limit=500, wallet limit=1_000, anti-bot on
- a fresh Prometheus registry per test so counters start at zero
"""
from __future__ import annotations

import hashlib
import logging
import os
from typing import Dict, List

import pytest
from hypothesis import HealthCheck, settings
from prometheus_client import CollectorRegistry

from tokenguard import metrics
from tokenguard.events import Event
from tokenguard.token import GuardedToken

# Hypothesis profiles: "dev" locally, "ci" (derandomized) when CI is set.
_SUPPRESS = (HealthCheck.too_slow, HealthCheck.function_scoped_fixture)
settings.register_profile("dev", max_examples=100, deadline=None, suppress_health_check=_SUPPRESS)
settings.register_profile("ci", max_examples=200, deadline=None, suppress_health_check=_SUPPRESS, derandomize=True)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE") or ("ci" if os.getenv("CI") else "dev"))

SUPPLY = 1_000_000
TX_LIMIT = 500
WALLET_LIMIT = 1_000


def _det_address(label: str) -> bytes:
    return hashlib.sha3_256(b"tokenguard-tests|" + label.encode("utf-8")).digest()[:20]


@pytest.fixture(autouse=True)
def fresh_metrics() -> CollectorRegistry:
    reg = CollectorRegistry()
    metrics.set_registry(reg)
    return reg


@pytest.fixture(autouse=True)
def _reset_tokenguard_logger():
    yield
    logger = logging.getLogger("tokenguard")
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def accounts() -> Dict[str, bytes]:
    return {name: _det_address(name) for name in ("owner", "alice", "bob", "carol", "dave", "token")}


@pytest.fixture
def owner(accounts) -> bytes:
    return accounts["owner"]


@pytest.fixture
def alice(accounts) -> bytes:
    return accounts["alice"]


@pytest.fixture
def bob(accounts) -> bytes:
    return accounts["bob"]


@pytest.fixture
def carol(accounts) -> bytes:
    return accounts["carol"]


def make_token(accounts: Dict[str, bytes], *, anti_bot: bool = True, **kwargs) -> GuardedToken:
    token = GuardedToken(accounts["token"], **kwargs)
    token.initialize("Guarded Token", "GTK", SUPPLY, 0, accounts["owner"], TX_LIMIT, WALLET_LIMIT, anti_bot)
    return token


@pytest.fixture
def token(accounts) -> GuardedToken:
    return make_token(accounts)


@pytest.fixture
def funded(token, owner, alice) -> GuardedToken:
    """Token where alice (not whitelisted) holds 1_000 via an exempt owner transfer."""
    token.transfer(owner, alice, 1_000)
    return token


def event_names(events: List[Event]) -> List[str]:
    return [e.name for e in events]
