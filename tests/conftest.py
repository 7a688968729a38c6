"""Shared fixtures for vcjwt tests."""

import base64
import json
from pathlib import Path

import pytest

from vcjwt.keys import identity_from_seed, verification_method_id

FIXTURES_DIR = Path(__file__).parent / "fixtures"

# Fixed wall-clock time used wherever a test needs determinism
NOW = 1_700_000_000

ZERO_SEED = bytes(32)


def b64url_decode(s: str) -> bytes:
    return base64.urlsafe_b64decode(s + "=" * (-len(s) % 4))


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def decode_segment(token: str, index: int) -> dict:
    return json.loads(b64url_decode(token.split(".")[index]))


def encode_segment(obj: dict) -> str:
    return b64url_encode(json.dumps(obj).encode())


# ---------------------------------------------------------------------------
# Identities
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def identity():
    """did:key identity derived from the all-zero seed."""
    return identity_from_seed(ZERO_SEED)


@pytest.fixture(scope="session")
def did(identity):
    return identity[0]


@pytest.fixture(scope="session")
def keypair(identity):
    return identity[1]


@pytest.fixture(scope="session")
def did_key_vm(did):
    """A did:key verification method ID (did:key:z6Mk...#z6Mk...)."""
    return verification_method_id(did)


@pytest.fixture(scope="session")
def other_identity():
    """A second, unrelated identity for wrong-key tests."""
    return identity_from_seed(bytes(range(32)))


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


@pytest.fixture()
def fixed_clock():
    return lambda: NOW


# ---------------------------------------------------------------------------
# Sample credentials
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_vc():
    """An unsigned UniversityDegree credential template."""
    with open(FIXTURES_DIR / "sample-vc.json") as f:
        return json.load(f)
