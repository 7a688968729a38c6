"""Ed25519 identity generation, did:key encoding, and JWK export.

A did:key identifier is the multibase (base58btc, ``z``) encoding of the
multicodec-prefixed public key:

    did:key:z<base58btc(0xed 0x01 || raw-public-key)>
"""

import base64
import secrets
from collections.abc import Callable
from dataclasses import dataclass

import base58
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

from vcjwt.config import SEED_LENGTH
from vcjwt.errors import EntropyError, UnresolvableDidError

# Multicodec prefix (varint-encoded)
_ED25519_MULTICODEC_PREFIX = b"\xed\x01"  # ed25519-pub 0xed
_ED25519_KEY_LENGTH = 32

DID_KEY_PREFIX = "did:key:"
MULTIBASE_BASE58BTC = "z"

# Callable returning n random bytes, e.g. secrets.token_bytes or os.urandom
RandomSource = Callable[[int], bytes]


@dataclass(frozen=True)
class KeyPair:
    """Raw Ed25519 key material.

    Attributes:
        public_key: 32-byte Ed25519 public key.
        private_key: 32-byte Ed25519 seed.
    """

    public_key: bytes
    private_key: bytes

    def __post_init__(self):
        if len(self.private_key) != SEED_LENGTH:
            raise ValueError(
                f"Ed25519 seed must be {SEED_LENGTH} bytes, got {len(self.private_key)}"
            )
        if len(self.public_key) != _ED25519_KEY_LENGTH:
            raise ValueError(
                f"Ed25519 public key must be {_ED25519_KEY_LENGTH} bytes, "
                f"got {len(self.public_key)}"
            )

    @classmethod
    def from_seed(cls, seed: bytes) -> "KeyPair":
        """Derive the keypair for a 32-byte seed."""
        private_key = Ed25519PrivateKey.from_private_bytes(seed)
        raw_public = private_key.public_key().public_bytes(
            Encoding.Raw, PublicFormat.Raw
        )
        return cls(public_key=raw_public, private_key=bytes(seed))

    @classmethod
    def from_private_key(cls, private_key: Ed25519PrivateKey) -> "KeyPair":
        seed = private_key.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
        return cls.from_seed(seed)

    def to_private_key(self) -> Ed25519PrivateKey:
        return Ed25519PrivateKey.from_private_bytes(self.private_key)

    def to_public_key(self) -> Ed25519PublicKey:
        return Ed25519PublicKey.from_public_bytes(self.public_key)

    @property
    def did(self) -> str:
        """The did:key identifier of this keypair."""
        return public_key_to_did_key(self.public_key)

    def __repr__(self) -> str:
        return f"KeyPair(did={self.did!r})"


# ---------------------------------------------------------------------------
# Identity generation
# ---------------------------------------------------------------------------


def generate_identity(
    random_source: RandomSource = secrets.token_bytes,
) -> tuple[str, KeyPair]:
    """Generate a fresh Ed25519 keypair and its did:key identifier.

    Args:
        random_source: Callable returning the requested number of random bytes.

    Returns:
        ``(did, keypair)``.

    Raises:
        EntropyError: If the source fails or does not return exactly 32 bytes.
    """
    try:
        seed = random_source(SEED_LENGTH)
    except (OSError, NotImplementedError, ValueError) as e:
        raise EntropyError(f"Random source failed: {e}") from e

    if not isinstance(seed, (bytes, bytearray)) or len(seed) != SEED_LENGTH:
        got = len(seed) if isinstance(seed, (bytes, bytearray)) else type(seed).__name__
        raise EntropyError(f"Random source must return {SEED_LENGTH} bytes, got {got}")

    return identity_from_seed(bytes(seed))


def identity_from_seed(seed: bytes) -> tuple[str, KeyPair]:
    """Derive ``(did, keypair)`` deterministically from a 32-byte seed."""
    keypair = KeyPair.from_seed(seed)
    return keypair.did, keypair


# ---------------------------------------------------------------------------
# did:key encoding
# ---------------------------------------------------------------------------


def public_key_to_multibase(public_key: Ed25519PublicKey | bytes) -> str:
    """Encode an Ed25519 public key as multibase base58btc (z6Mk...)."""
    raw = _raw_public_bytes(public_key)
    encoded = base58.b58encode(_ED25519_MULTICODEC_PREFIX + raw).decode()
    return MULTIBASE_BASE58BTC + encoded


def public_key_to_did_key(public_key: Ed25519PublicKey | bytes) -> str:
    """Derive a did:key identifier from an Ed25519 public key."""
    mb = public_key_to_multibase(public_key)
    return f"{DID_KEY_PREFIX}{mb}"


def multibase_to_public_bytes(multibase: str) -> bytes:
    """Decode a z6Mk... multibase value back to the raw Ed25519 public key.

    Raises:
        UnresolvableDidError: If the value is not a canonical Ed25519 multikey.
    """
    if not multibase.startswith(MULTIBASE_BASE58BTC):
        raise UnresolvableDidError(
            f"Unsupported multibase encoding {multibase[:1]!r}, expected base58btc 'z'"
        )

    try:
        decoded = base58.b58decode(multibase[1:])
    except ValueError as e:
        raise UnresolvableDidError(f"Invalid base58btc value: {e}") from e

    if not decoded.startswith(_ED25519_MULTICODEC_PREFIX):
        raise UnresolvableDidError(
            f"Unsupported multicodec prefix {decoded[:2].hex()!r}, expected 'ed01'"
        )

    raw = decoded[len(_ED25519_MULTICODEC_PREFIX) :]
    if len(raw) != _ED25519_KEY_LENGTH:
        raise UnresolvableDidError(
            f"Ed25519 public key must be {_ED25519_KEY_LENGTH} bytes, got {len(raw)}"
        )

    # Reject leading-zero and other non-canonical spellings of the same key
    if public_key_to_multibase(raw) != multibase:
        raise UnresolvableDidError(f"Non-canonical multibase value: {multibase!r}")

    return raw


def did_key_to_public_bytes(did: str) -> bytes:
    """Decode the raw Ed25519 public key embedded in a did:key identifier.

    Raises:
        UnresolvableDidError: If ``did`` is not a well-formed Ed25519 did:key.
    """
    if not isinstance(did, str) or not did.startswith(DID_KEY_PREFIX):
        raise UnresolvableDidError(f"Not a did:key: {did!r}")
    return multibase_to_public_bytes(did[len(DID_KEY_PREFIX) :])


def verification_method_id(did: str) -> str:
    """Return the did:key verification method ID (did:key:z6Mk...#z6Mk...)."""
    fragment = did.split(":")[-1]
    return f"{did}#{fragment}"


# ---------------------------------------------------------------------------
# JWK export
# ---------------------------------------------------------------------------


def keypair_to_jwk(keypair: KeyPair) -> dict:
    """Export an Ed25519 keypair as a private JWK dict (OKP/Ed25519)."""
    return {
        "kty": "OKP",
        "crv": "Ed25519",
        "x": _b64url(keypair.public_key),
        "d": _b64url(keypair.private_key),
    }


def public_key_to_jwk(public_key: Ed25519PublicKey | bytes) -> dict:
    """Export an Ed25519 public key as a JWK dict (OKP/Ed25519)."""
    return {
        "kty": "OKP",
        "crv": "Ed25519",
        "x": _b64url(_raw_public_bytes(public_key)),
    }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _raw_public_bytes(public_key: Ed25519PublicKey | bytes) -> bytes:
    if isinstance(public_key, Ed25519PublicKey):
        return public_key.public_bytes(Encoding.Raw, PublicFormat.Raw)
    raw = bytes(public_key)
    if len(raw) != _ED25519_KEY_LENGTH:
        raise ValueError(
            f"Ed25519 public key must be {_ED25519_KEY_LENGTH} bytes, got {len(raw)}"
        )
    return raw


def _b64url(data: bytes) -> str:
    """Base64url encode without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def _b64url_decode(s: str) -> bytes:
    """Base64url decode with padding restoration."""
    s += "=" * (-len(s) % 4)
    return base64.urlsafe_b64decode(s)
