"""Shared cryptographic helpers for JOSE key import and JWK file loading.

Internal module, used by issuer, verifier and cli.
"""

import json
from pathlib import Path

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from joserfc.jwk import OKPKey

from vcjwt.keys import (
    KeyPair,
    _b64url_decode,
    keypair_to_jwk,
    public_key_to_jwk,
)


def import_private_key(keypair: KeyPair) -> OKPKey:
    """Import an Ed25519 keypair into a joserfc JWK."""
    return OKPKey.import_key(keypair_to_jwk(keypair))


def import_public_key(public_key: Ed25519PublicKey | bytes) -> OKPKey:
    """Import an Ed25519 public key (object or raw bytes) into a joserfc JWK."""
    if not isinstance(public_key, (Ed25519PublicKey, bytes, bytearray)):
        raise TypeError(f"Unsupported key type: {type(public_key)}")
    return OKPKey.import_key(public_key_to_jwk(public_key))


def load_keypair(jwk_path: str) -> KeyPair:
    """Load an Ed25519 keypair from a private JWK file."""
    jwk = json.loads(Path(jwk_path).read_text())

    if not isinstance(jwk, dict):
        raise ValueError("JWK file must contain a JSON object")
    if jwk.get("kty") != "OKP" or jwk.get("crv") != "Ed25519":
        raise ValueError(f"Unsupported key type: {jwk.get('kty')}/{jwk.get('crv')}")
    if "d" not in jwk:
        raise ValueError("JWK has no private component 'd'")

    keypair = KeyPair.from_seed(_b64url_decode(jwk["d"]))
    if "x" in jwk and _b64url_decode(jwk["x"]) != keypair.public_key:
        raise ValueError("JWK 'x' does not match the public key derived from 'd'")
    return keypair
