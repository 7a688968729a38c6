"""did:key resolution.

did:key needs no registry: the public key is decoded straight from the DID
string, so resolution is a pure function with no network access.

A resolver is any callable mapping a DID to its Ed25519 public key. The
verifier takes one as an argument, so a network-backed method can be
swapped in without changing the verification code.
"""

from collections.abc import Awaitable, Callable

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from vcjwt.config import DID_CONTEXT, JWS_2020_CONTEXT
from vcjwt.errors import UnresolvableDidError
from vcjwt.keys import (
    did_key_to_public_bytes,
    public_key_to_jwk,
    verification_method_id,
)

PublicKeyLike = Ed25519PublicKey | bytes

Resolver = Callable[[str], PublicKeyLike]
AsyncResolver = Callable[[str], Awaitable[PublicKeyLike]]


def did_from_kid(kid: str) -> tuple[str, str | None]:
    """Split a DID URL into ``(did, fragment)``.

    E.g. "did:key:z6Mk...#z6Mk..." -> ("did:key:z6Mk...", "z6Mk...")
    """
    did, sep, fragment = kid.partition("#")
    return did, (fragment if sep else None)


def resolve_did_key(did: str) -> Ed25519PublicKey:
    """Resolve a did:key (or did:key DID URL) to its Ed25519 public key.

    Raises:
        UnresolvableDidError: If ``did`` is not a well-formed Ed25519 did:key.
    """
    if not isinstance(did, str):
        raise UnresolvableDidError(f"DID must be a string, got {type(did).__name__}")
    did, _ = did_from_kid(did)
    raw = did_key_to_public_bytes(did)
    try:
        return Ed25519PublicKey.from_public_bytes(raw)
    except ValueError as e:
        raise UnresolvableDidError(f"Invalid Ed25519 public key in {did}: {e}") from e


def resolve_did_document(did: str) -> dict:
    """Derive the DID Document for a did:key identifier.

    The document carries a single JsonWebKey2020 verification method, which
    is referenced from every verification relationship.

    Raises:
        UnresolvableDidError: If ``did`` is not a well-formed Ed25519 did:key.
    """
    did, _ = did_from_kid(did)
    raw = did_key_to_public_bytes(did)
    vm_id = verification_method_id(did)

    return {
        "@context": [DID_CONTEXT, JWS_2020_CONTEXT],
        "id": did,
        "verificationMethod": [
            {
                "id": vm_id,
                "type": "JsonWebKey2020",
                "controller": did,
                "publicKeyJwk": public_key_to_jwk(raw),
            }
        ],
        "authentication": [vm_id],
        "assertionMethod": [vm_id],
        "capabilityInvocation": [vm_id],
        "capabilityDelegation": [vm_id],
    }
