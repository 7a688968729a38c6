"""vcjwt - did:key identities and JWT-encoded Verifiable Credentials.

This package provides:
- Ed25519 identity generation and did:key encoding
- did:key resolution (public key and DID Document, no network)
- JWT-VC issuance (EdDSA compact JWS)
- JWT-VC verification with distinct failure kinds

Usage:
    from vcjwt import generate_identity, issue_credential_jwt, verify_credential_jwt

    did, keypair = generate_identity()
    token = issue_credential_jwt(credential, keypair, did)
    result = verify_credential_jwt(token)
"""


# Use lazy imports to avoid RuntimeWarning when running modules directly
def __getattr__(name):
    """Lazy import to avoid import cycle when running modules directly."""
    if name in (
        "KeyPair",
        "generate_identity",
        "identity_from_seed",
        "public_key_to_did_key",
        "public_key_to_multibase",
        "did_key_to_public_bytes",
        "verification_method_id",
    ):
        from vcjwt import keys

        return getattr(keys, name)
    elif name in ("resolve_did_key", "resolve_did_document"):
        from vcjwt import resolver

        return getattr(resolver, name)
    elif name == "issue_credential_jwt":
        from vcjwt import issuer

        return getattr(issuer, name)
    elif name in (
        "VerificationResult",
        "verify_credential_jwt",
        "verify_credential_jwt_async",
    ):
        from vcjwt import verifier

        return getattr(verifier, name)
    elif name in (
        "VcJwtError",
        "EntropyError",
        "InvalidPayloadError",
        "VerificationError",
        "MalformedTokenError",
        "UnresolvableDidError",
        "SignatureInvalidError",
        "InvalidCredentialError",
        "ExpiredCredentialError",
    ):
        from vcjwt import errors

        return getattr(errors, name)
    raise AttributeError(f"module 'vcjwt' has no attribute {name!r}")


__all__ = [
    # Keys
    "KeyPair",
    "generate_identity",
    "identity_from_seed",
    "public_key_to_did_key",
    "public_key_to_multibase",
    "did_key_to_public_bytes",
    "verification_method_id",
    # Resolver
    "resolve_did_key",
    "resolve_did_document",
    # Issuer
    "issue_credential_jwt",
    # Verifier
    "VerificationResult",
    "verify_credential_jwt",
    "verify_credential_jwt_async",
    # Errors
    "VcJwtError",
    "EntropyError",
    "InvalidPayloadError",
    "VerificationError",
    "MalformedTokenError",
    "UnresolvableDidError",
    "SignatureInvalidError",
    "InvalidCredentialError",
    "ExpiredCredentialError",
]
