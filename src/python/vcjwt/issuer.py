"""Issue W3C Verifiable Credentials as EdDSA-signed JWTs (JWT-VC).

The credential travels under the ``vc`` claim. Standard JWT claims are
mapped from the credential fields:

    iss  <- issuer DID
    sub  <- credentialSubject.id
    nbf  <- issuanceDate / validFrom (default: now)
    exp  <- expirationDate / validUntil (or nbf + expires_in)
    jti  <- id
"""

import copy
import json
import logging
import time
from collections.abc import Callable, Mapping
from datetime import datetime, timezone

from joserfc import jws

from vcjwt._crypto import import_private_key as _import_private_key
from vcjwt.config import (
    BASE_CONTEXTS,
    JWT_ALG,
    JWT_TYP,
    VC_CONTEXT_V1,
    VC_CONTEXT_V2,
    VC_TYPE,
)
from vcjwt.errors import InvalidPayloadError
from vcjwt.keys import KeyPair, verification_method_id

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def issue_credential_jwt(
    payload: Mapping,
    keypair: KeyPair,
    did: str,
    *,
    clock: Clock = time.time,
    expires_in: int | None = None,
) -> str:
    """Sign a credential template as a compact JWT-VC.

    Args:
        payload: Credential template with ``@context``, ``type`` and
            ``credentialSubject``. It is not modified.
        keypair: The issuer's Ed25519 keypair.
        did: The issuer's did:key, which must belong to ``keypair``.
        clock: Returns the current Unix time; used for ``nbf``.
        expires_in: Lifetime in seconds, used for ``exp`` when the
            credential carries no expiration date of its own.

    Returns:
        Compact JWS string (header.payload.signature).

    Raises:
        InvalidPayloadError: If the template or issuer DID is rejected.
    """
    validate_credential_template(payload)

    if did != keypair.did:
        raise InvalidPayloadError(
            f"Issuer DID {did!r} does not belong to the signing key ({keypair.did!r})"
        )

    vc = copy.deepcopy(dict(payload))
    if "issuer" in vc:
        declared = credential_issuer_id(vc["issuer"])
        if declared != did:
            raise InvalidPayloadError(
                f"Credential issuer {declared!r} does not match issuer DID {did!r}"
            )
    else:
        vc["issuer"] = did

    claims = build_jwt_claims(vc, did, now=int(clock()), expires_in=expires_in)
    kid = verification_method_id(did)
    header = _build_header(kid)

    try:
        payload_bytes = json.dumps(
            claims, ensure_ascii=False, allow_nan=False
        ).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise InvalidPayloadError(f"Credential is not JSON-serializable: {e}") from e

    key = _import_private_key(keypair)
    token = jws.serialize_compact(header, payload_bytes, key, algorithms=[JWT_ALG])
    logger.debug("Issued JWT-VC for subject %s by %s", claims.get("sub"), did)
    return token


def validate_credential_template(payload: Mapping) -> None:
    """Check the fields every credential template must carry.

    Raises:
        InvalidPayloadError: On the first missing or malformed field.
    """
    if not isinstance(payload, Mapping):
        raise InvalidPayloadError(
            f"Credential payload must be a mapping, got {type(payload).__name__}"
        )

    context = payload.get("@context")
    if not isinstance(context, list) or not any(c in BASE_CONTEXTS for c in context):
        raise InvalidPayloadError(
            f"@context must be an array including {VC_CONTEXT_V1!r} "
            f"or {VC_CONTEXT_V2!r}"
        )

    types = payload.get("type")
    if not isinstance(types, list) or VC_TYPE not in types:
        raise InvalidPayloadError(f"type must be an array including {VC_TYPE!r}")

    subject = payload.get("credentialSubject")
    if not isinstance(subject, Mapping) or not subject:
        raise InvalidPayloadError("credentialSubject must be a non-empty mapping")


def build_jwt_claims(
    vc: dict,
    did: str,
    *,
    now: int,
    expires_in: int | None = None,
) -> dict:
    """Map a credential onto the JWT claim set carried in the token payload."""
    claims: dict = {"vc": vc, "iss": did}

    subject_id = vc["credentialSubject"].get("id")
    if subject_id is not None:
        claims["sub"] = subject_id

    issued = vc.get("issuanceDate", vc.get("validFrom"))
    claims["nbf"] = _iso_to_epoch(issued, "issuanceDate") if issued is not None else now

    expires = vc.get("expirationDate", vc.get("validUntil"))
    if expires is not None:
        claims["exp"] = _iso_to_epoch(expires, "expirationDate")
    elif expires_in is not None:
        if expires_in <= 0:
            raise InvalidPayloadError(f"expires_in must be positive, got {expires_in}")
        claims["exp"] = claims["nbf"] + int(expires_in)

    if "id" in vc:
        claims["jti"] = vc["id"]

    return claims


def credential_issuer_id(issuer) -> str | None:
    """Return the issuer ID from a string or ``{"id": ...}`` issuer value."""
    if isinstance(issuer, str):
        return issuer
    if isinstance(issuer, Mapping):
        return issuer.get("id")
    return None


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_header(kid: str) -> dict[str, object]:
    """Build a JOSE protected header."""
    return {"alg": JWT_ALG, "typ": JWT_TYP, "kid": kid}


def _iso_to_epoch(value, field: str) -> int:
    """Convert an ISO 8601 timestamp to Unix seconds (naive means UTC)."""
    if not isinstance(value, str):
        raise InvalidPayloadError(f"{field} must be an ISO 8601 string")
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise InvalidPayloadError(f"Invalid {field} {value!r}: {e}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())
