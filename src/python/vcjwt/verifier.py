"""Verify EdDSA-signed JWT-VCs against a DID resolver.

Verification runs in a fixed order and stops at the first failure:

    1. token shape            -> MalformedTokenError
    2. issuer DID resolution  -> UnresolvableDidError
    3. EdDSA signature        -> SignatureInvalidError
    4. credential claims      -> InvalidCredentialError
    5. nbf / exp window       -> ExpiredCredentialError

Failures are returned in the :class:`VerificationResult`, never collapsed
into a bare boolean.
"""

import copy
import inspect
import json
import logging
import math
import re
import time
from collections.abc import Callable
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone

from joserfc import jws
from joserfc.errors import BadSignatureError, JoseError
from joserfc.jwk import OKPKey

from vcjwt._crypto import import_public_key as _import_public_key
from vcjwt.config import (
    CLOCK_SKEW_SECONDS,
    JWT_ALG,
    JWT_PROOF_TYPE,
    VC_TYPE,
)
from vcjwt.errors import (
    ExpiredCredentialError,
    InvalidCredentialError,
    MalformedTokenError,
    SignatureInvalidError,
    UnresolvableDidError,
    VerificationError,
)
from vcjwt.issuer import credential_issuer_id
from vcjwt.keys import DID_KEY_PREFIX, _b64url_decode
from vcjwt.resolver import AsyncResolver, Resolver, did_from_kid, resolve_did_key

logger = logging.getLogger(__name__)

_B64URL_SEGMENT = re.compile(r"[A-Za-z0-9_-]+")


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a single verification call.

    Attributes:
        verified: True only when every check passed.
        payload: The verified credential (the ``vc`` claim), as signed.
        error: The failure, one of the VerificationError subclasses.
        issuer: The issuer DID taken from the token.
        header: Decoded JOSE header.
        claims: Decoded JWT claim set.
        token: The token that was checked.
    """

    verified: bool
    payload: dict | None = None
    error: VerificationError | None = None
    issuer: str | None = None
    header: dict | None = None
    claims: dict | None = None
    token: str | None = None

    @property
    def error_kind(self) -> str | None:
        """Name of the failure class, e.g. ``"SignatureInvalidError"``."""
        return type(self.error).__name__ if self.error is not None else None

    def raise_for_error(self) -> None:
        """Re-raise the verification failure, if any."""
        if self.error is not None:
            raise self.error

    def to_verifiable_credential(self) -> dict:
        """Expand the verified token into a W3C credential with a JWT proof.

        Restores ``issuer``, ``issuanceDate``, ``expirationDate``, ``id`` and
        ``credentialSubject.id`` from the JWT claims when the embedded
        credential does not carry them.
        """
        self.raise_for_error()

        credential = copy.deepcopy(self.payload)
        claims = self.claims

        credential.setdefault("issuer", self.issuer)
        if "sub" in claims:
            credential["credentialSubject"].setdefault("id", claims["sub"])
        if "nbf" in claims and not ({"issuanceDate", "validFrom"} & credential.keys()):
            credential["issuanceDate"] = _epoch_to_iso(claims["nbf"])
        if "exp" in claims and not (
            {"expirationDate", "validUntil"} & credential.keys()
        ):
            credential["expirationDate"] = _epoch_to_iso(claims["exp"])
        if "jti" in claims:
            credential.setdefault("id", claims["jti"])

        credential["proof"] = {"type": JWT_PROOF_TYPE, "jwt": self.token}
        return credential


@dataclass(frozen=True)
class _ParsedToken:
    token: str
    header: dict
    claims: dict
    did: str
    fragment: str | None


def verify_credential_jwt(
    token: str,
    resolve: Resolver = resolve_did_key,
    *,
    clock: Callable[[], float] = time.time,
    skew: int = CLOCK_SKEW_SECONDS,
) -> VerificationResult:
    """Verify a JWT-VC and return the embedded credential.

    Args:
        token: Compact JWS string (header.payload.signature).
        resolve: Maps the issuer DID to its Ed25519 public key.
        clock: Returns the current Unix time for the nbf/exp checks.
        skew: Leeway in seconds applied to nbf and exp.

    Returns:
        A VerificationResult; ``error`` is set when ``verified`` is False.
    """
    parsed = None
    try:
        parsed = _parse_token(token)
        _check_fragment(parsed)
        with _resolution_errors(parsed.did):
            resolved = resolve(parsed.did)
            if inspect.isawaitable(resolved):
                _close(resolved)
                raise UnresolvableDidError(
                    "Resolver returned an awaitable; use verify_credential_jwt_async"
                )
        key = _import_resolved_key(parsed.did, resolved)
        return _verify_parsed(parsed, key, clock=clock, skew=skew)
    except VerificationError as e:
        return _failure(token, parsed, e)


async def verify_credential_jwt_async(
    token: str,
    resolve: Resolver | AsyncResolver = resolve_did_key,
    *,
    clock: Callable[[], float] = time.time,
    skew: int = CLOCK_SKEW_SECONDS,
) -> VerificationResult:
    """Async variant of :func:`verify_credential_jwt`.

    ``resolve`` may be a plain function or a coroutine function.
    """
    parsed = None
    try:
        parsed = _parse_token(token)
        _check_fragment(parsed)
        with _resolution_errors(parsed.did):
            resolved = resolve(parsed.did)
            if inspect.isawaitable(resolved):
                resolved = await resolved
        key = _import_resolved_key(parsed.did, resolved)
        return _verify_parsed(parsed, key, clock=clock, skew=skew)
    except VerificationError as e:
        return _failure(token, parsed, e)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _parse_token(token: str) -> _ParsedToken:
    """Split and decode a compact JWT without checking the signature."""
    if not isinstance(token, str):
        raise MalformedTokenError(f"Token must be a string, got {type(token).__name__}")

    parts = token.split(".")
    if len(parts) != 3:
        raise MalformedTokenError(f"Expected 3 token segments, got {len(parts)}")
    for name, part in zip(("header", "payload", "signature"), parts):
        if not part:
            raise MalformedTokenError(f"Empty {name} segment")
        if not _B64URL_SEGMENT.fullmatch(part):
            raise MalformedTokenError(f"The {name} segment is not base64url")
        try:
            _b64url_decode(part)
        except ValueError as e:
            raise MalformedTokenError(f"Invalid base64url in {name}: {e}") from e

    header = _decode_json_segment(parts[0], "header")
    claims = _decode_json_segment(parts[1], "payload")

    alg = header.get("alg")
    if alg != JWT_ALG:
        raise MalformedTokenError(f"Unsupported alg: expected {JWT_ALG!r}, got {alg!r}")

    kid = header.get("kid")
    if isinstance(kid, str) and kid:
        did, fragment = did_from_kid(kid)
    elif isinstance(claims.get("iss"), str) and claims["iss"]:
        did, fragment = claims["iss"], None
    else:
        raise MalformedTokenError("Token names no issuer: no 'kid' header, no 'iss' claim")

    return _ParsedToken(
        token=token, header=header, claims=claims, did=did, fragment=fragment
    )


def _decode_json_segment(segment: str, name: str) -> dict:
    try:
        value = json.loads(_b64url_decode(segment))
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedTokenError(f"Invalid {name} JSON: {e}") from e
    if not isinstance(value, dict):
        raise MalformedTokenError(f"The {name} must be a JSON object")
    return value


def _check_fragment(parsed: _ParsedToken) -> None:
    """A did:key has one verification method, named by its own key."""
    if parsed.fragment is None or not parsed.did.startswith(DID_KEY_PREFIX):
        return
    expected = parsed.did[len(DID_KEY_PREFIX) :]
    if parsed.fragment != expected:
        raise UnresolvableDidError(
            f"Verification method #{parsed.fragment} not found in {parsed.did}"
        )


@contextmanager
def _resolution_errors(did: str):
    """Report every resolver failure as UnresolvableDidError."""
    try:
        yield
    except UnresolvableDidError:
        raise
    except Exception as e:
        raise UnresolvableDidError(f"Could not resolve {did}: {e}") from e


def _import_resolved_key(did: str, resolved) -> OKPKey:
    if resolved is None:
        raise UnresolvableDidError(f"Resolver returned no key for {did}")
    try:
        return _import_public_key(resolved)
    except (TypeError, ValueError) as e:
        raise UnresolvableDidError(f"Unusable public key for {did}: {e}") from e


def _verify_parsed(
    parsed: _ParsedToken,
    key: OKPKey,
    *,
    clock: Callable[[], float],
    skew: int,
) -> VerificationResult:
    _check_signature(parsed.token, key)
    _check_credential(parsed.claims, parsed.did)
    _check_validity(parsed.claims, now=int(clock()), skew=skew)

    logger.debug("Verified JWT-VC issued by %s", parsed.did)
    return VerificationResult(
        verified=True,
        payload=parsed.claims["vc"],
        issuer=parsed.did,
        header=parsed.header,
        claims=parsed.claims,
        token=parsed.token,
    )


def _check_signature(token: str, key: OKPKey) -> None:
    try:
        jws.deserialize_compact(token, key, algorithms=[JWT_ALG])
    except BadSignatureError as e:
        raise SignatureInvalidError(
            "EdDSA signature does not match the issuer's public key"
        ) from e
    except JoseError as e:
        raise MalformedTokenError(f"JWS deserialization failed: {e}") from e


def _check_credential(claims: dict, did: str) -> None:
    vc = claims.get("vc")
    if not isinstance(vc, dict):
        raise InvalidCredentialError("Token payload has no 'vc' object")

    types = vc.get("type")
    if not isinstance(types, list) or VC_TYPE not in types:
        raise InvalidCredentialError(f"vc.type must be an array including {VC_TYPE!r}")

    subject = vc.get("credentialSubject")
    if not isinstance(subject, dict) or not subject:
        raise InvalidCredentialError("vc.credentialSubject must be a non-empty object")

    iss = claims.get("iss")
    if iss is not None and iss != did:
        raise InvalidCredentialError(
            f"Issuer mismatch: iss is {iss!r}, token was signed by {did!r}"
        )

    if "issuer" in vc:
        declared = credential_issuer_id(vc["issuer"])
        if declared != did:
            raise InvalidCredentialError(
                f"Issuer mismatch: vc.issuer is {declared!r}, "
                f"token was signed by {did!r}"
            )

    sub = claims.get("sub")
    if sub is not None and "id" in subject and subject["id"] != sub:
        raise InvalidCredentialError(
            f"Subject mismatch: sub is {sub!r}, "
            f"credentialSubject.id is {subject['id']!r}"
        )


def _check_validity(claims: dict, *, now: int, skew: int) -> None:
    for name in ("nbf", "exp"):
        value = claims.get(name)
        if value is not None and (
            isinstance(value, bool)
            or not isinstance(value, (int, float))
            or (isinstance(value, float) and not math.isfinite(value))
        ):
            raise InvalidCredentialError(f"The {name} claim must be a finite number")

    nbf = claims.get("nbf")
    if nbf is not None and nbf > now + skew:
        raise ExpiredCredentialError(
            f"Credential not valid before {_epoch_to_iso(nbf)}"
        )

    exp = claims.get("exp")
    if exp is not None and exp <= now - skew:
        raise ExpiredCredentialError(f"Credential expired at {_epoch_to_iso(exp)}")


def _failure(
    token, parsed: _ParsedToken | None, error: VerificationError
) -> VerificationResult:
    logger.warning(
        "JWT-VC verification failed (%s): %s", type(error).__name__, error
    )
    return VerificationResult(
        verified=False,
        error=error,
        issuer=parsed.did if parsed is not None else None,
        header=parsed.header if parsed is not None else None,
        claims=parsed.claims if parsed is not None else None,
        token=token if isinstance(token, str) else None,
    )


def _close(awaitable) -> None:
    close = getattr(awaitable, "close", None)
    if close is not None:
        close()


def _epoch_to_iso(value: float) -> str:
    try:
        dt = datetime.fromtimestamp(value, timezone.utc)
    except (OverflowError, OSError, ValueError):
        return str(value)
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")
