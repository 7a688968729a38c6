"""Tests for JWT-VC issuance."""

import copy

import pytest

from conftest import NOW, decode_segment
from vcjwt.errors import InvalidPayloadError
from vcjwt.issuer import build_jwt_claims, issue_credential_jwt

# ---------------------------------------------------------------------------
# Token structure
# ---------------------------------------------------------------------------


def test_issue_returns_compact_jws(sample_vc, keypair, did):
    token = issue_credential_jwt(sample_vc, keypair, did)
    parts = token.split(".")
    assert len(parts) == 3, f"Expected 3-part compact JWS, got {len(parts)} parts"
    assert all(len(p) > 0 for p in parts)
    assert "=" not in token


def test_issue_header(sample_vc, keypair, did, did_key_vm):
    token = issue_credential_jwt(sample_vc, keypair, did)
    header = decode_segment(token, 0)
    assert header["alg"] == "EdDSA"
    assert header["typ"] == "JWT"
    assert header["kid"] == did_key_vm


def test_issue_claims(sample_vc, keypair, did, fixed_clock):
    token = issue_credential_jwt(sample_vc, keypair, did, clock=fixed_clock)
    claims = decode_segment(token, 1)
    assert claims["iss"] == did
    assert claims["sub"] == sample_vc["credentialSubject"]["id"]
    assert claims["nbf"] == NOW
    assert "exp" not in claims
    assert claims["vc"] == {**sample_vc, "issuer": did}


def test_issue_expires_in(sample_vc, keypair, did, fixed_clock):
    token = issue_credential_jwt(
        sample_vc, keypair, did, clock=fixed_clock, expires_in=3600
    )
    claims = decode_segment(token, 1)
    assert claims["exp"] == NOW + 3600


def test_issue_rejects_non_positive_expires_in(sample_vc, keypair, did):
    with pytest.raises(InvalidPayloadError, match="expires_in"):
        issue_credential_jwt(sample_vc, keypair, did, expires_in=0)


def test_issue_is_deterministic_with_fixed_clock(sample_vc, keypair, did, fixed_clock):
    token1 = issue_credential_jwt(sample_vc, keypair, did, clock=fixed_clock)
    token2 = issue_credential_jwt(sample_vc, keypair, did, clock=fixed_clock)
    assert token1 == token2


def test_issue_does_not_modify_input(sample_vc, keypair, did):
    original = copy.deepcopy(sample_vc)
    issue_credential_jwt(sample_vc, keypair, did)
    assert sample_vc == original


def test_issue_keeps_matching_issuer_object(sample_vc, keypair, did):
    sample_vc["issuer"] = {"id": did, "name": "Example University"}
    token = issue_credential_jwt(sample_vc, keypair, did)
    assert decode_segment(token, 1)["vc"]["issuer"] == sample_vc["issuer"]


def test_issue_preserves_unicode(sample_vc, keypair, did):
    sample_vc["credentialSubject"]["degree"]["name"] = "Informática é Ciência"
    token = issue_credential_jwt(sample_vc, keypair, did)
    claims = decode_segment(token, 1)
    assert claims["vc"]["credentialSubject"]["degree"]["name"] == "Informática é Ciência"


# ---------------------------------------------------------------------------
# Claim mapping
# ---------------------------------------------------------------------------


def test_claims_from_credential_dates(sample_vc, did):
    vc = {
        **sample_vc,
        "id": "urn:uuid:4e1f2d5c-0b8a-4c1e-9d7e-2a3b4c5d6e7f",
        "issuanceDate": "2024-01-01T00:00:00Z",
        "expirationDate": "2025-01-01T00:00:00Z",
    }
    claims = build_jwt_claims(vc, did, now=NOW, expires_in=60)
    assert claims["nbf"] == 1704067200
    assert claims["exp"] == 1735689600
    assert claims["jti"] == vc["id"]


def test_claims_from_v2_validity_fields(sample_vc, did):
    vc = {
        **sample_vc,
        "validFrom": "2024-01-01T00:00:00+00:00",
        "validUntil": "2024-01-02T00:00:00",
    }
    claims = build_jwt_claims(vc, did, now=NOW)
    assert claims["nbf"] == 1704067200
    assert claims["exp"] == 1704153600


def test_claims_without_subject_id(sample_vc, did):
    del sample_vc["credentialSubject"]["id"]
    claims = build_jwt_claims(sample_vc, did, now=NOW)
    assert "sub" not in claims


def test_claims_reject_bad_date(sample_vc, did):
    sample_vc["issuanceDate"] = "yesterday"
    with pytest.raises(InvalidPayloadError, match="issuanceDate"):
        build_jwt_claims(sample_vc, did, now=NOW)


# ---------------------------------------------------------------------------
# Payload validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "mutate, message",
    [
        (lambda vc: vc.pop("@context"), "@context"),
        (lambda vc: vc.update({"@context": "https://www.w3.org/2018/credentials/v1"}), "@context"),
        (lambda vc: vc.update({"@context": ["https://example.com/ctx"]}), "@context"),
        (lambda vc: vc.pop("type"), "type"),
        (lambda vc: vc.update({"type": "VerifiableCredential"}), "type"),
        (lambda vc: vc.update({"type": ["UniversityDegree"]}), "type"),
        (lambda vc: vc.pop("credentialSubject"), "credentialSubject"),
        (lambda vc: vc.update({"credentialSubject": {}}), "credentialSubject"),
        (lambda vc: vc.update({"credentialSubject": "did:example:abc"}), "credentialSubject"),
    ],
)
def test_issue_rejects_invalid_payload(sample_vc, keypair, did, mutate, message):
    mutate(sample_vc)
    with pytest.raises(InvalidPayloadError, match=message):
        issue_credential_jwt(sample_vc, keypair, did)


def test_issue_accepts_v2_context(sample_vc, keypair, did):
    sample_vc["@context"] = ["https://www.w3.org/ns/credentials/v2"]
    token = issue_credential_jwt(sample_vc, keypair, did)
    assert len(token.split(".")) == 3


def test_issue_rejects_non_mapping(keypair, did):
    with pytest.raises(InvalidPayloadError, match="mapping"):
        issue_credential_jwt(["not", "a", "credential"], keypair, did)


def test_issue_rejects_foreign_did(sample_vc, keypair, other_identity):
    other_did, _ = other_identity
    with pytest.raises(InvalidPayloadError, match="does not belong"):
        issue_credential_jwt(sample_vc, keypair, other_did)


def test_issue_rejects_conflicting_issuer(sample_vc, keypair, did, other_identity):
    sample_vc["issuer"] = other_identity[0]
    with pytest.raises(InvalidPayloadError, match="does not match"):
        issue_credential_jwt(sample_vc, keypair, did)


def test_issue_rejects_unserializable_claims(sample_vc, keypair, did):
    sample_vc["credentialSubject"]["photo"] = object()
    with pytest.raises(InvalidPayloadError, match="JSON"):
        issue_credential_jwt(sample_vc, keypair, did)


@pytest.mark.parametrize("value", [float("nan"), float("inf")])
def test_issue_rejects_non_finite_numbers(sample_vc, keypair, did, value):
    sample_vc["credentialSubject"]["degree"]["gpa"] = value
    with pytest.raises(InvalidPayloadError, match="JSON"):
        issue_credential_jwt(sample_vc, keypair, did)
