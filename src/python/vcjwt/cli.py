"""Command-line interface for did:key JWT-VCs.

Run without arguments for the end-to-end demo: generate a did:key, issue a
UniversityDegree credential, then verify it.

CLI Usage:
    python -m vcjwt
    python -m vcjwt generate --output key.jwk
    python -m vcjwt issue --credential vc.json --key key.jwk --output vc.jwt
    python -m vcjwt verify --jwt vc.jwt
    python -m vcjwt resolve did:key:z6Mk...
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from vcjwt import config
from vcjwt._crypto import load_keypair as _load_keypair
from vcjwt.errors import EntropyError, InvalidPayloadError, UnresolvableDidError
from vcjwt.issuer import issue_credential_jwt
from vcjwt.keys import (
    generate_identity,
    identity_from_seed,
    keypair_to_jwk,
    public_key_to_jwk,
    verification_method_id,
)
from vcjwt.resolver import resolve_did_document
from vcjwt.verifier import verify_credential_jwt

logger = logging.getLogger(__name__)

EXAMPLE_CREDENTIAL = {
    "@context": [config.VC_CONTEXT_V1],
    "type": ["VerifiableCredential", "UniversityDegree"],
    "credentialSubject": {
        "id": "did:example:ebfeb1f712ebc6f1c276e12ec21",
        "degree": {
            "type": "BachelorDegree",
            "name": "Computer Science",
        },
    },
}


def run_demo() -> int:
    """Generate a did:key, issue the example credential, and verify it."""
    try:
        did, keypair = generate_identity()
    except EntropyError as e:
        print(f"Key generation failed: {e}", file=sys.stderr)
        return 1
    print(f"Generated DID: {did}")

    print("\nCreating a JWT credential...")
    token = issue_credential_jwt(EXAMPLE_CREDENTIAL, keypair, did)
    print(token)

    print("\n" + "-" * 50)
    print("Starting credential verification...")
    result = verify_credential_jwt(token)
    if not result.verified:
        print(f"\nVerification failed: {result.error_kind}: {result.error}")
        return 1

    print("\nVerification completed successfully!")
    print("\nCredential:")
    print(json.dumps(result.to_verifiable_credential(), indent=2))
    return 0


def _read_token(source: str) -> str:
    if source == "-":
        return sys.stdin.read().strip()
    return Path(source).read_text().strip()


def _write_output(text: str, output: str | None, label: str) -> None:
    if output:
        Path(output).write_text(text)
        print(f"{label} written to {output}", file=sys.stderr)
    else:
        print(text)


def _cmd_generate(args) -> int:
    if args.seed:
        try:
            seed = bytes.fromhex(args.seed)
            did, keypair = identity_from_seed(seed)
        except ValueError as e:
            print(f"Invalid seed: {e}", file=sys.stderr)
            return 1
    else:
        try:
            did, keypair = generate_identity()
        except EntropyError as e:
            print(f"Key generation failed: {e}", file=sys.stderr)
            return 1

    if args.public_only:
        jwk = public_key_to_jwk(keypair.public_key)
    else:
        jwk = keypair_to_jwk(keypair)
    jwk["kid"] = verification_method_id(did)

    print(did, file=sys.stderr)
    _write_output(json.dumps(jwk, indent=2), args.output, "Key")
    return 0


def _cmd_issue(args) -> int:
    try:
        credential = json.loads(Path(args.credential).read_text())
        keypair = _load_keypair(args.key)
    except (OSError, ValueError) as e:
        print(f"Loading input failed: {e}", file=sys.stderr)
        return 1
    try:
        token = issue_credential_jwt(
            credential, keypair, keypair.did, expires_in=args.expires_in
        )
    except InvalidPayloadError as e:
        print(f"Invalid credential: {e}", file=sys.stderr)
        return 1
    _write_output(token, args.output, "Signed VC")
    return 0


def _cmd_verify(args) -> int:
    token = _read_token(args.jwt)
    result = verify_credential_jwt(token)
    if not result.verified:
        print(
            f"Verification failed: {result.error_kind}: {result.error}",
            file=sys.stderr,
        )
        return 1

    if args.expand:
        print(json.dumps(result.to_verifiable_credential(), indent=2))
    else:
        print(json.dumps(result.payload, indent=2))
    return 0


def _cmd_resolve(args) -> int:
    try:
        document = resolve_did_document(args.did)
    except UnresolvableDidError as e:
        print(f"Resolution failed: {e}", file=sys.stderr)
        return 1
    print(json.dumps(document, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vcjwt",
        description="did:key JWT Verifiable Credential CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m vcjwt
  python -m vcjwt generate --output key.jwk
  python -m vcjwt issue --credential vc.json --key key.jwk --output vc.jwt
  python -m vcjwt verify --jwt vc.jwt
  python -m vcjwt resolve did:key:z6Mk...
        """,
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # generate subcommand
    gen_parser = subparsers.add_parser(
        "generate",
        help="Generate an Ed25519 did:key identity",
        description="Generate an Ed25519 keypair and print its JWK.",
    )
    gen_parser.add_argument("--seed", help="32-byte seed as hex (default: random)")
    gen_parser.add_argument("--output", "-o", help="Output file (default: stdout)")
    gen_parser.add_argument(
        "--public-only", action="store_true", help="Output only the public key"
    )

    # issue subcommand
    issue_parser = subparsers.add_parser(
        "issue",
        help="Issue a credential as a JWT-VC",
        description="Sign a VC JSON template and output the compact JWT.",
    )
    issue_parser.add_argument("--credential", "-c", required=True, help="VC JSON file")
    issue_parser.add_argument("--key", "-k", required=True, help="Private key (JWK file)")
    issue_parser.add_argument(
        "--expires-in", type=int, help="Credential lifetime in seconds"
    )
    issue_parser.add_argument("--output", "-o", help="Output file (default: stdout)")

    # verify subcommand
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify a JWT-VC",
        description="Verify a JWT-VC against its did:key issuer and print it.",
    )
    verify_parser.add_argument("--jwt", required=True, help="JWT file or '-' for stdin")
    verify_parser.add_argument(
        "--expand",
        action="store_true",
        help="Print the W3C credential form with a JwtProof2020 proof",
    )

    # resolve subcommand
    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Resolve a did:key to its DID Document",
        description="Derive the DID Document of a did:key (no network).",
    )
    resolve_parser.add_argument("did", help="did:key identifier")

    return parser


def main(argv: list[str] | None = None):
    """CLI entry point. Runs the demo when no command is given."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "generate": _cmd_generate,
        "issue": _cmd_issue,
        "verify": _cmd_verify,
        "resolve": _cmd_resolve,
    }

    if args.command is None:
        exit_code = run_demo()
    else:
        exit_code = commands[args.command](args)

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
