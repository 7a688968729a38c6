"""Error taxonomy for did:key JWT-VC issuance and verification."""


class VcJwtError(Exception):
    """Base class for every error raised by vcjwt."""


class EntropyError(VcJwtError):
    """Raised when the random source cannot supply a 32-byte seed."""


class InvalidPayloadError(VcJwtError, ValueError):
    """Raised when a credential template is rejected before signing."""


class VerificationError(VcJwtError):
    """Raised when a JWT-VC fails verification."""


class MalformedTokenError(VerificationError):
    """The token is not three base64url segments of JSON header and payload."""


class UnresolvableDidError(VerificationError):
    """The issuer DID is not a well-formed did:key or names no known key."""


class SignatureInvalidError(VerificationError):
    """The EdDSA signature does not match the resolved public key."""


class InvalidCredentialError(VerificationError):
    """The signature is valid but the embedded credential claims are not."""


class ExpiredCredentialError(VerificationError):
    """The credential is not yet valid or no longer valid."""
