# vcjwt/config.py
"""
Centralized configuration for vcjwt.

Tunable values are read from environment variables with sensible defaults.
None of them are required.

Environment Variables:
    VCJWT_CLOCK_SKEW: Leeway in seconds for nbf/exp checks (default: 300)
    VCJWT_LOG_LEVEL: Logging level used by the CLI (default: WARNING)
"""

import os
from typing import Final

# =============================================================================
# Credential Data Model
# =============================================================================

VC_CONTEXT_V1: Final[str] = "https://www.w3.org/2018/credentials/v1"
VC_CONTEXT_V2: Final[str] = "https://www.w3.org/ns/credentials/v2"

# A credential must list at least one of these in @context
BASE_CONTEXTS: Final[tuple[str, ...]] = (VC_CONTEXT_V1, VC_CONTEXT_V2)

VC_TYPE: Final[str] = "VerifiableCredential"

DID_CONTEXT: Final[str] = "https://www.w3.org/ns/did/v1"
JWS_2020_CONTEXT: Final[str] = "https://w3id.org/security/suites/jws-2020/v1"

# =============================================================================
# JOSE
# =============================================================================

JWT_ALG: Final[str] = "EdDSA"
JWT_TYP: Final[str] = "JWT"

# Proof type attached when a verified JWT-VC is expanded to its W3C form
JWT_PROOF_TYPE: Final[str] = "JwtProof2020"

# =============================================================================
# Keys
# =============================================================================

SEED_LENGTH: Final[int] = 32

# =============================================================================
# Verification
# =============================================================================

CLOCK_SKEW_SECONDS: Final[int] = int(os.getenv("VCJWT_CLOCK_SKEW", "300"))

# =============================================================================
# Logging
# =============================================================================

LOG_LEVEL: Final[str] = os.getenv("VCJWT_LOG_LEVEL", "WARNING").upper()
