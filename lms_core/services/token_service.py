"""JWT access token validation (ES256).

Tokens are minted by the upstream auth service; this service only
verifies them against that service's public key (JWT_PUBLIC_KEY).
dependencies.py turns the verified claims into a Principal.
"""

from __future__ import annotations

import logging

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from lms_core.core.config import SETTINGS

logger = logging.getLogger(__name__)

ALGORITHM = "ES256"


def load_public_key(pem: str) -> ec.EllipticCurvePublicKey:
    """Parse a PEM public key and check it can verify ES256 signatures.

    Raises ValueError for malformed PEM or a key of the wrong type/curve.
    """
    key = serialization.load_pem_public_key(pem.encode())
    if not isinstance(key, ec.EllipticCurvePublicKey) or not isinstance(
        key.curve, ec.SECP256R1
    ):
        raise ValueError("JWT_PUBLIC_KEY must be a P-256 (ES256) public key")
    return key


_public_key: ec.EllipticCurvePublicKey | None = (
    load_public_key(SETTINGS.jwt_public_key) if SETTINGS.jwt_public_key else None
)

if _public_key is None:
    logger.warning("JWT_PUBLIC_KEY is not set; every bearer token will be rejected")


def decode_access_token(token: str) -> dict:
    """Verify signature and claims, return the payload.

    Pins the algorithm to ES256 so alg:none and alg-switching tokens
    are rejected.  Raises jwt.ExpiredSignatureError or
    jwt.InvalidTokenError on failure.
    """
    if _public_key is None:
        raise jwt.InvalidTokenError("no verification key configured")
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=SETTINGS.jwt_issuer,
        audience=SETTINGS.jwt_audience,
        options={"require": ["sub", "exp", "iat", "jti"]},
    )
