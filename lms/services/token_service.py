"""Bearer token verification (ES256 JWTs from the college identity provider).

The LMS never signs learners in; it only checks that a token was issued
for it (audience), by the identity provider (issuer), with the pinned
algorithm, and that it has not expired.  The claims it reads are ``sub``
(the learner / staff id) and ``roles``.

In dev and tests the module generates its own key pair on import and
create_access_token stands in for the provider.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives.asymmetric import ec

ALGORITHM = "ES256"
ISSUER = "college-identity"
AUDIENCE = "college-lms"
ACCESS_TOKEN_TTL = timedelta(minutes=15)
REQUIRED_CLAIMS = ("sub", "exp", "iat", "jti")

# TODO: verify against the identity provider's JWKS once the prod tenant is set up.
_private_key = ec.generate_private_key(ec.SECP256R1())
_public_key = _private_key.public_key()


def create_access_token(
    *,
    sub: str,
    roles: list[str] | None = None,
    name: str | None = None,
) -> str:
    """Sign a token the way the identity provider does (roles default to student)."""
    issued = datetime.now(UTC)
    claims: dict[str, object] = {
        "sub": sub,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "iat": issued,
        "exp": issued + ACCESS_TOKEN_TTL,
        "jti": uuid.uuid4().hex,
        "roles": list(roles) if roles else ["student"],
    }
    if name:
        claims["name"] = name
    return jwt.encode(claims, _private_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Return the verified claims.

    Raises jwt.ExpiredSignatureError for an expired token and
    jwt.InvalidTokenError for anything else wrong with it.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        audience=AUDIENCE,
        issuer=ISSUER,
        options={"require": list(REQUIRED_CLAIMS)},
    )
