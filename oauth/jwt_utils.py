"""ID token verification for the OpenID Connect login.

Uses PyJWT for RS256 signature checking, then validates the standard claims
one at a time so each failure shows up in the logs under its own reason.
A token either passes every check and becomes an ``IdTokenClaims``, or it is
rejected with ``TokenValidationError``; nothing in between is kept.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey
from jwt.algorithms import RSAAlgorithm

from oauth.errors import TokenValidationError

logger = logging.getLogger(__name__)

# Only algorithm accepted for ID tokens
JWT_ALGORITHM = "RS256"

# Checks, in the order they run
STAGE_SIGNATURE = "signature"
STAGE_STRUCTURE = "structure"
STAGE_ISSUER = "issuer"
STAGE_AUDIENCE = "audience"
STAGE_ISSUED_AT = "issued_at"
STAGE_EXPIRY = "expiry"


def load_verification_key(key_material: Union[str, dict]) -> RSAPublicKey:
    """Parse the authorization server's public key.

    Args:
        key_material: A JWK (dict or JSON string) or a PEM encoded public key

    Returns:
        The RSA public key object

    Raises:
        ValueError: If the material is not an RSA public key
    """
    if isinstance(key_material, str) and key_material.lstrip().startswith("-----BEGIN"):
        key = serialization.load_pem_public_key(key_material.encode())
    else:
        if isinstance(key_material, dict):
            key_material = json.dumps(key_material)
        try:
            key = RSAAlgorithm.from_jwk(key_material)
        except jwt.InvalidKeyError as e:
            raise ValueError(f"Invalid JWK: {e}") from e

    if not isinstance(key, RSAPublicKey):
        raise ValueError("Verification key must be an RSA public key")
    return key


@dataclass(frozen=True)
class IdTokenClaims:
    """Claims of an ID token that passed every verification check."""

    iss: str
    aud: Union[str, tuple[str, ...]]
    iat: int
    exp: int
    sub: Optional[str] = None
    claims: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def get(self, name: str, default: Any = None) -> Any:
        return self.claims.get(name, default)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class IdTokenVerifier:
    """Verifies ID tokens issued by one trusted authorization server for one client."""

    def __init__(
        self,
        public_key: RSAPublicKey,
        issuer: str,
        client_id: str,
        leeway: int = 0,
        clock: Callable[[], float] = time.time,
    ):
        self.public_key = public_key
        self.issuer = issuer
        self.client_id = client_id
        self.leeway = leeway
        self._clock = clock

    def _reject(self, stage: str, reason: str) -> TokenValidationError:
        logger.warning(f"[ID_TOKEN] Rejected at {stage} check: {reason}")
        return TokenValidationError(stage, reason)

    def _decode(self, id_token: str) -> dict:
        try:
            header = jwt.get_unverified_header(id_token)
        except jwt.DecodeError as e:
            raise self._reject(STAGE_STRUCTURE, f"malformed header: {e}")

        alg = header.get("alg")
        if alg != JWT_ALGORITHM:
            raise self._reject(STAGE_SIGNATURE, f"unexpected algorithm {alg!r}")

        try:
            payload = jwt.decode(
                id_token,
                self.public_key,
                algorithms=[JWT_ALGORITHM],
                options={
                    "verify_signature": True,
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "verify_iss": False,
                    "verify_aud": False,
                    "verify_sub": False,
                    "verify_jti": False,
                },
            )
        except jwt.InvalidSignatureError:
            raise self._reject(STAGE_SIGNATURE, "signature does not verify")
        except jwt.DecodeError as e:
            raise self._reject(STAGE_STRUCTURE, str(e))
        except jwt.InvalidTokenError as e:
            raise self._reject(STAGE_SIGNATURE, str(e))

        logger.info("[ID_TOKEN] Signature validated")
        if not isinstance(payload, dict):
            raise self._reject(STAGE_STRUCTURE, "payload is not a JSON object")
        return payload

    def verify(self, id_token: str) -> IdTokenClaims:
        """Run all checks against ``id_token`` and return its claims.

        Raises:
            TokenValidationError: On the first check that fails
        """
        if not isinstance(id_token, str) or id_token.count(".") != 2:
            raise self._reject(STAGE_STRUCTURE, "not a compact JWS with three segments")

        payload = self._decode(id_token)

        iss = payload.get("iss")
        if iss != self.issuer:
            raise self._reject(STAGE_ISSUER, f"expected {self.issuer!r} got {iss!r}")
        logger.info("[ID_TOKEN] Issuer OK")

        aud = payload.get("aud")
        if isinstance(aud, list):
            audience_ok = self.client_id in aud
            aud = tuple(aud)
        else:
            audience_ok = aud == self.client_id
        if not audience_ok:
            raise self._reject(STAGE_AUDIENCE, f"{self.client_id!r} not in {aud!r}")
        logger.info("[ID_TOKEN] Audience OK")

        now = int(self._clock())

        iat = payload.get("iat")
        if not _is_number(iat) or iat > now + self.leeway:
            raise self._reject(STAGE_ISSUED_AT, f"iat {iat!r} is not before {now}")
        logger.info("[ID_TOKEN] Issued-at OK")

        exp = payload.get("exp")
        if not _is_number(exp) or exp < now - self.leeway:
            raise self._reject(STAGE_EXPIRY, f"exp {exp!r} is before {now}")
        logger.info("[ID_TOKEN] Expiration OK")

        logger.info(f"[ID_TOKEN] Token valid for subject {payload.get('sub')}")
        return IdTokenClaims(
            iss=iss,
            aud=aud,
            iat=int(iat),
            exp=int(exp),
            sub=payload.get("sub"),
            claims=dict(payload),
        )
