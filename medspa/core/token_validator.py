"""
Token validation seam for issuer-based auth strategies.

The local JWT issuer is the only active strategy; external issuers can be
registered without changing call sites.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from joserfc import jwt as jose_jwt
from joserfc.jwk import OctKey
from joserfc.errors import (
    BadSignatureError,
    DecodeError,
    ExpiredTokenError,
    InvalidClaimError,
    JoseError,
    MissingClaimError,
)
import structlog

from medspa.core.exceptions import TokenExpired, TokenInvalid, TokenMalformed

logger = structlog.get_logger()


@dataclass(frozen=True)
class TokenValidationResult:
    subject: str
    claims: dict
    issuer: str


class TokenValidationStrategy(ABC):
    @abstractmethod
    def validate(self, token: str, token_type: str = "access") -> TokenValidationResult:
        raise NotImplementedError


class LocalJWTValidationStrategy(TokenValidationStrategy):
    def __init__(self, secret_key: str, algorithm: str, issuer: str) -> None:
        self._jwt_key = OctKey.import_key(secret_key)
        self._algorithm = algorithm
        self._issuer = issuer

    def validate(self, token: str, token_type: str = "access") -> TokenValidationResult:
        try:
            token_obj = jose_jwt.decode(token, self._jwt_key, algorithms=[self._algorithm])
        except BadSignatureError as exc:
            logger.warning("JWT signature verification failed", error=str(exc))
            raise TokenInvalid(detail=str(exc))
        except (DecodeError, ValueError) as exc:
            logger.warning("JWT could not be decoded", error=str(exc))
            raise TokenMalformed(detail=str(exc))
        except JoseError as exc:
            logger.warning("JWT verification failed", error=str(exc))
            raise TokenInvalid(detail=str(exc))

        payload = token_obj.claims
        claims_registry = jose_jwt.JWTClaimsRegistry(
            now=int(time.time()),
            exp={"essential": True},
            sub={"essential": True},
        )
        try:
            claims_registry.validate(payload)
        except ExpiredTokenError as exc:
            logger.warning("Token expired", subject=payload.get("sub"))
            raise TokenExpired(detail=str(exc))
        except MissingClaimError as exc:
            logger.warning("Token missing required claim", error=str(exc))
            raise TokenMalformed(detail=str(exc))
        except (InvalidClaimError, JoseError) as exc:
            logger.warning("Token claims rejected", error=str(exc))
            raise TokenInvalid(detail=str(exc))

        if payload.get("type") != token_type:
            logger.warning("Invalid token type", expected=token_type, actual=payload.get("type"))
            raise TokenInvalid("Invalid token type")

        subject = payload["sub"]
        issuer = payload.get("iss") or self._issuer
        logger.debug("Token verified successfully", subject=subject, issuer=issuer, type=token_type)
        return TokenValidationResult(subject=str(subject), claims=dict(payload), issuer=issuer)


class IssuerAwareTokenValidator:
    """
    Strategy router for token validation by issuer.
    """

    def __init__(
        self,
        *,
        active_issuer: str,
        trusted_issuers: list[str],
        local_strategy: TokenValidationStrategy,
        external_strategies: Optional[dict[str, TokenValidationStrategy]] = None,
    ) -> None:
        self._active_issuer = active_issuer
        self._trusted_issuers = set(trusted_issuers)
        self._strategies = {"local": local_strategy, **(external_strategies or {})}

    def validate(self, token: str, token_type: str = "access") -> TokenValidationResult:
        strategy = self._strategies.get(self._active_issuer)
        if strategy is None:
            # Misconfiguration, not a client error
            logger.error("Unsupported active auth issuer", active_issuer=self._active_issuer)
            raise RuntimeError(f"Unsupported authentication issuer strategy: {self._active_issuer}")

        result = strategy.validate(token, token_type=token_type)
        if self._trusted_issuers and result.issuer not in self._trusted_issuers:
            logger.warning(
                "Token issuer is not trusted",
                issuer=result.issuer,
                trusted=sorted(self._trusted_issuers),
            )
            raise TokenInvalid("Untrusted token issuer")

        return result
