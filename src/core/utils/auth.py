"""Bearer-token capability check.

The services only depend on the ``AuthResult`` contract; deployments that use
sessions or JWTs replace ``BearerTokenCapabilityCheck`` without touching them.
"""

import hmac
from collections.abc import Mapping
from typing import Any

from aws_lambda_powertools import Logger
from pydantic import BaseModel, ConfigDict

from core.config import UploadSettings
from core.models.errors import UnauthorizedError
from core.utils.constants import AUTHORIZATION_HEADER, BEARER_SCHEME

logger = Logger(UTC=True)


class AuthResult(BaseModel):
    """Outcome of a capability check."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    caller_id: str | None = None


_DENIED = AuthResult(valid=False)


class BearerTokenCapabilityCheck:
    """Map a presented bearer token to a caller id. Fails closed."""

    def __init__(self, tokens: Mapping[str, str]) -> None:
        self._tokens = dict(tokens)

    def check(self, headers: Mapping[str, Any] | None) -> AuthResult:
        token = _extract_bearer_token(headers)
        if token is None:
            return _DENIED

        caller_id: str | None = None
        # Compare against every entry so timing does not reveal which one matched
        for known_token, known_caller in self._tokens.items():
            if hmac.compare_digest(known_token.encode(), token.encode()):
                caller_id = known_caller

        if caller_id is None:
            return _DENIED

        return AuthResult(valid=True, caller_id=caller_id)


def _extract_bearer_token(headers: Mapping[str, Any] | None) -> str | None:
    if not headers:
        return None

    value = next(
        (v for k, v in headers.items() if str(k).lower() == AUTHORIZATION_HEADER),
        None,
    )
    if not isinstance(value, str):
        return None

    scheme, _, token = value.strip().partition(" ")
    if scheme != BEARER_SCHEME or not token.strip():
        return None

    return token.strip()


def authenticate(event: Mapping[str, Any], settings: UploadSettings) -> str:
    """Return the caller id for an API Gateway event.

    Raises:
        UnauthorizedError: If the credential is missing or unknown
    """
    result = BearerTokenCapabilityCheck(settings.auth_tokens).check(event.get("headers"))

    if not result.valid or not result.caller_id:
        logger.warning(
            "Rejected request with missing or invalid credential",
            extra={"path": event.get("path")},
        )
        raise UnauthorizedError()

    return result.caller_id
