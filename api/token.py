"""
Token Response
--------------
Decoded result of an OAuth2 client-credentials exchange.
"""

from dataclasses import dataclass
import json

from core.errors import TokenDecodeError


@dataclass(frozen=True)
class TokenResponse:
    """Expected response from /token."""
    access_token: str
    expires_in: int = 0
    scope: str = ""
    token_type: str = ""

    @classmethod
    def from_json(cls, body: bytes) -> "TokenResponse":
        """Decode a token endpoint body, raising TokenDecodeError if malformed."""
        try:
            payload = json.loads(body)
        except (TypeError, ValueError) as e:
            raise TokenDecodeError(f"Token response is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise TokenDecodeError("Token response must be a JSON object")

        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise TokenDecodeError("Token response has no access_token")

        try:
            expires_in = int(payload.get("expires_in") or 0)
        except (TypeError, ValueError) as e:
            raise TokenDecodeError(f"Invalid expires_in: {payload.get('expires_in')!r}") from e

        return cls(
            access_token=access_token,
            expires_in=expires_in,
            scope=str(payload.get("scope") or ""),
            token_type=str(payload.get("token_type") or ""),
        )
