"""Explicit authentication context handed to remote-call collaborators."""
import base64
import binascii
import json
from datetime import datetime
from typing import Any, Dict, Optional

import pytz
from pydantic import BaseModel, ConfigDict


class AuthContext(BaseModel):
    """
    Bearer token for the rental backend.

    Expiry is read from the JWT ``exp`` claim without verifying the signature;
    the backend remains the authority on whether the token is accepted.
    """

    model_config = ConfigDict(frozen=True)

    token: Optional[str] = None

    @classmethod
    def from_authorization_header(
        cls,
        header: Optional[str],
        fallback_token: Optional[str] = None
    ) -> "AuthContext":
        """
        Build a context from an ``Authorization: Bearer ...`` header.

        Args:
            header: Raw header value, may be None
            fallback_token: Token to use when no bearer header is present

        Returns:
            AuthContext
        """
        if header and header.lower().startswith("bearer "):
            token = header[7:].strip()
            if token:
                return cls(token=token)
        return cls(token=fallback_token)

    @property
    def claims(self) -> Dict[str, Any]:
        """Decoded JWT payload, or an empty dict if the token is not a JWT."""
        if not self.token:
            return {}

        parts = self.token.split(".")
        if len(parts) != 3:
            return {}

        payload = parts[1] + "=" * (-len(parts[1]) % 4)
        try:
            decoded = json.loads(base64.urlsafe_b64decode(payload))
        except (binascii.Error, ValueError):
            return {}

        return decoded if isinstance(decoded, dict) else {}

    @property
    def expires_at(self) -> Optional[datetime]:
        exp = self.claims.get("exp")
        if not isinstance(exp, (int, float)):
            return None
        return datetime.fromtimestamp(exp, tz=pytz.UTC)

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """
        Check that a well-formed, unexpired token is present.

        Args:
            now: Reference time (default: current UTC time)

        Returns:
            True if the token can be sent
        """
        expires_at = self.expires_at
        if expires_at is None:
            return False
        return expires_at > (now or datetime.now(pytz.UTC))

    def authorization_header(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}
