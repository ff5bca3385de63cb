"""Handshake state parameter.

The identity provider echoes ``state`` back unchanged on the callback, so it
carries everything the stateless callback needs to reach the right window.
"""

import base64
import binascii
import json

from pydantic import ConfigDict, Field, ValidationError

from tally.domain.value.common import ValueObject


class HandshakeState(ValueObject):
    """Continuation data round-tripped through the identity provider."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    client_url: str = Field(alias="clientURL")
    unique_id: str = Field(alias="uniqueId")
    force_selection: bool = Field(default=False, alias="forceSelection")

    def encode(self) -> str:
        """Encode as base64 JSON."""
        raw = json.dumps(self.model_dump(by_alias=True), separators=(",", ":"))
        return base64.b64encode(raw.encode("utf-8")).decode("ascii")

    @classmethod
    def decode(cls, value: str | None) -> "HandshakeState | None":
        """Decode a state parameter, returning None if absent or unparsable."""
        if not value:
            return None
        try:
            # "+" may arrive as a space after form decoding
            padded = value.strip().replace(" ", "+")
            raw = base64.b64decode(padded.encode("ascii"), validate=True)
            return cls.model_validate(json.loads(raw))
        except (binascii.Error, UnicodeError, ValueError, ValidationError):
            return None

    def origin_within(self, allowed: list[str], fallback: str) -> str:
        """Client origin to post to, limited to ``allowed``."""
        return self.client_url if self.client_url in allowed else fallback
