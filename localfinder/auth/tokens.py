from __future__ import annotations

import hmac
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


def _parse(raw: str) -> dict[str, dict[str, Any]]:
    """Parse ``token:user_id[:role]`` entries separated by commas."""
    tokens: dict[str, dict[str, Any]] = {}
    for entry in raw.split(","):
        parts = [p.strip() for p in entry.split(":")]
        if len(parts) < 2 or not parts[0] or not parts[1]:
            continue
        role = parts[2] if len(parts) > 2 and parts[2] else "user"
        tokens[parts[0]] = {"user_id": parts[1], "role": role}
    return tokens


class TokenRegistry:
    """Resolves bearer tokens issued by the identity provider to users."""

    def __init__(self, tokens: dict[str, dict[str, Any]] | None = None):
        self._tokens = dict(tokens or {})

    @classmethod
    def from_env(cls) -> TokenRegistry:
        return cls(_parse(os.getenv("API_TOKENS", "")))

    def lookup(self, token: str) -> dict[str, Any] | None:
        """Return ``{user_id, role}`` for a known token, else ``None``."""
        for known, user in self._tokens.items():
            if hmac.compare_digest(known, token):
                return dict(user)
        return None
