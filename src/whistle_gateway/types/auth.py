"""Per-request credentials."""

from __future__ import annotations

from dataclasses import dataclass

BEARER_PREFIX = "Bearer "


def normalize_bearer(token: str) -> str:
    """Return *token* with exactly one ``Bearer `` prefix."""
    token = token.strip()
    if token[:len(BEARER_PREFIX)].lower() == BEARER_PREFIX.lower():
        token = token[len(BEARER_PREFIX):].strip()
    return f"{BEARER_PREFIX}{token}"


def strip_bearer(token: str) -> str:
    token = token.strip()
    if token[:len(BEARER_PREFIX)].lower() == BEARER_PREFIX.lower():
        return token[len(BEARER_PREFIX):].strip()
    return token


@dataclass(frozen=True, slots=True)
class AuthContext:
    """Credentials supplied by one inbound request.

    Immutable so a request's credentials cannot be changed underneath it by
    another request sharing the same connection manager.
    """

    token: str | None = None
    user_id: str | None = None

    def __post_init__(self) -> None:
        token = strip_bearer(self.token) if self.token else ""
        object.__setattr__(self, "token", token or None)
        if not self.user_id:
            object.__setattr__(self, "user_id", None)

    @property
    def is_anonymous(self) -> bool:
        return self.token is None and self.user_id is None

    def headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.token:
            headers["Authorization"] = normalize_bearer(self.token)
        if self.user_id:
            headers["X-User-Id"] = self.user_id
        return headers
