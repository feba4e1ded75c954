from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone


class InvalidAccessToken(ValueError):
    """Raised when an access token JWT cannot be decoded."""


@dataclass(frozen=True)
class DecodedAccessToken:
    token: str
    subject: str
    scopes: tuple[str, ...]
    expires_at: datetime


def _decode_base64(segment: str) -> str:
    padding = "=" * (-len(segment) % 4)
    try:
        return base64.urlsafe_b64decode((segment + padding).encode("utf-8")).decode("utf-8")
    except (ValueError, UnicodeDecodeError) as exc:
        raise InvalidAccessToken("Invalid token payload.") from exc


def parse_access_token(raw_token: str) -> DecodedAccessToken:
    """Read expiry, subject and scopes from a JWT without checking its signature.

    The web API validates the token; this only tells us when to stop using it
    and which scopes it was issued for.
    """
    token = (raw_token or "").strip()
    if not token:
        raise InvalidAccessToken("Token cannot be empty.")

    parts = token.split(".")
    if len(parts) != 3:
        raise InvalidAccessToken("Token must contain three segments.")

    payload_raw = _decode_base64(parts[1])
    try:
        payload = json.loads(payload_raw)
    except json.JSONDecodeError as exc:
        raise InvalidAccessToken("Token payload is not valid JSON.") from exc
    if not isinstance(payload, dict):
        raise InvalidAccessToken("Token payload must be a JSON object.")

    exp = payload.get("exp")
    if not isinstance(exp, (int, float)):
        raise InvalidAccessToken("Token payload is missing an expiration timestamp.")

    subject = (
        payload.get("preferred_username")
        or payload.get("upn")
        or payload.get("email")
        or payload.get("sub")
        or ""
    )
    scopes = tuple(str(payload.get("scp") or "").split())
    expires_at = datetime.fromtimestamp(int(exp), tz=dt_timezone.utc)
    return DecodedAccessToken(token=token, subject=subject, scopes=scopes, expires_at=expires_at)


def scope_matches(granted: str | tuple[str, ...], scope: str) -> bool:
    """Tell whether ``scope`` was granted.

    Identity platforms put short names (``ToDoList.Read``) in the ``scp`` claim
    while clients request fully qualified ones (``api://<app>/ToDoList.Read``).
    """
    granted_scopes = granted.split() if isinstance(granted, str) else granted
    short_name = scope.rsplit("/", 1)[-1]
    return scope in granted_scopes or short_name in granted_scopes
