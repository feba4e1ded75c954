from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse


@dataclass(slots=True)
class TodoListConfig:
    """Runtime configuration for the to-do list web API."""

    base_address: str
    scope: str
    client_id: str = ""
    redirect_uri: str = ""
    timeout: float = 30.0

    def __post_init__(self) -> None:
        parsed = urlparse(self.base_address or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("base_address must be an absolute http(s) URL")
        if not self.base_address.endswith("/"):
            self.base_address = f"{self.base_address}/"
        if not self.scope:
            raise ValueError("scope must not be empty")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    def url(self, path: str) -> str:
        return f"{self.base_address}{path.lstrip('/')}"
