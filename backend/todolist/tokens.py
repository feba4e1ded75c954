from __future__ import annotations

from typing import Any, Protocol


class TokenProvider(Protocol):
    def __call__(self, scope: str, user: Any) -> str | None:
        ...
