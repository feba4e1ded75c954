from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from .exceptions import ConsentRequiredError, RequestFailed


@dataclass(slots=True)
class ToDoItem:
    title: str
    owner: str = ""
    id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToDoItem":
        raw_id = data.get("id")
        return cls(
            id=int(raw_id) if raw_id else None,
            title=data.get("title") or "",
            owner=data.get("owner") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        # The server assigns ids; new items go out with 0.
        return {"id": self.id or 0, "title": self.title, "owner": self.owner}


@dataclass(slots=True, frozen=True)
class ConsentChallenge:
    """Parameters pulled from a ``WWW-Authenticate: Bearer`` challenge."""

    proposed_action: Optional[str]
    consent_uri: Optional[str]

    @property
    def wants_consent(self) -> bool:
        return self.proposed_action == "consent" and bool(self.consent_uri)


@dataclass(slots=True, frozen=True)
class UsersListed:
    users: list[str] = field(default_factory=list)

    def unwrap(self) -> list[str]:
        return self.users


@dataclass(slots=True, frozen=True)
class ConsentRequired:
    consent_uri: str

    def unwrap(self) -> list[str]:
        raise ConsentRequiredError(self.consent_uri)


@dataclass(slots=True, frozen=True)
class Failed:
    status_code: int

    def unwrap(self) -> list[str]:
        raise RequestFailed(self.status_code)


UsersResult = Union[UsersListed, ConsentRequired, Failed]
