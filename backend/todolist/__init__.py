"""Client for the to-do list web API, including incremental consent handling."""

from .client import TodoListClient
from .config import TodoListConfig
from .exceptions import (
    ChallengeError,
    ConsentRequiredError,
    RequestFailed,
    TodoListError,
    TokenAcquisitionError,
)
from .models import ConsentChallenge, ConsentRequired, Failed, ToDoItem, UsersListed, UsersResult
from .tokens import TokenProvider

__all__ = [
    "TodoListClient",
    "TodoListConfig",
    "ChallengeError",
    "ConsentRequiredError",
    "RequestFailed",
    "TodoListError",
    "TokenAcquisitionError",
    "ConsentChallenge",
    "ConsentRequired",
    "Failed",
    "ToDoItem",
    "UsersListed",
    "UsersResult",
    "TokenProvider",
]
