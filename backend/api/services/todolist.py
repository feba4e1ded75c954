"""Integration helpers for wiring the to-do list client into Django."""

from __future__ import annotations

from dataclasses import dataclass
import functools
import os
from typing import Any, Callable

import requests
from django.conf import settings

from todolist import TodoListClient, TodoListConfig

from api.models import OAuthToken
from api.logging import get_logger, log_token_source
from api.services.tokens import scope_matches

TokenProvider = Callable[[str, Any], str | None]
TokenSource = tuple[str, TokenProvider]

logger = get_logger(__name__)


@dataclass(frozen=True)
class TodoListSettings:
    base_address: str = "https://localhost:44351/"
    scope: str = ""
    client_id: str = ""
    redirect_uri: str = ""
    timeout_seconds: float = 30.0
    token: str | None = None

    @classmethod
    def from_django(cls) -> "TodoListSettings":
        cfg = getattr(settings, "TODOLIST", {})
        return cls(
            base_address=cfg.get("BASE_ADDRESS") or cls.base_address,
            scope=cfg.get("SCOPE") or cls.scope,
            client_id=cfg.get("CLIENT_ID") or cls.client_id,
            redirect_uri=cfg.get("REDIRECT_URI") or cls.redirect_uri,
            timeout_seconds=float(cfg.get("TIMEOUT_SECONDS", cls.timeout_seconds)),
            token=cfg.get("TOKEN"),
        )


@functools.lru_cache(maxsize=1)
def _cached_settings() -> TodoListSettings:
    return TodoListSettings.from_django()


@functools.lru_cache(maxsize=1)
def get_todolist_config() -> TodoListConfig:
    cfg = _cached_settings()
    return TodoListConfig(
        base_address=cfg.base_address,
        scope=cfg.scope,
        client_id=cfg.client_id,
        redirect_uri=cfg.redirect_uri,
        timeout=cfg.timeout_seconds,
    )


@functools.lru_cache(maxsize=1)
def _cached_env_token() -> str | None:
    return os.environ.get("TODOLIST_ACCESS_TOKEN") or _cached_settings().token


def _get_database_token(scope: str, user: Any) -> str | None:
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    tokens = OAuthToken.objects.valid().filter(user=user).order_by("-expires_at")
    for stored in tokens:
        if scope_matches(stored.scopes, scope):
            return stored.token
    return None


def env_token_provider() -> TokenProvider:
    token = _cached_env_token()

    def provider(_scope: str, _user: Any) -> str | None:
        return token

    return provider


def database_token_provider() -> TokenProvider:
    def provider(scope: str, user: Any) -> str | None:
        return _get_database_token(scope, user)

    return provider


def chained_token_provider(*providers: TokenSource) -> TokenProvider:
    def provider(scope: str, user: Any) -> str | None:
        for label, candidate in providers:
            token = candidate(scope, user)
            log_token_source(logger, label, token, scope=scope, user=user)
            if token:
                return token
        logger.warning("To-do list token sources exhausted with no token.")
        return None

    return provider


@functools.lru_cache(maxsize=1)
def default_token_provider() -> TokenProvider:
    return chained_token_provider(
        ("database", database_token_provider()),
        ("env", env_token_provider()),
    )


@functools.lru_cache(maxsize=1)
def get_shared_session() -> requests.Session:
    """One connection pool for every request; auth headers are per call."""
    return requests.Session()


def build_todolist_client(user: Any, token_provider: TokenProvider | None = None) -> TodoListClient:
    provider = token_provider or default_token_provider()
    return TodoListClient(
        config=get_todolist_config(),
        token_provider=provider,
        user=user,
        session=get_shared_session(),
    )
