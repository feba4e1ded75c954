"""Data source abstractions for talking to the to-do list web API."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import requests

from .config import TodoListConfig
from .exceptions import RequestFailed, TokenAcquisitionError
from .tokens import TokenProvider

logger = logging.getLogger(__name__)

TODOLIST_PATH = "api/todolist"
USERS_PATH = "api/todolist/getallusers"

JSON_CONTENT_TYPE = "application/json"
# The API's update endpoint expects this media type even though it is a full replace.
JSON_PATCH_CONTENT_TYPE = "application/json-patch+json"


class TodoListDataSource(Protocol):
    """Abstract source of to-do list data."""

    def fetch_items(self) -> list[dict[str, Any]]:
        """Fetch every item visible to the user."""

    def fetch_item(self, item_id: int) -> dict[str, Any]:
        """Fetch a single item."""

    def create_item(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Create an item and return the stored payload."""

    def update_item(self, item_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        """Replace an item and return the stored payload."""

    def delete_item(self, item_id: int) -> None:
        """Delete an item."""

    def fetch_users(self) -> list[str]:
        """Fetch the identifiers of every user known to the API."""


class HttpTodoListDataSource(TodoListDataSource):
    """``requests`` backed implementation of the to-do list data source.

    A fresh ``Authorization`` header is built for every request; the shared
    session's default headers are never touched, so one session can serve
    concurrent callers.
    """

    def __init__(
        self,
        config: TodoListConfig,
        token_provider: TokenProvider,
        user: Any = None,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.token_provider = token_provider
        self.user = user
        self.session = session or requests.Session()

    def fetch_items(self) -> list[dict[str, Any]]:
        return self._request("GET", TODOLIST_PATH)

    def fetch_item(self, item_id: int) -> dict[str, Any]:
        return self._request("GET", f"{TODOLIST_PATH}/{item_id}")

    def create_item(self, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", TODOLIST_PATH, payload=payload)

    def update_item(self, item_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request(
            "PUT",
            f"{TODOLIST_PATH}/{item_id}",
            payload=payload,
            content_type=JSON_PATCH_CONTENT_TYPE,
        )

    def delete_item(self, item_id: int) -> None:
        self._request("DELETE", f"{TODOLIST_PATH}/{item_id}", decode=False)

    def fetch_users(self) -> list[str]:
        return self._request("GET", USERS_PATH)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        payload: dict[str, Any] | None = None,
        content_type: str = JSON_CONTENT_TYPE,
        decode: bool = True,
    ) -> Any:
        headers = self._auth_headers()
        body = None
        if payload is not None:
            body = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = f"{content_type}; charset=utf-8"

        url = self.config.url(path)
        logger.debug("To-do list request %s %s", method, url)
        response = self.session.request(
            method,
            url,
            data=body,
            headers=headers,
            timeout=self.config.timeout,
        )
        if response.status_code != 200:
            logger.warning(
                "To-do list request failed",
                extra={"method": method, "url": url, "status": response.status_code},
            )
            raise RequestFailed(
                response.status_code,
                www_authenticate=response.headers.get("WWW-Authenticate"),
            )
        if not decode:
            return None
        return response.json()

    def _auth_headers(self) -> dict[str, str]:
        token = self._get_token()
        if not token:
            raise TokenAcquisitionError(
                f"Token provider did not return a token for scope {self.config.scope}"
            )
        return {
            "Authorization": f"Bearer {token}",
            "Accept": JSON_CONTENT_TYPE,
        }

    def _get_token(self) -> str | None:
        return self.token_provider(self.config.scope, self.user)


def build_http_data_source(
    *,
    config: TodoListConfig,
    token_provider: TokenProvider,
    user: Any = None,
    session: requests.Session | None = None,
) -> HttpTodoListDataSource:
    """Factory helper to build the default data source."""
    return HttpTodoListDataSource(
        config=config,
        token_provider=token_provider,
        user=user,
        session=session,
    )
