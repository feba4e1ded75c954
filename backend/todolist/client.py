"""Client for the to-do list web API (items and the users directory)."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from .challenge import build_consent_url, parse_consent_challenge
from .config import TodoListConfig
from .datasource import TodoListDataSource, build_http_data_source
from .exceptions import ChallengeError, RequestFailed, TodoListError
from .models import ConsentRequired, Failed, ToDoItem, UsersListed, UsersResult
from .tokens import TokenProvider

logger = logging.getLogger(__name__)


class TodoListClient:
    """To-do list client acting on behalf of one signed-in user."""

    def __init__(
        self,
        config: TodoListConfig,
        token_provider: TokenProvider | None = None,
        user: Any = None,
        session: Any | None = None,
        data_source: TodoListDataSource | None = None,
    ) -> None:
        self.config = config
        if data_source is None:
            if token_provider is None:
                raise TodoListError("A token provider is required to reach the web API")
            data_source = self._build_default_data_source(
                token_provider=token_provider,
                user=user,
                session=session,
            )
        self._data_source = data_source

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    def list_items(self) -> list[ToDoItem]:
        payload = self._data_source.fetch_items()
        return [ToDoItem.from_dict(item) for item in payload]

    def get_item(self, item_id: int) -> ToDoItem:
        return ToDoItem.from_dict(self._data_source.fetch_item(item_id))

    def create_item(self, item: ToDoItem) -> ToDoItem:
        if item.id:
            raise TodoListError("New items must not carry an id; the server assigns it")
        return ToDoItem.from_dict(self._data_source.create_item(item.to_dict()))

    def update_item(self, item: ToDoItem) -> ToDoItem:
        if not item.id:
            raise TodoListError("Only items with an id can be updated")
        return ToDoItem.from_dict(self._data_source.update_item(item.id, item.to_dict()))

    def delete_item(self, item_id: int) -> None:
        self._data_source.delete_item(item_id)

    def list_users(self) -> UsersResult:
        """Return the users known to the API, or what the caller must do instead.

        A 401 whose Bearer challenge proposes consent becomes ``ConsentRequired``
        with a URL ready for redirecting the user; every other failure becomes
        ``Failed`` with the upstream status.
        """
        try:
            users = self._data_source.fetch_users()
        except RequestFailed as exc:
            if exc.status_code == HTTPStatus.UNAUTHORIZED:
                return self._handle_challenge(exc)
            return Failed(exc.status_code)
        return UsersListed(users=[str(user) for user in users])

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _build_default_data_source(
        self,
        token_provider: TokenProvider,
        user: Any,
        session: Any | None,
    ) -> TodoListDataSource:
        return build_http_data_source(
            config=self.config,
            token_provider=token_provider,
            user=user,
            session=session,
        )

    def _handle_challenge(self, exc: RequestFailed) -> UsersResult:
        try:
            challenge = parse_consent_challenge(exc.www_authenticate)
        except ChallengeError:
            logger.warning("Unauthorized response without a Bearer challenge")
            return Failed(exc.status_code)

        if not challenge.wants_consent:
            logger.info(
                "Unauthorized response proposes no consent",
                extra={"proposed_action": challenge.proposed_action},
            )
            return Failed(exc.status_code)

        consent_uri = build_consent_url(
            challenge.consent_uri,
            client_id=self.config.client_id,
            redirect_uri=self.config.redirect_uri,
            scope=self.config.scope,
        )
        logger.info("Web API requires additional user consent")
        return ConsentRequired(consent_uri=consent_uri)
