import json
from typing import Any
from unittest.mock import Mock, patch

import requests
from django.test import SimpleTestCase

from todolist import (
    ConsentRequired,
    ConsentRequiredError,
    Failed,
    RequestFailed,
    TodoListClient,
    TodoListConfig,
    TodoListError,
    ToDoItem,
    TokenAcquisitionError,
    UsersListed,
)
from todolist.datasource import HttpTodoListDataSource

from .utils import TEST_SCOPE

CONSENT_HEADER = (
    'Bearer proposedAction="consent", '
    'consentUri="https://login.example.com/authorize?scope=s&response_type=code"'
)


def make_config(**overrides: Any) -> TodoListConfig:
    values = {
        "base_address": "https://todolist.example.com",
        "scope": TEST_SCOPE,
        "client_id": "client-123",
        "redirect_uri": "https://app.example.com/signin-oidc",
    }
    values.update(overrides)
    return TodoListConfig(**values)


def make_response(status_code: int = 200, payload: Any = None, headers: dict | None = None) -> Mock:
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {}
    response.json.return_value = payload
    return response


class FakeTodoListApi:
    """In-memory stand-in for the web API."""

    def __init__(self):
        self.items: dict[int, dict[str, Any]] = {}
        self.next_id = 1
        self.users_error: RequestFailed | None = None

    def fetch_items(self) -> list[dict[str, Any]]:
        return [dict(item) for item in self.items.values()]

    def fetch_item(self, item_id: int) -> dict[str, Any]:
        if item_id not in self.items:
            raise RequestFailed(404)
        return dict(self.items[item_id])

    def create_item(self, payload: dict[str, Any]) -> dict[str, Any]:
        stored = dict(payload, id=self.next_id)
        self.items[self.next_id] = stored
        self.next_id += 1
        return dict(stored)

    def update_item(self, item_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        if item_id not in self.items:
            raise RequestFailed(404)
        self.items[item_id] = dict(payload, id=item_id)
        return dict(self.items[item_id])

    def delete_item(self, item_id: int) -> None:
        if self.items.pop(item_id, None) is None:
            raise RequestFailed(404)

    def fetch_users(self) -> list[str]:
        if self.users_error:
            raise self.users_error
        return sorted({item["owner"] for item in self.items.values()})


class TodoListConfigTests(SimpleTestCase):
    def test_adds_trailing_slash(self):
        config = make_config()
        self.assertEqual(config.base_address, "https://todolist.example.com/")
        self.assertEqual(config.url("api/todolist"), "https://todolist.example.com/api/todolist")

    def test_rejects_invalid_values(self):
        with self.assertRaises(ValueError):
            make_config(base_address="todolist.example.com")
        with self.assertRaises(ValueError):
            make_config(scope="")
        with self.assertRaises(ValueError):
            make_config(timeout=0)


class TodoListClientCrudTests(SimpleTestCase):
    def setUp(self):
        self.api = FakeTodoListApi()
        self.client = TodoListClient(config=make_config(), data_source=self.api)

    def test_create_then_get_returns_stored_item(self):
        created = self.client.create_item(ToDoItem(title="Buy milk", owner="ash@example.com"))
        self.assertIsNotNone(created.id)

        fetched = self.client.get_item(created.id)
        self.assertEqual(fetched.id, created.id)
        self.assertEqual(fetched.title, "Buy milk")
        self.assertEqual(fetched.owner, "ash@example.com")

    def test_update_keeps_id_and_applies_changes(self):
        created = self.client.create_item(ToDoItem(title="Buy milk", owner="ash@example.com"))
        updated = self.client.update_item(
            ToDoItem(id=created.id, title="Buy oat milk", owner="ash@example.com")
        )
        self.assertEqual(updated.id, created.id)
        self.assertEqual(updated.title, "Buy oat milk")

    def test_delete_then_get_fails_with_status(self):
        created = self.client.create_item(ToDoItem(title="Buy milk", owner="ash@example.com"))
        self.client.delete_item(created.id)

        with self.assertRaises(RequestFailed) as ctx:
            self.client.get_item(created.id)
        self.assertEqual(ctx.exception.status_code, 404)

    def test_list_items_preserves_order(self):
        for title in ("first", "second", "third"):
            self.client.create_item(ToDoItem(title=title, owner="ash@example.com"))
        self.assertEqual([item.title for item in self.client.list_items()], ["first", "second", "third"])

    def test_create_rejects_client_side_ids(self):
        with self.assertRaises(TodoListError):
            self.client.create_item(ToDoItem(id=7, title="Buy milk"))

    def test_update_requires_id(self):
        with self.assertRaises(TodoListError):
            self.client.update_item(ToDoItem(title="Buy milk"))

    def test_requires_token_provider_without_data_source(self):
        with self.assertRaises(TodoListError):
            TodoListClient(config=make_config())


class TodoListClientUsersTests(SimpleTestCase):
    def setUp(self):
        self.api = FakeTodoListApi()
        self.client = TodoListClient(config=make_config(), data_source=self.api)

    def test_lists_users(self):
        self.api.create_item({"id": 0, "title": "a", "owner": "misty@example.com"})
        self.api.create_item({"id": 0, "title": "b", "owner": "brock@example.com"})

        result = self.client.list_users()

        self.assertIsInstance(result, UsersListed)
        self.assertEqual(result.unwrap(), ["brock@example.com", "misty@example.com"])

    def test_consent_challenge_builds_consent_url(self):
        self.api.users_error = RequestFailed(401, www_authenticate=CONSENT_HEADER)

        result = self.client.list_users()

        self.assertIsInstance(result, ConsentRequired)
        self.assertIn("client_id=client-123", result.consent_uri)
        self.assertIn("redirect_uri=https%3A%2F%2Fapp.example.com%2Fsignin-oidc", result.consent_uri)
        self.assertIn("scope=api%3A%2F%2Ftodolist%2FToDoList.Read", result.consent_uri)
        self.assertIn("response_type=code", result.consent_uri)
        self.assertTrue(result.consent_uri.endswith("prompt=consent"))
        with self.assertRaises(ConsentRequiredError) as ctx:
            result.unwrap()
        self.assertEqual(ctx.exception.consent_uri, result.consent_uri)

    def test_unauthorized_without_consent_proposal_fails(self):
        self.api.users_error = RequestFailed(401, www_authenticate='Bearer proposedAction="login"')
        self.assertEqual(self.client.list_users(), Failed(401))

    def test_unauthorized_without_bearer_challenge_fails(self):
        self.api.users_error = RequestFailed(401, www_authenticate=None)
        result = self.client.list_users()
        self.assertEqual(result, Failed(401))
        with self.assertRaises(RequestFailed) as ctx:
            result.unwrap()
        self.assertEqual(ctx.exception.status_code, 401)

    def test_other_status_codes_fail(self):
        self.api.users_error = RequestFailed(500)
        self.assertEqual(self.client.list_users(), Failed(500))


class HttpTodoListDataSourceTests(SimpleTestCase):
    def setUp(self):
        self.session = Mock()
        self.token_provider = Mock(return_value="token-abc")
        self.user = object()
        self.client = TodoListClient(
            config=make_config(),
            token_provider=self.token_provider,
            user=self.user,
            session=self.session,
        )

    def _sent(self) -> dict[str, Any]:
        args, kwargs = self.session.request.call_args
        return {"method": args[0], "url": args[1], **kwargs}

    def test_list_items_attaches_bearer_token(self):
        self.session.request.return_value = make_response(
            payload=[{"id": 1, "title": "Buy milk", "owner": "ash@example.com"}]
        )

        items = self.client.list_items()

        self.assertEqual(items, [ToDoItem(id=1, title="Buy milk", owner="ash@example.com")])
        sent = self._sent()
        self.assertEqual(sent["method"], "GET")
        self.assertEqual(sent["url"], "https://todolist.example.com/api/todolist")
        self.assertEqual(sent["headers"]["Authorization"], "Bearer token-abc")
        self.assertEqual(sent["headers"]["Accept"], "application/json")
        self.assertEqual(sent["timeout"], 30.0)
        self.token_provider.assert_called_once_with(TEST_SCOPE, self.user)

    def test_create_posts_json_body(self):
        self.session.request.return_value = make_response(
            payload={"id": 42, "title": "Buy milk", "owner": "ash@example.com"}
        )

        created = self.client.create_item(ToDoItem(title="Buy milk", owner="ash@example.com"))

        self.assertEqual(created.id, 42)
        sent = self._sent()
        self.assertEqual(sent["method"], "POST")
        self.assertEqual(sent["headers"]["Content-Type"], "application/json; charset=utf-8")
        self.assertEqual(
            json.loads(sent["data"]),
            {"id": 0, "title": "Buy milk", "owner": "ash@example.com"},
        )

    def test_update_uses_put_with_json_patch_content_type(self):
        self.session.request.return_value = make_response(
            payload={"id": 5, "title": "Walk dog", "owner": "ash@example.com"}
        )

        self.client.update_item(ToDoItem(id=5, title="Walk dog", owner="ash@example.com"))

        sent = self._sent()
        self.assertEqual(sent["method"], "PUT")
        self.assertEqual(sent["url"], "https://todolist.example.com/api/todolist/5")
        self.assertEqual(sent["headers"]["Content-Type"], "application/json-patch+json; charset=utf-8")

    def test_delete_does_not_decode_body(self):
        response = make_response()
        self.session.request.return_value = response

        self.assertIsNone(self.client.delete_item(5))

        sent = self._sent()
        self.assertEqual(sent["method"], "DELETE")
        self.assertEqual(sent["url"], "https://todolist.example.com/api/todolist/5")
        response.json.assert_not_called()

    def _operations(self):
        item = {"id": 3, "title": "Walk dog", "owner": "ash@example.com"}
        return [
            ("list_items", lambda: self.client.list_items(), [item]),
            ("get_item", lambda: self.client.get_item(3), item),
            ("create_item", lambda: self.client.create_item(ToDoItem(title="Walk dog")), item),
            ("update_item", lambda: self.client.update_item(ToDoItem(id=3, title="Walk dog")), item),
            ("delete_item", lambda: self.client.delete_item(3), None),
        ]

    def test_every_operation_sends_bearer_token(self):
        for name, call, payload in self._operations():
            with self.subTest(operation=name):
                self.session.request.reset_mock()
                self.session.request.return_value = make_response(payload=payload)

                call()

                self.session.request.assert_called_once()
                headers = self._sent()["headers"]
                self.assertEqual(headers["Authorization"], "Bearer token-abc")
                self.assertEqual(headers["Accept"], "application/json")

    def test_every_operation_preserves_non_200_status_code(self):
        for name, call, _payload in self._operations():
            for status_code in (201, 204, 400, 403, 404, 500):
                with self.subTest(operation=name, status_code=status_code):
                    self.session.request.return_value = make_response(status_code=status_code)
                    with self.assertRaises(RequestFailed) as ctx:
                        call()
                    self.assertEqual(ctx.exception.status_code, status_code)

    def test_users_challenge_reads_www_authenticate_header(self):
        self.session.request.return_value = make_response(
            status_code=401,
            headers={"WWW-Authenticate": CONSENT_HEADER},
        )

        result = self.client.list_users()

        self.assertIsInstance(result, ConsentRequired)
        self.assertEqual(self._sent()["url"], "https://todolist.example.com/api/todolist/getallusers")

    def test_missing_token_is_reported_before_sending(self):
        self.token_provider.return_value = None

        with self.assertRaises(TokenAcquisitionError):
            self.client.list_items()
        self.session.request.assert_not_called()

    def test_token_provider_errors_propagate_unchanged(self):
        class ReauthenticationNeeded(Exception):
            pass

        self.token_provider.side_effect = ReauthenticationNeeded()

        with self.assertRaises(ReauthenticationNeeded):
            self.client.list_items()

    def test_malformed_body_is_not_converted(self):
        response = make_response()
        response.json.side_effect = ValueError("not json")
        self.session.request.return_value = response

        with self.assertRaises(ValueError):
            self.client.list_items()

    def test_shared_session_headers_are_not_mutated(self):
        session = requests.Session()
        data_source = HttpTodoListDataSource(
            config=make_config(),
            token_provider=lambda _scope, _user: "token-abc",
            session=session,
        )
        with patch.object(session, "request", return_value=make_response(payload=[])) as request:
            data_source.fetch_items()

        self.assertNotIn("Authorization", session.headers)
        self.assertEqual(request.call_args.kwargs["headers"]["Authorization"], "Bearer token-abc")
