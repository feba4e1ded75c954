"""To-do list client exception hierarchy."""


class TodoListError(Exception):
    """Base error for to-do list client failures."""


class RequestFailed(TodoListError):
    """Raised when the web API answers with anything other than HTTP 200."""

    def __init__(self, status_code: int, www_authenticate: str | None = None) -> None:
        super().__init__(f"Invalid status code in the response: {status_code}")
        self.status_code = status_code
        self.www_authenticate = www_authenticate


class TokenAcquisitionError(TodoListError):
    """Raised when no bearer token could be obtained for the signed-in user."""


class ChallengeError(TodoListError):
    """Raised when a 401 response carries no usable Bearer challenge."""


class ConsentRequiredError(TodoListError):
    """Raised when the user must grant additional consent before retrying."""

    def __init__(self, consent_uri: str) -> None:
        super().__init__("User consent is required")
        self.consent_uri = consent_uri
