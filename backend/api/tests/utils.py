import base64
import json
from datetime import timedelta

from django.utils import timezone

TEST_SCOPE = "api://todolist/ToDoList.Read"


def _encode_segment(data: dict) -> str:
    return base64.urlsafe_b64encode(
        json.dumps(data, separators=(",", ":")).encode("utf-8")
    ).decode("utf-8").rstrip("=")


def build_fake_token(
    username: str = "trainer@example.com",
    expires_delta: timedelta | None = None,
    scp: str = "ToDoList.Read",
) -> str:
    expires_delta = expires_delta or timedelta(hours=1)
    exp = int((timezone.now() + expires_delta).timestamp())
    header = {"alg": "RS256", "typ": "JWT"}
    payload = {
        "preferred_username": username,
        "scp": scp,
        "exp": exp,
        "iat": exp - 3600,
        "iss": "https://login.example.com/v2.0",
        "sub": "subject-id",
    }
    return f"{_encode_segment(header)}.{_encode_segment(payload)}.signature"
