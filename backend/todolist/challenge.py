"""Parsing of ``WWW-Authenticate`` challenges sent back by the web API.

When the API needs the user to grant an extra scope it answers 401 with a
challenge such as::

    WWW-Authenticate: Bearer proposedAction="consent", consentUri="https://login.example/authorize"

The helpers below pull the Bearer parameters out of that header and rebuild
the consent URL with this application's identity so the user can be sent there.
"""

from __future__ import annotations

import re
from typing import Iterable
from urllib.parse import unquote_plus, urlencode, urlsplit, urlunsplit

from .exceptions import ChallengeError
from .models import ConsentChallenge

# Comma separated items, keeping commas inside quoted strings.
_ITEM_REGEX = re.compile(r'(?:[^,"]|"(?:[^"\\]|\\.)*")+')
_SCHEME_REGEX = re.compile(r"^([A-Za-z][\w.+-]*)(?:\s+(.*))?$", re.DOTALL)
_WHITESPACE_REGEX = re.compile(r"\s")


def _split_items(header: str) -> list[str]:
    return [item.strip() for item in _ITEM_REGEX.findall(header) if item.strip()]


def bearer_parameters(header: str | None) -> list[str]:
    """Return the ``name=value`` items of the Bearer challenge in ``header``.

    Servers may send several challenges, possibly folded into one header line,
    so every item that does not look like a parameter starts a new challenge.
    """
    challenges: list[tuple[str, list[str]]] = []
    for item in _split_items(header or ""):
        head = item.split("=", 1)[0].strip()
        match = _SCHEME_REGEX.match(item)
        if match and (_WHITESPACE_REGEX.search(head) or "=" not in item):
            scheme, rest = match.group(1), (match.group(2) or "").strip()
            challenges.append((scheme, [rest] if rest else []))
        elif challenges:
            challenges[-1][1].append(item)

    for scheme, parameters in challenges:
        if scheme.lower() == "bearer":
            return parameters
    raise ChallengeError("Response carries no Bearer challenge")


def get_parameter(parameters: Iterable[str], name: str) -> str | None:
    prefix = f"{name}="
    for parameter in parameters:
        if parameter.startswith(prefix):
            return parameter[len(prefix):].strip('"')
    return None


def parse_consent_challenge(header: str | None) -> ConsentChallenge:
    parameters = bearer_parameters(header)
    return ConsentChallenge(
        proposed_action=get_parameter(parameters, "proposedAction"),
        consent_uri=get_parameter(parameters, "consentUri"),
    )


def build_consent_url(
    consent_uri: str,
    *,
    client_id: str,
    redirect_uri: str,
    scope: str,
) -> str:
    """Point ``consent_uri`` at this application and force the consent prompt.

    ``client_id``, ``redirect_uri`` and ``scope`` replace any existing values,
    whatever the case of their keys; ``prompt=consent`` is always appended.
    Other query items are kept exactly as they were written.
    """
    parts = urlsplit(consent_uri)
    items = [item for item in parts.query.split("&") if item]
    for key, value in (("client_id", client_id), ("redirect_uri", redirect_uri), ("scope", scope)):
        items = _set_item(items, key, value)
    items.append(urlencode({"prompt": "consent"}))
    return urlunsplit(parts._replace(query="&".join(items)))


def _item_key(item: str) -> str:
    return unquote_plus(item.partition("=")[0]).lower()


def _set_item(items: list[str], key: str, value: str) -> list[str]:
    encoded = urlencode({key: value})
    updated: list[str] = []
    replaced = False
    for item in items:
        if _item_key(item) != key:
            updated.append(item)
        elif not replaced:
            updated.append(encoded)
            replaced = True
    if not replaced:
        updated.append(encoded)
    return updated
