from __future__ import annotations

import logging
from typing import Any


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger."""
    return logging.getLogger(name or __name__)


def _user_pk(user: Any) -> Any:
    return getattr(user, "pk", None)


def log_token_source(
    logger: logging.Logger,
    label: str,
    token: str | None,
    *,
    scope: str,
    user: Any,
) -> None:
    """
    Report which token source answered for a user and scope.

    Bearer tokens grant access to the user's to-do items, so the token itself
    is never part of the record.
    """
    extra = {"token_source": label, "scope": scope, "user_id": _user_pk(user)}
    if token:
        logger.debug(
            "Token source %s supplied a bearer token for user %s (scope %s)",
            label,
            extra["user_id"],
            scope,
            extra=extra,
        )
    else:
        logger.debug(
            "Token source %s had no bearer token for user %s (scope %s)",
            label,
            extra["user_id"],
            scope,
            extra=extra,
        )


def log_upstream_failure(logger: logging.Logger, status_code: int, user: Any) -> None:
    """Record a non-200 answer from the to-do list web API."""
    level = logging.ERROR if status_code >= 500 else logging.WARNING
    logger.log(
        level,
        "To-do list web API returned %s for user %s",
        status_code,
        _user_pk(user),
        extra={"upstream_status": status_code, "user_id": _user_pk(user)},
    )
