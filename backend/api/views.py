from __future__ import annotations

from django.shortcuts import redirect

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from todolist import ConsentRequired, Failed, RequestFailed, TodoListError, TokenAcquisitionError

from .logging import get_logger, log_upstream_failure
from .models import OAuthToken
from .serializers import OAuthTokenSerializer, ToDoItemSerializer
from .services.todolist import build_todolist_client, get_todolist_config
from .services.tokens import InvalidAccessToken, parse_access_token

logger = get_logger(__name__)


@api_view(["GET"])
@permission_classes([AllowAny])
def health(_request):
    """Simple health check endpoint the frontend can call."""
    return Response({"status": "ok"})


@api_view(["GET"])
def todolist_config(_request):
    """Expose the non-secret to-do list client configuration."""
    cfg = get_todolist_config()
    return Response(
        {
            "base_address": cfg.base_address,
            "scope": cfg.scope,
            "client_id": cfg.client_id,
            "redirect_uri": cfg.redirect_uri,
            "timeout_seconds": cfg.timeout,
        }
    )


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated])
def todolist_tokens(request):
    """List the caller's valid access tokens or register a new one."""
    if request.method == "POST":
        token_value = (request.data.get("token") or "").strip()
        if not token_value:
            return Response({"detail": "Provide a token."}, status=status.HTTP_400_BAD_REQUEST)
        try:
            decoded = parse_access_token(token_value)
        except InvalidAccessToken as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        if OAuthToken.objects.filter(token=decoded.token).exclude(user=request.user).exists():
            return Response(
                {"detail": "This token is registered to another user."},
                status=status.HTTP_409_CONFLICT,
            )

        token_obj, created = OAuthToken.objects.update_or_create(
            token=decoded.token,
            user=request.user,
            defaults={
                "subject": decoded.subject,
                "scopes": " ".join(decoded.scopes),
                "expires_at": decoded.expires_at,
            },
        )
        serializer = OAuthTokenSerializer(token_obj, context={"request": request})
        status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
        return Response(serializer.data, status=status_code)

    tokens = OAuthToken.objects.valid().filter(user=request.user)
    serializer = OAuthTokenSerializer(tokens, many=True, context={"request": request})
    return Response(serializer.data, status=status.HTTP_200_OK)


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated])
def todolist_items(request):
    """List the user's to-do items or create a new one."""
    client = build_todolist_client(request.user)
    try:
        if request.method == "POST":
            serializer = ToDoItemSerializer(data=request.data)
            if not serializer.is_valid():
                return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
            item = client.create_item(serializer.to_item())
            return Response(ToDoItemSerializer(item).data, status=status.HTTP_201_CREATED)

        items = client.list_items()
    except TodoListError as exc:
        return _error_response(exc, request.user)
    return Response(ToDoItemSerializer(items, many=True).data, status=status.HTTP_200_OK)


@api_view(["GET", "PUT", "DELETE"])
@permission_classes([IsAuthenticated])
def todolist_item_detail(request, item_id: int):
    """Read, replace or delete a single to-do item."""
    client = build_todolist_client(request.user)
    try:
        if request.method == "PUT":
            serializer = ToDoItemSerializer(data=request.data)
            if not serializer.is_valid():
                return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
            item = client.update_item(serializer.to_item(item_id))
            return Response(ToDoItemSerializer(item).data, status=status.HTTP_200_OK)

        if request.method == "DELETE":
            client.delete_item(item_id)
            return Response(status=status.HTTP_204_NO_CONTENT)

        item = client.get_item(item_id)
    except TodoListError as exc:
        return _error_response(exc, request.user)
    return Response(ToDoItemSerializer(item).data, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def todolist_users(request):
    """List every user known to the web API, sending the caller to consent when asked."""
    client = build_todolist_client(request.user)
    try:
        result = client.list_users()
    except TokenAcquisitionError as exc:
        return _error_response(exc, request.user)

    if isinstance(result, ConsentRequired):
        return redirect(result.consent_uri)
    if isinstance(result, Failed):
        return _error_response(RequestFailed(result.status_code), request.user)
    return Response({"users": result.users}, status=status.HTTP_200_OK)


def _error_response(exc: TodoListError, user) -> Response:
    if isinstance(exc, TokenAcquisitionError):
        return Response(
            {"detail": "Sign in again to obtain an access token for the to-do list."},
            status=status.HTTP_401_UNAUTHORIZED,
        )
    if not isinstance(exc, RequestFailed):
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    log_upstream_failure(logger, exc.status_code, user)
    status_code = exc.status_code if 400 <= exc.status_code < 500 else status.HTTP_502_BAD_GATEWAY
    return Response(
        {"detail": str(exc), "upstream_status": exc.status_code},
        status=status_code,
    )
