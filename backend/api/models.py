from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone


class OAuthTokenQuerySet(models.QuerySet):
    def valid(self):
        """Return tokens that remain valid for at least another minute."""
        buffer = timezone.now() + timedelta(minutes=1)
        return self.filter(expires_at__gt=buffer).order_by("expires_at")


class OAuthToken(models.Model):
    """Stores access tokens for the to-do list web API, one user at a time."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="todolist_tokens",
        on_delete=models.CASCADE,
    )
    token = models.TextField(unique=True)
    subject = models.CharField(max_length=255, blank=True)
    scopes = models.CharField(max_length=1024, blank=True)
    expires_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    objects = OAuthTokenQuerySet.as_manager()

    class Meta:
        ordering = ("expires_at",)

    def __str__(self) -> str:
        return f"{self.subject or 'unknown'} ({self.expires_at:%Y-%m-%d %H:%M})"
