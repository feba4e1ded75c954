from django.contrib import admin

from .models import OAuthToken


@admin.register(OAuthToken)
class OAuthTokenAdmin(admin.ModelAdmin):
    list_display = ("subject", "user", "scopes", "expires_at", "created_at")
    search_fields = ("subject", "user__username", "scopes")
    list_filter = ("expires_at",)
