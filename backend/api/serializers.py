from __future__ import annotations

from rest_framework import serializers

from todolist import ToDoItem

from .models import OAuthToken


class OAuthTokenSerializer(serializers.ModelSerializer):
    class Meta:
        model = OAuthToken
        fields = ("id", "subject", "scopes", "expires_at", "created_at")
        read_only_fields = fields


class ToDoItemSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True, allow_null=True)
    title = serializers.CharField(max_length=255)
    owner = serializers.CharField(max_length=255, allow_blank=True, default="")

    def to_item(self, item_id: int | None = None) -> ToDoItem:
        data = self.validated_data
        return ToDoItem(id=item_id, title=data["title"], owner=data.get("owner", ""))
