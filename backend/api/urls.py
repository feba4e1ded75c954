from django.urls import path

from .views import (
    health,
    todolist_config,
    todolist_item_detail,
    todolist_items,
    todolist_tokens,
    todolist_users,
)

urlpatterns = [
    path("health/", health, name="health"),
    path("todolist/config/", todolist_config, name="todolist-config"),
    path("todolist/tokens/", todolist_tokens, name="todolist-tokens"),
    path("todolist/items/", todolist_items, name="todolist-items"),
    path("todolist/items/<int:item_id>/", todolist_item_detail, name="todolist-item-detail"),
    path("todolist/users/", todolist_users, name="todolist-users"),
]
