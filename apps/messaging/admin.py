from django.contrib import admin  # type: ignore

from .models import Message


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ("id", "sender", "recipient", "booking", "is_read", "created_at")
    list_filter = ("is_read",)
    search_fields = ("content", "sender__email", "recipient__email")
    raw_id_fields = ("sender", "recipient", "booking")
