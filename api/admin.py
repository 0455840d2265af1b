from django.contrib import admin

from .models import Podcast


@admin.register(Podcast)
class PodcastAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "status", "processing_step", "owner_id", "created_at")
    list_filter = ("status",)
    search_fields = ("title", "original_url")
    readonly_fields = ("id", "transcription_task_id", "logs", "created_at", "updated_at")
