import uuid
from django.db import models
from django.db.models import Q


class Podcast(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending"
        TRANSCRIBING = "transcribing"
        TRANSCRIBE_POLLING = "transcribe_polling"
        SUMMARIZING = "summarizing"
        COMPLETED = "completed"
        FAILED = "failed"

    class Step(models.TextChoices):
        NONE = "", "none"
        INIT = "init"
        SUBMIT_TRANSCRIPTION = "submit_transcription"
        POLL_TRANSCRIPTION = "poll_transcription"
        SUMMARIZE = "summarize"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner_id = models.CharField(max_length=64, db_index=True)
    original_url = models.URLField(max_length=2048)
    title = models.CharField(max_length=512, blank=True, default="")
    description = models.TextField(blank=True, default="")
    cover_url = models.URLField(max_length=2048, blank=True, default="")
    audio_url = models.URLField(max_length=2048, blank=True, default="")
    duration = models.PositiveIntegerField(default=0)  # seconds
    transcript = models.TextField(blank=True, default="")
    summary = models.TextField(blank=True, default="")  # markdown
    transcription_task_id = models.CharField(max_length=128, blank=True, default="")
    status = models.CharField(max_length=32, choices=Status.choices, default=Status.PENDING)
    processing_step = models.CharField(max_length=32, choices=Step.choices, default=Step.INIT, blank=True)
    logs = models.TextField(blank=True, default="")  # "[ts] message" lines, newline separated

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(status="pending", processing_step="init")
                    | Q(status="transcribing", processing_step="submit_transcription")
                    | Q(status="transcribe_polling", processing_step="poll_transcription")
                    | Q(status="summarizing", processing_step="summarize")
                    | Q(status__in=["completed", "failed"], processing_step="")
                ),
                name="podcast_status_step_pair",
            ),
        ]

    def __str__(self):
        return f"Podcast {self.id} ({self.status})"

    @property
    def log_lines(self) -> list[str]:
        return self.logs.split("\n") if self.logs else []


# Every (status, processing_step) pair a row may hold; mirrored by the check constraint.
VALID_STATES = {
    (Podcast.Status.PENDING, Podcast.Step.INIT),
    (Podcast.Status.TRANSCRIBING, Podcast.Step.SUBMIT_TRANSCRIPTION),
    (Podcast.Status.TRANSCRIBE_POLLING, Podcast.Step.POLL_TRANSCRIPTION),
    (Podcast.Status.SUMMARIZING, Podcast.Step.SUMMARIZE),
    (Podcast.Status.COMPLETED, Podcast.Step.NONE),
    (Podcast.Status.FAILED, Podcast.Step.NONE),
}

TERMINAL_STATUSES = (Podcast.Status.COMPLETED, Podcast.Status.FAILED)
