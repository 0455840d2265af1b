import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Podcast",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("owner_id", models.CharField(db_index=True, max_length=64)),
                ("original_url", models.URLField(max_length=2048)),
                ("title", models.CharField(blank=True, default="", max_length=512)),
                ("description", models.TextField(blank=True, default="")),
                ("cover_url", models.URLField(blank=True, default="", max_length=2048)),
                ("audio_url", models.URLField(blank=True, default="", max_length=2048)),
                ("duration", models.PositiveIntegerField(default=0)),
                ("transcript", models.TextField(blank=True, default="")),
                ("summary", models.TextField(blank=True, default="")),
                ("transcription_task_id", models.CharField(blank=True, default="", max_length=128)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("transcribing", "Transcribing"),
                            ("transcribe_polling", "Transcribe Polling"),
                            ("summarizing", "Summarizing"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                        ],
                        default="pending",
                        max_length=32,
                    ),
                ),
                (
                    "processing_step",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("", "none"),
                            ("init", "Init"),
                            ("submit_transcription", "Submit Transcription"),
                            ("poll_transcription", "Poll Transcription"),
                            ("summarize", "Summarize"),
                        ],
                        default="init",
                        max_length=32,
                    ),
                ),
                ("logs", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            models.Q(status="pending", processing_step="init")
                            | models.Q(status="transcribing", processing_step="submit_transcription")
                            | models.Q(status="transcribe_polling", processing_step="poll_transcription")
                            | models.Q(status="summarizing", processing_step="summarize")
                            | models.Q(status__in=["completed", "failed"], processing_step="")
                        ),
                        name="podcast_status_step_pair",
                    ),
                ],
            },
        ),
    ]
