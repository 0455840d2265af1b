"""
Persistence helpers for Podcast rows.

Every write is a single UPDATE statement on one row. Log lines are appended
database-side so two racing writers never drop each other's lines, and step
transitions are conditional on the (status, processing_step) pair the caller
started from.
"""
import logging
from datetime import datetime, timezone as dt_timezone

from django.db.models import Case, F, TextField, Value, When
from django.db.models.functions import Concat
from django.utils import timezone

from .models import Podcast, TERMINAL_STATUSES

logger = logging.getLogger(__name__)


def format_log_line(message: str, now: datetime | None = None) -> str:
    # one entry per line
    message = " ".join(str(message).splitlines()).strip()
    ts = (now or datetime.now(dt_timezone.utc)).isoformat(timespec="milliseconds")
    return f"[{ts}] {message}"


def _appended(lines):
    if isinstance(lines, str):
        lines = [lines]
    entry = "\n".join(format_log_line(line) for line in lines)
    return Case(
        When(logs="", then=Value(entry)),
        default=Concat(F("logs"), Value("\n" + entry), output_field=TextField()),
        output_field=TextField(),
    )


def get_podcast(podcast_id, owner_id: str | None = None) -> Podcast | None:
    qs = Podcast.objects.filter(pk=podcast_id)
    if owner_id is not None:
        qs = qs.filter(owner_id=owner_id)
    return qs.first()


def create_podcast(owner_id: str, original_url: str) -> Podcast:
    return Podcast.objects.create(
        owner_id=owner_id,
        original_url=original_url,
        status=Podcast.Status.PENDING,
        processing_step=Podcast.Step.INIT,
    )


def list_podcasts(owner_id: str):
    return Podcast.objects.filter(owner_id=owner_id).order_by("-created_at")


def write_step(podcast_id, *, expect=None, log=None, **fields) -> bool:
    """
    Apply one step's outcome atomically.

    ``expect`` is the (status, processing_step) pair the step was derived from;
    when the row no longer holds it (a racing advance got there first) nothing
    is written and False is returned.
    """
    qs = Podcast.objects.filter(pk=podcast_id)
    if expect is not None:
        qs = qs.filter(status=expect[0], processing_step=expect[1])
    updates = dict(fields)
    if log:
        updates["logs"] = _appended(log)
    updates["updated_at"] = timezone.now()
    applied = qs.update(**updates) == 1
    if not applied:
        logger.info("Skipped stale write for podcast %s (expected %s)", podcast_id, expect)
    return applied


def mark_failed(podcast_id, message: str, *, expect=None, **fields) -> bool:
    """Move a non-terminal podcast to failed, recording ``message`` as its last log line."""
    qs = Podcast.objects.filter(pk=podcast_id).exclude(status__in=TERMINAL_STATUSES)
    if expect is not None:
        qs = qs.filter(status=expect[0], processing_step=expect[1])
    applied = qs.update(
        status=Podcast.Status.FAILED,
        processing_step=Podcast.Step.NONE,
        logs=_appended(message),
        updated_at=timezone.now(),
        **fields,
    ) == 1
    if applied:
        logger.warning("Podcast %s failed: %s", podcast_id, message)
    return applied


def reset_for_reprocess(podcast_id) -> bool:
    """Failed -> pending/init with logs and task handle cleared. False if not failed."""
    return Podcast.objects.filter(pk=podcast_id, status=Podcast.Status.FAILED).update(
        status=Podcast.Status.PENDING,
        processing_step=Podcast.Step.INIT,
        logs="",
        transcription_task_id="",
        summary="",
        updated_at=timezone.now(),
    ) == 1


def delete_podcast(podcast_id, owner_id: str) -> int:
    deleted, _ = Podcast.objects.filter(pk=podcast_id, owner_id=owner_id).delete()
    return deleted
