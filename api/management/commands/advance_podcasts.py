from django.core.management.base import BaseCommand

from api import pipeline
from api.models import Podcast
from api.tasks import advance_podcast


class Command(BaseCommand):
    help = "Advance every in-flight podcast by one pipeline step (for cron)."

    def add_arguments(self, parser):
        parser.add_argument("--limit", type=int, default=100, help="Max podcasts to advance.")
        parser.add_argument(
            "--enqueue",
            action="store_true",
            help="Queue Celery tasks instead of advancing inline.",
        )

    def handle(self, *args, **opts):
        ids = list(
            Podcast.objects.filter(status__in=pipeline.ACTIVE_STATUSES)
            .order_by("updated_at")
            .values_list("id", flat=True)[: opts["limit"]]
        )
        if not ids:
            self.stdout.write("No podcasts to advance.")
            return

        collaborators = None if opts["enqueue"] else pipeline.default_collaborators()
        for podcast_id in ids:
            if opts["enqueue"]:
                advance_podcast.delay(str(podcast_id))
                continue
            podcast = pipeline.advance(podcast_id, collaborators)
            if podcast is not None:
                self.stdout.write(f"{podcast_id}: {podcast.status}")

        self.stdout.write(self.style.SUCCESS(f"Advanced {len(ids)} podcast(s)."))
