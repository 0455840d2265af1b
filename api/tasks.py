import logging

from celery import shared_task

from . import pipeline

logger = logging.getLogger(__name__)


@shared_task(ignore_result=True)
def advance_podcast(podcast_id: str):
    """Fire-and-forget wrapper around pipeline.advance."""
    podcast = pipeline.advance(podcast_id)
    if podcast is not None:
        logger.debug("Podcast %s now %s/%s", podcast_id, podcast.status, podcast.processing_step)
