"""
Step-function state machine that drives one Podcast from submission to a
summary.

``advance(podcast_id)`` runs the step matching the row's current
(status, processing_step) pair and persists its outcome with a single
conditional update. Parsing and a successful transcription poll chain straight
into the following step; every other transition waits for the next
``advance`` call, normally triggered by a client status poll.

``advance`` may run concurrently for the same podcast. Steps are derived from
freshly read state and writes only apply if the row still holds the pair the
step started from, so a racing call either no-ops or loses its write. Vendor
calls may still be issued twice under such a race.
"""
import logging
from dataclasses import dataclass

from .config import ServiceConfig
from .exceptions import (
    InvalidStateError,
    PodcastDigestError,
    ResolutionError,
    SummarizationError,
    TranscriptionError,
)
from .models import Podcast
from .resolver import EpisodeResolver
from .summarizer import ArkSummarizer
from .transcription import FAILED, SUCCESS, VolcTranscriptionClient
from . import store

logger = logging.getLogger(__name__)

Status = Podcast.Status
Step = Podcast.Step


@dataclass
class Collaborators:
    resolver: EpisodeResolver
    transcriber: VolcTranscriptionClient
    summarizer: ArkSummarizer

    @classmethod
    def from_config(cls, config: ServiceConfig) -> "Collaborators":
        return cls(
            resolver=EpisodeResolver.from_config(config),
            transcriber=VolcTranscriptionClient(config),
            summarizer=ArkSummarizer(config),
        )


def default_collaborators() -> Collaborators:
    return Collaborators.from_config(ServiceConfig.from_settings())


# -----------------------------------------------------
# Step functions
# Each returns the refreshed Podcast when the next step should run in the
# same advance() call, otherwise None. Failures are raised.
# -----------------------------------------------------
def step_parse(podcast: Podcast, c: Collaborators) -> Podcast | None:
    expect = (Status.PENDING, Step.INIT)
    info = c.resolver.resolve(podcast.original_url)
    if info is None:
        raise ResolutionError("Could not parse the episode page, please check the link")

    if not info.audio_url:
        raise ResolutionError(
            f"Parsed '{info.title}' but could not find an audio URL",
            title=info.title[:512],
            description=info.description,
            cover_url=info.cover_url,
        )

    applied = store.write_step(
        podcast.id,
        expect=expect,
        log=["Parsing episode info...", f"Parsed: {info.title}"],
        title=info.title[:512],
        description=info.description,
        cover_url=info.cover_url,
        audio_url=info.audio_url,
        duration=max(0, int(info.duration or 0)),
        status=Status.TRANSCRIBING,
        processing_step=Step.SUBMIT_TRANSCRIPTION,
    )
    return store.get_podcast(podcast.id) if applied else None


def step_submit_transcription(podcast: Podcast, c: Collaborators) -> Podcast | None:
    if not podcast.audio_url:
        raise TranscriptionError("No audio URL to transcribe")

    task_id = c.transcriber.submit(podcast.audio_url)
    if not task_id:
        raise TranscriptionError("Failed to submit the transcription task")

    store.write_step(
        podcast.id,
        expect=(Status.TRANSCRIBING, Step.SUBMIT_TRANSCRIPTION),
        log=["Submitting transcription task...", f"Transcription task submitted, task id: {task_id}"],
        transcription_task_id=task_id,
        status=Status.TRANSCRIBE_POLLING,
        processing_step=Step.POLL_TRANSCRIPTION,
    )
    return None


def step_poll_transcription(podcast: Podcast, c: Collaborators) -> Podcast | None:
    task_id = podcast.transcription_task_id
    if not task_id:
        raise TranscriptionError("No transcription task id")

    result = c.transcriber.poll(task_id)
    if result.state == FAILED:
        raise TranscriptionError("Audio transcription failed")
    if result.state != SUCCESS:
        # still running; the next status poll will check again
        return None

    applied = store.write_step(
        podcast.id,
        expect=(Status.TRANSCRIBE_POLLING, Step.POLL_TRANSCRIPTION),
        log=f"Transcription finished, {len(result.text)} characters",
        transcript=result.text,
        status=Status.SUMMARIZING,
        processing_step=Step.SUMMARIZE,
    )
    return store.get_podcast(podcast.id) if applied else None


def step_summarize(podcast: Podcast, c: Collaborators) -> Podcast | None:
    if not podcast.transcript:
        raise SummarizationError("No transcript available to summarize")

    summary = c.summarizer.summarize(podcast.transcript)
    if not summary:
        raise SummarizationError("Summary generation failed")

    store.write_step(
        podcast.id,
        expect=(Status.SUMMARIZING, Step.SUMMARIZE),
        log=["Generating summary...", "Summary generated"],
        summary=summary,
        status=Status.COMPLETED,
        processing_step=Step.NONE,
    )
    return None


STEPS = {
    (Status.PENDING, Step.INIT): step_parse,
    (Status.TRANSCRIBING, Step.SUBMIT_TRANSCRIPTION): step_submit_transcription,
    (Status.TRANSCRIBE_POLLING, Step.POLL_TRANSCRIPTION): step_poll_transcription,
    (Status.SUMMARIZING, Step.SUMMARIZE): step_summarize,
}

# statuses a status poll (or the advance_podcasts command) may re-drive
POLL_DRIVEN_STATUSES = (Status.PENDING, Status.TRANSCRIBE_POLLING)
ACTIVE_STATUSES = tuple(status for status, _ in STEPS)


def advance(podcast_id, collaborators: Collaborators | None = None) -> Podcast | None:
    """
    Run the next applicable step(s) for a podcast.

    Unknown ids and rows without a runnable step are no-ops. Any error raised
    by a step marks the podcast failed with a readable last log line; errors
    never propagate to the caller.
    """
    podcast = store.get_podcast(podcast_id)
    if podcast is None:
        logger.debug("advance: podcast %s not found", podcast_id)
        return None
    if (podcast.status, podcast.processing_step) not in STEPS:
        return podcast

    if collaborators is None:
        collaborators = default_collaborators()

    while podcast is not None:
        expect = (podcast.status, podcast.processing_step)
        step = STEPS.get(expect)
        if step is None:
            break
        logger.info("Podcast %s: running %s", podcast_id, step.__name__)
        try:
            podcast = step(podcast, collaborators)
        except PodcastDigestError as e:
            store.mark_failed(podcast_id, str(e), expect=expect, **e.fields)
            break
        except Exception as e:
            logger.exception("Podcast %s: %s crashed", podcast_id, step.__name__)
            store.mark_failed(podcast_id, f"Processing error: {e}", expect=expect)
            break

    return store.get_podcast(podcast_id)


def reprocess(podcast_id, owner_id: str | None = None) -> Podcast:
    """
    Reset a failed podcast to pending/init (logs and task id cleared).

    Raises Podcast.DoesNotExist for unknown ids and InvalidStateError when the
    podcast is not failed. The caller is expected to kick off ``advance``.
    """
    podcast = store.get_podcast(podcast_id, owner_id=owner_id)
    if podcast is None:
        raise Podcast.DoesNotExist(podcast_id)
    if podcast.status != Status.FAILED or not store.reset_for_reprocess(podcast.id):
        raise InvalidStateError("Only failed podcasts can be reprocessed")
    logger.info("Podcast %s reset for reprocessing", podcast_id)
    podcast.refresh_from_db()
    return podcast
