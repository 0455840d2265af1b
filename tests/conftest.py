import pytest

from api import pipeline
from api.models import Podcast, VALID_STATES
from api.pipeline import Collaborators
from api.resolver import PodcastInfo
from api.summarizer import SECTION_HEADINGS
from api.transcription import FAILED, RUNNING, SUCCESS, TranscriptionResult
from podcast_digest.celery import celery_app

EPISODE_URL = "https://www.xiaoyuzhoufm.com/episode/64a1b2c3d4e5f6a7b8c9d0e1"
AUDIO_URL = "https://media.xyzcdn.net/abc/episode.mp3"
TRANSCRIPT = "hello and welcome\nthis is the episode"
SUMMARY_MD = "\n\n".join(f"{h}\n- something" for h in SECTION_HEADINGS)


_DEFAULT = object()


class FakeResolver:
    def __init__(self, info=_DEFAULT):
        self.info = info if info is not _DEFAULT else PodcastInfo(
            title="Ep 1",
            description="About things",
            cover_url="https://img.example.com/cover.jpg",
            audio_url=AUDIO_URL,
            duration=3600,
        )
        self.calls = []

    def resolve(self, url):
        self.calls.append(url)
        return self.info


class FakeTranscriber:
    """Returns scripted poll states; the last state repeats forever."""

    def __init__(self, task_id="task-1", states=(SUCCESS,), text=TRANSCRIPT):
        self.task_id = task_id
        self.states = list(states)
        self.text = text
        self.submitted = []
        self.polled = []

    def submit(self, audio_url):
        self.submitted.append(audio_url)
        return self.task_id

    def poll(self, task_id):
        self.polled.append(task_id)
        state = self.states.pop(0) if len(self.states) > 1 else self.states[0]
        return TranscriptionResult(state, self.text if state == SUCCESS else "")


class FakeSummarizer:
    def __init__(self, summary=SUMMARY_MD):
        self.summary = summary
        self.calls = []

    def summarize(self, transcript):
        self.calls.append(transcript)
        return self.summary


@pytest.fixture(autouse=True)
def eager_celery():
    # namespaced key; it shadows the lowercase task_always_eager
    previous = celery_app.conf.CELERY_TASK_ALWAYS_EAGER
    celery_app.conf.CELERY_TASK_ALWAYS_EAGER = True
    yield
    celery_app.conf.CELERY_TASK_ALWAYS_EAGER = previous


@pytest.fixture
def resolver():
    return FakeResolver()


@pytest.fixture
def transcriber():
    return FakeTranscriber()


@pytest.fixture
def summarizer():
    return FakeSummarizer()


@pytest.fixture
def collaborators(resolver, transcriber, summarizer):
    return Collaborators(resolver=resolver, transcriber=transcriber, summarizer=summarizer)


@pytest.fixture
def fake_default_collaborators(monkeypatch, collaborators):
    """Route advances triggered through Celery tasks to the fakes."""
    monkeypatch.setattr(pipeline, "default_collaborators", lambda: collaborators)
    return collaborators


@pytest.fixture
def make_podcast(db):
    def _make(**fields):
        fields.setdefault("owner_id", "guest-user")
        fields.setdefault("original_url", EPISODE_URL)
        return Podcast.objects.create(**fields)
    return _make


def assert_valid_state(podcast):
    assert (podcast.status, podcast.processing_step) in VALID_STATES


