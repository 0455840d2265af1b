class PodcastDigestError(Exception):
    """Base class for pipeline errors.

    The message becomes the podcast's last log line, so keep it readable by
    end users. ``fields`` are persisted together with the failed status.
    """

    def __init__(self, message: str, **fields):
        super().__init__(message)
        self.fields = fields


class InvalidStateError(PodcastDigestError):
    """Operation is not allowed for the podcast's current status."""


class ResolutionError(PodcastDigestError):
    pass


class TranscriptionError(PodcastDigestError):
    pass


class SummarizationError(PodcastDigestError):
    pass
