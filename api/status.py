"""Client-facing progress view of a podcast's internal status."""
import re
from dataclasses import asdict, dataclass

STAGE_BY_STATUS = {
    "pending": "pending",
    "parsing": "parsing",
    "transcribing": "transcribing",
    "transcribe_polling": "transcribing",
    "summarizing": "summarizing",
    "completed": "completed",
    "failed": "failed",
}

PROGRESS_BY_STATUS = {
    "pending": 5,
    "parsing": 15,
    "transcribing": 30,
    "transcribe_polling": 50,
    "summarizing": 80,
    "completed": 100,
    "failed": 0,
}

MESSAGE_BY_STATUS = {
    "pending": "Waiting to be processed...",
    "parsing": "Parsing episode info...",
    "transcribing": "Submitting transcription task...",
    "transcribe_polling": "Transcribing audio (this can take a few minutes)...",
    "summarizing": "Generating AI summary...",
    "completed": "Summary ready!",
}

FAILED_FALLBACK_MESSAGE = "Processing failed, please try again"

_TIMESTAMP_PREFIX = re.compile(r"^\[.*?\]\s*")


@dataclass(frozen=True)
class ProcessStatus:
    stage: str
    progress: int
    message: str

    def as_dict(self) -> dict:
        return asdict(self)


def failure_message(logs: str | None) -> str:
    """Last log line without its [timestamp] prefix."""
    if not logs:
        return FAILED_FALLBACK_MESSAGE
    last = logs.split("\n")[-1]
    return _TIMESTAMP_PREFIX.sub("", last, count=1) or FAILED_FALLBACK_MESSAGE


def project(status: str, logs: str | None = None) -> ProcessStatus:
    if status == "failed":
        message = failure_message(logs)
    else:
        message = MESSAGE_BY_STATUS.get(status, MESSAGE_BY_STATUS["pending"])
    return ProcessStatus(
        stage=STAGE_BY_STATUS.get(status, "pending"),
        progress=PROGRESS_BY_STATUS.get(status, 0),
        message=message,
    )
