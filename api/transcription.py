"""
Volcengine speech-recognition client, split into submit and poll so each call
fits inside one pipeline step.
"""
import logging
from dataclasses import dataclass

import requests

from .config import ServiceConfig

logger = logging.getLogger(__name__)

SUCCESS = "SUCCESS"
FAILED = "FAILED"
RUNNING = "RUNNING"


@dataclass(frozen=True)
class TranscriptionResult:
    state: str
    text: str = ""


class VolcTranscriptionClient:
    def __init__(self, config: ServiceConfig, session: requests.Session | None = None):
        self.config = config
        self.session = session or requests.Session()

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.volc_access_token}",
            "X-App-Id": self.config.volc_app_id,
        }

    def submit(self, audio_url: str) -> str | None:
        """Start a transcription task; returns its task handle or None."""
        body = {
            "appid": self.config.volc_app_id,
            "secret_key": self.config.volc_secret_key,
            "audio_url": audio_url,
            "language": self.config.volc_language,
            "enable_punctuation": True,
            "enable_word_time": False,
        }
        try:
            resp = self.session.post(
                self.config.volc_submit_url,
                json=body,
                headers=self._headers(),
                timeout=self.config.http_timeout,
            )
        except requests.RequestException as e:
            logger.error("Transcription submit failed: %s", e)
            return None

        if not resp.ok:
            logger.error("Transcription submit error %s: %s", resp.status_code, resp.text[:500])
            return None

        try:
            data = resp.json()
        except ValueError:
            logger.error("Transcription submit returned non-JSON body")
            return None

        task_id = data.get("task_id") or data.get("id")
        if not task_id:
            logger.error("No task id in transcription submit response: %s", data)
            return None
        return str(task_id)

    def poll(self, task_id: str) -> TranscriptionResult:
        """
        Query a task. Only an explicit FAILED from the vendor is terminal;
        HTTP, network and decoding problems are reported as RUNNING.
        """
        body = {
            "appid": self.config.volc_app_id,
            "secret_key": self.config.volc_secret_key,
            "task_id": task_id,
        }
        try:
            resp = self.session.post(
                self.config.volc_query_url,
                json=body,
                headers=self._headers(),
                timeout=self.config.http_timeout,
            )
            if not resp.ok:
                logger.warning("Transcription query error %s for task %s", resp.status_code, task_id)
                return TranscriptionResult(RUNNING)
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Transcription query failed for task %s: %s", task_id, e)
            return TranscriptionResult(RUNNING)

        if not isinstance(data, dict):
            logger.warning("Unexpected transcription query body for task %s: %r", task_id, data)
            return TranscriptionResult(RUNNING)

        state = data.get("state")
        if state == SUCCESS:
            utterances = data.get("utterances") or []
            text = "\n".join((u.get("text") or "") for u in utterances if isinstance(u, dict))
            return TranscriptionResult(SUCCESS, text)
        if state == FAILED:
            return TranscriptionResult(FAILED)
        return TranscriptionResult(RUNNING)
