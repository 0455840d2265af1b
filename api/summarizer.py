"""
Transcript summarization over an OpenAI-compatible chat completions API.

Short transcripts get one call. Long ones are split into line-respecting
chunks, each chunk is reduced to its key points, and a final call merges the
partial notes into the structured article.
"""
import logging

from openai import OpenAI, OpenAIError

from .config import ServiceConfig

logger = logging.getLogger(__name__)

CHUNK_SEPARATOR = "\n\n---\n\n"

SECTION_HEADINGS = (
    "## 📌 Key Points",
    "## 📝 Summary",
    "## 💡 Actionable Takeaways",
    "## 🎯 Who Should Listen",
)

ARTICLE_SYSTEM_PROMPT = (
    "You are a professional podcast analyst who extracts the key information from an "
    "episode and writes a well-structured summary article. Answer in Markdown."
)

EXTRACT_SYSTEM_PROMPT = (
    "You are a podcast content assistant. Extract the key information and main points "
    "from the text you are given."
)

ARTICLE_FORMAT = f"""Use exactly this format:

{SECTION_HEADINGS[0]}
(3-5 core ideas, stated briefly and clearly)

{SECTION_HEADINGS[1]}
(a detailed summary of the discussion and its insights, in several paragraphs)

{SECTION_HEADINGS[2]}
(key points and actionable advice as an ordered list)

{SECTION_HEADINGS[3]}
(which listeners this episode is for)

Write in the same language as the podcast, professional but easy to read."""


def article_prompt(content: str) -> str:
    return (
        "Summarize the following podcast content as a structured article:\n\n"
        f"{content}\n\n{ARTICLE_FORMAT}"
    )


def chunk_prompt(chunk: str, index: int, total: int) -> str:
    return (
        f"This is part {index}/{total} of a podcast transcript. "
        f"Extract the key content and main points of this part:\n\n{chunk}"
    )


def merge_prompt(partials: list[str]) -> str:
    return (
        "Below are the key-point notes for each part of one podcast episode. "
        "Merge them into a single complete, structured summary article:\n\n"
        f"{CHUNK_SEPARATOR.join(partials)}\n\n{ARTICLE_FORMAT}"
    )


def split_into_chunks(text: str, max_chars: int) -> list[str]:
    """Group whole lines into chunks of at most ``max_chars``; overlong lines are cut."""
    chunks = []
    current = ""
    for line in text.split("\n"):
        while len(line) > max_chars:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:max_chars])
            line = line[max_chars:]
        if current and len(current) + len(line) + 1 > max_chars:
            chunks.append(current)
            current = line
        else:
            current = f"{current}\n{line}" if current else line
    if current:
        chunks.append(current)
    return chunks


def missing_sections(markdown: str) -> list[str]:
    return [h for h in SECTION_HEADINGS if h not in markdown]


class ArkSummarizer:
    def __init__(self, config: ServiceConfig, client: OpenAI | None = None):
        self.config = config
        self.client = client or OpenAI(
            api_key=config.ark_api_key,
            base_url=config.ark_base_url,
            timeout=config.http_timeout * 4,
        )

    def summarize(self, transcript: str) -> str | None:
        if not transcript:
            return None
        if len(transcript) > self.config.summary_chunk_chars:
            summary = self._summarize_long(transcript)
        else:
            summary = self._complete(ARTICLE_SYSTEM_PROMPT, article_prompt(transcript))

        if summary:
            missing = missing_sections(summary)
            if missing:
                logger.warning("Summary is missing sections: %s", missing)
        return summary

    def _summarize_long(self, transcript: str) -> str | None:
        chunks = split_into_chunks(transcript, self.config.summary_chunk_chars)
        logger.info("Summarizing %d chars in %d chunks", len(transcript), len(chunks))

        partials = []
        for i, chunk in enumerate(chunks, start=1):
            partial = self._complete(EXTRACT_SYSTEM_PROMPT, chunk_prompt(chunk, i, len(chunks)))
            if partial:
                partials.append(partial)
            else:
                logger.warning("Chunk %d/%d produced no summary", i, len(chunks))

        if not partials:
            return None
        return self._complete(ARTICLE_SYSTEM_PROMPT, merge_prompt(partials))

    def _complete(self, system_prompt: str, user_prompt: str) -> str | None:
        try:
            response = self.client.chat.completions.create(
                model=self.config.ark_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.config.ark_temperature,
                max_tokens=self.config.ark_max_tokens,
            )
        except OpenAIError as e:
            logger.error("LLM call failed: %s", e)
            return None

        if not response.choices:
            return None
        return response.choices[0].message.content or None
