from dataclasses import dataclass

from django.conf import settings


@dataclass(frozen=True)
class ServiceConfig:
    """Credentials and tunables handed to the external-service clients."""

    http_timeout: float = 30.0

    volc_app_id: str = ""
    volc_access_token: str = ""
    volc_secret_key: str = ""
    volc_submit_url: str = "https://openspeech.bytedance.com/api/v1/auc/bigmodel/submit"
    volc_query_url: str = "https://openspeech.bytedance.com/api/v1/auc/bigmodel/query"
    volc_language: str = "zh-CN"

    ark_api_key: str = ""
    ark_base_url: str = "https://ark.cn-beijing.volces.com/api/v3"
    ark_model: str = "doubao-pro-32k"
    ark_temperature: float = 0.7
    ark_max_tokens: int = 4000
    summary_chunk_chars: int = 12000

    podcastindex_api_key: str = ""
    podcastindex_api_secret: str = ""

    @classmethod
    def from_settings(cls) -> "ServiceConfig":
        return cls(
            http_timeout=settings.HTTP_TIMEOUT_SECONDS,
            volc_app_id=settings.VOLC_APP_ID,
            volc_access_token=settings.VOLC_ACCESS_TOKEN,
            volc_secret_key=settings.VOLC_SECRET_KEY,
            volc_submit_url=settings.VOLC_SUBMIT_URL,
            volc_query_url=settings.VOLC_QUERY_URL,
            volc_language=settings.VOLC_LANGUAGE,
            ark_api_key=settings.ARK_API_KEY,
            ark_base_url=settings.ARK_BASE_URL,
            ark_model=settings.ARK_MODEL,
            ark_temperature=settings.ARK_TEMPERATURE,
            ark_max_tokens=settings.ARK_MAX_TOKENS,
            summary_chunk_chars=settings.SUMMARY_CHUNK_CHARS,
            podcastindex_api_key=settings.PODCASTINDEX_API_KEY,
            podcastindex_api_secret=settings.PODCASTINDEX_API_SECRET,
        )

    @property
    def has_podcastindex(self) -> bool:
        return bool(self.podcastindex_api_key and self.podcastindex_api_secret)
