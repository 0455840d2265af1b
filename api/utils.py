from django.conf import settings


def is_episode_url(url: str) -> bool:
    """True when the URL points at a supported episode page."""
    return bool(url) and settings.EPISODE_URL_PATTERN in url
