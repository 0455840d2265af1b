from django.urls import path
from .views import (
    HealthView,
    PodcastDetailView,
    PodcastListCreateView,
    PodcastReprocessView,
    PodcastStatusView,
)

urlpatterns = [
    path("health", HealthView.as_view(), name="health"),
    path("podcasts", PodcastListCreateView.as_view(), name="podcast_list"),
    path("podcasts/<uuid:podcast_id>", PodcastDetailView.as_view(), name="podcast_detail"),
    path("podcasts/<uuid:podcast_id>/status", PodcastStatusView.as_view(), name="podcast_status"),
    path("podcasts/<uuid:podcast_id>/reprocess", PodcastReprocessView.as_view(), name="podcast_reprocess"),
]
