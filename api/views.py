import logging

from rest_framework import status, views
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from . import pipeline, store
from .auth import owner_id_for
from .exceptions import InvalidStateError
from .models import Podcast
from .serializers import (
    PodcastDetailSerializer,
    PodcastListSerializer,
    ProcessStatusSerializer,
    SubmitPodcastSerializer,
)
from .status import project
from .tasks import advance_podcast

logger = logging.getLogger(__name__)


def _first_error(detail) -> str:
    if isinstance(detail, dict):
        detail = next(iter(detail.values()), "")
    if isinstance(detail, list):
        detail = detail[0] if detail else ""
    return str(detail)


def api_exception_handler(exc, context):
    """DRF's handler, reshaped to the flat {"error": "..."} body clients expect."""
    response = exception_handler(exc, context)
    if response is not None:
        if isinstance(exc, ValidationError):
            response.data = {"error": _first_error(exc.detail)}
        elif isinstance(response.data, dict) and "detail" in response.data:
            response.data = {"error": str(response.data["detail"])}
    return response


def _not_found():
    return Response({"error": "Not found"}, status=status.HTTP_404_NOT_FOUND)


class HealthView(views.APIView):
    def get(self, request):
        return Response({"status": "ok", "service": "podcast-digest"})


class PodcastListCreateView(views.APIView):
    """
    GET lists the caller's podcasts, newest first.
    POST validates an episode URL, creates a pending podcast and queues the
    first pipeline advance.
    """

    def get(self, request):
        podcasts = store.list_podcasts(owner_id_for(request))
        return Response({"podcasts": PodcastListSerializer(podcasts, many=True).data})

    def post(self, request):
        ser = SubmitPodcastSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        podcast = store.create_podcast(owner_id_for(request), ser.validated_data["url"])
        logger.info("Podcast %s submitted for %s", podcast.id, podcast.original_url)

        advance_podcast.delay(str(podcast.id))
        return Response({"id": str(podcast.id), "status": podcast.status}, status=status.HTTP_202_ACCEPTED)


class PodcastDetailView(views.APIView):
    def get(self, request, podcast_id):
        podcast = store.get_podcast(podcast_id, owner_id=owner_id_for(request))
        if podcast is None:
            return _not_found()
        return Response(PodcastDetailSerializer(podcast).data)

    def delete(self, request, podcast_id):
        # idempotent: deleting a missing podcast still succeeds
        store.delete_podcast(podcast_id, owner_id_for(request))
        return Response({"success": True})


class PodcastStatusView(views.APIView):
    def get(self, request, podcast_id):
        podcast = store.get_podcast(podcast_id, owner_id=owner_id_for(request))
        if podcast is None:
            return _not_found()

        projected = project(podcast.status, podcast.logs)

        # Lazy execution: a poll on a re-driveable podcast queues one more step
        if podcast.status in pipeline.POLL_DRIVEN_STATUSES:
            advance_podcast.delay(str(podcast.id))

        return Response({"status": ProcessStatusSerializer(projected.as_dict()).data})


class PodcastReprocessView(views.APIView):
    def post(self, request, podcast_id):
        try:
            podcast = pipeline.reprocess(podcast_id, owner_id=owner_id_for(request))
        except Podcast.DoesNotExist:
            return _not_found()
        except InvalidStateError as e:
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        advance_podcast.delay(str(podcast.id))
        return Response({"status": podcast.status})
