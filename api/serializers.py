from rest_framework import serializers

from .models import Podcast
from .utils import is_episode_url


class PodcastListSerializer(serializers.ModelSerializer):
    class Meta:
        model = Podcast
        fields = [
            "id",
            "owner_id",
            "original_url",
            "title",
            "description",
            "cover_url",
            "audio_url",
            "summary",
            "duration",
            "status",
            "created_at",
            "updated_at",
        ]


class PodcastDetailSerializer(serializers.ModelSerializer):
    class Meta:
        model = Podcast
        fields = PodcastListSerializer.Meta.fields + [
            "transcript",
            "processing_step",
            "logs",
        ]


class SubmitPodcastSerializer(serializers.Serializer):
    url = serializers.CharField(max_length=2048, trim_whitespace=True)

    def validate_url(self, value):
        if not is_episode_url(value):
            raise serializers.ValidationError("Please provide a valid podcast episode link")
        return value


class ProcessStatusSerializer(serializers.Serializer):
    stage = serializers.CharField()
    progress = serializers.IntegerField(min_value=0, max_value=100)
    message = serializers.CharField()
