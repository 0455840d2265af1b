import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "podcast_digest.settings")

celery_app = Celery("podcast_digest")
celery_app.config_from_object("django.conf:settings", namespace="CELERY")
celery_app.autodiscover_tasks()
