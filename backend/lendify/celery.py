import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "lendify.settings.dev")
app = Celery("lendify")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
