from celery import Celery

from shredbox.config import get_settings

_settings = get_settings()

# Celery configuration
celery_app = Celery(
    "shredbox",
    broker=_settings.celery_broker_url,
    backend=_settings.celery_result_backend,
    include=["shredbox.reaper"],
)

celery_app.conf.beat_schedule = {
    # Shred and forget every entry whose expiry has passed
    "reap-expired-files": {
        "task": "shredbox.reaper.reap_expired",
        "schedule": _settings.reap_interval,
    },
}
