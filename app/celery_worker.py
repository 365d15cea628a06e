# app/celery_worker.py
from celery import Celery

from app.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    COUPON_SWEEP_INTERVAL_SECONDS,
)

celery_app = Celery(
    "cart",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAŻNE: Explicite importuj taski, żeby Celery je zarejestrował
celery_app.conf.imports = ("app.tasks.expire",)

# Konfiguracja beat schedule
celery_app.conf.beat_schedule = {
    "release-expired-coupons": {
        "task": "app.tasks.expire.release_expired_coupons_task",
        "schedule": COUPON_SWEEP_INTERVAL_SECONDS,
    },
}

celery_app.conf.timezone = "UTC"
