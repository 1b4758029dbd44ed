from django.apps import AppConfig
from django.conf import settings


class EventsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "events"

    def ready(self):
        from .ai_engine.recency import DEFAULT_CAPACITY, RecencyMemory

        # One recency memory per process, shared by every recommendation request
        self.recency_memory = RecencyMemory(
            getattr(settings, "RECOMMENDER_RECENCY_SIZE", DEFAULT_CAPACITY)
        )
