# events/views.py

import logging

from django.apps import apps
from django.utils import timezone
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .ai_engine import (
    OUTCOME_RECOMMENDED,
    RecommendationExplainer,
    RecommendationOrchestrator,
    StaticPhysiologyProvider,
    UserState,
)
from .models import Event
from .serializers import EventSerializer, RecommendationRequestSerializer

logger = logging.getLogger(__name__)


def build_orchestrator():
    """Orchestrator wired to the process-wide recency memory."""
    memory = apps.get_app_config('events').recency_memory
    return RecommendationOrchestrator(memory=memory)


class EventListCreateView(generics.ListCreateAPIView):
    """
    GET: List events, optionally only pending ones (?pending=true).
    POST: Create a new event.
    """
    serializer_class = EventSerializer
    permission_classes = [permissions.AllowAny]

    def get_queryset(self):
        pending = self.request.query_params.get('pending', '').lower()
        if pending in ('1', 'true', 'yes'):
            return Event.objects.pending()
        return Event.objects.all()

list_create_view = EventListCreateView.as_view()


class EventRetrieveUpdateDestroyView(generics.RetrieveUpdateDestroyAPIView):
    """
    GET, PUT, PATCH, DELETE for a specific event.
    Used for marking events as complete (PATCH is_completed=True).
    """
    serializer_class = EventSerializer
    permission_classes = [permissions.AllowAny]
    queryset = Event.objects.all()

retrieve_update_destroy_view = EventRetrieveUpdateDestroyView.as_view()


class RecommendationView(APIView):
    """
    POST: Recommend the single pending event to start now.

    Always answers 200 for a valid body; remote failures are folded into a
    local fallback and reported through ``method`` and ``error_code``.
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = RecommendationRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        state = UserState.capture(
            data['emotion'],
            StaticPhysiologyProvider(data.get('heart_rate_bpm'), data.get('hrv_sdnn_ms')),
            now=timezone.localtime(),
        )
        candidates = Event.objects.load_candidates()

        orchestrator = build_orchestrator()
        recommendation = orchestrator.recommend(candidates, state, use_remote=data.get('use_remote'))
        payload = recommendation.to_dict()

        if data.get('explain') and recommendation.outcome == OUTCOME_RECOMMENDED:
            payload['explanation'] = RecommendationExplainer().explain(recommendation.event, state)

        logger.info(
            f"Recommendation served: outcome={recommendation.outcome} "
            f"method={recommendation.method} candidates={len(candidates)}"
        )
        return Response(payload, status=status.HTTP_200_OK)

recommendation_view = RecommendationView.as_view()


class RecommendationHealthView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        return Response(build_orchestrator().health_check())

recommendation_health_view = RecommendationHealthView.as_view()
