from django.urls import path
from .views import list_create_view
from .views import retrieve_update_destroy_view
from .views import recommendation_view, recommendation_health_view

urlpatterns = [
    # GET and POST (List events and Create new event)
    path('', list_create_view, name="event-list-create"),

    path('recommendation/', recommendation_view, name="recommendation"),
    path('recommendation/health/', recommendation_health_view, name="recommendation-health"),

    # GET, PUT, PATCH, DELETE (Detail and Manipulation)
    path('<uuid:pk>/', retrieve_update_destroy_view, name="event-detail"),
]
