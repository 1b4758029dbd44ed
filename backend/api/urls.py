from django.urls import path, include

urlpatterns = [
    path('v1/events/', include('events.urls')),
]
