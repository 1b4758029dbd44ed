"""
URL configuration for the flowhome project.
"""

from django.urls import path, include

urlpatterns = [
    path('api/', include('api.urls')),
]
