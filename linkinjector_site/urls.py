"""Root URL configuration for linkinjector_site."""

from django.urls import include, path

urlpatterns = [
    path('', include('linkinjector.urls')),
]
