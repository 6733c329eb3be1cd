"""URL configuration for the linkinjector app.

``app_name`` lets the project mount these routes under the ``linkinjector``
namespace, which is also how the throttle middleware names them.
"""

from django.urls import path

from . import views

app_name = 'linkinjector'

urlpatterns = [
    path('inject/', views.inject, name='inject'),
    path('candidates/', views.candidates, name='candidates'),
    path('health/', views.health, name='health'),
]
