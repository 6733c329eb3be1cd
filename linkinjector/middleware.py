"""Request throttling for the engine endpoints."""

from __future__ import annotations

import time
from typing import Callable, Optional

from django.conf import settings
from django.core.cache import cache
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.urls import Resolver404, resolve


class SlidingWindowRateThrottle:
    """Allow each client ``limit`` POSTs per ``window`` seconds on ``THROTTLED_ROUTES``.

    Timestamps of recent requests are kept in the default cache under one key
    per route and client address.
    """

    def __init__(
        self,
        get_response: Callable[[HttpRequest], HttpResponse],
        *,
        limit: int | None = None,
        window: int | None = None,
    ) -> None:
        self.get_response = get_response
        self.limit = limit or getattr(settings, 'THROTTLE_LIMIT', 60)
        self.window = window or getattr(settings, 'THROTTLE_WINDOW', 60)

    def __call__(self, request: HttpRequest) -> HttpResponse:
        route = self._route_name(request) if request.method == 'POST' else None
        if route is None or route not in getattr(settings, 'THROTTLED_ROUTES', []):
            return self.get_response(request)

        key = f'linkinjector:throttle:{route}:{client_address(request)}'
        now = time.time()
        recent = [stamp for stamp in cache.get(key, []) if stamp > now - self.window]
        if len(recent) >= self.limit:
            return JsonResponse(
                {'detail': 'Rate limit exceeded. Try again shortly.', 'route': route},
                status=429,
            )

        recent.append(now)
        cache.set(key, recent, timeout=self.window)
        return self.get_response(request)

    @staticmethod
    def _route_name(request: HttpRequest) -> Optional[str]:
        # resolver_match is only set after middleware has run.
        try:
            return resolve(request.path_info).view_name
        except Resolver404:
            return None


def client_address(request: HttpRequest) -> str:
    """First address of the forwarding header when present, else ``REMOTE_ADDR``."""

    forwarded = request.META.get(getattr(settings, 'THROTTLE_IP_HEADER', 'HTTP_X_FORWARDED_FOR'))
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR', '0.0.0.0')
