"""JSON endpoints exposing the link engine over HTTP.

The views only translate between form data and engine calls; all linking
decisions happen in :mod:`linkinjector.engine`.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from .engine.candidates import extract_candidates
from .engine.config import load_config
from .engine.errors import LinkEngineError
from .engine.index import inject_links
from .engine.markup import strip_existing_links
from .engine.scoring import score_breakdown, score_reason
from .engine.text import collapse_whitespace
from .forms import CandidatePreviewForm, InjectLinksForm

logger = logging.getLogger(__name__)


def _form_errors(form) -> JsonResponse:
    return JsonResponse({'errors': form.errors.get_json_data()}, status=400)


@csrf_exempt
@require_POST
def inject(request: HttpRequest) -> JsonResponse:
    """Insert contextual internal links into the posted content."""

    form = InjectLinksForm(request.POST)
    if not form.is_valid():
        return _form_errors(form)

    html_input = form.html_input()
    if form.cleaned_data['strip_existing_links']:
        html_input = strip_existing_links(html_input)

    base_url = form.cleaned_data.get('base_url') or settings.LINK_ENGINE_BASE_URL
    try:
        config = load_config(settings.LINK_ENGINE_CONFIG_PATH, form.engine_overrides())
        result = inject_links(html_input, form.cleaned_data['catalog'], base_url, config)
    except LinkEngineError as exc:
        logger.info('Rejected injection request: %s', exc)
        return JsonResponse({'errors': {'__all__': [{'message': str(exc), 'code': 'invalid'}]}}, status=400)

    return JsonResponse({'html': result.html, 'report': result.report.as_dict()})


@csrf_exempt
@require_POST
def candidates(request: HttpRequest) -> JsonResponse:
    """Rank the anchor candidates one block offers for one page, with score breakdowns."""

    form = CandidatePreviewForm(request.POST)
    if not form.is_valid():
        return _form_errors(form)

    page = form.cleaned_data['page']
    text = collapse_whitespace(form.cleaned_data['text'])
    heading = form.cleaned_data.get('heading') or None
    try:
        config = load_config(settings.LINK_ENGINE_CONFIG_PATH, form.engine_overrides())
    except LinkEngineError as exc:
        return JsonResponse({'errors': {'__all__': [{'message': str(exc), 'code': 'invalid'}]}}, status=400)

    rows = []
    for candidate in extract_candidates(text, page, None, config, heading=heading):
        features = score_breakdown(candidate, page, text, heading, config)
        rows.append(
            {
                'anchorText': candidate.text,
                'score': round(max(0.0, sum(features.values())), 2),
                'termOverlap': candidate.term_overlap,
                'features': {name: round(value, 2) for name, value in features.items()},
                'reason': score_reason(features),
            }
        )

    return JsonResponse(
        {
            'page': page.slug,
            'threshold': config.min_quality_score,
            'candidates': rows,
        }
    )


@require_GET
def health(request: HttpRequest) -> JsonResponse:
    return JsonResponse({'status': 'ok'})
