"""Forms for the linkinjector HTTP endpoints.

The forms validate request payloads before they reach the engine: the page
catalog arrives as JSON text and is checked entry by entry so that the
client gets a message naming the offending entry.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from django import forms
from django.utils.html import escape

from .engine.config import POSITIONS
from .engine.errors import InvalidCatalogError
from .engine.index import validate_catalog
from .engine.types import TargetPage

POSITION_CHOICES = [('', 'Default')] + [(position, position.title()) for position in POSITIONS]


def _parse_json(raw_value: str, label: str) -> Any:
    try:
        return json.loads(raw_value)
    except ValueError as exc:
        raise forms.ValidationError(f'{label} is not valid JSON: {exc}') from exc


class EngineOptionsMixin(forms.Form):
    """Per-request overrides of the engine configuration."""

    min_quality_score = forms.FloatField(
        required=False,
        min_value=0,
        max_value=100,
        label='Minimum quality score',
        help_text='Anchors scoring below this are never linked (default 40).',
    )
    preferred_position = forms.ChoiceField(
        required=False,
        choices=POSITION_CHOICES,
        label='Preferred position',
        help_text='Where inside a paragraph anchors should preferably sit.',
    )

    def engine_overrides(self) -> Dict[str, Any]:
        overrides: Dict[str, Any] = {}
        if self.cleaned_data.get('min_quality_score') is not None:
            overrides['min_quality_score'] = self.cleaned_data['min_quality_score']
        if self.cleaned_data.get('preferred_position'):
            overrides['preferred_position'] = self.cleaned_data['preferred_position']
        return overrides


class InjectLinksForm(EngineOptionsMixin):
    """Content plus target catalog for one injection run."""

    content = forms.CharField(
        strip=False,
        label='Content',
        help_text='The article body, as HTML or plain text.',
    )
    catalog = forms.CharField(
        label='Catalog',
        help_text='JSON list of target pages, each with at least "title" and "slug".',
    )
    base_url = forms.URLField(
        required=False,
        label='Base URL',
        help_text='Prefix for target URLs built from slugs (e.g. https://example.com).',
    )
    max_links = forms.IntegerField(
        required=False,
        min_value=0,
        max_value=50,
        label='Maximum links',
        help_text='Cap on links inserted into the document (default 12).',
    )
    is_html_input = forms.BooleanField(
        required=False,
        label='Content is HTML',
        help_text='Leave unchecked to wrap each non-empty line of text in a paragraph.',
    )
    strip_existing_links = forms.BooleanField(
        required=False,
        label='Remove existing links',
        help_text='Strip <a> tags from the content before adding new links.',
    )

    def clean_catalog(self) -> List[TargetPage]:
        """Parse the JSON catalog into validated target pages."""

        raw_value = self.cleaned_data.get('catalog', '')
        data = _parse_json(raw_value, 'Catalog')
        try:
            return validate_catalog(data)
        except InvalidCatalogError as exc:
            raise forms.ValidationError(str(exc)) from exc

    def engine_overrides(self) -> Dict[str, Any]:
        overrides = super().engine_overrides()
        if self.cleaned_data.get('max_links') is not None:
            overrides['max_links_per_document'] = self.cleaned_data['max_links']
        return overrides

    def html_input(self) -> str:
        content: str = self.cleaned_data['content']
        if self.cleaned_data.get('is_html_input'):
            return content
        paragraphs = [line.strip() for line in content.splitlines() if line.strip()]
        return ''.join(f'<p>{escape(paragraph)}</p>' for paragraph in paragraphs)


class CandidatePreviewForm(EngineOptionsMixin):
    """One block of text and one target page, for inspecting candidate scores."""

    text = forms.CharField(label='Block text')
    page = forms.CharField(
        label='Target page',
        help_text='JSON object with at least "title" and "slug".',
    )
    heading = forms.CharField(required=False, label='Section heading')

    def clean_page(self) -> TargetPage:
        data = _parse_json(self.cleaned_data.get('page', ''), 'Target page')
        try:
            return TargetPage.from_mapping(data)
        except InvalidCatalogError as exc:
            raise forms.ValidationError(str(exc)) from exc
