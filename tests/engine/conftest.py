"""Shared fixtures for engine tests."""

from __future__ import annotations

from typing import Iterable

import pytest

from linkinjector.engine.config import load_config
from linkinjector.engine.types import TargetPage


@pytest.fixture()
def engine_config():
    """Provide a fresh copy of the default engine configuration."""

    return load_config(None)


def make_page(
    title: str,
    slug: str,
    *,
    keywords: Iterable[str] | None = None,
    description: str | None = None,
    url: str | None = None,
) -> TargetPage:
    return TargetPage(
        title=title,
        slug=slug,
        description=description,
        keywords=tuple(keywords or ()),
        url=url,
    )
