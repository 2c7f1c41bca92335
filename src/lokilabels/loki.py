"""Loki label-listing API.

Only ``GET /loki/api/v1/labels`` is supported. The request goes through an
:class:`~lokilabels.fetcher.AuthenticatedFetcher`, so it carries the bearer
token obtained during bootstrap.
"""

from __future__ import annotations

from lokilabels.fetcher import AuthenticatedFetcher
from lokilabels.models import LabelResponse
from lokilabels.output import info

LABELS_PATH = "/loki/api/v1/labels"


def labels_url(base_url: str) -> str:
    """Return the label-listing URL for the Loki instance at *base_url*."""
    return base_url.rstrip("/") + LABELS_PATH


def fetch_labels(fetcher: AuthenticatedFetcher, base_url: str) -> LabelResponse:
    """Fetch the label names known to Loki.

    Raises:
        LokiLabelsError: Any subclass raised by
            :meth:`~lokilabels.fetcher.AuthenticatedFetcher.get_json`.
    """
    info(f"Getting labels from Loki at {base_url}")
    return fetcher.get_json(labels_url(base_url), LabelResponse)
