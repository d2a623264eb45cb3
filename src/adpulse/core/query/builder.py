"""
Translate request descriptors into Graph API insights query parameters.

One request per (account, date range, filter set). Selected campaigns or
ads become ``IN`` predicates; "select all" omits the predicate entirely.
"""

from __future__ import annotations

from typing import Any

import orjson

from .descriptor import RequestDescriptor, SelectedEntities

DEFAULT_FIELDS: tuple[str, ...] = (
    "ad_id",
    "ad_name",
    "campaign_id",
    "campaign_name",
    "impressions",
    "clicks",
    "spend",
    "ctr",
    "cpc",
    "actions",
    "action_values",
    "date_start",
    "date_stop",
)

DEFAULT_PAGE_SIZE = 1000


def in_predicate(field: str, values: tuple[str, ...] | list[str]) -> dict[str, Any]:
    """Graph ``filtering`` entry matching any of ``values``."""
    return {"field": field, "operator": "IN", "value": list(values)}


def build_filtering(descriptor: RequestDescriptor) -> list[dict[str, Any]]:
    """Build the ``filtering`` predicate list for a descriptor."""
    filtering = [
        in_predicate("campaign.effective_status", descriptor.statuses),
        in_predicate("ad.effective_status", descriptor.statuses),
    ]
    if isinstance(descriptor.campaigns, SelectedEntities):
        filtering.append(in_predicate("campaign.id", descriptor.campaigns.ids))
    if isinstance(descriptor.ads, SelectedEntities):
        filtering.append(in_predicate("ad.id", descriptor.ads.ids))
    return filtering


def build_params(
    descriptor: RequestDescriptor,
    fields: tuple[str, ...] | list[str] = DEFAULT_FIELDS,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> dict[str, str]:
    """Build the first-page query parameters (without the access token)."""
    time_range = {
        "since": descriptor.since.isoformat(),
        "until": descriptor.until.isoformat(),
    }
    return {
        "level": "ad",
        "time_increment": "1",
        "time_range": orjson.dumps(time_range).decode("utf-8"),
        "fields": ",".join(fields),
        "limit": str(page_size),
        "filtering": orjson.dumps(build_filtering(descriptor)).decode("utf-8"),
    }


def graph_url(base_url: str, api_version: str, path: str) -> str:
    """Join the versioned Graph API root with an edge path."""
    return f"{base_url.rstrip('/')}/{api_version.strip('/')}/{path.lstrip('/')}"


def insights_url(base_url: str, api_version: str, account_id: str) -> str:
    return graph_url(base_url, api_version, f"act_{account_id}/insights")
