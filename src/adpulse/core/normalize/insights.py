"""
Canonical insight records.

Flattens raw Graph API insight rows (with their ``actions`` and
``action_values`` lists) into flat metric records, and rolls records up
per day. The fetcher returns raw rows; this module is for its callers.
"""

from __future__ import annotations

import hashlib
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable

# Action types counted as a lead, in lookup order
LEAD_ACTIONS = ("lead", "on_facebook_lead", "onsite_conversion.lead_grouped")

# Action types counted as a conversion, in lookup order
CONVERSION_ACTIONS = ("purchase", "complete_registration", "offsite_conversion.fb_pixel_purchase")

VIDEO_VIEW_ACTIONS = ("video_view", "video_views")
VIDEO_3S_ACTIONS = ("video_view_3s", "video_views_3s")
VIDEO_THRUPLAY_ACTIONS = ("video_thruplay", "video_views_thruplay")


def to_number(value: Any) -> float:
    """Coerce Graph API numeric strings; anything unparseable is 0."""
    if value is None or value == "" or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def flatten_actions(actions: Any) -> dict[str, float]:
    """Turn ``[{"action_type": t, "value": v}, ...]`` into ``{t: v}``."""
    if not isinstance(actions, list):
        return {}
    flat: dict[str, float] = {}
    for action in actions:
        if not isinstance(action, dict):
            continue
        action_type = action.get("action_type")
        if action_type:
            flat[str(action_type)] = to_number(action.get("value"))
    return flat


def _first(flat: dict[str, float], keys: Iterable[str]) -> float:
    for key in keys:
        if flat.get(key):
            return flat[key]
    return 0.0


def _direct_rate(row: dict[str, Any], *keys: str) -> float | None:
    for key in keys:
        value = row.get(key)
        if value is not None and value != "":
            return to_number(value)
    return None


def _ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    return numerator / denominator * scale if denominator > 0 else 0.0


@dataclass
class InsightRecord:
    """One ad's metrics for one day."""

    account_id: str
    date: str | None
    campaign_id: str | None = None
    campaign_name: str = "Unknown Campaign"
    ad_id: str | None = None
    ad_name: str = "Unnamed Ad"

    spend: float = 0.0
    impressions: float = 0.0
    clicks: float = 0.0
    leads: float = 0.0
    conversions: float = 0.0

    # Percentages
    ctr: float = 0.0
    hook_rate: float = 0.0
    hold_rate: float = 0.0

    cpl: float = 0.0

    video_views: float = 0.0
    video_3s_views: float = 0.0
    video_thruplays: float = 0.0

    actions: dict[str, float] = field(default_factory=dict)
    action_values: dict[str, float] = field(default_factory=dict)

    def record_key(self) -> str:
        """Stable identity of the (account, ad, day) row, for upserts."""
        raw = f"{self.account_id}|{self.campaign_id or ''}|{self.ad_id or ''}|{self.date or ''}"
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:32]

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["record_key"] = self.record_key()
        return data


def normalize_insight(row: dict[str, Any], account_id: str = "") -> InsightRecord:
    """Normalize one raw insights row."""
    actions = flatten_actions(row.get("actions"))
    values = flatten_actions(row.get("action_values"))

    spend = to_number(row.get("spend"))
    impressions = to_number(row.get("impressions"))
    clicks = to_number(row.get("clicks"))
    leads = _first(actions, LEAD_ACTIONS)

    video_views = _first(actions, VIDEO_VIEW_ACTIONS)
    video_3s = _first(actions, VIDEO_3S_ACTIONS)
    thruplays = _first(actions, VIDEO_THRUPLAY_ACTIONS)

    # Direct rate fields are already percentages
    hook_rate = _direct_rate(row, "hook_rate")
    if hook_rate is None:
        hook_rate = _ratio(video_3s, impressions, 100.0)
    hold_rate = _direct_rate(row, "hold_rate", "Hold_rate")
    if hold_rate is None:
        hold_rate = _ratio(thruplays, video_views, 100.0)

    campaign_id = row.get("campaign_id")
    ad_id = row.get("ad_id")

    return InsightRecord(
        account_id=account_id or str(row.get("account_id") or ""),
        date=row.get("date_start") or row.get("date"),
        campaign_id=str(campaign_id) if campaign_id else None,
        campaign_name=row.get("campaign_name") or "Unknown Campaign",
        ad_id=str(ad_id) if ad_id else None,
        ad_name=row.get("ad_name") or "Unnamed Ad",
        spend=spend,
        impressions=impressions,
        clicks=clicks,
        leads=leads,
        conversions=_first(actions, CONVERSION_ACTIONS),
        ctr=_ratio(clicks, impressions, 100.0),
        hook_rate=hook_rate,
        hold_rate=hold_rate,
        cpl=_ratio(spend, leads),
        video_views=video_views,
        video_3s_views=video_3s,
        video_thruplays=thruplays,
        actions=actions,
        action_values=values,
    )


@dataclass
class DailySummary:
    """All records of one day added together."""

    date: str
    spend: float = 0.0
    impressions: float = 0.0
    clicks: float = 0.0
    leads: float = 0.0
    conversions: float = 0.0
    actions: dict[str, float] = field(default_factory=dict)

    @property
    def cpl(self) -> float:
        return _ratio(self.spend, self.leads)

    @property
    def ctr(self) -> float:
        return _ratio(self.clicks, self.impressions, 100.0)


def summarize_by_date(records: Iterable[InsightRecord]) -> list[DailySummary]:
    """Roll records up per day, oldest first. Records without a date are skipped."""
    days: dict[str, DailySummary] = {}
    for record in records:
        if not record.date:
            continue
        day = days.get(record.date)
        if day is None:
            day = days[record.date] = DailySummary(date=record.date)
        day.spend += record.spend
        day.impressions += record.impressions
        day.clicks += record.clicks
        day.leads += record.leads
        day.conversions += record.conversions
        for action_type, value in record.actions.items():
            day.actions[action_type] = day.actions.get(action_type, 0.0) + value
    return [days[key] for key in sorted(days)]
