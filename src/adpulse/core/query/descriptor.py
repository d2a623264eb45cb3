"""
Request descriptors for insights fetches.

A descriptor identifies one unit of work: a date range, an ad account and
the entity filters applied to it. It doubles as the cache key, so every
field is normalized on construction and serialized deterministically.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Union

from adpulse.core.errors import ValidationError

ACCOUNT_PREFIX = "act_"

# Effective statuses requested when the caller does not narrow them
DEFAULT_STATUSES: tuple[str, ...] = (
    "ACTIVE",
    "PAUSED",
    "ARCHIVED",
    "IN_REVIEW",
    "REJECTED",
    "PENDING_REVIEW",
    "LEARNING",
    "ENDED",
)


def normalize_account_id(account_id: Any) -> str:
    """Strip whitespace and the ``act_`` prefix from an ad account id."""
    if account_id is None:
        return ""
    value = str(account_id).strip()
    if value.startswith(ACCOUNT_PREFIX):
        value = value[len(ACCOUNT_PREFIX):]
    return value


def _coerce_date(value: Any, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as e:
            raise ValidationError(f"{field_name} is not an ISO date: {value!r}", field=field_name) from e
    raise ValidationError(f"{field_name} is required", field=field_name)


def _coerce_ids(values: Iterable[Any], field_name: str) -> tuple[str, ...]:
    if isinstance(values, (str, bytes)):
        values = [values]
    ids: set[str] = set()
    for raw in values:
        value = str(raw).strip() if raw is not None else ""
        if not value:
            raise ValidationError(f"{field_name} contains a blank id", field=field_name)
        ids.add(value)
    return tuple(sorted(ids))


# =============================================================================
# Entity filters
# =============================================================================


@dataclass(frozen=True)
class AllEntities:
    """Select every entity of a dimension. Encoded as no predicate at all."""

    def key(self) -> str:
        return "*"


@dataclass(frozen=True)
class SelectedEntities:
    """Explicit allow-list of entity ids.

    Ids are stringified, deduplicated and sorted so that the same logical
    selection always produces the same key.
    """

    ids: tuple[str, ...]

    def __post_init__(self) -> None:
        ids = _coerce_ids(self.ids, "ids")
        if not ids:
            raise ValidationError("An explicit selection needs at least one id", field="ids")
        object.__setattr__(self, "ids", ids)

    def key(self) -> str:
        return ",".join(self.ids)


EntityFilter = Union[AllEntities, SelectedEntities]

ALL = AllEntities()


def entity_filter(ids: Iterable[Any] | None = None, select_all: bool | None = None) -> EntityFilter:
    """Build a filter from loose caller input.

    ``select_all`` wins over ``ids``; no ids and no flag also means all.
    """
    if select_all or ids is None:
        return ALL
    # A lone id is one selection, not a sequence of characters
    ids = [ids] if isinstance(ids, (str, bytes)) else list(ids)
    if select_all is None and not ids:
        return ALL
    return SelectedEntities(ids=tuple(ids))


# =============================================================================
# Descriptor
# =============================================================================


@dataclass(frozen=True)
class RequestDescriptor:
    """Immutable identity of an insights fetch."""

    account_id: str
    since: date
    until: date
    campaigns: EntityFilter = ALL
    ads: EntityFilter = ALL
    statuses: tuple[str, ...] = field(default=DEFAULT_STATUSES)

    def __post_init__(self) -> None:
        account_id = normalize_account_id(self.account_id)
        if not account_id:
            raise ValidationError("account_id is required", field="account_id")

        since = _coerce_date(self.since, "since")
        until = _coerce_date(self.until, "until")
        if since > until:
            raise ValidationError(
                f"since ({since.isoformat()}) is after until ({until.isoformat()})",
                field="since",
            )

        for name in ("campaigns", "ads"):
            if not isinstance(getattr(self, name), (AllEntities, SelectedEntities)):
                raise ValidationError(f"{name} must be AllEntities or SelectedEntities", field=name)

        statuses = tuple(sorted({s.strip().upper() for s in _coerce_ids(self.statuses, "statuses")}))
        if not statuses:
            raise ValidationError("statuses must not be empty", field="statuses")

        object.__setattr__(self, "account_id", account_id)
        object.__setattr__(self, "since", since)
        object.__setattr__(self, "until", until)
        object.__setattr__(self, "statuses", statuses)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RequestDescriptor":
        """Build a descriptor from loosely typed input.

        Accepts ``account_id``/``ad_account_id``, ``since``/``from``,
        ``until``/``to``, ``campaign_ids`` + ``all_campaigns`` and
        ``ad_ids`` + ``all_ads``.
        """
        if not isinstance(data, Mapping):
            raise ValidationError(f"Expected a mapping, got {type(data).__name__}")

        account_id = data.get("account_id", data.get("ad_account_id"))
        since = data.get("since", data.get("from"))
        until = data.get("until", data.get("to"))

        kwargs: dict[str, Any] = {
            "account_id": account_id,
            "since": since,
            "until": until,
            "campaigns": entity_filter(data.get("campaign_ids"), data.get("all_campaigns")),
            "ads": entity_filter(data.get("ad_ids"), data.get("all_ads")),
        }
        if data.get("statuses"):
            kwargs["statuses"] = data["statuses"]
        return cls(**kwargs)

    def cache_key(self) -> str:
        """Deterministic serialization used for caching and single-flight."""
        return "|".join([
            self.since.isoformat(),
            self.until.isoformat(),
            self.account_id,
            f"campaigns={self.campaigns.key()}",
            f"ads={self.ads.key()}",
            f"statuses={','.join(self.statuses)}",
        ])

    def __str__(self) -> str:
        return f"act_{self.account_id} {self.since.isoformat()}..{self.until.isoformat()}"
