"""
Ad account discovery and entity listing.

Lists the ad accounts visible to the access token, looks up display names,
and lists the campaigns and ads whose ids feed insight filters. Calls go
through the fetcher's admission queue but are not cached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

import orjson

from adpulse.core.errors import UpstreamError, ValidationError
from adpulse.core.fetch.fetcher import InsightsFetcher
from adpulse.core.query.builder import in_predicate
from adpulse.core.query.descriptor import normalize_account_id

logger = logging.getLogger(__name__)

ACCOUNTS_EDGE = "me/adaccounts"

CAMPAIGN_FIELDS = "id,name,status,effective_status,objective"
AD_FIELDS = "id,name,status,effective_status,campaign_id"
ENTITY_PAGE_SIZE = 1000


@dataclass(frozen=True)
class AdAccount:
    """An ad account id (without ``act_``) and its display name."""

    id: str
    name: str


def normalize_account(raw: dict[str, Any]) -> AdAccount | None:
    """Normalize one ``me/adaccounts`` entry; None when it has no id."""
    raw_id = raw.get("account_id")
    if raw_id is None:
        raw_id = raw.get("id")
    account_id = normalize_account_id(raw_id)
    if not account_id:
        return None
    name = str(raw.get("name") or raw.get("account_name") or "").strip()
    return AdAccount(id=account_id, name=name or f"Account {account_id}")


async def list_ad_accounts(
    fetcher: InsightsFetcher,
    *,
    page_size: int = 100,
    max_pages: int = 10,
) -> list[AdAccount]:
    """List every ad account reachable with the fetcher's token.

    Raises:
        UpstreamError: If any page request fails
    """
    rows = await fetcher.paginate(
        ACCOUNTS_EDGE,
        {"fields": "account_id,name", "limit": str(page_size)},
        max_pages=max_pages,
    )

    accounts: list[AdAccount] = []
    seen: set[str] = set()
    for row in rows:
        if not isinstance(row, dict):
            continue
        account = normalize_account(row)
        if account is None or account.id in seen:
            continue
        seen.add(account.id)
        accounts.append(account)

    logger.info("Discovered %d ad accounts", len(accounts))
    return accounts


async def fetch_account_name(fetcher: InsightsFetcher, account_id: str) -> str:
    """Look up an account's display name; empty string when unavailable."""
    account_id = normalize_account_id(account_id)
    try:
        payload = await fetcher.get_object(f"act_{account_id}", {"fields": "name"})
    except UpstreamError as e:
        logger.warning("Could not fetch name for account %s: %s", account_id, e, extra={"account": account_id})
        return ""
    if isinstance(payload, dict) and payload.get("name"):
        return str(payload["name"])
    return ""


# =============================================================================
# Campaigns and ads
# =============================================================================


@dataclass(frozen=True)
class Campaign:
    """A campaign of one ad account."""

    id: str
    name: str
    status: str = ""
    effective_status: str = ""
    objective: str = ""


@dataclass(frozen=True)
class Ad:
    """An ad and the campaign it belongs to."""

    id: str
    name: str
    campaign_id: str = ""
    status: str = ""
    effective_status: str = ""


def _text(raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    return str(value).strip() if value is not None else ""


def _require_account(account_id: Any) -> str:
    account_id = normalize_account_id(account_id)
    if not account_id:
        raise ValidationError("account_id is required", field="account_id")
    return account_id


async def list_campaigns(
    fetcher: InsightsFetcher,
    account_id: str,
    *,
    page_size: int = ENTITY_PAGE_SIZE,
    max_pages: int | None = None,
) -> list[Campaign]:
    """List the campaigns of one ad account.

    Raises:
        ValidationError: If the account id is blank (no upstream call)
        UpstreamError: If any page request fails
    """
    account_id = _require_account(account_id)
    rows = await fetcher.paginate(
        f"act_{account_id}/campaigns",
        {"fields": CAMPAIGN_FIELDS, "limit": str(page_size)},
        max_pages=max_pages,
    )

    campaigns = [
        Campaign(
            id=_text(row, "id"),
            name=_text(row, "name") or f"Campaign {_text(row, 'id')}",
            status=_text(row, "status"),
            effective_status=_text(row, "effective_status"),
            objective=_text(row, "objective"),
        )
        for row in rows
        if isinstance(row, dict) and _text(row, "id")
    ]
    logger.info("Listed %d campaigns", len(campaigns), extra={"account": account_id, "rows": len(campaigns)})
    return campaigns


async def list_ads(
    fetcher: InsightsFetcher,
    account_id: str,
    *,
    campaign_ids: Iterable[Any] | None = None,
    page_size: int = ENTITY_PAGE_SIZE,
    max_pages: int | None = None,
) -> list[Ad]:
    """List the ads of one ad account, optionally only those of some campaigns.

    Raises:
        ValidationError: If the account id or a campaign id is blank
        UpstreamError: If any page request fails
    """
    account_id = _require_account(account_id)
    params = {"fields": AD_FIELDS, "limit": str(page_size)}

    if campaign_ids is not None:
        if isinstance(campaign_ids, (str, bytes)):
            campaign_ids = [campaign_ids]
        ids = sorted({str(raw).strip() for raw in campaign_ids})
        if not ids or "" in ids:
            raise ValidationError("campaign_ids must hold non-blank ids", field="campaign_ids")
        params["filtering"] = orjson.dumps([in_predicate("campaign.id", ids)]).decode("utf-8")

    rows = await fetcher.paginate(f"act_{account_id}/ads", params, max_pages=max_pages)

    ads = [
        Ad(
            id=_text(row, "id"),
            name=_text(row, "name") or f"Ad {_text(row, 'id')}",
            campaign_id=_text(row, "campaign_id"),
            status=_text(row, "status"),
            effective_status=_text(row, "effective_status"),
        )
        for row in rows
        if isinstance(row, dict) and _text(row, "id")
    ]
    logger.info("Listed %d ads", len(ads), extra={"account": account_id, "rows": len(ads)})
    return ads
