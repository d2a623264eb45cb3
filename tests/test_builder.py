import orjson

from adpulse.core.query.builder import (
    DEFAULT_FIELDS,
    build_filtering,
    build_params,
    graph_url,
    insights_url,
)
from adpulse.core.query.descriptor import RequestDescriptor, SelectedEntities


def _descriptor(**kwargs) -> RequestDescriptor:
    return RequestDescriptor(account_id="77", since="2024-05-01", until="2024-05-03", **kwargs)


def test_select_all_has_only_status_predicates() -> None:
    filtering = build_filtering(_descriptor(statuses=("ACTIVE",)))

    assert filtering == [
        {"field": "campaign.effective_status", "operator": "IN", "value": ["ACTIVE"]},
        {"field": "ad.effective_status", "operator": "IN", "value": ["ACTIVE"]},
    ]


def test_selected_entities_add_in_predicates() -> None:
    filtering = build_filtering(_descriptor(
        campaigns=SelectedEntities(ids=("2", "1")),
        ads=SelectedEntities(ids=("9",)),
    ))
    by_field = {predicate["field"]: predicate["value"] for predicate in filtering}

    assert by_field["campaign.id"] == ["1", "2"]
    assert by_field["ad.id"] == ["9"]


def test_params_request_daily_ad_level_rows() -> None:
    params = build_params(_descriptor(), page_size=250)

    assert params["level"] == "ad"
    assert params["time_increment"] == "1"
    assert params["limit"] == "250"
    assert params["fields"] == ",".join(DEFAULT_FIELDS)
    assert orjson.loads(params["time_range"]) == {"since": "2024-05-01", "until": "2024-05-03"}
    assert "access_token" not in params


def test_custom_fields() -> None:
    params = build_params(_descriptor(), fields=["spend", "ad_id"])

    assert params["fields"] == "spend,ad_id"


def test_urls() -> None:
    assert graph_url("https://graph.test/", "v21.0", "/me/adaccounts") == "https://graph.test/v21.0/me/adaccounts"
    assert insights_url("https://graph.test", "v21.0", "77") == "https://graph.test/v21.0/act_77/insights"
