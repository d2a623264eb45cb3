import pytest

from adpulse.core.fetch.pagination import after_cursor, page_rows


def test_page_rows_shapes() -> None:
    assert page_rows({"data": [{"a": 1}]}) == [{"a": 1}]
    assert page_rows({"data": []}) == []
    assert page_rows([{"a": 1}]) == [{"a": 1}]
    assert page_rows({"data": {"a": 1}}) is None
    assert page_rows({}) is None
    assert page_rows(None) is None


def test_cursor_from_next_url() -> None:
    payload = {
        "data": [],
        "paging": {
            "cursors": {"after": "fallback"},
            "next": "https://graph.test/v21.0/act_1/insights?limit=10&after=QVFI",
        },
    }

    assert after_cursor(payload) == "QVFI"


def test_cursor_falls_back_to_cursors_after() -> None:
    payload = {"paging": {"next": "https://graph.test/next?limit=10", "cursors": {"after": "abc"}}}

    assert after_cursor(payload) == "abc"


@pytest.mark.parametrize(
    "payload",
    [
        {"data": []},
        {"data": [], "paging": {"cursors": {"after": "abc"}}},
        {"data": [], "paging": {"next": ""}},
        {"data": [], "paging": {"next": 42}},
        {"data": [], "paging": ["next"]},
        {"data": [], "paging": {"next": "https://graph.test/next?limit=10"}},
        "not a payload",
    ],
)
def test_no_cursor(payload) -> None:
    assert after_cursor(payload) is None


def test_malformed_paging_is_logged(caplog) -> None:
    with caplog.at_level("WARNING"):
        after_cursor({"paging": "broken"})

    assert "malformed paging" in caplog.text
