import io
import json
from urllib.parse import parse_qs, urlparse

import pytest
import responses

from idxtool.client import AlgoliaError, Console, SearchClient, run_search

BASE = "https://search.example.com"


def make_client():
    api_key = "placeholder"
    return SearchClient("APPID", api_key, base_url=BASE)


def make_console(stdin=""):
    return Console(stdin=io.StringIO(stdin), stdout=io.StringIO(), stderr=io.StringIO())


def query_of(call):
    return {k: v[0] for k, v in parse_qs(urlparse(call.request.url).query).items()}


def test_run_search_sends_query_and_params():
    console = make_console()
    params = {"query": "toy story", "hitsPerPage": 2}
    body = {"hits": [{"objectID": "1"}]}
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, f"{BASE}/1/indexes/foo/query", json=body)
        result = run_search(make_client(), "foo", params, console)
        sent = json.loads(rsps.calls[0].request.body)
    assert result == body
    assert json.loads(console.stdout.getvalue()) == body
    decoded = {k: v[0] for k, v in parse_qs(sent["params"]).items()}
    assert decoded["query"] == "toy story"
    assert decoded["hitsPerPage"] == "2"
    assert params["query"] == "toy story"


def test_run_search_without_query_sends_empty_query():
    console = make_console()
    body = {"hits": [], "nbHits": 0}
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, f"{BASE}/1/indexes/foo/query", json=body)
        result = run_search(make_client(), "foo", {"page": 4}, console)
        sent = json.loads(rsps.calls[0].request.body)
    assert result == body
    decoded = parse_qs(sent["params"], keep_blank_values=True)
    assert decoded["query"] == [""]
    assert decoded["page"] == ["4"]


def test_error_response_raises_with_message_and_status():
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            f"{BASE}/1/indexes/foo/rules/1",
            json={"message": "ObjectID does not exist"},
            status=404,
        )
        with pytest.raises(AlgoliaError) as info:
            make_client().init_index("foo").get_rule("1")
    assert str(info.value) == "ObjectID does not exist"
    assert info.value.status == 404


def test_credentials_are_sent_as_headers():
    body = {"objectID": "1", "type": "synonym", "synonyms": ["a", "b"]}
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{BASE}/1/indexes/foo/synonyms/1", json=body)
        result = make_client().init_index("foo").get_synonym("1")
        headers = rsps.calls[0].request.headers
    assert result == body
    assert headers["X-Algolia-Application-Id"] == "APPID"
    assert headers["X-Algolia-API-Key"] == "placeholder"


def test_save_rules_flags_in_query_string():
    rules = [{"objectID": "test"}]
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, f"{BASE}/1/indexes/foo/rules/batch", json={})
        rsps.add(responses.POST, f"{BASE}/1/indexes/foo/rules/batch", json={})
        index = make_client().init_index("foo")
        index.save_rules(rules, True, True)
        index.save_rules(rules, True)
        first, second = rsps.calls
    assert query_of(first)["clearExistingRules"] == "true"
    assert query_of(first)["forwardToReplicas"] == "true"
    assert "clearExistingRules" not in query_of(second)
    assert json.loads(first.request.body) == rules


def test_save_synonyms_replace_flag():
    body = {"taskID": 5}
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, f"{BASE}/1/indexes/foo/synonyms/batch", json=body)
        result = make_client().init_index("foo").save_synonyms(
            [{"objectID": "a"}], False, True
        )
        call = rsps.calls[0]
    assert result == body
    assert query_of(call)["replaceExistingSynonyms"] == "true"
    assert query_of(call)["forwardToReplicas"] == "false"


def test_browse_synonyms_follows_pages():
    pages = [
        {"hits": [{"objectID": "foo"}], "nbPages": 2},
        {"hits": [{"objectID": "bar"}], "nbPages": 2},
    ]
    with responses.RequestsMock() as rsps:
        for page in pages:
            rsps.add(responses.POST, f"{BASE}/1/indexes/foo/synonyms/search", json=page)
        hits = list(make_client().init_index("foo").browse_synonyms())
        sent_pages = [json.loads(call.request.body)["page"] for call in rsps.calls]
    assert hits == [{"objectID": "foo"}, {"objectID": "bar"}]
    assert sent_pages == [0, 1]


def test_browse_rules_single_page_without_page_count():
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.POST,
            f"{BASE}/1/indexes/foo/rules/search",
            json={"hits": [{"objectID": "foo"}]},
        )
        hits = list(make_client().init_index("foo").browse_rules())
    assert hits == [{"objectID": "foo"}]


def test_delete_synonym_uses_delete_with_forward_flag():
    body = {"taskID": 9, "deletedAt": "2020-01-01T00:00:00Z"}
    with responses.RequestsMock() as rsps:
        rsps.add(responses.DELETE, f"{BASE}/1/indexes/foo/synonyms/1", json=body)
        result = make_client().init_index("foo").delete_synonym("1", False)
        call = rsps.calls[0]
    assert result == body
    assert query_of(call)["forwardToReplicas"] == "false"


def test_save_synonym_puts_payload_under_object_id():
    synonym = {"objectID": "1", "type": "synonym", "synonyms": ["jordan", "mj"]}
    with responses.RequestsMock() as rsps:
        rsps.add(responses.PUT, f"{BASE}/1/indexes/legends/synonyms/1", json={})
        make_client().init_index("legends").save_synonym(synonym, True)
        call = rsps.calls[0]
    assert json.loads(call.request.body) == synonym
    assert query_of(call)["forwardToReplicas"] == "true"


def test_set_settings_and_index_name_quoting():
    settings = {"enableReRanking": True}
    with responses.RequestsMock() as rsps:
        rsps.add(responses.PUT, f"{BASE}/1/indexes/my%20index/settings", json={})
        make_client().init_index("my index").set_settings(settings)
        call = rsps.calls[0]
    assert json.loads(call.request.body) == settings
    assert urlparse(call.request.url).path == "/1/indexes/my%20index/settings"


@pytest.mark.parametrize("answer, expected", [("y\n", True), ("yes\n", True), ("n\n", False), ("\n", False)])
def test_console_confirm(answer, expected):
    assert make_console(answer).confirm("Delete?") is expected


def test_console_ask_returns_answer_or_default():
    console = make_console("\nvalue\n")
    assert console.ask("id:", "fallback") == "fallback"
    assert console.ask("id:", "fallback") == "value"


def test_console_ask_without_input_raises():
    with pytest.raises(EOFError):
        make_console("").ask("id:", "")


def test_console_icons_and_tty():
    console = make_console()
    assert console.success_icon() == "✓"
    assert console.failure_icon() == "X"
    assert console.can_prompt is False
    console.write("abc")
    assert console.stdout.getvalue() == "abc"