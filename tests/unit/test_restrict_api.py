"""Tests for RestrictionApi routes, response parsing and pagination."""
from __future__ import annotations

import urllib.parse

import pytest

from aumos_data_residency.client.dispatcher import RequestDispatcher
from aumos_data_residency.client.models import RestrictionState
from aumos_data_residency.client.restrict_api import RestrictionApi
from aumos_data_residency.client.transport import HttpResponse
from aumos_data_residency.directory.codec import DirectoryId
from aumos_data_residency.errors import MalformedResponseError, RemoteError
from aumos_data_residency.restrictions.records import build_restriction

IDENTITY_URL = "https://identity.test/"
BASE_URL = "https://metadata.test/"


def _restriction(api: str, directory: str, regions: list[str] | None = None) -> dict[str, object]:
    return {
        "api": api,
        "directory": directory,
        "details": {
            "providers_allowed": ["aws"],
            "providers_denied": [],
            "regions_allowed": regions or ["xe"],
            "regions_denied": [],
        },
        "state": "enforced",
    }


@pytest.fixture()
def make_api(recording_transport, json_reply):
    def factory(route):
        def handler(call):
            if call.url.startswith(IDENTITY_URL):
                return json_reply(201, {"token": "tok"})
            split = urllib.parse.urlsplit(call.url)
            return route(call.method, split.path, dict(urllib.parse.parse_qsl(split.query)), call)

        transport = recording_transport(handler)
        dispatcher = RequestDispatcher.from_api_key(
            "abc123", IDENTITY_URL, BASE_URL, transport=transport
        )
        return RestrictionApi(dispatcher), transport

    return factory


class TestSingleRestriction:
    def test_set_puts_details(self, make_api) -> None:
        api, transport = make_api(lambda method, path, query, call: HttpResponse(201))
        record = build_restriction("config", "team/reports", region=["eu"], exclude_provider=["aws"])
        api.set_restriction(record)
        (call,) = transport.calls_to("metadata.test")
        assert call.method == "PUT"
        assert call.url == "https://metadata.test/v1/restrict/config/dGVhbS9yZXBvcnRz"
        assert call.json == record.to_details()

    def test_get_parses_restriction(self, make_api, json_reply) -> None:
        api, _ = make_api(
            lambda method, path, query, call: json_reply(200, _restriction("config", "Zm9vL2Jhcg=="))
        )
        restriction = api.get_restriction("config", DirectoryId.from_raw("foo/bar"))
        assert restriction.api == "config"
        assert restriction.details.regions_allowed == ["xe"]
        assert restriction.state is RestrictionState.ENFORCED
        assert restriction.directory_for_display(decode_output=True) == "foo/bar"

    def test_get_missing_raises_remote_error(self, make_api, json_reply) -> None:
        api, _ = make_api(
            lambda method, path, query, call: json_reply(404, {"title": "Not Found"})
        )
        with pytest.raises(RemoteError) as excinfo:
            api.get_restriction("config", DirectoryId.from_raw("nope"))
        assert excinfo.value.status == 404

    def test_get_empty_body_is_malformed(self, make_api) -> None:
        api, _ = make_api(lambda method, path, query, call: HttpResponse(200))
        with pytest.raises(MalformedResponseError):
            api.get_restriction("config", DirectoryId.from_raw("x"))

    def test_get_invalid_directory_is_malformed(self, make_api, json_reply) -> None:
        api, _ = make_api(
            lambda method, path, query, call: json_reply(200, _restriction("config", "not/base64"))
        )
        with pytest.raises(MalformedResponseError):
            api.get_restriction("config", DirectoryId.from_raw("x"))

    def test_delete(self, make_api) -> None:
        api, transport = make_api(lambda method, path, query, call: HttpResponse(200))
        api.delete_restriction("locks", DirectoryId.from_encoded("Zm9v"))
        (call,) = transport.calls_to("metadata.test")
        assert call.method == "DELETE"
        assert call.url.endswith("/v1/restrict/locks/Zm9v")

    def test_extra_fields_are_kept(self, make_api, json_reply) -> None:
        body = _restriction("config", "Zm9v")
        body["revision"] = 7
        api, _ = make_api(lambda method, path, query, call: json_reply(200, body))
        restriction = api.get_restriction("config", DirectoryId.from_encoded("Zm9v"))
        assert restriction.model_extra == {"revision": 7}


class TestPagination:
    def test_single_api_pages(self, make_api, json_reply) -> None:
        pages = {
            "": {"restrictions": [_restriction("config", "YQ==")], "next_key": "Yg=="},
            "Yg==": {"restrictions": [_restriction("config", "Yg==")], "next_key": None},
        }

        def route(method, path, query, call):
            assert path == "/v1/restrict/config"
            return json_reply(200, pages[query.get("from", "")])

        api, transport = make_api(route)
        restrictions = api.get_all_pages("config")
        assert [r.directory for r in restrictions] == ["YQ==", "Yg=="]
        assert len(transport.calls_to("metadata.test")) == 2

    def test_all_api_pages_carry_api_cursor(self, make_api, json_reply) -> None:
        seen_queries: list[dict[str, str]] = []

        def route(method, path, query, call):
            assert path == "/v1/restrict"
            seen_queries.append(query)
            if not query:
                return json_reply(
                    200,
                    {
                        "restrictions": [_restriction("config", "YQ==")],
                        "next_api": "locks",
                        "next_key": "Yg==",
                    },
                )
            return json_reply(200, {"restrictions": [_restriction("locks", "Yg==")]})

        api, _ = make_api(route)
        restrictions = api.get_all_pages()
        assert [r.api for r in restrictions] == ["config", "locks"]
        assert seen_queries == [{}, {"from_api": "locks", "from": "Yg=="}]

    def test_single_api_ignores_from_api(self, make_api, json_reply) -> None:
        api, transport = make_api(
            lambda method, path, query, call: json_reply(200, {"restrictions": []})
        )
        api.get_page("config", from_dir=DirectoryId.from_raw("a"), from_api="locks")
        (call,) = transport.calls_to("metadata.test")
        assert "from_api" not in call.url
        assert "from=YQ%3D%3D" in call.url

    def test_empty_listing(self, make_api, json_reply) -> None:
        api, _ = make_api(lambda method, path, query, call: json_reply(200, {"restrictions": []}))
        assert api.get_all_pages() == []

    def test_repeated_cursor_detected(self, make_api, json_reply) -> None:
        api, _ = make_api(
            lambda method, path, query, call: json_reply(
                200, {"restrictions": [], "next_key": "YQ=="}
            )
        )
        with pytest.raises(MalformedResponseError, match="repeated"):
            api.get_all_pages("config")

    def test_page_not_an_object(self, make_api, json_reply) -> None:
        api, _ = make_api(lambda method, path, query, call: json_reply(200, ["x"]))
        with pytest.raises(MalformedResponseError):
            api.get_page()
