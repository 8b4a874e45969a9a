"""End-to-end tests: CLI and ResidencyController against a local control-plane."""
from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from aumos_data_residency import ResidencyController
from aumos_data_residency.cli.main import cli
from aumos_data_residency.config.loader import ENV_API_KEY, ENV_IDENTITY_URL, ENV_RESTRICT_URL
from aumos_data_residency.errors import (
    AuthError,
    AuthExhaustedError,
    RemoteError,
    UnknownIdentifierError,
)

TEAM_REPORTS = "dGVhbS9yZXBvcnRz"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (ENV_API_KEY, ENV_IDENTITY_URL, ENV_RESTRICT_URL):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def invoke(config_file):
    runner = CliRunner()

    def _invoke(*args: str):
        return runner.invoke(cli, ["-c", str(config_file), *args])

    return _invoke


@pytest.fixture()
def controller(control_plane) -> ResidencyController:
    return ResidencyController(
        api_key=control_plane.state.api_key,
        identity_url=control_plane.url,
        restrict_url=control_plane.url,
        allow_insecure_urls=True,
    )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class TestCliAgainstControlPlane:
    def test_account_token(self, invoke, control_plane) -> None:
        result = invoke("account", "token")
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "tok-1"
        assert control_plane.state.identify_calls == 1

    def test_account_token_json(self, invoke) -> None:
        result = invoke("account", "token", "--json")
        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["token"] == "tok-1"
        assert payload["tenant"] == "tnt-abcdef"
        assert payload["subdomain"] == "pequod"

    def test_set_then_get(self, invoke, control_plane) -> None:
        result = invoke("restrict", "set", "config", "team/reports", "-r", "eu", "-P", "aws")
        assert result.exit_code == 0, result.output
        assert "Restricted" in result.output

        stored = control_plane.state.restrictions[("config", TEAM_REPORTS)]
        assert stored["regions_allowed"] == ["xe"]
        assert stored["providers_denied"] == ["aws"]

        result = invoke("restrict", "get", "config", "team/reports", "--format", "json")
        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["directory"] == TEAM_REPORTS
        assert payload["state"] == "enforced"
        assert payload["details"]["regions_allowed"] == ["xe"]

    def test_get_decoded(self, invoke) -> None:
        invoke("restrict", "set", "config", "team/reports")
        result = invoke("restrict", "get", "config", TEAM_REPORTS, "--base64", "--decode")
        assert result.exit_code == 0, result.output
        assert "team/reports" in result.output

    def test_get_missing_restriction(self, invoke) -> None:
        result = invoke("restrict", "get", "config", "nothing-here")
        assert result.exit_code == 1
        assert "HTTP 404" in result.output
        assert "Not Found" in result.output

    def test_delete(self, invoke, control_plane) -> None:
        invoke("restrict", "set", "locks", "team/reports")
        result = invoke("restrict", "delete", "locks", "team/reports")
        assert result.exit_code == 0, result.output
        assert "Deleted" in result.output
        assert control_plane.state.restrictions == {}

    def test_list_follows_pages(self, invoke, control_plane) -> None:
        for api, directory in [("config", "a"), ("config", "b"), ("locks", "c"), ("placement", "d")]:
            assert invoke("restrict", "set", api, directory).exit_code == 0

        result = invoke("restrict", "list", "--decode", "--format", "json")
        assert result.exit_code == 0, result.output
        listed = [(item["api"], item["directory"]) for item in json.loads(result.output)]
        assert listed == [("config", "a"), ("config", "b"), ("locks", "c"), ("placement", "d")]

    def test_list_single_api(self, invoke) -> None:
        for directory in ("a", "b", "c"):
            invoke("restrict", "set", "config", directory)
        invoke("restrict", "set", "locks", "z")

        result = invoke("restrict", "list", "config", "--decode", "--format", "json")
        assert result.exit_code == 0, result.output
        assert [item["directory"] for item in json.loads(result.output)] == ["a", "b", "c"]

    def test_list_table(self, invoke) -> None:
        invoke("restrict", "set", "config", "team/reports", "-r", "eu", "-p", "aws")
        result = invoke("restrict", "list")
        assert result.exit_code == 0, result.output
        assert TEAM_REPORTS in result.output
        assert "Total restrictions" in result.output

    def test_list_empty(self, invoke) -> None:
        result = invoke("restrict", "list")
        assert result.exit_code == 0
        assert "No restrictions found" in result.output

    def test_rejected_token_is_refreshed_once(self, invoke, control_plane) -> None:
        control_plane.state.reject_resource_calls = 1
        result = invoke("restrict", "set", "config", "team/reports")
        assert result.exit_code == 0, result.output
        assert control_plane.state.identify_calls == 2
        assert len(control_plane.state.resource_calls) == 2

    def test_api_key_option_overrides_config(self, invoke, control_plane) -> None:
        result = invoke("-A", "wrong-key", "restrict", "list")
        assert result.exit_code == 1
        assert "Authentication failed" in result.output
        assert control_plane.state.resource_calls == []

    def test_unknown_provider_makes_no_network_call(self, invoke, control_plane) -> None:
        result = invoke("restrict", "set", "config", "d", "-p", "oracle")
        assert result.exit_code == 1
        assert "oracle" in result.output
        assert control_plane.state.identify_calls == 0
        assert control_plane.state.resource_calls == []


# ---------------------------------------------------------------------------
# ResidencyController
# ---------------------------------------------------------------------------


class TestControllerAgainstControlPlane:
    def test_restrict_get_remove(self, controller: ResidencyController, control_plane) -> None:
        record = controller.restrict("placement", "team/reports", region=["eu"], exclude_provider=["aws"])
        assert record.path == f"v1/restrict/placement/{TEAM_REPORTS}"

        restriction = controller.get("placement", "team/reports")
        assert restriction.details.regions_allowed == ["xe"]
        assert restriction.directory_for_display(decode_output=True) == "team/reports"

        controller.remove("placement", TEAM_REPORTS, already_encoded=True)
        with pytest.raises(RemoteError) as excinfo:
            controller.get("placement", "team/reports")
        assert excinfo.value.status == 404

    def test_one_token_per_controller(self, controller: ResidencyController, control_plane) -> None:
        controller.restrict("config", "a")
        controller.restrict("config", "b")
        controller.list_restrictions()
        assert control_plane.state.identify_calls == 1

    def test_retry_once_then_succeed(self, controller: ResidencyController, control_plane) -> None:
        controller.restrict("config", "a")
        control_plane.state.reject_resource_calls = 1
        assert [r.api for r in controller.list_restrictions("config")] == ["config"]
        assert control_plane.state.identify_calls == 2

    def test_two_rejections_exhaust(self, controller: ResidencyController, control_plane) -> None:
        control_plane.state.reject_resource_calls = 2
        with pytest.raises(AuthExhaustedError):
            controller.list_restrictions()
        assert control_plane.state.identify_calls == 2
        assert len(control_plane.state.resource_calls) == 2

    def test_identify_failure(self, control_plane) -> None:
        control_plane.state.identify_status = 500
        controller = ResidencyController(
            api_key="abc123",
            identity_url=control_plane.url,
            restrict_url=control_plane.url,
            allow_insecure_urls=True,
        )
        with pytest.raises(AuthError):
            controller.list_restrictions()
        assert control_plane.state.resource_calls == []

    def test_unknown_provider_makes_no_network_call(
        self, controller: ResidencyController, control_plane
    ) -> None:
        with pytest.raises(UnknownIdentifierError):
            controller.restrict("config", "d", provider=["oracle"])
        assert control_plane.state.identify_calls == 0
        assert control_plane.state.resource_calls == []

    def test_unknown_api_lists_choices(self, controller: ResidencyController, control_plane) -> None:
        with pytest.raises(UnknownIdentifierError, match="config, locks, placement"):
            controller.list_restrictions("secrets")
        assert control_plane.state.identify_calls == 0
