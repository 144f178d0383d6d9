"""Tests for the command-line driver: exit codes and failure messages."""

import functools
import logging

import pytest
from click.testing import CliRunner

from mock_services import mock_ovh_api
from server_order import main
from server_order.retry import CheckoutRetryPolicy
from tests.fakes import route_sdk_to_app

ENVIRON = {
    "OVH_ENDPOINT": "ovh-us",
    "OVH_APPLICATION_KEY": "app-key",
    "OVH_APPLICATION_SECRET": "app-secret",
    "OVH_CONSUMER_KEY": "consumer-key",
}


@pytest.fixture(autouse=True)
def restore_logging():
    """The driver reconfigures the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def mock_api(monkeypatch):
    """Routes the SDK requests of the driver to the FastAPI mock."""
    mock_ovh_api.reset()
    route_sdk_to_app(monkeypatch, mock_ovh_api.app)
    return mock_ovh_api


def _invoke(args=(), env=None):
    runner = CliRunner()
    environ = dict(ENVIRON) if env is None else env
    # --log-file "" keeps the test run from writing a log file
    return runner.invoke(main.cli, ["--log-file", "", *args], env={
        name: environ.get(name) for name in ENVIRON
    })


class TestCli:

    def test_successful_order(self, mock_api):
        result = _invoke(["--profile", "rise-vrack"])

        assert result.exit_code == 0, result.output
        assert "has been successfully paid" in result.output
        assert all(order["paid"] for order in mock_api.ORDERS.values())
        assert len(mock_api.ORDERS) == 1

    def test_missing_credentials_exit_code(self, mock_api):
        env = dict(ENVIRON)
        del env["OVH_CONSUMER_KEY"]

        result = _invoke(env=env)

        assert result.exit_code == main.EXIT_CONFIGURATION_ERROR
        assert "OVH_CONSUMER_KEY" in result.output
        assert mock_api.CARTS == {}

    def test_workflow_failure_names_step(self, mock_api, tmp_path):
        profile = tmp_path / "profile.json"
        profile.write_text('{"options": ["bandwidth-unavailable-24rise-us"]}')

        result = _invoke(["--profile-file", str(profile)])

        assert result.exit_code == main.EXIT_WORKFLOW_FAILED
        assert "add option bandwidth-unavailable-24rise-us failed" in result.output
        assert "HTTP 400" in result.output

    def test_retry_exhaustion_reports_attempts(self, mock_api, tmp_path, monkeypatch):
        monkeypatch.setattr(mock_api, "FLAKY_CHECKOUT_FAILURES", 10)
        no_sleep = functools.partial(CheckoutRetryPolicy, sleep=lambda seconds: None)
        monkeypatch.setattr(main, "CheckoutRetryPolicy", no_sleep)
        profile = tmp_path / "profile.json"
        profile.write_text('{"description": "FLAKY-CHECKOUT"}')

        result = _invoke(["--profile-file", str(profile), "--max-attempts", "2"])

        assert result.exit_code == main.EXIT_WORKFLOW_FAILED
        assert "checkout failed: order validation failed after 2 attempts" in result.output

    def test_unknown_profile_is_usage_error(self, mock_api):
        result = _invoke(["--profile", "nope"])
        assert result.exit_code == 2
