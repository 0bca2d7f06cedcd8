"""Tests for environment-backed settings, MEFS config resolution and the CLI."""

import logging

import pytest
from typer.testing import CliRunner

from mefs_mcp.cli.main_cli import app
from mefs_mcp.settings import Settings, build_mefs_config

from .conftest import TEST_ADDRESS, TEST_PRIVATE_KEY

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("MEFS_API_BASE_URL", "MEFS_ORIGIN", "MEFS_CHAIN_ID", "MEFS_PRIVATE_KEY", "MCP_TRANSPORT_MODE"):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    """Tests for Settings defaults and environment overrides."""

    def test_defaults(self):
        app_settings = Settings(_env_file=None)

        assert app_settings.mefs_api_base_url == "https://api.mefs.io:10000/produce"
        assert app_settings.mefs_origin == "https://memo.io"
        assert app_settings.mefs_chain_id == 985
        assert app_settings.mefs_private_key is None
        assert app_settings.mcp_transport_mode == "stdio"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("MEFS_API_BASE_URL", "https://example.test/api/")
        monkeypatch.setenv("MEFS_CHAIN_ID", "1")
        monkeypatch.setenv("MEFS_PRIVATE_KEY", TEST_PRIVATE_KEY)
        monkeypatch.setenv("MCP_TRANSPORT_MODE", "http")

        app_settings = Settings(_env_file=None)

        assert app_settings.mefs_api_base_url == "https://example.test/api/"
        assert app_settings.mefs_chain_id == 1
        assert app_settings.mefs_private_key.get_secret_value() == TEST_PRIVATE_KEY
        assert app_settings.mcp_transport_mode == "http"
        assert TEST_PRIVATE_KEY not in repr(app_settings)


class TestBuildMefsConfig:
    """Tests for build_mefs_config."""

    def test_derives_address_from_private_key(self):
        config = build_mefs_config(Settings(_env_file=None, mefs_private_key=TEST_PRIVATE_KEY))

        assert config.address == TEST_ADDRESS
        assert config.identity.address == TEST_ADDRESS
        assert config.identity.private_key_value() == TEST_PRIVATE_KEY
        assert config.identity.chain_id == 985

    def test_strips_trailing_slash(self):
        config = build_mefs_config(Settings(_env_file=None, mefs_api_base_url="https://example.test/api/"))

        assert config.api_base_url == "https://example.test/api"

    def test_missing_private_key_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = build_mefs_config(Settings(_env_file=None))

        assert config.private_key is None
        assert config.address is None
        assert "MEFS_PRIVATE_KEY not provided" in caplog.text

    def test_invalid_private_key_does_not_stop_startup(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = build_mefs_config(Settings(_env_file=None, mefs_private_key="not-a-key"))

        assert config.address is None
        assert config.private_key is not None
        assert "Failed to convert private key to address" in caplog.text
        assert "not-a-key" not in caplog.text


class TestCli:
    """Tests for the mefs-mcp command line interface."""

    def test_address_command(self):
        result = runner.invoke(app, ["address"], env={"MEFS_PRIVATE_KEY": TEST_PRIVATE_KEY})

        assert result.exit_code == 0
        assert result.stdout.strip() == TEST_ADDRESS

    def test_address_command_without_key(self):
        result = runner.invoke(app, ["address"])

        assert result.exit_code == 1

    def test_address_command_with_invalid_key(self):
        result = runner.invoke(app, ["address"], env={"MEFS_PRIVATE_KEY": "xyz"})

        assert result.exit_code == 1
