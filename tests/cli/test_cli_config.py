"""Tests for ``figma-mcp-proxy config``."""

from __future__ import annotations

import json

from click.testing import CliRunner

from figma_proxy.cli import main


class TestConfig:
    def test_defaults_table(self) -> None:
        result = CliRunner().invoke(main, ["config"])

        assert result.exit_code == 0
        assert "Effective Configuration" in result.output
        assert "TARGET_URL" in result.output
        assert "http://localhost:3845" in result.output

    def test_json_masks_api_key(self, monkeypatch) -> None:
        monkeypatch.setenv("API_KEY", "top-secret")
        monkeypatch.setenv("PORT", "9000")

        result = CliRunner().invoke(main, ["config", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["api_key"] == "****"
        assert data["port"] == 9000
        assert "top-secret" not in result.output

    def test_invalid_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("TARGET_URL", "not a url")

        result = CliRunner().invoke(main, ["config"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output


def test_version() -> None:
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "figma-mcp-proxy" in result.output
    assert "0.1.0" in result.output
