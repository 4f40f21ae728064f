"""Tests for YAML configuration loading."""

import logging

import pytest

from cli_config import CliConfig, load_config
from common.errors import ConfigurationError


class TestLoadConfig:
    """Reading config files."""

    def test_no_path(self):
        """No config file gives an empty config."""
        cfg = load_config(None)
        assert cfg.env == {}
        assert cfg.defaults == {}

    def test_env_and_defaults(self, tmp_path):
        """env values become strings and defaults become booleans."""
        path = tmp_path / "cfg.yml"
        path.write_text(
            "env:\n"
            "  GOPROXY: https://proxy.example.com,direct\n"
            "  GOPRIVATE:\n"
            "defaults:\n"
            "  pre: yes\n"
            "  cached: 'false'\n",
            encoding="utf-8",
        )
        cfg = load_config(str(path))
        assert cfg.env == {"GOPROXY": "https://proxy.example.com,direct", "GOPRIVATE": ""}
        assert cfg.defaults == {"pre": True, "cached": False}

    def test_empty_file(self, tmp_path):
        """An empty file is an empty config."""
        path = tmp_path / "cfg.yml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)) == CliConfig()

    def test_missing_file(self, tmp_path):
        """A missing file is reported."""
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(str(tmp_path / "nope.yml"))

    @pytest.mark.parametrize("content", [
        "env: [unclosed\n",
        "- just\n- a list\n",
        "env: [a, b]\n",
        "defaults:\n  pre: maybe\n",
    ])
    def test_malformed(self, tmp_path, content):
        """Bad YAML or bad shapes are configuration errors."""
        path = tmp_path / "cfg.yml"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_unknown_defaults_warn(self, tmp_path, caplog):
        """Unknown defaults are dropped with a warning."""
        path = tmp_path / "cfg.yml"
        path.write_text("defaults:\n  major: true\n", encoding="utf-8")
        with caplog.at_level(logging.WARNING):
            cfg = load_config(str(path))
        assert cfg.defaults == {}
        assert "major" in caplog.text


class TestFlagPrecedence:
    """CLI flag over config default over built-in fallback."""

    def test_cli_wins(self):
        """An explicit flag beats the config default."""
        cfg = CliConfig(defaults={"pre": True})
        assert cfg.flag("pre", False, False) is False

    def test_config_default(self):
        """The config default beats the fallback."""
        cfg = CliConfig(defaults={"cached": False})
        assert cfg.flag("cached", None, True) is False

    def test_fallback(self):
        """The fallback is used when nothing else is set."""
        assert CliConfig().flag("cached", None, True) is True
