"""Launch options: command line over environment."""
from __future__ import annotations

import pytest

from spy_chase.config import Settings
from spy_chase.main import parse_args, load_settings

pytestmark = pytest.mark.unit


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SPY_CHASE_MODE", raising=False)
        settings = load_settings(parse_args([]))
        assert settings.mode == "campaign"
        assert settings.seed is None
        assert settings.spawn_table == "classic"

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("SPY_CHASE_MODE", "endless")
        monkeypatch.setenv("SPY_CHASE_SEED", "42")
        settings = Settings()
        assert settings.mode == "endless"
        assert settings.seed == 42

    def test_command_line_wins(self, monkeypatch):
        monkeypatch.setenv("SPY_CHASE_MODE", "endless")
        args = parse_args(["--mode", "campaign", "--seed", "7", "--spawn-table", "rammer"])
        settings = load_settings(args)
        assert settings.mode == "campaign"
        assert settings.seed == 7
        assert settings.spawn_table == "rammer"

    def test_bad_mode_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["--mode", "arcade"])
