"""Tests for settings loading and the derived request deadline."""

import pytest

from perftracker.config import DEFAULT_CONCURRENCY, Settings


def _settings(**overrides):
    return Settings(RIOT_API_KEY="test_key", _env_file=None, **overrides)


class TestSettings:

    def test_defaults(self):
        settings = _settings()
        assert settings.MATCH_FETCH_CONCURRENCY == DEFAULT_CONCURRENCY
        assert settings.PUUID_TTL == 86400
        assert settings.MATCH_IDS_TTL == 3600
        assert settings.MATCH_DETAILS_TTL == 7 * 86400
        assert settings.PERFORMANCE_TTL == 1800
        assert settings.MAX_MATCH_COUNT == 100

    @pytest.mark.parametrize("value,expected", [
        (5, 5),
        ("42", 42),
        (1, 1),
        (100, 100),
        (0, DEFAULT_CONCURRENCY),
        (-3, DEFAULT_CONCURRENCY),
        (101, DEFAULT_CONCURRENCY),
        ("abc", DEFAULT_CONCURRENCY),
    ])
    def test_concurrency_clamp(self, value, expected):
        assert _settings(MATCH_FETCH_CONCURRENCY=value).MATCH_FETCH_CONCURRENCY == expected

    def test_concurrency_from_environment(self, monkeypatch):
        monkeypatch.setenv("MATCH_FETCH_CONCURRENCY", "not-a-number")
        assert _settings().MATCH_FETCH_CONCURRENCY == DEFAULT_CONCURRENCY

    def test_request_deadline(self):
        settings = _settings()
        assert settings.request_deadline(25) == 50 + 10 * 25
        assert _settings(DEADLINE_BASE=1, DEADLINE_PER_MATCH=0.5).request_deadline(4) == 3.0
