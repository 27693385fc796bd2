"""Tests for environment-driven settings."""

from __future__ import annotations

from bloomlink.config import Settings, get_settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("BL_FILTER_SIZE", raising=False)
        settings = Settings()
        assert settings.filter_size == 256
        assert settings.hash_count == 4
        assert settings.minhash_size == 100
        assert settings.band_width == 10
        assert settings.similarity_threshold == 0.9
        assert settings.bucket_quorum is None

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("BL_FILTER_SIZE", "512")
        monkeypatch.setenv("BL_BUCKET_QUORUM", "3")
        settings = get_settings()
        assert settings.filter_size == 512
        assert settings.bucket_quorum == 3
