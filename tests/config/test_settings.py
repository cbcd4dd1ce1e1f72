"""Tests for configuration and settings functionality."""

import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from lumiere.config.settings import (
    Settings,
    SettingsError,
    SettingsLoadResult,
    _collect_env_overrides,
    _determine_config_path,
    _flatten_toml,
    load_settings,
)


class TestSettings:
    """Test Settings model functionality."""

    def test_settings_default_values(self):
        """Test Settings model with default values."""
        settings = Settings()

        assert settings.tmdb_api_key is None
        assert settings.tmdb_base_url == "https://api.themoviedb.org/3"
        assert settings.tmdb_language == "en-US"
        assert settings.tmdb_timeout == 20.0
        assert settings.min_vote_count == 10
        assert settings.max_pages == 50
        assert settings.page_batch_size == 5
        assert settings.detail_batch_size == 10
        assert settings.detail_batch_delay == 0.1

    def test_settings_with_aliases(self):
        """Test Settings model using environment variable aliases."""
        settings = Settings(
            TMDB_API_KEY="tmdb-key",
            TMDB_LANGUAGE="pt-BR",
            LUMIERE_MAX_PAGES=20,
        )

        assert settings.tmdb_api_key == "tmdb-key"
        assert settings.tmdb_language == "pt-BR"
        assert settings.max_pages == 20

    def test_settings_extra_fields_ignored(self):
        """Test that extra fields are ignored in Settings model."""
        settings = Settings(tmdb_api_key="key", unknown_field="should-be-ignored")

        assert settings.tmdb_api_key == "key"
        assert not hasattr(settings, "unknown_field")

    def test_settings_reject_zero_batch_size(self):
        with pytest.raises(ValueError):
            Settings(page_batch_size=0)

    def test_require_tmdb_success(self):
        """Test require_tmdb method with a configured key."""
        Settings(tmdb_api_key="key").require_tmdb()

    def test_require_tmdb_missing_key(self):
        """Test require_tmdb method without a key."""
        with pytest.raises(SettingsError, match="Missing TMDB_API_KEY"):
            Settings().require_tmdb()


class TestDetermineConfigPath:
    """Test config path determination logic."""

    def test_determine_config_path_explicit(self):
        explicit_path = Path("/custom/config.toml")
        assert _determine_config_path(explicit_path) == explicit_path

    def test_determine_config_path_from_env(self):
        with patch.dict(os.environ, {"LUMIERE_CONFIG": "/env/config.toml"}):
            result = _determine_config_path(None)
            assert result == Path("/env/config.toml").expanduser().resolve()

    def test_determine_config_path_default_exists(self):
        with patch.dict(os.environ, {}, clear=True):
            with patch("pathlib.Path.exists", return_value=True):
                result = _determine_config_path(None)
                assert result == Path.home() / ".config" / "lumiere" / "config.toml"

    def test_determine_config_path_default_not_exists(self):
        with patch.dict(os.environ, {}, clear=True):
            with patch("pathlib.Path.exists", return_value=False):
                assert _determine_config_path(None) is None


class TestFlattenToml:
    """Test TOML configuration flattening."""

    def test_flatten_toml_empty(self):
        assert _flatten_toml({}) == {}

    def test_flatten_toml_tmdb_and_pool_sections(self):
        toml_data = {
            "tmdb": {
                "api_key": "toml-key",
                "base_url": "https://tmdb.internal/3",
                "language": "es-ES",
                "timeout": 5,
                "min_vote_count": "50",
            },
            "pool": {
                "max_pages": 10,
                "page_batch_size": 3,
                "detail_batch_size": 4,
                "detail_batch_delay": 0,
            },
        }

        result = _flatten_toml(toml_data)

        assert result == {
            "tmdb_api_key": "toml-key",
            "tmdb_base_url": "https://tmdb.internal/3",
            "tmdb_language": "es-ES",
            "tmdb_timeout": 5.0,
            "min_vote_count": 50,
            "max_pages": 10,
            "page_batch_size": 3,
            "detail_batch_size": 4,
            "detail_batch_delay": 0.0,
        }

    def test_flatten_toml_ignores_unknown_sections(self):
        assert _flatten_toml({"unrelated": {"api_key": "x"}}) == {}


class TestCollectEnvOverrides:
    """Test environment variable collection."""

    def test_collect_env_overrides_empty(self):
        with patch.dict(os.environ, {}, clear=True):
            assert _collect_env_overrides() == {}

    def test_collect_env_overrides_typed_values(self):
        env_vars = {
            "TMDB_API_KEY": "env-key",
            "TMDB_TIMEOUT": "2.5",
            "TMDB_MIN_VOTE_COUNT": "100",
            "LUMIERE_PAGE_BATCH_SIZE": "8",
            "LUMIERE_DETAIL_BATCH_DELAY": "0.25",
        }

        with patch.dict(os.environ, env_vars, clear=True):
            result = _collect_env_overrides()

        assert result == {
            "tmdb_api_key": "env-key",
            "tmdb_timeout": 2.5,
            "min_vote_count": 100,
            "page_batch_size": 8,
            "detail_batch_delay": 0.25,
        }


class TestLoadSettings:
    """Test settings loading functionality."""

    def test_load_settings_from_env_only(self):
        with patch.dict(os.environ, {"TMDB_API_KEY": "env-key"}, clear=True):
            with patch("lumiere.config.settings._determine_config_path", return_value=None):
                result = load_settings(load_env=False)

        assert isinstance(result, SettingsLoadResult)
        assert result.settings.tmdb_api_key == "env-key"
        assert result.source_path is None

    def test_load_settings_env_overrides_toml(self):
        toml_content = """
        [tmdb]
        api_key = "toml-key"
        language = "de-DE"

        [pool]
        max_pages = 12
        """

        with tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
            f.write(toml_content)
            config_path = Path(f.name)

        try:
            with patch.dict(os.environ, {"TMDB_API_KEY": "env-key"}, clear=True):
                result = load_settings(config_path=config_path, load_env=False)

            assert result.settings.tmdb_api_key == "env-key"
            assert result.settings.tmdb_language == "de-DE"
            assert result.settings.max_pages == 12
            assert result.source_path == config_path
        finally:
            config_path.unlink()

    def test_load_settings_with_dotenv(self):
        with patch("lumiere.config.settings.load_dotenv") as mock_load_dotenv:
            with patch("lumiere.config.settings._determine_config_path", return_value=None):
                with patch.dict(os.environ, {}, clear=True):
                    load_settings(load_env=True)
                    mock_load_dotenv.assert_called_once()

    def test_load_settings_without_dotenv(self):
        with patch("lumiere.config.settings.load_dotenv") as mock_load_dotenv:
            with patch("lumiere.config.settings._determine_config_path", return_value=None):
                with patch.dict(os.environ, {}, clear=True):
                    load_settings(load_env=False)
                    mock_load_dotenv.assert_not_called()

    def test_load_settings_nonexistent_config_file(self):
        nonexistent_path = Path("/nonexistent/config.toml")

        with patch.dict(os.environ, {}, clear=True):
            result = load_settings(config_path=nonexistent_path, load_env=False)

        assert isinstance(result.settings, Settings)
        assert result.source_path == nonexistent_path

    def test_load_settings_malformed_toml(self):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
            f.write("[tmdb\napi_key = ")
            config_path = Path(f.name)

        try:
            with patch.dict(os.environ, {}, clear=True):
                with pytest.raises(SettingsError, match="Invalid TOML"):
                    load_settings(config_path=config_path, load_env=False)
        finally:
            config_path.unlink()

    def test_load_settings_invalid_env_value(self):
        with patch.dict(os.environ, {"LUMIERE_MAX_PAGES": "lots"}, clear=True):
            with patch("lumiere.config.settings._determine_config_path", return_value=None):
                with pytest.raises(SettingsError):
                    load_settings(load_env=False)

    def test_load_settings_out_of_range_value(self):
        with patch.dict(os.environ, {"LUMIERE_MAX_PAGES": "0"}, clear=True):
            with patch("lumiere.config.settings._determine_config_path", return_value=None):
                with pytest.raises(SettingsError):
                    load_settings(load_env=False)
