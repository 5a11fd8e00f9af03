"""
Unit tests for Config.

Tests environment parsing, YAML merging, precedence and how the Mediator
picks up its defaults.
"""

import pytest

from mediator import Mediator, UnknownPatternWarning
from mediator.config import Config, ConfigLoadError, ConfigValidationError


def _write(tmp_path, text, name="mediator.yaml"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


class TestEnvironmentLoading:
    """Test values read from MEDIATOR_* variables."""

    def test_defaults(self, clean_env):
        Config.load()

        assert Config.ENVIRONMENT == "development"
        assert Config.LOG_LEVEL == "INFO"
        assert Config.LOG_JSON is None
        assert Config.METRICS_ENABLED is True
        assert Config.VALIDATE_ACTORS is True
        assert Config.WARN_UNKNOWN_UNLISTEN is True
        assert Config.CONFIG_FILE is None

    def test_env_overrides(self, clean_env):
        clean_env.setenv("MEDIATOR_ENVIRONMENT", "production")
        clean_env.setenv("MEDIATOR_LOG_LEVEL", "warning")
        clean_env.setenv("MEDIATOR_METRICS_ENABLED", "off")
        clean_env.setenv("MEDIATOR_LOG_JSON", "yes")

        Config.load()

        assert Config.is_production()
        assert Config.LOG_LEVEL == "WARNING"
        assert Config.METRICS_ENABLED is False
        assert Config.LOG_JSON is True
        assert Config.get("mediator.metrics_enabled") is False

    def test_invalid_bool_falls_back(self, clean_env):
        clean_env.setenv("MEDIATOR_VALIDATE_ACTORS", "maybe")

        Config.load()

        assert Config.VALIDATE_ACTORS is True
        assert "MEDIATOR_VALIDATE_ACTORS" in Config.get_metrics().validation_errors

    def test_invalid_log_level_falls_back(self, clean_env):
        clean_env.setenv("MEDIATOR_LOG_LEVEL", "LOUD")

        Config.load()

        assert Config.LOG_LEVEL == "INFO"
        assert "MEDIATOR_LOG_LEVEL" in Config.get_metrics().validation_errors

    def test_unknown_environment_falls_back(self, clean_env):
        clean_env.setenv("MEDIATOR_ENVIRONMENT", "moon")
        Config.load()
        assert Config.ENVIRONMENT == "development"

    def test_blank_value_is_unset(self, clean_env):
        clean_env.setenv("MEDIATOR_LOG_LEVEL", "   ")
        Config.load()
        assert Config.LOG_LEVEL == "INFO"

    def test_metrics_cap_from_environment(self, clean_env):
        clean_env.setenv("MEDIATOR_METRICS_MAX_EVENT_NAMES", "250")

        Config.load()

        assert Config.METRICS_MAX_EVENT_NAMES == 250
        assert Config.get("mediator.metrics_max_event_names") == 250

    @pytest.mark.parametrize("raw", ["many", "0", "-3"])
    def test_invalid_metrics_cap_falls_back(self, clean_env, raw):
        clean_env.setenv("MEDIATOR_METRICS_MAX_EVENT_NAMES", raw)

        Config.load()

        assert Config.METRICS_MAX_EVENT_NAMES == 1000
        assert "MEDIATOR_METRICS_MAX_EVENT_NAMES" in Config.get_metrics().validation_errors

    def test_get_returns_default_for_missing_key(self, clean_env):
        assert Config.get("mediator.nope", 5) == 5

    def test_load_summary(self, clean_env):
        clean_env.setenv("MEDIATOR_METRICS_ENABLED", "false")
        Config.load()

        summary = Config.get_metrics().get_summary()

        assert summary["from_environment"] == 1
        assert "MEDIATOR_VALIDATE_ACTORS" in summary["defaults_used"]
        assert summary["last_reload"] is not None


class TestDotenv:
    """Test the host .env file read by Config.load()."""

    KEY = "MEDIATOR_METRICS_MAX_EVENT_NAMES"

    def _dotenv(self, clean_env, tmp_path, value):
        (tmp_path / ".env").write_text(f"{self.KEY}={value}\n", encoding="utf-8")
        clean_env.chdir(tmp_path)
        # load_dotenv writes os.environ directly; register the key for restore.
        clean_env.setenv(self.KEY, "unset")
        clean_env.delenv(self.KEY)

    def test_dotenv_read_on_load(self, clean_env, tmp_path):
        self._dotenv(clean_env, tmp_path, 7)

        Config.load()

        assert Config.METRICS_MAX_EVENT_NAMES == 7

    def test_real_environment_beats_dotenv(self, clean_env, tmp_path):
        self._dotenv(clean_env, tmp_path, 7)
        clean_env.setenv(self.KEY, "9")

        Config.load()

        assert Config.METRICS_MAX_EVENT_NAMES == 9


class TestYamlFile:
    """Test the optional YAML configuration file."""

    def test_yaml_values_applied(self, clean_env, tmp_path):
        path = _write(
            tmp_path,
            "environment: staging\n"
            "logging:\n"
            "  level: DEBUG\n"
            "  json: true\n"
            "mediator:\n"
            "  metrics_enabled: false\n"
            "  warn_unknown_unlisten: false\n",
        )
        clean_env.setenv("MEDIATOR_CONFIG_FILE", str(path))

        Config.load()

        assert Config.ENVIRONMENT == "staging"
        assert Config.LOG_LEVEL == "DEBUG"
        assert Config.LOG_JSON is True
        assert Config.METRICS_ENABLED is False
        assert Config.WARN_UNKNOWN_UNLISTEN is False
        assert Config.CONFIG_FILE == path

    def test_yaml_metrics_cap(self, clean_env, tmp_path):
        path = _write(tmp_path, "mediator:\n  metrics_max_event_names: 50\n")
        clean_env.setenv("MEDIATOR_CONFIG_FILE", str(path))

        Config.load()

        assert Config.METRICS_MAX_EVENT_NAMES == 50

    @pytest.mark.parametrize("value", ["true", "\"fifty\""])
    def test_yaml_metrics_cap_wrong_type(self, clean_env, tmp_path, value):
        path = _write(tmp_path, f"mediator:\n  metrics_max_event_names: {value}\n")
        clean_env.setenv("MEDIATOR_CONFIG_FILE", str(path))

        with pytest.raises(ConfigValidationError):
            Config.load()

    def test_env_beats_yaml(self, clean_env, tmp_path):
        path = _write(tmp_path, "mediator:\n  metrics_enabled: false\n")
        clean_env.setenv("MEDIATOR_CONFIG_FILE", str(path))
        clean_env.setenv("MEDIATOR_METRICS_ENABLED", "true")

        Config.load()

        assert Config.METRICS_ENABLED is True

    def test_empty_file_uses_defaults(self, clean_env, tmp_path):
        clean_env.setenv("MEDIATOR_CONFIG_FILE", str(_write(tmp_path, "")))
        Config.load()
        assert Config.VALIDATE_ACTORS is True

    def test_missing_file(self, clean_env, tmp_path):
        clean_env.setenv("MEDIATOR_CONFIG_FILE", str(tmp_path / "absent.yaml"))
        with pytest.raises(ConfigLoadError):
            Config.load()

    def test_unparsable_file(self, clean_env, tmp_path):
        clean_env.setenv("MEDIATOR_CONFIG_FILE", str(_write(tmp_path, "mediator: [unclosed\n")))
        with pytest.raises(ConfigLoadError):
            Config.load()

    def test_non_mapping_root(self, clean_env, tmp_path):
        clean_env.setenv("MEDIATOR_CONFIG_FILE", str(_write(tmp_path, "- a\n- b\n")))
        with pytest.raises(ConfigLoadError):
            Config.load()

    def test_wrong_type(self, clean_env, tmp_path):
        path = _write(tmp_path, "mediator:\n  validate_actors: 3\n")
        clean_env.setenv("MEDIATOR_CONFIG_FILE", str(path))
        with pytest.raises(ConfigValidationError):
            Config.load()

    def test_failed_load_is_not_marked_loaded(self, clean_env, tmp_path):
        clean_env.setenv("MEDIATOR_CONFIG_FILE", str(tmp_path / "absent.yaml"))
        Config._loaded = False
        with pytest.raises(ConfigLoadError):
            Config.ensure_loaded()
        assert Config._loaded is False


class TestMediatorDefaults:
    """Test how Mediator resolves its flags from Config."""

    def test_config_disables_metrics(self, clean_env):
        clean_env.setenv("MEDIATOR_METRICS_ENABLED", "false")
        Config._loaded = False

        assert Mediator().get_metrics() is None

    def test_explicit_argument_wins(self, clean_env):
        clean_env.setenv("MEDIATOR_METRICS_ENABLED", "false")
        Config._loaded = False

        assert Mediator(enable_metrics=True).get_metrics() is not None

    def test_config_disables_validation(self, clean_env):
        clean_env.setenv("MEDIATOR_VALIDATE_ACTORS", "0")
        Config._loaded = False

        mediator = Mediator()
        mediator.listen("a").act(lambda: None)

        assert mediator.get_actor_count() == 1

    def test_broken_config_falls_back_to_defaults(self, clean_env, tmp_path):
        clean_env.setenv("MEDIATOR_CONFIG_FILE", str(tmp_path / "absent.yaml"))
        Config._loaded = False

        mediator = Mediator()

        assert mediator.get_metrics() is not None
        with pytest.warns(UnknownPatternWarning):
            mediator.unlisten("unknown")


class TestSummary:
    """Test the debugging summary."""

    def test_config_summary(self, clean_env, tmp_path):
        path = _write(tmp_path, "mediator:\n  validate_actors: false\n")
        clean_env.setenv("MEDIATOR_CONFIG_FILE", str(path))
        clean_env.setenv("MEDIATOR_ENVIRONMENT", "testing")
        Config.load()

        summary = Config.get_config_summary()

        assert Config.is_testing()
        assert summary["environment"] == "testing"
        assert summary["validate_actors"] is False
        assert summary["config_file"] == str(path)
