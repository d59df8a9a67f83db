"""Unit tests for configuration module."""

from __future__ import annotations

import pytest

from lmdb_client.application import resolve_options
from lmdb_client.infrastructure.config import (
    Config,
    EnvironmentOptions,
    ObservabilityConfig,
    get_config,
)


@pytest.mark.unit
class TestEnvironmentOptions:
    """Tests for EnvironmentOptions."""

    def test_defaults(self) -> None:
        options = EnvironmentOptions()

        assert options.flags == 0
        assert options.mode == 0o755
        assert options.maxreaders is None
        assert options.maxdbs == 10
        assert options.mapsize is None

    def test_non_positive_values_are_unset(self) -> None:
        options = EnvironmentOptions(maxreaders=0, mapsize=-1)

        assert options.maxreaders is None
        assert options.mapsize is None

    def test_maxdbs_clamped_to_one(self) -> None:
        assert EnvironmentOptions(maxdbs=0).maxdbs == 1
        assert EnvironmentOptions(maxdbs=-5).maxdbs == 1

    def test_negative_flags_rejected(self) -> None:
        with pytest.raises(ValueError):
            EnvironmentOptions(flags=-1)


@pytest.mark.unit
class TestConfig:
    """Tests for Config class."""

    def test_default_config(self) -> None:
        config = Config()

        assert config.environment == EnvironmentOptions()
        assert config.observability.log_level == "INFO"
        assert config.observability.log_format == "json"
        assert config.observability.metrics_port is None

    def test_environment_variables_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LMDB_CLIENT_ENVIRONMENT__MAXDBS", "3")
        monkeypatch.setenv("LMDB_CLIENT_OBSERVABILITY__LOG_LEVEL", "DEBUG")

        config = Config()

        assert config.environment.maxdbs == 3
        assert config.observability.log_level == "DEBUG"

    def test_invalid_log_format(self) -> None:
        with pytest.raises(ValueError):
            ObservabilityConfig(log_format="xml")  # type: ignore[arg-type]


@pytest.mark.unit
class TestConfigSingleton:
    """Tests for get_config singleton."""

    def test_get_config_returns_same_instance(self) -> None:
        assert get_config() is get_config()


@pytest.mark.unit
class TestResolveOptions:
    """Tests for merging open options."""

    def test_overrides_are_validated(self) -> None:
        options = resolve_options(EnvironmentOptions(maxdbs=4), mapsize=0, mode=0o700)

        assert options.maxdbs == 4
        assert options.mapsize is None
        assert options.mode == 0o700

    def test_without_overrides_returns_base(self) -> None:
        base = EnvironmentOptions(maxdbs=2)

        assert resolve_options(base) is base

    def test_defaults_come_from_config(self) -> None:
        assert resolve_options() == get_config().environment
