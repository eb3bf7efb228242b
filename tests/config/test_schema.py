"""Comprehensive tests for config.schema module."""

import pytest
from pydantic import ValidationError

from config.schema import (
    DEFAULT_BUILD_OUTPUT_DIRS,
    BuildConfig,
    HistoryConfig,
    RuntimeSettings,
    StartConfig,
    StreamingConfig,
)


class TestHistoryConfig:
    """Tests for HistoryConfig."""

    def test_defaults(self):
        config = HistoryConfig()
        assert config.directory == ".history"
        assert config.max_versions == 10
        assert config.workspace_prefixes == ["/home/project/"]

    def test_directory_is_normalized(self):
        assert HistoryConfig(directory=" /.versions/ ").directory == ".versions"

    def test_directory_validation(self):
        with pytest.raises(ValidationError):
            HistoryConfig(directory="/")
        with pytest.raises(ValidationError):
            HistoryConfig(directory="../outside")

    def test_max_versions_validation(self):
        with pytest.raises(ValidationError):
            HistoryConfig(max_versions=0)

    def test_prefixes_get_trailing_slash(self):
        config = HistoryConfig(workspace_prefixes=["/workspace", "/home/project/", ""])
        assert config.workspace_prefixes == ["/workspace/", "/home/project/"]


class TestBuildConfig:
    """Tests for BuildConfig."""

    def test_defaults(self):
        config = BuildConfig()
        assert config.command == ["npm", "run", "build"]
        assert config.output_dirs == DEFAULT_BUILD_OUTPUT_DIRS

    def test_defaults_are_not_shared(self):
        a = BuildConfig()
        a.output_dirs.append("site")
        assert "site" not in BuildConfig().output_dirs

    def test_empty_lists_rejected(self):
        with pytest.raises(ValidationError):
            BuildConfig(command=[])
        with pytest.raises(ValidationError):
            BuildConfig(output_dirs=[])


class TestStartAndStreaming:
    def test_settle_delay(self):
        assert StartConfig().settle_delay_seconds == 2.0
        assert StartConfig(settle_delay_seconds=0).settle_delay_seconds == 0
        with pytest.raises(ValidationError):
            StartConfig(settle_delay_seconds=-1)

    def test_sample_interval(self):
        assert StreamingConfig().sample_interval_seconds == 0.1
        with pytest.raises(ValidationError):
            StreamingConfig(sample_interval_seconds=-0.5)


class TestRuntimeSettings:
    """Tests for RuntimeSettings."""

    def test_defaults(self):
        settings = RuntimeSettings()
        assert settings.history.max_versions == 10
        assert settings.build.command == ["npm", "run", "build"]
        assert settings.start.settle_delay_seconds == 2.0
        assert settings.runner_id is None
        assert settings.workspace_root is None

    def test_nested_dicts(self):
        settings = RuntimeSettings(history={"max_versions": 3}, start={"settle_delay_seconds": "0.5"})
        assert settings.history.max_versions == 3
        assert settings.start.settle_delay_seconds == 0.5

    def test_unknown_keys_rejected(self):
        with pytest.raises(ValidationError):
            RuntimeSettings(telemetry={"enabled": True})
