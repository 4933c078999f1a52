"""
tests/tag_inspector/test_config.py - Settings and environment helpers
"""

import pytest

from tag_inspector import __version__
from tag_inspector.config import (
    LogConfig,
    Settings,
    get_default_region,
    get_exclusion_parameter_name,
    get_version,
    settings,
)


class TestSettings:
    """Immutable defaults"""

    def test_defaults(self):
        assert settings.DEFAULT_REGION == "ap-northeast-2"
        assert settings.DEFAULT_PARTITION == "aws"
        assert settings.EXCLUSION_PARAMETER_NAME == "/tag-inspector/exclusions"

    def test_frozen(self):
        with pytest.raises(Exception):  # FrozenInstanceError
            settings.DEFAULT_REGION = "us-east-1"

    def test_override_by_construction(self):
        assert Settings(DEFAULT_PARTITION="aws-cn").DEFAULT_PARTITION == "aws-cn"


class TestRegionAndParameter:
    """Region and SSM parameter resolution"""

    def test_aws_region_takes_precedence(self, monkeypatch):
        monkeypatch.setenv("AWS_REGION", "us-west-2")
        monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-west-1")
        assert get_default_region() == "us-west-2"

    def test_default_region_env(self, monkeypatch):
        monkeypatch.delenv("AWS_REGION", raising=False)
        monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-west-1")
        assert get_default_region() == "eu-west-1"

    def test_fallback_region(self, monkeypatch):
        monkeypatch.delenv("AWS_REGION", raising=False)
        monkeypatch.delenv("AWS_DEFAULT_REGION", raising=False)
        assert get_default_region() == settings.DEFAULT_REGION

    def test_exclusion_parameter_default(self, monkeypatch):
        monkeypatch.delenv("TAG_INSPECTOR_EXCLUSION_PARAMETER", raising=False)
        assert get_exclusion_parameter_name() == "/tag-inspector/exclusions"

    def test_exclusion_parameter_override(self, monkeypatch):
        monkeypatch.setenv("TAG_INSPECTOR_EXCLUSION_PARAMETER", "/team/exclusions")
        assert get_exclusion_parameter_name() == "/team/exclusions"


class TestLogConfig:
    """Logging configuration"""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TAG_INSPECTOR_LOG_LEVEL", raising=False)
        monkeypatch.delenv("TAG_INSPECTOR_LOG_FORMAT", raising=False)
        config = LogConfig.from_env()
        assert config == LogConfig()
        assert config.level == "INFO"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TAG_INSPECTOR_LOG_LEVEL", "debug")
        monkeypatch.setenv("TAG_INSPECTOR_LOG_FORMAT", "%(message)s")
        config = LogConfig.from_env()
        assert config.level == "DEBUG"
        assert config.format == "%(message)s"


def test_get_version():
    version = get_version()
    assert isinstance(version, str)
    assert version.count(".") >= 2
    assert __version__ == "0.1.0"
